"""Core components: settings, S3 client factory and exceptions."""
