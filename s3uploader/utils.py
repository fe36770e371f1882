"""Small formatting helpers shared by the CLI and the web front-end."""

_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]


def format_size(size: int) -> str:
    """Render a byte count with a binary unit, e.g. ``2.00 MB``."""
    if size <= 0:
        return "0 B"
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(_UNITS) - 1:
        exponent += 1
    value = size / (1024**exponent)
    return f"{value:.2f} {_UNITS[exponent]}"
