import html
from typing import Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(str(value), quote=True)


def normalize_optional_text(value: Optional[str]) -> Optional[str]:
    """Trim a form value, turning blank input into None"""
    if value is None:
        return None
    value = value.strip()
    return value or None
