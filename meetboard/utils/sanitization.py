import html
import re
from typing import Optional

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


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


def clean_message_content(value: Optional[str], max_length: int = 5000) -> str:
    """
    Trim and escape chat/notes content.
    Returns an empty string for blank input so callers can reject it.

    Raises:
        ValueError: If content exceeds max_length
    """
    if not value:
        return ""
    value = value.strip()
    if len(value) > max_length:
        raise ValueError(f"Message exceeds maximum length of {max_length} characters")
    return html.escape(value, quote=True)


def sanitize_filename(filename: str) -> str:
    """Replace anything outside [a-zA-Z0-9._-] so names are safe as object keys"""
    return _UNSAFE_FILENAME_CHARS.sub("_", filename or "file")
