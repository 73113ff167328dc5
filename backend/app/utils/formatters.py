"""
Data formatting utilities.
"""

import base64
import re
from typing import Any, Dict, Optional


def format_error_response(error: Exception, status_code: int = 500) -> Dict[str, Any]:
    """
    Format error response for API.

    Args:
        error: Exception object
        status_code: HTTP status code

    Returns:
        Formatted error response dictionary
    """
    response = {
        "error": error.__class__.__name__,
        "detail": str(error),
        "status_code": status_code,
    }

    # Add additional details for custom exceptions
    if hasattr(error, 'detail') and error.detail:
        response["detail"] = error.detail

    if getattr(error, 'field', None):
        response["field"] = error.field

    return response


def encode_buffer(buffer: Optional[bytes]) -> Optional[str]:
    """Base64-encode binary file content for JSON responses."""
    if buffer is None:
        return None
    return base64.b64encode(buffer).decode("ascii")


def sanitize_archive_basename(title: str, fallback: str = "project") -> str:
    """Turn a project title into a safe archive file name (without extension)."""
    base = re.sub(r"[^a-zA-Z0-9._-]+", "_", (title or "").strip()).strip("._-")
    if not base:
        base = fallback
    return base[:80]
