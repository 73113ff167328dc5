"""
Rate limits for the write-heavy and copy-heavy routes.
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings


def rate_limit_key(request: Request) -> str:
    """
    Bucket requests by user once a prerequisite chain has resolved one,
    by client address otherwise.
    """
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=rate_limit_key, enabled=settings.RATE_LIMIT_ENABLED)

# "count/period"; publishing and remixing copy every file of a project
PUBLISH_LIMIT = "30/minute"
REMIX_LIMIT = "30/minute"
EXPORT_LIMIT = "20/minute"
# Editors save one request per file
FILE_UPLOAD_LIMIT = "120/minute"
