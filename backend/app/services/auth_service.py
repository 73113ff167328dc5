"""
Authentication: bearer-token validation against the identity provider and
signed export tokens.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

import httpx
from fastapi import Depends, Header
from jose import JWTError, jwt
from loguru import logger

from app.core.config import settings
from app.utils.exceptions import AuthenticationError, IdentityProviderError

EXPORT_PROJECT_TOKEN_TYPE = "export_project"

# Authorization schemes accepted for user tokens
USER_TOKEN_SCHEMES = ("token", "bearer")
EXPORT_TOKEN_SCHEME = "export"


class TokenValidator:
    """Validates user tokens with the identity provider's ``/user`` endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def validate(self, token: str) -> Tuple[bool, Optional[Dict[str, Any]]]:
        """
        Ask the identity provider who owns ``token``.

        Returns:
            ``(True, credentials)`` for a valid token, ``(False, None)`` when the
            provider answers 401.

        Raises:
            IdentityProviderError: any other status, or the provider is unreachable
        """
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                resp = await client.get("/user", headers={"authorization": f"token {token}"})
        except httpx.HTTPError as exc:
            logger.error(f"Identity provider request failed: {exc}")
            raise IdentityProviderError(str(exc) or exc.__class__.__name__)

        if resp.status_code != 200:
            if resp.status_code == 401:
                return False, None

            message = _error_message(resp)
            raise IdentityProviderError(message, status_code=resp.status_code)

        body = resp.json()
        # coerce id to string, for compatibility with bigint ids on the provider side
        body["id"] = str(body["id"])
        return True, body


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"HTTP {resp.status_code}"


def parse_authorization(authorization: Optional[str], schemes) -> Optional[str]:
    """Return the token from ``<scheme> <token>`` if the scheme is accepted."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() not in schemes or not token.strip():
        return None
    return token.strip()


# Global instance for dependency injection
token_validator = TokenValidator(
    settings.ID_SERVER_CONNECTION_STRING,
    timeout=settings.ID_SERVER_TIMEOUT_SECONDS,
)


def get_token_validator() -> TokenValidator:
    return token_validator


async def get_credentials(
    authorization: Optional[str] = Header(default=None),
    validator: TokenValidator = Depends(get_token_validator),
) -> Dict[str, Any]:
    """Dependency resolving the request's token to identity-provider credentials."""
    token = parse_authorization(authorization, USER_TOKEN_SCHEMES)
    if token is None:
        raise AuthenticationError("Missing authentication token")

    is_valid, credentials = await validator.validate(token)
    if not is_valid or not credentials:
        raise AuthenticationError("Invalid authentication token")

    return credentials


def create_export_token(project_id: int, expires_minutes: Optional[int] = None) -> str:
    """Sign a short-lived token allowing one project to be exported."""
    minutes = expires_minutes if expires_minutes is not None else settings.EXPORT_TOKEN_EXPIRE_MINUTES
    expire = datetime.utcnow() + timedelta(minutes=minutes)
    to_encode = {
        "sub": str(project_id),
        "exp": expire,
        "type": EXPORT_PROJECT_TOKEN_TYPE,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_export_token(token: str) -> int:
    """Return the project id an export token was issued for."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid export token")

    if payload.get("type") != EXPORT_PROJECT_TOKEN_TYPE:
        raise AuthenticationError("Invalid export token")

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid export token")


def export_project_id(authorization: Optional[str]) -> int:
    """Project id granted by an ``Authorization: export <token>`` header."""
    token = parse_authorization(authorization, (EXPORT_TOKEN_SCHEME,))
    if token is None:
        raise AuthenticationError("Missing export token")
    return decode_export_token(token)
