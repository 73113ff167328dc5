"""
Tests for token validation and export tokens.
"""

import httpx
import pytest
from jose import jwt

from app.core.config import settings
from app.services.auth_service import (
    TokenValidator,
    create_export_token,
    decode_export_token,
    export_project_id,
    parse_authorization,
)
from app.utils.exceptions import AuthenticationError, IdentityProviderError


def validator_for(handler) -> TokenValidator:
    return TokenValidator("http://id.test", transport=httpx.MockTransport(handler))


async def test_valid_token_returns_credentials_with_string_id():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["authorization"] = request.headers["authorization"]
        return httpx.Response(200, json={"id": 12345678901234, "username": "alice"})

    is_valid, credentials = await validator_for(handler).validate("abc")

    assert is_valid is True
    assert credentials == {"id": "12345678901234", "username": "alice"}
    assert seen == {"path": "/user", "authorization": "token abc"}


async def test_unauthorized_token_is_invalid():
    is_valid, credentials = await validator_for(
        lambda request: httpx.Response(401, json={"message": "Bad credentials"})
    ).validate("abc")

    assert is_valid is False
    assert credentials is None


async def test_provider_error_carries_status():
    validator = validator_for(lambda request: httpx.Response(503, json={"message": "down for maintenance"}))

    with pytest.raises(IdentityProviderError) as exc_info:
        await validator.validate("abc")

    assert exc_info.value.status_code == 503
    assert "down for maintenance" in exc_info.value.message


async def test_unreachable_provider_is_bad_gateway():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(IdentityProviderError) as exc_info:
        await validator_for(handler).validate("abc")

    assert exc_info.value.status_code == 502


async def test_provider_failure_surfaces_status(client, token_validator):
    token_validator.transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))

    resp = await client.get("/users", headers={"Authorization": "token alice-token"})
    assert resp.status_code == 500
    assert resp.json()["error"] == "IdentityProviderError"


def test_parse_authorization():
    assert parse_authorization("token abc", ("token", "bearer")) == "abc"
    assert parse_authorization("Bearer abc", ("token", "bearer")) == "abc"
    assert parse_authorization("export abc", ("token", "bearer")) is None
    assert parse_authorization("token", ("token",)) is None
    assert parse_authorization(None, ("token",)) is None


def test_export_token_round_trip():
    token = create_export_token(42)
    assert decode_export_token(token) == 42
    assert export_project_id(f"export {token}") == 42


def test_export_token_rejects_other_token_types():
    token = jwt.encode({"sub": "42", "type": "access"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(AuthenticationError):
        decode_export_token(token)


def test_expired_export_token_rejected():
    token = create_export_token(42, expires_minutes=-1)
    with pytest.raises(AuthenticationError):
        decode_export_token(token)


def test_export_header_requires_export_scheme():
    token = create_export_token(42)
    with pytest.raises(AuthenticationError):
        export_project_id(f"token {token}")
