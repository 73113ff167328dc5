"""
Tests for the fallback exception handler.
"""

import json

from starlette.requests import Request

from app.core.exceptions import generic_exception_handler


def make_request(state):
    return Request({"type": "http", "method": "GET", "path": "/", "headers": [], "state": state})


async def test_unhandled_error_reports_request_correlation_id():
    resp = await generic_exception_handler(make_request({"correlation_id": "abc-123"}), RuntimeError("boom"))

    assert resp.status_code == 500
    body = json.loads(resp.body)
    assert body["error"] == "RuntimeError"
    assert body["detail"] == "boom"
    assert body["correlation_id"] == "abc-123"
