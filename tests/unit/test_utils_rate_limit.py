import asyncio

import pytest
from fastapi import HTTPException, Response
from starlette.requests import Request
from types import SimpleNamespace

from curadoria.utils import rate_limit

def _request(app_state, headers=None, path="/api/v1/payments/checkout"):
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    app = SimpleNamespace(state=app_state)
    return Request({"type": "http", "method": "POST", "path": path, "headers": raw, "client": ("10.0.0.1", 1234), "app": app})

def test_key_prefers_hashed_token():
    key = rate_limit._user_key_from_request(_request(SimpleNamespace(), {"Authorization": "Bearer secret-token"}))
    assert key.startswith("user:")
    assert "secret-token" not in key
    assert rate_limit._user_key_from_request(_request(SimpleNamespace())) == "ip:10.0.0.1:/api/v1/payments/checkout"

def test_disabled_limiter_is_a_noop(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    dep = rate_limit.optional_rate_limit(times=1, seconds=60)
    request = _request(SimpleNamespace(rate_limit_enabled=False))
    for _ in range(3):
        asyncio.run(dep(request, Response()))

def test_local_fallback_limits(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    dep = rate_limit.optional_rate_limit(times=2, seconds=60)
    state = SimpleNamespace()
    asyncio.run(dep(_request(state), Response()))
    asyncio.run(dep(_request(state), Response()))
    with pytest.raises(HTTPException) as exc:
        asyncio.run(dep(_request(state), Response()))
    assert exc.value.status_code == 429
