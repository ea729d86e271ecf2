import hashlib
import hmac

import httpx
import pytest

from curadoria.payments import mercadopago_client
from curadoria.payments.errors import PaymentNotFound, ProviderConfigError, ProviderError

def _fake_request(status_code, payload=None, calls=None):
    def _request(method, url, json=None, headers=None, timeout=None):
        if calls is not None:
            calls.append({"method": method, "url": url, "json": json, "headers": headers, "timeout": timeout})
        return httpx.Response(status_code, json=payload if payload is not None else {})
    return _request

def test_token_depends_on_environment(monkeypatch, mp_config):
    assert mercadopago_client.get_access_token() == ("TEST-token", "MERCADOPAGO_ACCESS_TOKEN_TEST")
    monkeypatch.setattr("curadoria.config.IS_PRODUCTION", True)
    monkeypatch.setattr("curadoria.config.APP_ENV", "production")
    with pytest.raises(ProviderConfigError) as exc:
        mercadopago_client.get_access_token()
    assert exc.value.details["token_source"] == "MP_ACCESS_TOKEN_PROD"
    assert exc.value.details["env"] == "production"

def test_get_payment_ok(monkeypatch, mp_config):
    calls = []
    monkeypatch.setattr(mercadopago_client.httpx, "request", _fake_request(200, {"id": 42, "status": "approved"}, calls))
    assert mercadopago_client.get_payment("42")["status"] == "approved"
    assert calls[0]["method"] == "GET"
    assert calls[0]["url"].endswith("/v1/payments/42")
    assert calls[0]["headers"]["Authorization"] == "Bearer TEST-token"

def test_get_payment_not_found(monkeypatch, mp_config):
    monkeypatch.setattr(mercadopago_client.httpx, "request", _fake_request(404, {"message": "not found"}))
    with pytest.raises(PaymentNotFound):
        mercadopago_client.get_payment("404404")

def test_get_payment_upstream_error_keeps_status(monkeypatch, mp_config):
    monkeypatch.setattr(mercadopago_client.httpx, "request", _fake_request(401, {"message": "invalid token"}))
    with pytest.raises(ProviderError) as exc:
        mercadopago_client.get_payment("42")
    assert exc.value.details["status_code"] == 401

def test_timeout_is_a_provider_error(monkeypatch, mp_config):
    def _timeout(*args, **kwargs):
        raise httpx.ReadTimeout("timed out")
    monkeypatch.setattr(mercadopago_client.httpx, "request", _timeout)
    with pytest.raises(ProviderError):
        mercadopago_client.get_payment("42")

def test_checkout_url_by_environment(monkeypatch, mp_config):
    preference = {"init_point": "https://mp.test/prod", "sandbox_init_point": "https://mp.test/sandbox"}
    assert mercadopago_client.checkout_url(preference) == "https://mp.test/sandbox"
    monkeypatch.setattr("curadoria.config.IS_PRODUCTION", True)
    assert mercadopago_client.checkout_url(preference) == "https://mp.test/prod"
    assert mercadopago_client.checkout_url({}) is None

def test_signature_disabled_without_secret(mp_config):
    assert mercadopago_client.verify_webhook_signature("", "", "123") is True

def test_signature_verification(monkeypatch, mp_config):
    monkeypatch.setattr("curadoria.config.MP_WEBHOOK_SECRET", "s3cret")
    manifest = "id:123;request-id:req-1;ts:1700000000;"
    v1 = hmac.new(b"s3cret", manifest.encode(), hashlib.sha256).hexdigest()
    header = f"ts=1700000000,v1={v1}"
    assert mercadopago_client.verify_webhook_signature(header, "req-1", "123") is True
    assert mercadopago_client.verify_webhook_signature(header, "req-2", "123") is False
    assert mercadopago_client.verify_webhook_signature("ts=1700000000", "req-1", "123") is False
