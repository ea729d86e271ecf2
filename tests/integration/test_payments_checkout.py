import json

def test_checkout_requires_login(client, identities):
    res = client.post("/api/v1/payments/checkout", json={"category": "City Guide", "city": "Lisboa"})
    assert res.status_code == 200
    assert res.json() == {"code": "LOGIN_REQUIRED"}

def test_checkout_requires_invoice_profile(client, identities, auth):
    res = client.post(
        "/api/v1/payments/checkout", json={"category": "City Guide", "city": "Lisboa"}, headers=auth("tok-noinvoice")
    )
    assert res.status_code == 200
    assert res.json() == {"code": "INVOICE_REQUIRED"}

def test_checkout_invalid_body(client, identities, auth):
    res = client.post("/api/v1/payments/checkout", json={"items": []}, headers=auth())
    assert res.status_code == 400

def test_stripe_checkout_returns_url(client, identities, auth, stripe_config, monkeypatch):
    captured = {}

    def _create_session(**kwargs):
        captured.update(kwargs)
        return {"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    monkeypatch.setattr("curadoria.payments.stripe_client.create_session", _create_session)
    payload = {"items": [{"category": "City Guide", "city": "New York – USA"}, {"category": "Gastronomia", "city": "Rio de Janeiro"}]}
    res = client.post("/api/v1/payments/checkout?provider=stripe", json=payload, headers={**auth(), "Origin": "https://shop.test"})

    assert res.status_code == 200
    assert res.json() == {"url": "https://checkout.stripe.test/cs_test_1"}
    assert captured["client_reference_id"] == "u1"
    assert captured["metadata"]["user_id"] == "u1"
    assert json.loads(captured["metadata"]["items"]) == payload["items"]
    assert [li["price"] for li in captured["line_items"]] == ["price_city_guide", "price_default"]
    assert captured["success_url"].startswith("https://shop.test/checkout-success.html?provider=stripe&session_id={CHECKOUT_SESSION_ID}")

def test_stripe_checkout_without_credentials(client, identities, auth, monkeypatch):
    monkeypatch.setattr("curadoria.config.STRIPE_PRICE_ID_CITY_GUIDE", "")
    res = client.post("/api/v1/payments/checkout", json={"category": "City Guide", "city": "Lisboa"}, headers=auth())
    assert res.status_code == 500
    assert res.json()["code"] == "CONFIG_ERROR"

def test_mercadopago_checkout_returns_sandbox_url(client, identities, auth, mp_config, monkeypatch):
    captured = {}

    def _create_preference(body):
        captured.update(body)
        return {"id": "pref_1", "init_point": "https://mp.test/prod", "sandbox_init_point": "https://mp.test/sandbox"}

    monkeypatch.setattr("curadoria.payments.mercadopago_client.create_preference", _create_preference)
    res = client.post(
        "/api/v1/payments/checkout?provider=mercadopago",
        json={"category": "City Guide", "city": "São Paulo"},
        headers=auth(),
    )
    assert res.status_code == 200
    assert res.json() == {"url": "https://mp.test/sandbox"}
    assert captured["metadata"]["user_id"] == "u1"
    assert captured["metadata"]["env"] == "development"
    assert captured["auto_return"] == "approved"
    assert captured["items"][0]["quantity"] == 1

def test_mercadopago_checkout_without_token(client, identities, auth, mp_config, monkeypatch):
    monkeypatch.setattr("curadoria.config.MP_ACCESS_TOKEN_TEST", "")
    res = client.post(
        "/api/v1/payments/checkout?provider=mercadopago",
        json={"category": "City Guide", "city": "São Paulo"},
        headers=auth(),
    )
    assert res.status_code == 500
    body = res.json()
    assert body["code"] == "CONFIG_ERROR"
    assert body["token_source"] == "MERCADOPAGO_ACCESS_TOKEN_TEST"

def test_unknown_provider(client, identities, auth):
    res = client.post("/api/v1/payments/checkout?provider=paypal", json={"category": "a", "city": "b"}, headers=auth())
    assert res.status_code == 400

def test_prices(client):
    res = client.get("/api/v1/payments/prices")
    assert res.status_code == 200
    assert set(res.json()["prices"]) == {"city_guide", "default"}
