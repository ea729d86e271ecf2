"""
Adaptateur Mercado Pago (API REST via httpx): préférences Checkout Pro, lecture des paiements,
vérification de signature des notifications.
"""
import hashlib
import hmac
import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from curadoria import config
from .errors import PaymentNotFound, ProviderConfigError, ProviderError

logger = logging.getLogger(__name__)

# module curadoria.payments.mercadopago_client
def get_access_token() -> Tuple[str, str]:
    """
    Jeton selon l'environnement:
    - production: MP_ACCESS_TOKEN_PROD
    - preview/development: MERCADOPAGO_ACCESS_TOKEN_TEST
    Retour: (token, nom de la variable source). ProviderConfigError si vide.
    """
    if config.IS_PRODUCTION:
        token, source = config.MP_ACCESS_TOKEN_PROD, "MP_ACCESS_TOKEN_PROD"
    else:
        token, source = config.MP_ACCESS_TOKEN_TEST, "MERCADOPAGO_ACCESS_TOKEN_TEST"
    if not token:
        raise ProviderConfigError(
            "Jeton Mercado Pago manquant", provider="mercadopago", env=config.APP_ENV, token_source=source
        )
    return token, source

def _headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

def _request(method: str, path: str, *, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
    token, _ = get_access_token()
    url = f"{config.MP_API_BASE}{path}"
    try:
        return httpx.request(method, url, json=json, headers=_headers(token), timeout=config.PAYMENT_TIMEOUT_SECONDS)
    except httpx.TimeoutException as e:
        raise ProviderError("Mercado Pago: délai dépassé", provider="mercadopago") from e
    except httpx.HTTPError as e:
        raise ProviderError("Mercado Pago injoignable", provider="mercadopago") from e

def _json_or_none(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None

def create_preference(body: Dict[str, Any]) -> Dict[str, Any]:
    """POST /checkout/preferences. ProviderError si la réponse n'est pas 2xx."""
    resp = _request("POST", "/checkout/preferences", json=body)
    data = _json_or_none(resp)
    if not resp.is_success:
        logger.error("mercadopago.create_preference failed status=%s body=%s", resp.status_code, data)
        raise ProviderError(
            "Échec de création de la préférence Mercado Pago",
            provider="mercadopago",
            status_code=resp.status_code,
        )
    return data or {}

def checkout_url(preference: Dict[str, Any]) -> Optional[str]:
    """init_point en production, sandbox_init_point sinon."""
    key = "init_point" if config.IS_PRODUCTION else "sandbox_init_point"
    return (preference or {}).get(key) or None

def get_payment(payment_id: str) -> Dict[str, Any]:
    """
    GET /v1/payments/{id}.
    - PaymentNotFound sur 404
    - ProviderError sur tout autre statut non 2xx ou panne réseau
    """
    resp = _request("GET", f"/v1/payments/{payment_id}")
    if resp.status_code == 404:
        raise PaymentNotFound("Paiement Mercado Pago introuvable", provider="mercadopago", reference=payment_id)
    if not resp.is_success:
        raise ProviderError(
            "Lecture du paiement Mercado Pago impossible",
            provider="mercadopago",
            status_code=resp.status_code,
        )
    return _json_or_none(resp) or {}

def verify_webhook_signature(signature_header: str, request_id: str, data_id: str) -> bool:
    """
    Vérifie l'en-tête x-signature ("ts=...,v1=...") d'une notification.
    Manifeste signé: "id:{data.id};request-id:{x-request-id};ts:{ts};" (HMAC-SHA256, MP_WEBHOOK_SECRET).
    Sans secret configuré, la vérification est désactivée (retourne True).
    """
    if not config.MP_WEBHOOK_SECRET:
        return True
    parts = dict(
        p.strip().split("=", 1) for p in (signature_header or "").split(",") if "=" in p
    )
    ts, v1 = parts.get("ts"), parts.get("v1")
    if not ts or not v1:
        return False
    manifest = f"id:{str(data_id).lower()};"
    if request_id:
        manifest += f"request-id:{request_id};"
    manifest += f"ts:{ts};"
    expected = hmac.new(config.MP_WEBHOOK_SECRET.encode("utf-8"), manifest.encode("utf-8"), hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, v1)
