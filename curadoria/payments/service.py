"""
Cas d'usage 'payments': création de checkout, confirmation + octroi, webhooks.
Orchestre cart, adaptateurs prestataires et le service d'octroi (entitlements).
"""
from typing import Any, Dict, List, Optional
import logging
from urllib.parse import quote

from curadoria import config
from curadoria.entitlements import service as entitlements
from . import adapters
from . import cart
from . import mercadopago_client
from . import stripe_client
from .errors import PaymentNotConfirmed, ProviderConfigError, ProviderError
from .metadata import PurchasedItem

logger = logging.getLogger(__name__)

STRIPE = adapters.StripeConfirmationAdapter.provider
MERCADOPAGO = adapters.MercadoPagoConfirmationAdapter.provider

STRIPE_SESSION_EVENTS = {"checkout.session.completed", "checkout.session.async_payment_succeeded"}

def _safe_origin(origin: Optional[str]) -> str:
    origin = (origin or "").strip()
    return origin.rstrip("/") if origin.startswith("http") else config.SITE_ORIGIN

def create_stripe_checkout(*, user_id: str, items: List[PurchasedItem], origin: Optional[str] = None) -> str:
    """Crée une session Stripe Checkout (un prix par classe de catégorie) et retourne son URL."""
    if not config.STRIPE_PRICE_ID_CITY_GUIDE or not config.STRIPE_PRICE_ID_DEFAULT:
        raise ProviderConfigError("STRIPE_PRICE_ID_CITY_GUIDE / STRIPE_PRICE_ID_DEFAULT manquants", provider=STRIPE)
    base = _safe_origin(origin)
    metadata = cart.check_stripe_metadata(cart.make_metadata(user_id, items))
    success_url = f"{base}/checkout-success.html?provider=stripe&session_id={{CHECKOUT_SESSION_ID}}"
    if len(items) == 1:
        success_url += f"&category={quote(items[0].category)}&city={quote(items[0].city)}"
    session = stripe_client.create_session(
        line_items=cart.to_stripe_line_items(items),
        success_url=success_url,
        cancel_url=f"{base}/?checkout=cancel",
        metadata=metadata,
        client_reference_id=user_id,
    )
    url = session.get("url")
    if not url:
        raise ProviderError("Session Stripe sans URL", provider=STRIPE)
    return url

def create_mercadopago_checkout(*, user_id: str, items: List[PurchasedItem], origin: Optional[str] = None) -> str:
    """Crée une préférence Checkout Pro et retourne init_point (prod) ou sandbox_init_point."""
    base = _safe_origin(origin)
    return_url = f"{base}/checkout-success.html?provider=mercadopago"
    body = {
        "items": cart.to_mp_items(items),
        "back_urls": {
            "success": f"{return_url}&mp=success",
            "pending": f"{return_url}&mp=pending",
            "failure": f"{return_url}&mp=failure",
        },
        "auto_return": "approved",
        "external_reference": f"cet_{user_id}",
        "metadata": {**cart.make_metadata(user_id, items), "env": config.APP_ENV},
    }
    preference = mercadopago_client.create_preference(body)
    url = mercadopago_client.checkout_url(preference)
    if not url:
        raise ProviderError(
            "Préférence Mercado Pago sans URL de checkout",
            provider=MERCADOPAGO,
            returned_keys=sorted((preference or {}).keys()),
        )
    return url

def create_checkout(provider: str, *, user_id: str, items: List[PurchasedItem], origin: Optional[str] = None) -> str:
    provider = (provider or STRIPE).strip().lower()
    if provider == STRIPE:
        return create_stripe_checkout(user_id=user_id, items=items, origin=origin)
    if provider == MERCADOPAGO:
        return create_mercadopago_checkout(user_id=user_id, items=items, origin=origin)
    raise ValueError(f"Prestataire de paiement inconnu: {provider!r}")

def confirm_and_grant(provider: str, reference: str, caller_user_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Confirme le paiement chez le prestataire puis octroie chaque article.
    - caller_user_id: identité de la session (None pour un webhook: repli sur metadata.user_id).
    - Les erreurs de paiement (non confirmé, introuvable, metadata, propriété, prestataire)
      remontent telles quelles; aucune écriture n'a lieu dans ces cas.
    - Idempotent: rappeler avec la même référence ne crée pas de doublon.
    """
    adapter = adapters.get_adapter(provider)
    confirmation = adapter.confirm(reference, caller_user_id=caller_user_id)
    results = entitlements.grant_items(confirmation.user_id, confirmation.items, provenance=confirmation.reference)
    return {
        "status": "ok" if all(r.ok for r in results) else "partial",
        "provider": confirmation.provider,
        "reference": confirmation.reference,
        "items": [r.to_dict() for r in results],
    }

def handle_stripe_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Webhook Stripe: confirme la session des événements checkout.session.* (relue chez Stripe).
    Paiement asynchrone encore en attente: "pending" (l'événement async_payment_succeeded suivra).
    """
    event_type = (event or {}).get("type")
    if event_type not in STRIPE_SESSION_EVENTS:
        return {"status": "ignored", "type": event_type}
    session = ((event or {}).get("data") or {}).get("object") or {}
    session_id = session.get("id") or ""
    try:
        result = confirm_and_grant(STRIPE, session_id)
    except PaymentNotConfirmed as e:
        return {"status": "pending", "payment_status": e.status}
    logger.info("payments.webhook.stripe session=%s result=%s", session_id, result["status"])
    return result

def handle_mercadopago_notification(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Notification Mercado Pago: seules les notifications de type "payment" sont traitées.
    Le paiement est relu via l'API; un statut non "approved" donne "pending".
    """
    payload = payload or {}
    kind = payload.get("type") or payload.get("topic")
    payment_id = str(((payload.get("data") or {}).get("id")) or "").strip()
    if kind != "payment" or not payment_id:
        return {"status": "ignored", "type": kind}
    try:
        result = confirm_and_grant(MERCADOPAGO, payment_id)
    except PaymentNotConfirmed as e:
        return {"status": "pending", "payment_status": e.status}
    logger.info("payments.webhook.mercadopago payment=%s result=%s", payment_id, result["status"])
    return result
