"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
"""
import stripe
from typing import Any, Dict, List
from fastapi import Request

from curadoria import config
from .errors import PaymentNotFound, ProviderConfigError, ProviderError

# module curadoria.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l’emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY.
    - Soulève ProviderConfigError si la clé est absente.
    """
    if not config.STRIPE_SECRET_KEY:
        raise ProviderConfigError("STRIPE_SECRET_KEY manquant", provider="stripe")
    stripe.api_key = config.STRIPE_SECRET_KEY
    stripe.max_network_retries = 1
    return stripe

def _to_dict(obj: Any) -> Dict[str, Any]:
    # StripeObject: to_dict_recursive (SDK anciens) ou to_dict (récursif dans les SDK récents)
    if hasattr(obj, "to_dict_recursive"):
        return obj.to_dict_recursive()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)

def create_session(
    *,
    line_items: List[Dict[str, Any]],
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, Any],
    client_reference_id: str,
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout en mode "payment".
    Retour: dict session (ex: {"id": "cs_test_...", "url": "https://..."})
    """
    require_stripe()
    try:
        session = stripe.checkout.Session.create(
            line_items=line_items,
            mode="payment",
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            client_reference_id=client_reference_id,
        )
    except stripe.StripeError as e:
        raise ProviderError(
            "Échec de création de la session Stripe",
            provider="stripe",
            status_code=getattr(e, "http_status", None),
        ) from e
    return _to_dict(session)

def get_session(session_id: str) -> Dict[str, Any]:
    """
    Récupère une session Stripe Checkout par son identifiant.
    - PaymentNotFound si Stripe répond resource_missing.
    - ProviderError pour toute autre erreur Stripe (réseau, auth, 5xx).
    """
    require_stripe()
    try:
        session = stripe.checkout.Session.retrieve(session_id)
    except stripe.InvalidRequestError as e:
        if getattr(e, "code", None) == "resource_missing":
            raise PaymentNotFound("Session Stripe introuvable", provider="stripe", reference=session_id) from e
        raise ProviderError(
            "Requête Stripe invalide", provider="stripe", status_code=getattr(e, "http_status", None)
        ) from e
    except stripe.StripeError as e:
        raise ProviderError(
            "Stripe indisponible", provider="stripe", status_code=getattr(e, "http_status", None)
        ) from e
    return _to_dict(session)

async def parse_event(request: Request):
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête Stripe-Signature
    - Valide la signature via Webhook.construct_event (STRIPE_WEBHOOK_SECRET)
    Retour: l’événement (dict) si la signature est valide.
    """
    require_stripe()
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature") or ""
    event = stripe.Webhook.construct_event(payload, sig_header, config.STRIPE_WEBHOOK_SECRET)
    return _to_dict(event)
