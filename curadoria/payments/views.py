import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse

from curadoria import config
from curadoria.invoices import gate
from curadoria.utils.rate_limit import optional_rate_limit
from curadoria.utils.security import get_bearer_token
from curadoria.payments import cart as payments_cart
from curadoria.payments import mercadopago_client
from curadoria.payments import service as payments_service
from curadoria.payments import stripe_client
from curadoria.entitlements.service import STORE_ERROR
from curadoria.payments.errors import PaymentError, ProviderConfigError, ProviderError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

def _payment_http_error(e: PaymentError) -> HTTPException:
    return HTTPException(status_code=e.http_status, detail=e.to_dict())

def _config_error(e: ProviderConfigError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"code": e.code, "message": str(e), **e.details})

def _evaluate_gate(request: Request) -> gate.GateResult:
    try:
        return gate.check_preconditions(get_bearer_token(request))
    except gate.GateError:
        logger.exception("payments.gate indisponible")
        raise HTTPException(status_code=503, detail="Vérification des préconditions indisponible")

def _webhook_response(result: Dict[str, Any]) -> Dict[str, Any]:
    # Erreur de base sur un article: 500 pour que le prestataire relivre (l'octroi est idempotent)
    if any(item.get("status") == STORE_ERROR for item in result.get("items") or []):
        raise HTTPException(status_code=500, detail=result)
    return result

def _webhook_payment_error(provider: str, e: PaymentError):
    # Erreur prestataire: 5xx (relivraison); erreurs définitives: 200 "rejected" pour stopper les relivraisons
    logger.error("payments.webhook.%s failed code=%s details=%s", provider, e.code, e.details)
    if isinstance(e, ProviderError):
        raise _payment_http_error(e)
    return {"status": "rejected", **e.to_dict()}

# module curadoria.payments.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout(request: Request, provider: str = "stripe"):
    """
    Crée un checkout (Stripe Checkout ou préférence Mercado Pago) pour l'utilisateur.
    - Entrée JSON: { "items": [ {category, city}, ... ] } ou { "category", "city" }
    - Préconditions: login puis profil de facturation; sinon 200 {"code": "LOGIN_REQUIRED" | "INVOICE_REQUIRED"}
    - Sortie: {"url": "<checkout>"}; 500 {"code": "CONFIG_ERROR"} si les identifiants prestataire manquent
    """
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="JSON invalide")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="JSON invalide")
    items = payments_cart.items_from_body(body)

    result = _evaluate_gate(request)
    if not result.ready:
        return JSONResponse(result.to_dict())

    origin = request.headers.get("origin") or request.headers.get("referer")
    try:
        url = payments_service.create_checkout(provider, user_id=result.user_id, items=items, origin=origin)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderConfigError as e:
        logger.error("payments.checkout config error provider=%s: %s", provider, e)
        return _config_error(e)
    except PaymentError as e:
        logger.error("payments.checkout provider error provider=%s: %s %s", provider, e, e.details)
        raise _payment_http_error(e)
    return JSONResponse({"url": url})

@router.get("/confirm", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
def confirm_checkout(
    request: Request,
    provider: str = "stripe",
    reference: Optional[str] = None,
    session_id: Optional[str] = None,
    payment_id: Optional[str] = None,
):
    """
    Confirme un paiement et octroie l'accès à chaque article acheté.
    - reference: id de session Stripe ou id de paiement Mercado Pago
      (alias acceptés: session_id, payment_id, tels que renvoyés par les URLs de retour)
    - Sortie: {status, provider, reference, items: [{category, city, ok, pdf_url | error}]}
    - Erreurs: 402 non payé, 403 propriétaire différent, 404 introuvable, 422 metadata, 502 prestataire
    - Idempotent: un second appel renvoie already_owned sans nouvelle ligne.
    """
    reference = (reference or session_id or payment_id or "").strip()
    if not reference:
        raise HTTPException(status_code=400, detail="reference manquante")

    result = _evaluate_gate(request)
    if not result.ready:
        return JSONResponse(result.to_dict())

    try:
        return payments_service.confirm_and_grant(provider, reference, caller_user_id=result.user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderConfigError as e:
        return _config_error(e)
    except PaymentError as e:
        logger.info("payments.confirm refused provider=%s reference=%s code=%s", provider, reference, e.code)
        raise _payment_http_error(e)

@router.post("/webhook/stripe", include_in_schema=False)
async def webhook_stripe(request: Request):
    """
    Webhook Stripe: checkout.session.completed / async_payment_succeeded -> confirmation + octroi.
    - Signature validée (Stripe-Signature + STRIPE_WEBHOOK_SECRET), 400 sinon.
    - Identité: metadata.user_id (aucune session côté webhook).
    - Erreur prestataire ou de base: 5xx pour que Stripe relivre l'événement; erreurs définitives: 200 "rejected".
    """
    try:
        event = await stripe_client.parse_event(request)
    except ProviderConfigError as e:
        return _config_error(e)
    except Exception:
        logger.exception("Erreur webhook_stripe (signature/payload)")
        raise HTTPException(status_code=400, detail="Invalid Stripe webhook payload")
    try:
        return _webhook_response(payments_service.handle_stripe_event(event))
    except ProviderConfigError as e:
        return _config_error(e)
    except PaymentError as e:
        return _webhook_payment_error("stripe", e)

@router.post("/webhook/mercadopago", include_in_schema=False)
async def webhook_mercadopago(request: Request):
    """
    Notification Mercado Pago (type=payment, data.id=<payment_id>).
    - x-signature vérifiée si MP_WEBHOOK_SECRET est configuré (401 sinon).
    - Le paiement est relu via l'API avant tout octroi.
    """
    try:
        payload: Dict[str, Any] = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    data_id = str((payload.get("data") or {}).get("id") or request.query_params.get("data.id") or "")
    if not payload.get("data") and data_id:
        payload["data"] = {"id": data_id}
    if not payload.get("type") and request.query_params.get("type"):
        payload["type"] = request.query_params.get("type")

    signature_ok = mercadopago_client.verify_webhook_signature(
        request.headers.get("x-signature") or "",
        request.headers.get("x-request-id") or "",
        data_id,
    )
    if not signature_ok:
        raise HTTPException(status_code=401, detail="Invalid Mercado Pago signature")
    try:
        return _webhook_response(payments_service.handle_mercadopago_notification(payload))
    except ProviderConfigError as e:
        return _config_error(e)
    except PaymentError as e:
        return _webhook_payment_error("mercadopago", e)

@router.get("/prices")
def get_prices() -> Dict[str, Any]:
    """Prix d'affichage configurés par classe de catégorie (City Guide / autres)."""
    return {"ok": True, "currency": config.MP_CURRENCY, "prices": payments_cart.display_prices()}
