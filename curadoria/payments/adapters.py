"""
Confirmation de paiement, polymorphe sur le prestataire.

Chaque adaptateur sait lire un paiement/une session chez son prestataire et en extraire
le statut et les metadata; la suite (articles, identité, contrôle de propriété) est commune.
"""
from typing import Any, Dict, List, Optional
import logging

from . import metadata as meta
from . import mercadopago_client
from . import stripe_client
from .errors import MetadataMissing, OwnershipMismatch, PaymentNotConfirmed
from .metadata import PurchasedItem

logger = logging.getLogger(__name__)

class Confirmation:
    """Vue (non persistée) d'un paiement confirmé."""

    def __init__(
        self,
        provider: str,
        reference: str,
        status: str,
        user_id: str,
        owner_claim: Optional[str],
        items: List[PurchasedItem],
    ):
        self.provider = provider
        self.reference = reference
        self.status = status
        self.user_id = user_id
        self.owner_claim = owner_claim
        self.items = items

def resolve_owner(owner_claim: Optional[str], caller_user_id: Optional[str], **context: Any) -> str:
    """
    Identité propriétaire de l'achat.
    - Session authentifiée prioritaire; metadata.user_id seulement en repli (webhook).
    - Les deux présentes et différentes: OwnershipMismatch (aucun octroi).
    - Aucune des deux: MetadataMissing.
    """
    if caller_user_id and owner_claim and caller_user_id != owner_claim:
        logger.warning(
            "payments.resolve_owner mismatch caller=%s claim=%s context=%s",
            caller_user_id, owner_claim, context,
        )
        raise OwnershipMismatch("Paiement appartenant à un autre utilisateur", **context)
    user_id = caller_user_id or owner_claim
    if not user_id:
        raise MetadataMissing("Identité de l'acheteur inconnue", field="user_id", **context)
    return user_id

class PaymentConfirmationAdapter:
    provider = ""

    def fetch(self, reference: str) -> Dict[str, Any]:
        raise NotImplementedError

    def status_of(self, payload: Dict[str, Any]) -> str:
        raise NotImplementedError

    def is_confirmed(self, payload: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def metadata_of(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return payload.get("metadata") or {}

    def confirm(self, reference: str, caller_user_id: Optional[str] = None) -> Confirmation:
        """
        Lit le paiement chez le prestataire et retourne une Confirmation.
        Erreurs: PaymentNotFound, ProviderError, PaymentNotConfirmed (statut brut joint),
        OwnershipMismatch, MetadataMissing.
        """
        reference = (reference or "").strip()
        if not reference:
            raise ValueError("reference manquante")

        payload = self.fetch(reference)
        status = self.status_of(payload)
        if not self.is_confirmed(payload):
            raise PaymentNotConfirmed(status or "unknown", provider=self.provider, reference=reference)

        metadata = self.metadata_of(payload)
        owner_claim = meta.extract_owner_claim(metadata)
        # Contrôle de propriété avant toute lecture des articles: rien n'est octroyé en cas d'écart
        user_id = resolve_owner(owner_claim, caller_user_id, provider=self.provider, reference=reference)
        items = meta.parse_items(metadata)
        return Confirmation(
            provider=self.provider,
            reference=reference,
            status=status,
            user_id=user_id,
            owner_claim=owner_claim,
            items=items,
        )

class StripeConfirmationAdapter(PaymentConfirmationAdapter):
    """Référence = id de session Checkout (cs_...)."""
    provider = "stripe"

    def fetch(self, reference: str) -> Dict[str, Any]:
        return stripe_client.get_session(reference)

    def status_of(self, payload: Dict[str, Any]) -> str:
        return str(payload.get("payment_status") or "")

    def is_confirmed(self, payload: Dict[str, Any]) -> bool:
        payment_status = payload.get("payment_status")
        if payment_status == "paid":
            return True
        # Sessions à 0 (coupon 100%): complètes sans paiement requis
        return payload.get("status") == "complete" and payment_status == "no_payment_required"

class MercadoPagoConfirmationAdapter(PaymentConfirmationAdapter):
    """Référence = id de paiement (payment_id des back_urls, data.id des notifications)."""
    provider = "mercadopago"

    def fetch(self, reference: str) -> Dict[str, Any]:
        return mercadopago_client.get_payment(reference)

    def status_of(self, payload: Dict[str, Any]) -> str:
        return str(payload.get("status") or "")

    def is_confirmed(self, payload: Dict[str, Any]) -> bool:
        return payload.get("status") == "approved"

ADAPTERS = {
    StripeConfirmationAdapter.provider: StripeConfirmationAdapter,
    MercadoPagoConfirmationAdapter.provider: MercadoPagoConfirmationAdapter,
}

def get_adapter(provider: str) -> PaymentConfirmationAdapter:
    try:
        return ADAPTERS[(provider or "").strip().lower()]()
    except KeyError:
        raise ValueError(f"Prestataire de paiement inconnu: {provider!r}")
