"""
Erreurs du flux de confirmation de paiement.

Chaque erreur porte un `code` stable (renvoyé au client) et un statut HTTP indicatif
utilisé par les vues; `details` contient le diagnostic (statut brut, code HTTP du prestataire...).
"""
from typing import Any, Dict

class PaymentError(Exception):
    code = "payment_error"
    http_status = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": str(self), **self.details}

class PaymentNotConfirmed(PaymentError):
    code = "payment_not_confirmed"
    http_status = 402

    def __init__(self, status: str, **details: Any):
        super().__init__(f"Paiement non confirmé (status={status})", status=status, **details)
        self.status = status

class PaymentNotFound(PaymentError):
    code = "payment_not_found"
    http_status = 404

class MetadataMissing(PaymentError):
    code = "metadata_missing"
    http_status = 422

class OwnershipMismatch(PaymentError):
    code = "ownership_mismatch"
    http_status = 403

class ProviderError(PaymentError):
    code = "provider_error"
    http_status = 502

class ProviderConfigError(PaymentError):
    code = "CONFIG_ERROR"
    http_status = 500
