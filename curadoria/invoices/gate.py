"""
Préconditions d'achat: utilisateur authentifié + profil de facturation (nota fiscal) existant.

Évaluées à chaque création de checkout et à chaque confirmation; LOGIN_REQUIRED et
INVOICE_REQUIRED sont des branches attendues (HTTP 200 côté API), pas des erreurs.
"""
from typing import Any, Dict, Optional

from curadoria.infra import identity
from . import repository

READY = "ready"
LOGIN_REQUIRED = "LOGIN_REQUIRED"
INVOICE_REQUIRED = "INVOICE_REQUIRED"

class GateError(Exception):
    """Fournisseur d'identité ou base indisponible pendant l'évaluation."""
    code = "gate_error"

class GateResult:
    def __init__(self, status: str, user_id: Optional[str] = None):
        self.status = status
        self.user_id = user_id

    @property
    def ready(self) -> bool:
        return self.status == READY

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.status}

def check_preconditions(access_token: Optional[str]) -> GateResult:
    try:
        user_id = identity.resolve_user_id(access_token)
    except identity.IdentityError as e:
        raise GateError(str(e)) from e
    if not user_id:
        return GateResult(LOGIN_REQUIRED)

    try:
        has_profile = repository.has_invoice_profile(user_id)
    except repository.InvoiceStoreError as e:
        raise GateError(str(e)) from e
    if not has_profile:
        return GateResult(INVOICE_REQUIRED, user_id=user_id)
    return GateResult(READY, user_id=user_id)
