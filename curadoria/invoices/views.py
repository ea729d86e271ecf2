from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from curadoria.utils.security import require_user
from curadoria.invoices import repository as invoices_repository

router = APIRouter(prefix="/api/v1/invoices", tags=["Invoices API"])

@router.get("/exists")
def invoice_profile_exists(user_id: str = Depends(require_user)) -> Dict[str, Any]:
    """Profil de facturation présent pour l'utilisateur courant (le contenu n'est jamais renvoyé)."""
    try:
        has_profile = invoices_repository.has_invoice_profile(user_id)
    except invoices_repository.InvoiceStoreError as e:
        raise HTTPException(status_code=500, detail={"error": e.code, "message": str(e)})
    return {"ok": True, "has_profile": has_profile}
