import logging
from typing import Any, Dict

from fastapi import APIRouter, Request, Depends, HTTPException, Query

from curadoria.infra import identity
from curadoria.utils.security import get_bearer_token, require_user
from curadoria.entitlements import service as entitlements_service
from curadoria.entitlements.repository import PurchaseStoreError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/purchases", tags=["Purchases API"])

# module curadoria.entitlements.views
@router.get("/access")
def check_access(
    request: Request,
    category: str = Query(..., min_length=1),
    city: str = Query(..., min_length=1),
) -> Dict[str, Any]:
    """
    Indique si l'utilisateur courant possède le matériel (category, city).
    - Sans session valide: {"logged": false, "has": false} (pas une erreur)
    - Sinon: {"logged": true, "has": bool, "pdf_url": str | None}
    """
    token = get_bearer_token(request)
    try:
        user_id = identity.resolve_user_id(token)
    except identity.IdentityError:
        raise HTTPException(status_code=503, detail="Service d'authentification indisponible")
    if not user_id:
        return {"ok": True, "logged": False, "has": False, "pdf_url": None}

    try:
        row = entitlements_service.check_access(user_id, category, city)
    except PurchaseStoreError as e:
        raise HTTPException(status_code=500, detail={"error": e.code, "message": str(e)})
    return {
        "ok": True,
        "logged": True,
        "has": bool(row),
        "pdf_url": (row or {}).get("pdf_url"),
    }

@router.get("")
def list_my_purchases(user_id: str = Depends(require_user)) -> Dict[str, Any]:
    try:
        purchases = entitlements_service.list_purchases(user_id)
    except PurchaseStoreError as e:
        raise HTTPException(status_code=500, detail={"error": e.code, "message": str(e)})
    return {"ok": True, "purchases": purchases}
