import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import AliasChoices, BaseModel, Field

from curadoria.utils.security import require_admin_key
from curadoria.entitlements import service as entitlements_service
from curadoria.payments.metadata import PurchasedItem

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin", tags=["Admin"], dependencies=[Depends(require_admin_key)])

class GrantRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    # "city_label" accepté (nom de colonne du catalogue)
    city: str = Field(..., min_length=1, validation_alias=AliasChoices("city", "city_label"))

# module curadoria.admin.views
@router.post("/grant")
def admin_grant(payload: GrantRequest) -> Dict[str, Any]:
    """
    Octroi manuel (support client): même chemin que la confirmation de paiement,
    provenance "manual_<epoch ms>". Idempotent: already_owned si la ligne existe.
    """
    item = PurchasedItem.from_dict(payload.model_dump())
    if not item.is_valid():
        raise HTTPException(status_code=400, detail="category et city requis")
    provenance = entitlements_service.manual_provenance()
    result = entitlements_service.grant_items(payload.user_id.strip(), [item], provenance=provenance)[0]
    logger.info("admin.grant user_id=%s status=%s provenance=%s", payload.user_id, result.status, provenance)
    if not result.ok:
        status_code = 404 if result.status == entitlements_service.MATERIAL_NOT_FOUND else 500
        raise HTTPException(status_code=status_code, detail=result.to_dict())
    return {"ok": True, "provenance": provenance, **result.to_dict()}
