"""
Accès au registre des droits d'accès (table 'purchase').

Unicité (user_id, category, city) garantie par l'index purchase_user_item_key
(supabase/migrations); un doublon à l'insertion (23505) n'est pas une erreur.
"""
from typing import Any, Dict, List, Optional
import logging

from postgrest.exceptions import APIError

import curadoria.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

PURCHASE_COLUMNS = "user_id, category, city, pdf_url, provider_reference, created_at"
UNIQUE_VIOLATION = "23505"

class PurchaseStoreError(Exception):
    code = "store_error"

def _is_unique_violation(e: APIError) -> bool:
    code = getattr(e, "code", None)
    if code is None and e.args and isinstance(e.args[0], dict):
        code = e.args[0].get("code")
    return str(code or "") == UNIQUE_VIOLATION

# module curadoria.entitlements.repository
def find_purchase(user_id: str, category: str, city: str) -> Optional[Dict[str, Any]]:
    """
    Ligne existante pour le couple littéral (category, city) de l'utilisateur, ou None.
    Soulève PurchaseStoreError si la lecture échoue.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("purchase")
            .select(PURCHASE_COLUMNS)
            .eq("user_id", user_id)
            .eq("category", category)
            .eq("city", city)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.exception("entitlements.repository.find_purchase failed user_id=%s", user_id)
        raise PurchaseStoreError(str(e)) from e
    rows = res.data or []
    return rows[0] if rows else None

def insert_purchase(*, user_id: str, category: str, city: str, pdf_url: str, provider_reference: str) -> Optional[Dict[str, Any]]:
    """
    Insère un droit d'accès.
    - Retourne la ligne insérée.
    - Retourne None si la ligne existe déjà (violation d'unicité 23505).
    - Soulève PurchaseStoreError pour toute autre erreur.
    """
    payload = {
        "user_id": user_id,
        "category": category,
        "city": city,
        "pdf_url": pdf_url,
        "provider_reference": provider_reference,
    }
    try:
        res = supabase_client.get_service_supabase().table("purchase").insert(payload).execute()
    except APIError as e:
        if _is_unique_violation(e):
            return None
        logger.exception("entitlements.repository.insert_purchase failed user_id=%s", user_id)
        raise PurchaseStoreError(str(e)) from e
    except Exception as e:
        logger.exception("entitlements.repository.insert_purchase failed user_id=%s", user_id)
        raise PurchaseStoreError(str(e)) from e
    rows = res.data or []
    return rows[0] if isinstance(rows, list) and rows else payload

def list_user_purchases(user_id: str, limit: int = 200) -> List[Dict[str, Any]]:
    """Droits d'accès de l'utilisateur, plus récents d'abord."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("purchase")
            .select(PURCHASE_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception as e:
        logger.exception("entitlements.repository.list_user_purchases failed user_id=%s", user_id)
        raise PurchaseStoreError(str(e)) from e
    return res.data or []
