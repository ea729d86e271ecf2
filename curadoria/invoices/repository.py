from typing import Optional
import logging

import curadoria.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

class InvoiceStoreError(Exception):
    code = "invoice_store_error"

def has_invoice_profile(user_id: Optional[str]) -> bool:
    """
    True si une ligne 'invoice_profiles' existe pour l'utilisateur (le contenu n'est pas lu).
    Soulève InvoiceStoreError si la requête échoue.
    """
    if not user_id:
        return False
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("invoice_profiles")
            .select("user_id")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.exception("invoices.repository.has_invoice_profile failed user_id=%s", user_id)
        raise InvoiceStoreError(str(e)) from e
    return bool(res.data)
