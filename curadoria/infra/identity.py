"""
Fournisseur d'identité (Supabase Auth): résout un bearer token en identifiant utilisateur.
"""
from typing import Any, Dict, Optional
import logging

from supabase import AuthError, AuthRetryableError

import curadoria.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

class IdentityError(Exception):
    """Le fournisseur d'identité est injoignable (différent d'un token invalide)."""

def get_user_from_access_token(access_token: str) -> Dict[str, Any]:
    """Récupère et normalise l’utilisateur depuis supabase.auth.get_user(access_token)."""
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
            "user_metadata": getattr(user, "user_metadata", None),
        }
    return user or {}

def resolve_user_id(access_token: Optional[str]) -> Optional[str]:
    """
    Retourne l'id utilisateur associé au token, ou None si le token est absent/invalide/expiré.
    - Token refusé par Supabase Auth: None (branche attendue, LOGIN_REQUIRED côté client).
    - Panne réseau / service: IdentityError.
    """
    if not access_token:
        return None
    try:
        user = get_user_from_access_token(access_token)
    except AuthRetryableError as e:
        logger.exception("identity.resolve_user_id fournisseur d'identité indisponible")
        raise IdentityError(str(e)) from e
    except AuthError as e:
        logger.info("identity.resolve_user_id token refusé: %s", e)
        return None
    except Exception as e:
        logger.exception("identity.resolve_user_id erreur inattendue")
        raise IdentityError(str(e)) from e
    uid = str(user.get("id") or "").strip()
    return uid or None
