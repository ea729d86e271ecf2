"""
Accès au catalogue 'curadoria_materials' (lecture seule, lignes actives).
"""
from typing import Any, Dict, List
import logging

import curadoria.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

MATERIAL_COLUMNS = "category, city_label, pdf_url, is_active"

class CatalogError(Exception):
    """Lecture du catalogue impossible (distincte d'un matériel introuvable)."""
    code = "catalog_error"

def _escape_like(value: str) -> str:
    # % et _ sont des jokers pour ILIKE; les libellés ne doivent pas les activer
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

def fetch_active_by_category(pattern: str, *, limit: int) -> List[Dict[str, Any]]:
    """
    Lignes actives dont la catégorie correspond au motif ILIKE donné.
    - Ordonnées par pdf_url pour un départage déterministe côté resolver.
    - Soulève CatalogError si la requête échoue.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("curadoria_materials")
            .select(MATERIAL_COLUMNS)
            .eq("is_active", True)
            .ilike("category", pattern)
            .order("pdf_url")
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception as e:
        logger.exception("catalog.repository.fetch_active_by_category failed pattern=%s", pattern)
        raise CatalogError(str(e)) from e

def fetch_candidates(category: str) -> List[Dict[str, Any]]:
    """
    Pool de candidats en deux temps:
    1) catégorie égale sans tenir compte de la casse (ILIKE sans joker), limite 500
    2) si vide: sous-chaîne %categorie%, limite 1000
    """
    exact = _escape_like(category.strip())
    pool = fetch_active_by_category(exact, limit=500)
    if pool:
        return pool
    return fetch_active_by_category(f"%{exact}%", limit=1000)
