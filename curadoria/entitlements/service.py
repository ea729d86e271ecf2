"""
Octroi idempotent des droits d'accès: au plus une ligne 'purchase' par (utilisateur, article).

Chaque article est traité indépendamment: un matériel introuvable ou une erreur de base
sur un article n'empêche pas les autres, et rien n'est annulé (succès partiel valide).
"""
from typing import Any, Dict, Iterable, List, Optional
import logging
import time

from curadoria.catalog import resolver
from curadoria.catalog.repository import CatalogError
from curadoria.payments.metadata import PurchasedItem
from . import repository
from .repository import PurchaseStoreError

logger = logging.getLogger(__name__)

GRANTED = "granted"
ALREADY_OWNED = "already_owned"
MATERIAL_NOT_FOUND = "material_not_found"
STORE_ERROR = "store_error"

class ItemResult:
    def __init__(
        self,
        category: str,
        city: str,
        status: str,
        pdf_url: Optional[str] = None,
        error: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.category = category
        self.city = city
        self.status = status
        self.pdf_url = pdf_url
        self.error = error
        self.details = details or {}

    @property
    def ok(self) -> bool:
        return self.status in (GRANTED, ALREADY_OWNED)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"category": self.category, "city": self.city, "ok": self.ok, "status": self.status}
        if self.ok:
            out["pdf_url"] = self.pdf_url
        else:
            out["error"] = self.error or self.status
            out.update(self.details)
        return out

    def __repr__(self):
        return f"ItemResult({self.status!r}, {self.category!r}, {self.city!r}, pdf_url={self.pdf_url!r})"

def manual_provenance() -> str:
    """Marqueur de provenance pour un octroi administratif (pas de paiement associé)."""
    return f"manual_{int(time.time() * 1000)}"

def grant_item(user_id: str, item: PurchasedItem, provenance: str) -> ItemResult:
    category, city = item.category, item.city
    try:
        material = resolver.resolve_material(category, city)
    except resolver.MaterialNotFound as e:
        return ItemResult(category, city, MATERIAL_NOT_FOUND, error=e.code, details={"normalized": e.to_dict()["normalized"]})
    except CatalogError as e:
        return ItemResult(category, city, STORE_ERROR, error="catalog_error", details={"message": str(e)})

    try:
        existing = repository.find_purchase(user_id, category, city)
        if existing:
            return ItemResult(category, city, ALREADY_OWNED, pdf_url=existing.get("pdf_url") or material.pdf_url)

        inserted = repository.insert_purchase(
            user_id=user_id,
            category=category,
            city=city,
            pdf_url=material.pdf_url,
            provider_reference=provenance,
        )
        if inserted is None:
            # Une confirmation concurrente a écrit la ligne entre la lecture et l'insertion
            existing = repository.find_purchase(user_id, category, city)
            pdf_url = (existing or {}).get("pdf_url") or material.pdf_url
            return ItemResult(category, city, ALREADY_OWNED, pdf_url=pdf_url)
    except PurchaseStoreError as e:
        return ItemResult(category, city, STORE_ERROR, error=e.code, details={"message": str(e)})

    return ItemResult(category, city, GRANTED, pdf_url=material.pdf_url)

def grant_items(user_id: str, items: Iterable[PurchasedItem], provenance: str) -> List[ItemResult]:
    """
    Octroie chaque article à user_id avec la provenance donnée (id de paiement ou manual_<ms>).
    Retourne un ItemResult par article, dans l'ordre d'entrée.
    """
    if not user_id:
        raise ValueError("user_id manquant")
    results = []
    for item in items:
        result = grant_item(user_id, item, provenance)
        logger.info(
            "entitlements.grant user_id=%s category=%s city=%s status=%s provenance=%s",
            user_id, item.category, item.city, result.status, provenance,
        )
        results.append(result)
    return results

def check_access(user_id: str, category: str, city: str) -> Optional[Dict[str, Any]]:
    """Ligne 'purchase' pour le couple littéral, ou None (PurchaseStoreError si la lecture échoue)."""
    return repository.find_purchase(user_id, category.strip(), city.strip())

def list_purchases(user_id: str) -> List[Dict[str, Any]]:
    return repository.list_user_purchases(user_id)
