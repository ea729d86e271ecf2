"""
Sérialisation/désérialisation des métadonnées de paiement (user_id, items).

Deux formes coexistent chez les prestataires:
- panier: metadata.items = JSON [{"category": "...", "city": "..."}, ...]
- ancien achat unitaire: metadata.category + metadata.city
"""
import json
from typing import Any, Dict, Iterable, List, Optional

from .errors import MetadataMissing

class PurchasedItem:
    def __init__(self, category: str, city: str):
        self.category = category
        self.city = city

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PurchasedItem":
        return cls(str(raw.get("category") or "").strip(), str(raw.get("city") or "").strip())

    def is_valid(self) -> bool:
        return bool(self.category and self.city)

    def to_dict(self) -> Dict[str, str]:
        return {"category": self.category, "city": self.city}

    def __eq__(self, other):
        if not isinstance(other, PurchasedItem):
            return NotImplemented
        return (self.category, self.city) == (other.category, other.city)

    def __hash__(self):
        return hash((self.category, self.city))

    def __repr__(self):
        return f"PurchasedItem({self.category!r}, {self.city!r})"

def serialize_items(items: Iterable[PurchasedItem]) -> str:
    """JSON compact (séparateurs sans espaces) pour tenir dans les limites de taille des metadata."""
    return json.dumps([it.to_dict() for it in items], ensure_ascii=False, separators=(",", ":"))

def _load_items(raw: Any) -> List[Dict[str, Any]]:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            data = json.loads(raw)
        except ValueError:
            raise MetadataMissing("metadata.items illisible", field="items")
        if isinstance(data, list):
            return data
        raise MetadataMissing("metadata.items n'est pas une liste", field="items")
    return []

def parse_items(meta: Optional[Dict[str, Any]]) -> List[PurchasedItem]:
    """
    Extrait la liste ordonnée des articles achetés.
    - Priorité à metadata.items (panier), repli sur metadata.category/city (achat unitaire).
    - Ignore les entrées sans catégorie ou ville.
    - Soulève MetadataMissing si aucun article exploitable.
    """
    meta = meta or {}
    items = [
        PurchasedItem.from_dict(raw)
        for raw in _load_items(meta.get("items"))
        if isinstance(raw, dict)
    ]
    items = [it for it in items if it.is_valid()]
    if not items:
        single = PurchasedItem.from_dict(meta)
        if single.is_valid():
            items = [single]
    if not items:
        raise MetadataMissing("Aucun article dans les metadata du paiement", field="items")
    return items

def extract_owner_claim(meta: Optional[Dict[str, Any]]) -> Optional[str]:
    """user_id enregistré lors de la création du checkout, ou None."""
    uid = str((meta or {}).get("user_id") or "").strip()
    return uid or None
