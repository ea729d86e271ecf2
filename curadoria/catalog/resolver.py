"""
Résolution d'un couple (catégorie, ville) acheté vers le matériel PDF actif correspondant.

Stratégie en deux phases:
- filtre grossier côté base (catégorie, ILIKE) pour borner le pool
- comparaison exacte en mémoire sur les clés normalisées (accents, tirets, casse)
"""
from typing import Any, Dict
import logging

from . import repository
from .normalize import normalize_key

logger = logging.getLogger(__name__)

class Material:
    def __init__(self, category: str, city_label: str, pdf_url: str, is_active: bool = True):
        self.category = category
        self.city_label = city_label
        self.pdf_url = pdf_url
        self.is_active = is_active

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Material":
        return cls(
            category=str(row.get("category") or ""),
            city_label=str(row.get("city_label") or ""),
            pdf_url=str(row.get("pdf_url") or ""),
            is_active=bool(row.get("is_active", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "city_label": self.city_label, "pdf_url": self.pdf_url}

    def __eq__(self, other):
        if not isinstance(other, Material):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Material({self.category!r}, {self.city_label!r}, {self.pdf_url!r})"

class MaterialNotFound(Exception):
    code = "material_not_found"

    def __init__(self, category: str, city: str, category_key: str, city_key: str):
        super().__init__(f"Aucun matériel actif pour category={category!r} city={city!r}")
        self.category = category
        self.city = city
        self.category_key = category_key
        self.city_key = city_key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "category": self.category,
            "city": self.city,
            "normalized": {"category": self.category_key, "city": self.city_key},
        }

def _row_matches(row: Dict[str, Any], category_key: str, city_key: str) -> bool:
    return (
        bool(row.get("pdf_url"))
        and normalize_key(row.get("category") or "") == category_key
        and normalize_key(row.get("city_label") or "") == city_key
    )

def resolve_material(category: str, city: str) -> Material:
    """
    Retourne le matériel actif dont (category, city_label) normalisés égalent ceux demandés.
    - ValueError si category ou city est vide (erreur de l'appelant).
    - MaterialNotFound (avec les clés normalisées) si aucun candidat ne correspond.
    - repository.CatalogError si la lecture du catalogue échoue.
    """
    category = (category or "").strip()
    city = (city or "").strip()
    if not category or not city:
        raise ValueError("category et city sont obligatoires")

    category_key = normalize_key(category)
    city_key = normalize_key(city)

    pool = repository.fetch_candidates(category)
    matches = [row for row in pool if _row_matches(row, category_key, city_key)]
    if not matches:
        logger.info(
            "catalog.resolve_material not found category_key=%s city_key=%s pool=%s",
            category_key, city_key, len(pool),
        )
        raise MaterialNotFound(category, city, category_key, city_key)

    if len(matches) > 1:
        # Plusieurs lignes actives pour la même clé: le premier pdf_url (ordre alphabétique) gagne
        logger.warning(
            "catalog.resolve_material ambiguous category_key=%s city_key=%s matches=%s",
            category_key, city_key, len(matches),
        )
    return Material.from_row(matches[0])
