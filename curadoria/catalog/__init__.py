"""
Catalogue des matériels: normalisation des clés et résolution (category, city) -> PDF.
"""
from .normalize import normalize_key, remove_diacritics
from .resolver import Material, MaterialNotFound, resolve_material

__all__ = ["normalize_key", "remove_diacritics", "Material", "MaterialNotFound", "resolve_material"]
