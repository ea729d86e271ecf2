"""
Clé de comparaison canonique pour les libellés catégorie/ville.

La clé sert uniquement à comparer; elle n'est jamais stockée comme valeur de référence.
"""
import re
import unicodedata

# Tirets Unicode ramenés au trait d'union ASCII:
# U+2010..U+2015 (hyphen, non-breaking hyphen, figure/en/em dash, horizontal bar), U+2212 (minus),
# U+FE58, U+FE63, U+FF0D (variantes compatibilité)
_DASHES = re.compile(r"[\u2010-\u2015\u2212\ufe58\ufe63\uff0d]")
_AROUND_HYPHEN = re.compile(r"\s*-\s*")
_SPACES = re.compile(r"\s+")

def remove_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))

def normalize_key(text: str) -> str:
    """
    "  São  Paulo – SP " -> "sao paulo - sp"

    - minuscules
    - supprime les accents (décomposition NFD, marques combinantes retirées)
    - convertit en/em dash, signe moins, etc. en "-"
    - espaces autour d'un tiret -> " - "; autres suites d'espaces -> " "
    Pure et idempotente: normalize_key(normalize_key(s)) == normalize_key(s).
    """
    # lower() avant la décomposition: "İ".lower() produit une marque combinante
    out = remove_diacritics(str(text or "").strip().lower())
    out = _DASHES.sub("-", out)
    out = _AROUND_HYPHEN.sub(" - ", out)
    return _SPACES.sub(" ", out).strip()
