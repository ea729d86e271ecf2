"""
Logique panier pure (pas d'appel prestataire, pas de DB).
"""
from typing import Any, Dict, List
from fastapi import HTTPException

from curadoria import config
from .metadata import PurchasedItem, serialize_items

# Limite Stripe: 500 caractères par valeur de metadata
STRIPE_METADATA_VALUE_LIMIT = 500

CITY_GUIDE = "city guide"

# module curadoria.payments.cart
def items_from_body(body: Dict[str, Any]) -> List[PurchasedItem]:
    """
    Normalise le corps de requête en liste d'articles.
    - Accepte { "items": [ {category, city}, ... ] } ou { "category": ..., "city": ... }.
    - Ignore les lignes incomplètes et les doublons exacts (même couple littéral).
    - Soulève HTTPException(400) si aucun article valide.
    """
    body = body or {}
    raw_items = body.get("items")
    if isinstance(raw_items, list) and raw_items:
        candidates = [PurchasedItem.from_dict(it) for it in raw_items if isinstance(it, dict)]
    else:
        candidates = [PurchasedItem.from_dict(body)]

    items: List[PurchasedItem] = []
    for it in candidates:
        if it.is_valid() and it not in items:
            items.append(it)
    if not items:
        raise HTTPException(status_code=400, detail="category/city ou items[] manquant")
    return items

def is_city_guide(category: str) -> bool:
    return (category or "").strip().lower() == CITY_GUIDE

def stripe_price_id(category: str) -> str:
    return config.STRIPE_PRICE_ID_CITY_GUIDE if is_city_guide(category) else config.STRIPE_PRICE_ID_DEFAULT

def mp_unit_price(category: str) -> float:
    price = config.MP_PRICE_CITY_GUIDE if is_city_guide(category) else config.MP_PRICE_DEFAULT
    return round(float(price), 2)

def to_stripe_line_items(items: List[PurchasedItem]) -> List[Dict[str, Any]]:
    """Une ligne par article; deux prix Stripe possibles (City Guide / autres catégories)."""
    return [{"price": stripe_price_id(it.category), "quantity": 1} for it in items]

def to_mp_items(items: List[PurchasedItem]) -> List[Dict[str, Any]]:
    return [
        {
            "title": f"{it.city} — {it.category}",
            "quantity": 1,
            "unit_price": mp_unit_price(it.category),
            "currency_id": config.MP_CURRENCY,
        }
        for it in items
    ]

def make_metadata(user_id: str, items: List[PurchasedItem]) -> Dict[str, str]:
    """
    Métadonnées attachées au checkout, relues à la confirmation.
    - user_id: propriétaire du panier
    - items: JSON compact de la liste
    - category/city: dupliqués pour un panier d'un seul article (lecture simple côté dashboard)
    """
    metadata = {"user_id": user_id, "items": serialize_items(items)}
    if len(items) == 1:
        metadata["category"] = items[0].category
        metadata["city"] = items[0].city
    return metadata

def check_stripe_metadata(metadata: Dict[str, str]) -> Dict[str, str]:
    """Refuse (400) un panier dont la sérialisation dépasse la limite Stripe, plutôt que de la tronquer."""
    for key, value in metadata.items():
        if len(value) > STRIPE_METADATA_VALUE_LIMIT:
            raise HTTPException(status_code=400, detail=f"Panier trop volumineux ({key})")
    return metadata

def display_prices() -> Dict[str, float]:
    return {"city_guide": mp_unit_price(CITY_GUIDE), "default": mp_unit_price("")}
