"""
Module 'payments' (feature-first): panier, metadata, clients prestataires, adaptateurs de confirmation.
Le service (payments.service) n'est pas réexporté ici: il dépend de 'entitlements', qui dépend de payments.metadata.
"""

from .errors import (
    PaymentError,
    PaymentNotConfirmed,
    PaymentNotFound,
    MetadataMissing,
    OwnershipMismatch,
    ProviderError,
    ProviderConfigError,
)
from .metadata import PurchasedItem, parse_items, extract_owner_claim, serialize_items

__all__ = [
    # errors
    "PaymentError",
    "PaymentNotConfirmed",
    "PaymentNotFound",
    "MetadataMissing",
    "OwnershipMismatch",
    "ProviderError",
    "ProviderConfigError",
    # metadata
    "PurchasedItem",
    "parse_items",
    "extract_owner_claim",
    "serialize_items",
]
