"""Registre des achats (table 'purchase') et octroi idempotent des droits d'accès."""
