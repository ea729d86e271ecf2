"""Profil de facturation et préconditions d'achat."""
