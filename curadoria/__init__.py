"""
Curadoria storefront: confirmation des paiements (Stripe, Mercado Pago) et octroi
idempotent de l'accès aux matériels (PDF) achetés.
"""
