# curadoria.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe, Mercado Pago)
- Expose les prix d'affichage configurés, l'origine du site et la clé admin
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _float_env(name: str, default: str) -> float:
    try:
        return float(_clean_env(os.getenv(name) or default))
    except ValueError:
        return float(default)

# Environnement d'exécution ("production" | "preview" | "development")
APP_ENV = _clean_env(os.getenv("APP_ENV") or os.getenv("VERCEL_ENV") or "development").lower()
IS_PRODUCTION = APP_ENV == "production"

# Supabase: URL et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(
    os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or ""
)

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Stripe: clé secrète, secret webhook et prix (un pour City Guide, un pour les autres catégories)
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_PRICE_ID_CITY_GUIDE = _clean_env(os.getenv("STRIPE_PRICE_ID_CITY_GUIDE") or "")
STRIPE_PRICE_ID_DEFAULT = _clean_env(os.getenv("STRIPE_PRICE_ID_DEFAULT") or "")

# Mercado Pago: un jeton par environnement (production vs test)
MP_ACCESS_TOKEN_PROD = _clean_env(os.getenv("MP_ACCESS_TOKEN_PROD") or "")
MP_ACCESS_TOKEN_TEST = _clean_env(os.getenv("MERCADOPAGO_ACCESS_TOKEN_TEST") or "")
MP_WEBHOOK_SECRET = _clean_env(os.getenv("MP_WEBHOOK_SECRET") or "")
MP_API_BASE = _clean_env(os.getenv("MP_API_BASE") or "https://api.mercadopago.com").rstrip("/")
MP_CURRENCY = _clean_env(os.getenv("MP_CURRENCY") or "BRL")

# Prix d'affichage (BRL) utilisés pour les préférences Mercado Pago
MP_PRICE_CITY_GUIDE = _float_env("MP_PRICE_CITY_GUIDE", "88.92")
MP_PRICE_DEFAULT = _float_env("MP_PRICE_DEFAULT", "57.83")

# Timeout des appels aux prestataires de paiement (secondes)
PAYMENT_TIMEOUT_SECONDS = _float_env("PAYMENT_TIMEOUT_SECONDS", "10")

# Origine publique du site (URLs de retour du checkout)
SITE_ORIGIN = _clean_env(os.getenv("SITE_ORIGIN") or "https://curadoria-elite-travel.vercel.app").rstrip("/")

# Octroi manuel d'accès (header X-Admin-Key)
ADMIN_GRANT_KEY = _clean_env(os.getenv("ADMIN_GRANT_KEY") or "")

# Cookies/ Sécurité
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")

# CORS / hôtes
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]
