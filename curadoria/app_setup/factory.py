"""
Factory d'application pour les entrypoints (curadoria.asgi, tests).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
from fastapi import FastAPI

from curadoria import config
from .lifespan import lifespan
from .middlewares import (
    register_basic_middlewares,
    register_security_middleware,
    register_no_cache_middleware,
    register_force_https_middleware,
)
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app() -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - middlewares de base, sécurité, no-cache
      - gestionnaires d'exceptions
      - tous les routers (paiements, achats, facturation, admin, health)
      - redirection HTTPS en production, ajoutée en dernier pour s'exécuter en premier
    """
    app = FastAPI(title="Curadoria Storefront API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    if config.IS_PRODUCTION:
        register_force_https_middleware(app)
    return app
