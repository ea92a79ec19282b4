"""
Factory d’application recommandée pour les entrypoints (ex: backend.asgi).
Ordonne les étapes d’initialisation de manière lisible et testable.
"""
import logging
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import (
    register_basic_middlewares,
    register_security_middleware,
    register_no_cache_middleware,
    register_force_https_middleware,
)
from .exceptions import register_exception_handlers
from .routers import register_routers
from backend.config import COOKIE_SECURE

def create_app() -> FastAPI:
    """
    Construit l’app FastAPI avec le lifespan et enregistre:
      - middlewares de base, sécurité, no-cache (et HTTPS forcé en prod)
      - gestionnaires d’exceptions
      - tous les routers (pricing, trips, payment-methods, payments, health)
    Retour:
      FastAPI prêt à être utilisé par le serveur ASGI.
    """
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    app = FastAPI(title="Trip Billing API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_no_cache_middleware(app)
    if COOKIE_SECURE:
        register_force_https_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
