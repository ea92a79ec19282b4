"""
ASGI entrypoint: expose `app` pour les process managers (uvicorn, gunicorn -k uvicorn.workers.UvicornWorker).
La construction (middlewares, handlers d'erreurs de facturation, routers) est faite par
backend.app_setup.factory; ce module ne fait qu'exposer l'instance.
"""

from backend.app import app

__all__ = ["app"]
