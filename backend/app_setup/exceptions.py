"""
Gestionnaires d’exceptions (utilisés par la factory).
- BillingError: rendu JSON {"error": <code>, "detail": <message court>, ...extra}.
- HTTPException: réponse JSON FastAPI standard {"detail": ...}.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from backend.utils.errors import BillingError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre les handlers BillingError et HTTPException.
    Les erreurs 5xx sont journalisées avec leur chemin; les 4xx restent silencieuses.
    """
    @app.exception_handler(BillingError)
    async def billing_error_handler(request: Request, exc: BillingError):
        if exc.status_code >= 500:
            logger.error("billing error %s on %s: %s", exc.code, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
