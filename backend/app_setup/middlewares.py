"""
Middlewares transverses de l’API de facturation.
- register_basic_middlewares: CORS, hôtes autorisés, en-têtes X-Forwarded-* du proxy.
- register_security_middleware: en-têtes de sécurité ajoutés à toute réponse JSON.
- register_no_cache_middleware: aucune mise en cache des réponses de paiement.
- register_force_https_middleware: redirection HTTPS derrière un proxy TLS.
L'API s'authentifie par Bearer (pas de session cookie serveur): aucune vérification CSRF ici.
"""
from fastapi import Request, FastAPI
from fastapi.responses import RedirectResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from backend.config import COOKIE_SECURE, CORS_ORIGINS, ALLOWED_HOSTS

NO_CACHE_PREFIXES = ("/api/v1/payments", "/api/v1/payment-methods")

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=()",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}
HSTS_VALUE = "max-age=63072000; includeSubDomains; preload"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

def register_basic_middlewares(app: FastAPI) -> None:
    # CORS_ORIGINS="*" (dev) ouvre aussi la liste des hôtes
    hosts = list(ALLOWED_HOSTS)
    if "*" in CORS_ORIGINS:
        hosts.append("*")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Stripe-Signature"],
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=hosts)
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

def register_security_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            if name not in response.headers:
                response.headers[name] = value
        if COOKIE_SECURE and "Strict-Transport-Security" not in response.headers:
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        return response

def register_no_cache_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def no_cache_for_billing(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith(NO_CACHE_PREFIXES):
            response.headers.update(NO_CACHE_HEADERS)
        return response

def register_force_https_middleware(app: FastAPI) -> None:
    """
    Redirige HTTP -> HTTPS quand le proxy annonce x-forwarded-proto=http.
    Enregistré en dernier: s'exécute en premier dans la pile.
    """
    @app.middleware("http")
    async def force_https(request: Request, call_next):
        if request.headers.get("x-forwarded-proto") == "http":
            return RedirectResponse(str(request.url.replace(scheme="https")), status_code=301)
        return await call_next(request)
