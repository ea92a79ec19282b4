"""
Registre central des routers (API v1, health).
- API v1: pricing, trips, payment-methods, payments
- Health: health_router
"""
from fastapi import FastAPI
from backend.pricing import views as pricing_views
from backend.trips import views as trips_views
from backend.payment_methods import views as payment_methods_views
from backend.payments import views as payments_views
from backend.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l’application.
    - L’ordre n’a pas d’impact sauf conflits de chemins (évités par préfixes).
    """
    # API v1
    app.include_router(pricing_views.router)
    app.include_router(trips_views.router)
    app.include_router(payment_methods_views.router)
    app.include_router(payments_views.router)
    # Health & monitoring
    app.include_router(health_router)
