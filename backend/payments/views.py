import logging
from typing import Any, Dict, Optional

import stripe
from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backend.utils.errors import ChargeDeclined
from backend.utils.security import require_user
from backend.utils.rate_limit import optional_rate_limit

from backend.ledger import service as ledger
from backend.payments import charges as payments_charges
from backend.payments import checkout as payments_checkout
from backend.payments import service as payments_service
from backend.payments import stripe_client
from backend.trips import service as trips_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

class CheckoutRequest(BaseModel):
    trip_id: str = Field(min_length=1)
    amount: float = Field(gt=0)
    tier_name: str = Field(min_length=1)
    origin: Optional[str] = None

class ChargeRequest(BaseModel):
    trip_id: str = Field(min_length=1)
    amount: int = Field(gt=0)

def _normalize_amount(value: float):
    # 57.0 -> 57: les montants restent en unités entières quand c'est possible
    return int(value) if float(value).is_integer() else value

# module backend.payments.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_checkout_session(req: CheckoutRequest, request: Request, user: Dict[str, Any] = Depends(require_user)):
    """
    Crée une session Checkout Stripe pour un voyage devisé.
    - Entrée JSON: { "trip_id": "...", "amount": 57, "tier_name": "Standard", "origin": "https://..." }
    - Sécurité: require_user + rate limit (10 req / 60s)
    - Retour: {"url", "session_id"}; le voyage passe en checkout_pending
    """
    origin = req.origin or request.headers.get("origin") or str(request.base_url)
    success_url, cancel_url = payments_checkout.build_redirects(origin, req.trip_id)
    session = payments_checkout.create_session(
        user,
        req.trip_id,
        _normalize_amount(req.amount),
        req.tier_name,
        success_url,
        cancel_url,
    )
    return {"url": session.url, "session_id": session.session_id}

@router.post("/charge", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def charge_trip(req: ChargeRequest, user: Dict[str, Any] = Depends(require_user)):
    """
    Débit immédiat du moyen de paiement enregistré.
    - 200 {"status": "succeeded", "charge_id"} si accepté
    - 402 charge_declined {"status": "failed" | "requires_action", "charge_id"} sinon
    - 409 no_payment_method si aucun moyen de paiement
    """
    result = payments_charges.charge(user, req.trip_id, req.amount)
    if not result.succeeded:
        raise ChargeDeclined(result.reason, status=result.status, charge_id=result.charge_id)
    return result.to_dict()

@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request):
    """
    Webhook Stripe (Checkout): consomme checkout.session.completed et
    checkout.session.async_payment_succeeded pour régler le voyage.
    - Signature: valide via stripe_client.parse_event (Stripe-Signature + STRIPE_WEBHOOK_SECRET)
    - Réponses 200: {"status": "settled" | "already_settled" | "pending" | "ignored", ...}
    - Erreurs: 400 si signature/payload invalide
    """
    try:
        event = await stripe_client.parse_event(request)
    except (ValueError, stripe.SignatureVerificationError):
        logger.warning("payments.webhook invalid payload or signature")
        raise HTTPException(status_code=400, detail="Invalid Stripe webhook payload")

    outcome = payments_service.handle_event(event)
    logger.info("payments.webhook outcome=%s trip_id=%s", outcome.get("status"), outcome.get("trip_id"))
    return JSONResponse(outcome)

@router.get("/confirm")
def confirm_checkout_get(session_id: str, user: Dict[str, Any] = Depends(require_user)):
    """
    Alternative sans webhook: confirme la session Stripe et règle le voyage.
    - Règle les sessions paid / no_payment_required; "pending" si le paiement est différé
    - Erreurs: 400 si session inconnue, 403 si session d’un autre utilisateur (ou sans user_id)
    """
    return payments_service.confirm_session(session_id, user.get("id"))

@router.post("/confirm")
async def confirm_checkout_post(request: Request, user: Dict[str, Any] = Depends(require_user)):
    """
    Variante POST: accepte session_id en query ou JSON body {"session_id": "..."}.
    - Erreurs: 400 si session_id manquant.
    """
    session_id = request.query_params.get("session_id")
    if not session_id:
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            session_id = str(body.get("session_id") or "") or None
    if not session_id:
        raise HTTPException(status_code=400, detail="session_id manquant")
    return payments_service.confirm_session(session_id, user.get("id"))

@router.get("/trips/{trip_id}")
def trip_payment_status(trip_id: str, user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    """Vue registre: dernière tentative et indicateur paid."""
    trips_service.get_owned_trip(trip_id, user.get("id"))
    latest = ledger.latest_status(trip_id)
    return {
        "trip_id": trip_id,
        "latest_status": latest.to_dict() if latest else None,
        "paid": ledger.succeeded_attempt(trip_id) is not None,
    }
