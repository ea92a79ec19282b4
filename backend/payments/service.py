"""
Cas d'usage 'payments': règlement des sessions Checkout hébergées.
Deux chemins aboutissent ici, le webhook Stripe et la confirmation au retour client;
les deux écrivent la même tentative (dédupliquée par charge_id) puis reconstruisent le statut du voyage.
"""
from typing import Any, Dict, Optional
import logging

import stripe

from backend.ledger import service as ledger
from backend.ledger.models import SUCCEEDED
from backend.payments import stripe_client
from backend.payments import metadata as meta
from backend.utils.errors import Forbidden, InvalidRequest, ProcessorUnavailable

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
CHECKOUT_ASYNC_SUCCEEDED = "checkout.session.async_payment_succeeded"
SETTLING_EVENTS = (CHECKOUT_COMPLETED, CHECKOUT_ASYNC_SUCCEEDED)

# payment_status d'une session terminée qui vaut règlement (remise de 100% -> no_payment_required)
SETTLED_PAYMENT_STATUSES = ("paid", "no_payment_required")

def settle_checkout_session(session: Dict[str, Any]) -> Dict[str, Any]:
    """
    Enregistre une session réglée dans le registre.
    Retour: {"status": "settled" | "already_settled" | "pending", "trip_id", "charge_id", "trip_status"}
    - paid: montant des métadonnées, charge_id = payment_intent
    - no_payment_required: montant réellement payé (amount_total), charge_id = id de session
    - unpaid (paiement différé): rien n'est écrit, le règlement arrivera par
      checkout.session.async_payment_succeeded
    Rejouer la même session (webhook + confirmation, ou webhook relivré) ne crée pas de doublon.
    """
    session = session or {}
    info = meta.extract_settlement(session)
    trip_id = info.get("trip_id")
    if not trip_id:
        raise InvalidRequest("Session sans trip_id dans les métadonnées")
    charge_id = info.get("charge_id")
    amount = info.get("amount")

    payment_status = session.get("payment_status") or ""
    if payment_status not in SETTLED_PAYMENT_STATUSES:
        logger.info("payments.settle pending trip_id=%s session_id=%s payment_status=%s",
                    trip_id, session.get("id"), payment_status)
        return {"status": "pending", "trip_id": trip_id, "charge_id": None, "trip_status": None}
    if payment_status == "no_payment_required":
        amount = int(session.get("amount_total") or 0) / 100
        if amount.is_integer():
            amount = int(amount)

    if charge_id and ledger.is_settled(charge_id):
        logger.info("payments.settle replay trip_id=%s charge_id=%s", trip_id, charge_id)
        return {"status": "already_settled", "trip_id": trip_id, "charge_id": charge_id, "trip_status": None}

    ledger.record(trip_id, amount, charge_id, SUCCEEDED)
    trip_status = ledger.rebuild_trip_status(trip_id)
    logger.info(
        "payments.settle trip_id=%s charge_id=%s amount=%s trip_status=%s",
        trip_id, charge_id, amount, trip_status,
    )
    return {"status": "settled", "trip_id": trip_id, "charge_id": charge_id, "trip_status": trip_status}

def handle_event(event: Any) -> Dict[str, Any]:
    """Consomme checkout.session.completed et async_payment_succeeded; tout autre type est ignoré."""
    event_type = stripe_client.field(event, "type")
    if event_type not in SETTLING_EVENTS:
        return {"status": "ignored", "type": event_type}
    data = stripe_client.field(event, "data") or {}
    session = stripe_client.session_to_dict(stripe_client.field(data, "object"))
    return settle_checkout_session(session)

def confirm_session(session_id: str, current_user_id: Optional[str]) -> Dict[str, Any]:
    """
    Alternative sans webhook: récupère la session Stripe, vérifie la propriété
    (metadata.user_id obligatoire), puis règle la session.
    """
    if not session_id:
        raise InvalidRequest("session_id manquant")
    try:
        session = stripe_client.get_session(session_id)
    except stripe_client.TRANSIENT_ERRORS as e:
        logger.warning("payments.confirm processor unavailable session_id=%s: %s", session_id, e)
        raise ProcessorUnavailable() from e
    except stripe.StripeError as e:
        logger.info("payments.confirm unknown session session_id=%s", session_id)
        raise InvalidRequest("Session de paiement introuvable") from e

    owner = meta.extract_settlement(session).get("user_id")
    # Toute session créée ici porte user_id: une session sans propriétaire n'est pas confirmable
    if not owner or owner != current_user_id:
        logger.warning("payments.confirm owner mismatch session_id=%s", session_id)
        raise Forbidden("Session appartenant à un autre utilisateur")
    return settle_checkout_session(session)
