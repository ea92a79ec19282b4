"""
Débit hors session d'un moyen de paiement enregistré (génération d'itinéraire payante).

Ordre strict d'une requête:
  1) résoudre client / moyen de paiement (NoPaymentMethod avant tout appel Stripe)
  2) débit Stripe confirmé, off_session, avec clé d'idempotence
  3) ajout de la tentative au registre
  4) reconstruction du statut du voyage (seulement si 3 a réussi)
Un échec en 3 après un débit réussi est un trou de réconciliation: journalisé, jamais masqué.
Pas de retry automatique: un refus est rendu à l'appelant, qui relance manuellement.
"""
from numbers import Number
from typing import Any, Dict
import logging

import stripe

from backend.config import BILLING_CURRENCY
from backend.ledger import service as ledger
from backend.ledger.models import FAILED, REQUIRES_ACTION, SUCCEEDED
from backend.payment_methods import service as payment_methods_service
from backend.payments import stripe_client
from backend.payments import metadata as payments_metadata
from backend.payments.models import ChargeResult
from backend.pricing.service import to_minor_units
from backend.trips import service as trips_service
from backend.utils.errors import (
    InvalidRequest,
    NoPaymentMethod,
    PersistenceFailure,
    ProcessorUnavailable,
)

logger = logging.getLogger(__name__)

# module backend.payments.charges
def idempotency_key(trip_id: str, payment_method_id: str, amount_minor: int, epoch: int) -> str:
    """Même voyage + même carte + même montant + même époque => même débit côté Stripe.
    Changer de carte change la clé."""
    return f"trip-charge:{trip_id}:{payment_method_id}:{amount_minor}:{epoch}"

def attempt_status(intent_status: Any) -> str:
    if intent_status == SUCCEEDED:
        return SUCCEEDED
    if intent_status == REQUIRES_ACTION:
        return REQUIRES_ACTION
    return FAILED

def _validate(trip_id: Any, amount: Any) -> int:
    if not isinstance(trip_id, str) or not trip_id.strip():
        raise InvalidRequest("trip_id doit être une chaîne non vide")
    if isinstance(amount, bool) or not isinstance(amount, Number):
        raise InvalidRequest("amount doit être un entier positif")
    if amount <= 0 or int(amount) != amount:
        raise InvalidRequest("amount doit être un entier positif")
    return int(amount)

def charge(user: Dict[str, Any], trip_id: str, amount: Any) -> ChargeResult:
    """Débite immédiatement le moyen de paiement par défaut de l'utilisateur.
    Retour: ChargeResult(status, charge_id). Un refus n'est pas une exception ici:
    il est enregistré (failed / requires_action) et le voyage passe en payment_failed.
    """
    amount = _validate(trip_id, amount)
    user_id = user.get("id")
    trip = trips_service.get_owned_trip(trip_id, user_id)
    trips_service.check_amount_matches_quote(trip, amount)

    # 1) Résolution locale uniquement: aucun appel Stripe sans moyen de paiement
    record = payment_methods_service.get(user)
    if record is None:
        logger.info("payments.charge no payment method user_id=%s trip_id=%s", user_id, trip_id)
        raise NoPaymentMethod()

    previous = ledger.succeeded_attempt(trip_id)
    if previous is not None:
        logger.info("payments.charge already paid trip_id=%s charge_id=%s", trip_id, previous.charge_id)
        return ChargeResult(status=SUCCEEDED, charge_id=previous.charge_id, replayed=True)

    amount_minor = to_minor_units(amount)
    key = idempotency_key(trip_id, record.payment_method_id, amount_minor, ledger.attempt_epoch(trip_id))

    # 2) Débit Stripe
    reason = None
    try:
        intent = stripe_client.create_and_confirm_charge(
            customer_id=record.customer_id,
            payment_method_id=record.payment_method_id,
            amount_minor=amount_minor,
            currency=BILLING_CURRENCY,
            metadata=payments_metadata.make_charge_metadata(trip_id=trip_id, user_id=user_id),
            idempotency_key=key,
            description=f"Itinerary generation for trip {trip_id}",
        )
        charge_id = intent.get("id")
        status = attempt_status(intent.get("status"))
    except stripe.CardError as e:
        declined = stripe_client.declined_intent(e)
        charge_id = declined["id"]
        status = REQUIRES_ACTION if declined["code"] == "authentication_required" else FAILED
        reason = declined["message"]
    except stripe_client.TRANSIENT_ERRORS as e:
        logger.warning("payments.charge processor unavailable trip_id=%s key=%s: %s", trip_id, key, e)
        raise ProcessorUnavailable() from e
    except stripe.StripeError as e:
        # Requête refusée avant tout débit (paramètres, clé réutilisée...): rien à enregistrer
        logger.exception("payments.charge request rejected trip_id=%s key=%s", trip_id, key)
        raise InvalidRequest("Demande de paiement refusée par le processeur") from e

    logger.info(
        "payments.charge trip_id=%s amount=%s key=%s charge_id=%s status=%s",
        trip_id, amount, key, charge_id, status,
    )

    # 3) Registre puis 4) projection
    try:
        ledger.record(trip_id, amount, charge_id, status)
    except PersistenceFailure as e:
        if status == SUCCEEDED:
            logger.error(
                "payments.charge reconciliation gap: charge succeeded but ledger write failed "
                "trip_id=%s charge_id=%s amount=%s",
                trip_id, charge_id, amount,
            )
            raise PersistenceFailure(
                "Paiement accepté mais non enregistré; réconciliation nécessaire",
                charge_id=charge_id,
            ) from e
        raise
    ledger.rebuild_trip_status(trip_id)

    return ChargeResult(status=status, charge_id=charge_id, reason=reason)
