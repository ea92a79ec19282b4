"""
Checkout hébergé (redirection Stripe) pour un montant devisé.
Ne marque jamais un voyage payé: le règlement passe par payments.service
(webhook ou confirmation au retour), qui retrouve le voyage via les métadonnées.
"""
from numbers import Number
from typing import Any, Dict, Tuple
import logging
import urllib.parse

import stripe

from backend.config import BASE_URL, BILLING_CURRENCY, CHECKOUT_CANCEL_PATH, CHECKOUT_SUCCESS_PATH
from backend.payment_methods import service as payment_methods_service
from backend.payments import stripe_client
from backend.payments import metadata as payments_metadata
from backend.payments.models import CheckoutSession
from backend.pricing.service import to_minor_units
from backend.trips import repository as trips_repository
from backend.trips import service as trips_service
from backend.trips.models import TripStatus
from backend.utils.errors import InvalidRequest, ProcessorUnavailable

logger = logging.getLogger(__name__)

# module backend.payments.checkout
def build_redirects(origin: str, trip_id: str) -> Tuple[str, str]:
    """
    URLs de retour contenant le trip_id (le client reprend le bon parcours).
    success_url embarque {CHECKOUT_SESSION_ID} pour la confirmation sans webhook.
    """
    base = (origin or BASE_URL).rstrip("/")
    tid = urllib.parse.quote(str(trip_id), safe="")
    success_path = CHECKOUT_SUCCESS_PATH.format(trip_id=tid)
    sep = "&" if "?" in success_path else "?"
    success_url = f"{base}{success_path}{sep}session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{base}{CHECKOUT_CANCEL_PATH.format(trip_id=tid)}"
    return success_url, cancel_url

def _validate(trip_id: Any, amount: Any, tier_name: Any) -> None:
    errors = []
    if not isinstance(trip_id, str) or not trip_id.strip():
        errors.append("trip_id doit être une chaîne non vide")
    if isinstance(amount, bool) or not isinstance(amount, Number) or not amount > 0:
        errors.append("amount doit être un nombre positif")
    if not isinstance(tier_name, str) or not tier_name.strip():
        errors.append("tier_name doit être une chaîne non vide")
    if errors:
        raise InvalidRequest(", ".join(errors))

def line_item(tier_name: str, amount: Any) -> Dict[str, Any]:
    return {
        "price_data": {
            "currency": BILLING_CURRENCY,
            "product_data": {
                "name": f"{tier_name} Itinerary",
                "description": f"WanderWise {tier_name} Travel Itinerary",
            },
            "unit_amount": to_minor_units(amount),
        },
        "quantity": 1,
    }

def create_session(
    user: Dict[str, Any],
    trip_id: str,
    amount: Any,
    tier_name: str,
    success_redirect: str,
    cancel_redirect: str,
) -> CheckoutSession:
    """Crée une session Checkout à usage unique (mode paiement) et retourne son URL.
    Étapes:
    1) Valide trip_id / amount / tier_name, la propriété du voyage, l'absence de paiement
       au registre et le montant devisé
    2) Réutilise un client Stripe connu (store puis email) pour éviter les doublons
    3) Crée la session avec metadata {trip_id, tier_name, user_id, amount}
    4) Passe le voyage en checkout_pending (sauf s'il est déjà payé)
    """
    _validate(trip_id, amount, tier_name)
    trip = trips_service.get_owned_trip(trip_id, user.get("id"))
    trips_service.ensure_not_paid(trip)
    trips_service.check_amount_matches_quote(trip, amount)

    customer_id = payment_methods_service.find_customer_id(user)
    meta = payments_metadata.make_checkout_metadata(
        trip_id=trip_id, tier_name=tier_name, user_id=user.get("id"), amount=amount
    )
    try:
        session = stripe_client.create_checkout_session(
            customer_id=customer_id,
            customer_email=None if customer_id else user.get("email"),
            line_items=[line_item(tier_name, amount)],
            success_url=success_redirect,
            cancel_url=cancel_redirect,
            metadata=meta,
        )
    except stripe_client.TRANSIENT_ERRORS as e:
        logger.warning("payments.checkout processor unavailable trip_id=%s: %s", trip_id, e)
        raise ProcessorUnavailable() from e
    except stripe.StripeError as e:
        logger.exception("payments.checkout session rejected trip_id=%s", trip_id)
        raise InvalidRequest("Création de la session de paiement refusée") from e

    url = session.get("url")
    if not url:
        logger.error("payments.checkout session without url trip_id=%s session_id=%s", trip_id, session.get("id"))
        raise ProcessorUnavailable("Session de paiement créée sans URL")

    trips_repository.update_trip_unless_paid(trip_id, {"status": TripStatus.CHECKOUT_PENDING})
    logger.info(
        "payments.checkout created trip_id=%s session_id=%s amount=%s customer=%s",
        trip_id, session.get("id"), amount, bool(customer_id),
    )
    return CheckoutSession(session_id=session.get("id"), url=url)
