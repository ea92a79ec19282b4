"""Cas d'usage 'trips' côté facturation.
- get_owned_trip: charge un voyage et vérifie qu'il appartient à l'utilisateur.
- quote_trip: calcule le devis d'un voyage stocké et le persiste (status quoted).
- ensure_not_paid / check_amount_matches_quote: gardes communes aux deux chemins de règlement.
"""
from decimal import Decimal
from typing import Any, Dict, Tuple
import logging

from backend.ledger import service as ledger
from backend.pricing import service as pricing_service
from backend.pricing.models import PriceQuote
from backend.trips import repository
from backend.trips.models import TripAttributes, TripStatus
from backend.utils.errors import InvalidRequest, TripNotFound

logger = logging.getLogger(__name__)

def get_owned_trip(trip_id: str, user_id: str) -> Dict[str, Any]:
    trip = repository.get_trip(trip_id)
    # Un voyage d'un autre utilisateur est rapporté comme introuvable
    if not trip or str(trip.get("user_id") or "") != str(user_id or ""):
        raise TripNotFound()
    return trip

def ensure_not_paid(trip: Dict[str, Any]) -> None:
    """Refuse un voyage payé: statut en cache, ou tentative succeeded dans le registre
    (le statut en cache peut être en retard si la projection a échoué)."""
    if trip.get("status") == TripStatus.PAID or ledger.succeeded_attempt(trip.get("id")) is not None:
        raise InvalidRequest("Voyage déjà payé")

def quote_trip(user: Dict[str, Any], trip_id: str, tier_id: str) -> Tuple[Dict[str, Any], PriceQuote]:
    """Devis d'un voyage stocké:
    - lit form_data (attributs du wizard) et calcule le devis
    - enregistre tier, quoted_price et status=quoted, sauf si le voyage est déjà payé
    """
    trip = get_owned_trip(trip_id, user.get("id"))
    ensure_not_paid(trip)

    attributes = TripAttributes.from_payload(trip.get("form_data") or {})
    price = pricing_service.quote(attributes, tier_id)
    repository.update_trip_unless_paid(
        trip_id,
        {"tier": price.tier_id, "quoted_price": price.total, "status": TripStatus.QUOTED},
    )
    logger.info("trips.quote trip_id=%s tier=%s total=%s", trip_id, price.tier_id, price.total)
    return trip, price

def check_amount_matches_quote(trip: Dict[str, Any], amount) -> None:
    quoted = trip.get("quoted_price")
    if quoted is None:
        return
    if Decimal(str(quoted)) != Decimal(str(amount)):
        raise InvalidRequest("Le montant ne correspond pas au devis du voyage")
