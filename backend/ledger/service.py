"""Registre des paiements de voyages (source de vérité de « ce voyage est-il payé »).

Deux producteurs écrivent ici: le débit hors session (payments.charges) et le
règlement du checkout hébergé (payments.service). Aucun des deux ne modifie
trips.status directement: le statut du voyage est une projection reconstruite
depuis le registre par rebuild_trip_status, appelée après chaque ajout.
"""
from typing import Any, List, Optional
import logging

from backend.ledger import repository
from backend.ledger.models import ATTEMPT_STATUSES, SUCCEEDED, PaymentAttempt
from backend.trips import repository as trips_repository
from backend.trips.models import TripStatus
from backend.utils.errors import InvalidRequest

logger = logging.getLogger(__name__)

def record(trip_id: str, amount: Any, charge_id: Optional[str], status: str) -> PaymentAttempt:
    """Ajoute une tentative (insert seul). Un charge_id déjà présent n'est pas dupliqué."""
    if status not in ATTEMPT_STATUSES:
        raise InvalidRequest(f"Statut de paiement inconnu: {status!r}")
    row = repository.insert_attempt(trip_id=trip_id, amount=amount, charge_id=charge_id, status=status)
    logger.info("ledger.record trip_id=%s amount=%s charge_id=%s status=%s", trip_id, amount, charge_id, status)
    return PaymentAttempt.from_row(row)

def latest_status(trip_id: str) -> Optional[PaymentAttempt]:
    row = repository.latest_attempt(trip_id)
    return PaymentAttempt.from_row(row) if row else None

def succeeded_attempt(trip_id: str) -> Optional[PaymentAttempt]:
    row = repository.find_succeeded(trip_id)
    return PaymentAttempt.from_row(row) if row else None

def history(trip_id: str) -> List[PaymentAttempt]:
    return [PaymentAttempt.from_row(r) for r in repository.list_attempts(trip_id)]

def attempt_epoch(trip_id: str) -> int:
    """Nombre de tentatives déjà enregistrées; change après chaque refus enregistré."""
    return repository.count_attempts(trip_id)

def is_settled(charge_id: str) -> bool:
    return repository.find_by_charge_id(charge_id) is not None

def rebuild_trip_status(trip_id: str) -> Optional[str]:
    """
    Reconstruit trips.status depuis le registre:
    - une tentative succeeded existe -> paid (+ price_paid)
    - sinon au moins une tentative -> payment_failed (jamais sur un voyage payé)
    - sinon statut inchangé (retourne None)
    """
    succeeded = repository.find_succeeded(trip_id)
    if succeeded:
        trips_repository.update_trip(trip_id, {"status": TripStatus.PAID, "price_paid": succeeded.get("amount")})
        return TripStatus.PAID

    if repository.latest_attempt(trip_id) is None:
        return None

    trips_repository.update_trip_unless_paid(trip_id, {"status": TripStatus.PAYMENT_FAILED})
    return TripStatus.PAYMENT_FAILED
