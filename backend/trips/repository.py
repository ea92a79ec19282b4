"""
Accès aux données pour la table 'trips' (projection de statut côté facturation).
Toute erreur du store est journalisée puis remontée en PersistenceFailure:
une lecture en échec ne doit jamais passer pour « aucune ligne ».
"""
from typing import Any, Dict, Optional
import logging

import backend.infra.supabase_client as supabase_client
from backend.trips.models import TripStatus
from backend.utils.errors import PersistenceFailure

logger = logging.getLogger(__name__)

TRIP_COLUMNS = "id, user_id, status, tier, form_data, quoted_price, price_paid"

# module backend.trips.repository
def get_trip(trip_id: str) -> Optional[Dict[str, Any]]:
    """Retourne la ligne trips ou None si introuvable."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("trips")
            .select(TRIP_COLUMNS)
            .eq("id", trip_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.exception("trips.repository.get_trip failed trip_id=%s", trip_id)
        raise PersistenceFailure("Lecture du voyage impossible") from e
    rows = res.data or []
    return rows[0] if rows else None

def update_trip(trip_id: str, fields: Dict[str, Any]) -> bool:
    """Met à jour les champs donnés; True si au moins une ligne a été modifiée."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("trips")
            .update(fields)
            .eq("id", trip_id)
            .execute()
        )
    except Exception as e:
        logger.exception("trips.repository.update_trip failed trip_id=%s fields=%s", trip_id, sorted(fields))
        raise PersistenceFailure("Mise à jour du voyage impossible") from e
    return bool(res.data)

def update_trip_unless_paid(trip_id: str, fields: Dict[str, Any]) -> bool:
    """
    Même chose que update_trip, mais jamais sur un voyage déjà payé
    (filtre status <> 'paid' évalué par la base, pas de lecture préalable).
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("trips")
            .update(fields)
            .eq("id", trip_id)
            .neq("status", TripStatus.PAID)
            .execute()
        )
    except Exception as e:
        logger.exception("trips.repository.update_trip_unless_paid failed trip_id=%s", trip_id)
        raise PersistenceFailure("Mise à jour du voyage impossible") from e
    return bool(res.data)
