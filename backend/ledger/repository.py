"""
Accès aux données pour la table 'trip_payments' (registre append-only).
- Jamais d'update ni de delete.
- L'insertion ignore un doublon sur stripe_payment_id (index unique): un même
  paiement rejoué (double clic, webhook renvoyé, retry idempotent) n'ajoute qu'une ligne.
"""
from typing import Any, Dict, List, Optional
import logging

import backend.infra.supabase_client as supabase_client
from backend.ledger.models import SUCCEEDED
from backend.utils.errors import PersistenceFailure

logger = logging.getLogger(__name__)

ATTEMPT_COLUMNS = "id, trip_id, amount, stripe_payment_id, status, created_at"

# module backend.ledger.repository
def insert_attempt(*, trip_id: str, amount: Any, charge_id: Optional[str], status: str) -> Dict[str, Any]:
    row = {"trip_id": trip_id, "amount": amount, "stripe_payment_id": charge_id, "status": status}
    try:
        table = supabase_client.get_service_supabase().table("trip_payments")
        if charge_id:
            table.upsert(row, on_conflict="stripe_payment_id", ignore_duplicates=True).execute()
        else:
            table.insert(row).execute()
    except Exception as e:
        logger.exception("ledger.repository.insert_attempt failed trip_id=%s charge_id=%s", trip_id, charge_id)
        raise PersistenceFailure("Enregistrement du paiement impossible") from e
    return row

def _select_attempts(trip_id: str, *, status: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    try:
        query = (
            supabase_client.get_service_supabase()
            .table("trip_payments")
            .select(ATTEMPT_COLUMNS)
            .eq("trip_id", trip_id)
        )
        if status:
            query = query.eq("status", status)
        query = query.order("created_at", desc=True).order("id", desc=True)
        if limit:
            query = query.limit(limit)
        res = query.execute()
    except Exception as e:
        logger.exception("ledger.repository._select_attempts failed trip_id=%s status=%s", trip_id, status)
        raise PersistenceFailure("Lecture du registre de paiements impossible") from e
    return res.data or []

def list_attempts(trip_id: str) -> List[Dict[str, Any]]:
    """Tentatives du voyage, de la plus récente à la plus ancienne."""
    return _select_attempts(trip_id)

def latest_attempt(trip_id: str) -> Optional[Dict[str, Any]]:
    rows = _select_attempts(trip_id, limit=1)
    return rows[0] if rows else None

def find_succeeded(trip_id: str) -> Optional[Dict[str, Any]]:
    rows = _select_attempts(trip_id, status=SUCCEEDED, limit=1)
    return rows[0] if rows else None

def count_attempts(trip_id: str) -> int:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("trip_payments")
            .select("id", count="exact")
            .eq("trip_id", trip_id)
            .execute()
        )
    except Exception as e:
        logger.exception("ledger.repository.count_attempts failed trip_id=%s", trip_id)
        raise PersistenceFailure("Lecture du registre de paiements impossible") from e
    if res.count is not None:
        return int(res.count)
    return len(res.data or [])

def find_by_charge_id(charge_id: str) -> Optional[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("trip_payments")
            .select(ATTEMPT_COLUMNS)
            .eq("stripe_payment_id", charge_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.exception("ledger.repository.find_by_charge_id failed charge_id=%s", charge_id)
        raise PersistenceFailure("Lecture du registre de paiements impossible") from e
    rows = res.data or []
    return rows[0] if rows else None
