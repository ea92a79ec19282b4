"""Sondes de santé: accès Supabase (client service) sur les tables de facturation."""
from typing import Any, Dict
import logging

from backend.config import SUPABASE_URL
import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

PROBED_TABLES = ("subscribers", "trips", "trip_payments")

def health_supabase_info() -> Dict[str, Any]:
    """
    Retour: {"ok": bool, "url_configured": bool, "tables": {<table>: "ok" | "error"}}
    Une table en erreur rend ok=False sans lever (la sonde ne doit pas faire tomber /health).
    """
    tables: Dict[str, str] = {}
    try:
        client = supabase_client.get_service_supabase()
    except RuntimeError as e:
        logger.warning("health.supabase client unavailable: %s", e)
        return {"ok": False, "url_configured": bool(SUPABASE_URL), "tables": {}, "error": "service key missing"}

    for table in PROBED_TABLES:
        try:
            client.table(table).select("*").limit(1).execute()
            tables[table] = "ok"
        except Exception:
            logger.exception("health.supabase probe failed table=%s", table)
            tables[table] = "error"

    return {
        "ok": all(v == "ok" for v in tables.values()),
        "url_configured": bool(SUPABASE_URL),
        "tables": tables,
    }
