"""
Accès aux données pour la table 'subscribers' (user_id unique -> client Stripe).
"""
from typing import Any, Dict, Optional
import logging

import backend.infra.supabase_client as supabase_client
from backend.utils.errors import PersistenceFailure

logger = logging.getLogger(__name__)

SUBSCRIBER_COLUMNS = (
    "user_id, email, stripe_customer_id, default_payment_method_id, "
    "card_brand, card_last4, card_exp_month, card_exp_year"
)

# module backend.payment_methods.repository
def get_subscriber(user_id: str) -> Optional[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("subscribers")
            .select(SUBSCRIBER_COLUMNS)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.exception("payment_methods.repository.get_subscriber failed user_id=%s", user_id)
        raise PersistenceFailure("Lecture du compte de facturation impossible") from e
    rows = res.data or []
    return rows[0] if rows else None

def upsert_customer(*, user_id: str, email: Optional[str], customer_id: str) -> Dict[str, Any]:
    """
    Insert-or-return-existing sur user_id:
    1) upsert ignore_duplicates: crée la ligne si absente, ne touche pas une ligne existante
    2) renseigne stripe_customer_id seulement s'il est encore NULL
    3) relit la ligne: l'id retourné est celui du premier écrivain
    """
    try:
        client = supabase_client.get_service_supabase()
        (
            client.table("subscribers")
            .upsert(
                {"user_id": user_id, "email": email, "stripe_customer_id": customer_id},
                on_conflict="user_id",
                ignore_duplicates=True,
            )
            .execute()
        )
        (
            client.table("subscribers")
            .update({"stripe_customer_id": customer_id})
            .eq("user_id", user_id)
            .is_("stripe_customer_id", "null")
            .execute()
        )
    except Exception as e:
        logger.exception("payment_methods.repository.upsert_customer failed user_id=%s", user_id)
        raise PersistenceFailure("Enregistrement du compte de facturation impossible") from e

    row = get_subscriber(user_id)
    if not row or not row.get("stripe_customer_id"):
        logger.error("payment_methods.repository.upsert_customer no row after upsert user_id=%s", user_id)
        raise PersistenceFailure("Enregistrement du compte de facturation impossible")
    return row

def save_default_payment_method(user_id: str, fields: Dict[str, Any]) -> bool:
    """Remplace le moyen de paiement par défaut (pas d'historique conservé)."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("subscribers")
            .update(fields)
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        logger.exception("payment_methods.repository.save_default_payment_method failed user_id=%s", user_id)
        raise PersistenceFailure("Enregistrement du moyen de paiement impossible") from e
    return bool(res.data)
