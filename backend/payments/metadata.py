"""
Sérialisation/désérialisation des métadonnées Stripe (trip_id, tier_name, user_id, amount).
Les métadonnées Stripe sont des chaînes; elles servent à retrouver le voyage au règlement.
"""
from typing import Any, Dict, Optional

# module backend.payments.metadata
def make_checkout_metadata(*, trip_id: str, tier_name: str, user_id: str, amount: Any) -> Dict[str, str]:
    return {
        "trip_id": str(trip_id),
        "tier_name": str(tier_name),
        "user_id": str(user_id or ""),
        "amount": str(amount),
    }

def make_charge_metadata(*, trip_id: str, user_id: str) -> Dict[str, str]:
    return {"trip_id": str(trip_id), "user_id": str(user_id or "")}

def extract_settlement(session: Dict[str, Any]) -> Dict[str, Optional[Any]]:
    """
    Extrait depuis une session Checkout (dict normalisé par stripe_client.session_to_dict):
    - trip_id, user_id (metadata)
    - amount: metadata.amount, sinon amount_total converti depuis les unités mineures
    - charge_id: payment_intent, sinon l'id de session
    Tolérant: champs absents -> None.
    """
    session = session or {}
    meta = session.get("metadata") or {}
    # Sessions créées par d'anciens clients: clés camelCase
    trip_id = meta.get("trip_id") or meta.get("tripId")
    user_id = meta.get("user_id") or meta.get("userId")

    amount: Optional[Any] = meta.get("amount")
    if amount in (None, "") and session.get("amount_total") is not None:
        amount = int(session["amount_total"]) / 100
    if isinstance(amount, str):
        try:
            amount = float(amount)
        except ValueError:
            amount = None
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)

    return {
        "trip_id": trip_id,
        "user_id": user_id,
        "amount": amount,
        "charge_id": session.get("payment_intent") or session.get("id"),
    }
