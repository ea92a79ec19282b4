"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
Seul module du projet à importer le SDK pour des appels réseau; les services
traduisent les exceptions Stripe dans la taxonomie backend.utils.errors.
"""
import stripe
from typing import Any, Dict, List, Optional
from fastapi import Request

from backend.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET, STRIPE_MAX_NETWORK_RETRIES

# Erreurs réseau / côté processeur: la requête entière peut être rejouée (clé d'idempotence)
TRANSIENT_ERRORS = (stripe.APIConnectionError, stripe.APIError, stripe.RateLimitError)

# module backend.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l’emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    - En absence de clé, les appels Stripe échoueront côté SDK (ex: No API key provided).
    """
    if STRIPE_SECRET_KEY:
        stripe.api_key = STRIPE_SECRET_KEY
    stripe.max_network_retries = STRIPE_MAX_NETWORK_RETRIES
    return stripe

def field(obj: Any, name: str, default: Any = None) -> Any:
    """Lecture tolérante d'un champ sur un objet Stripe ou un dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    try:
        return getattr(obj, name)
    except (AttributeError, KeyError):
        return default

def _object_id(value: Any) -> Optional[str]:
    # Les références Stripe peuvent être une chaîne ou un objet « expandé »
    if value is None or isinstance(value, str):
        return value
    return field(value, "id")

# --- Clients ---

def create_customer(*, email: Optional[str], metadata: Dict[str, str], idempotency_key: str) -> str:
    require_stripe()
    customer = stripe.Customer.create(email=email, metadata=metadata, idempotency_key=idempotency_key)
    return field(customer, "id")

def find_customer_by_email(email: str) -> Optional[str]:
    """Premier client Stripe portant cet email, ou None."""
    require_stripe()
    customers = stripe.Customer.list(email=email, limit=1)
    data = field(customers, "data") or []
    return field(data[0], "id") if data else None

# --- Moyens de paiement ---

def attach_payment_method(payment_method_id: str, customer_id: str) -> None:
    require_stripe()
    stripe.PaymentMethod.attach(payment_method_id, customer=customer_id)

def set_default_payment_method(customer_id: str, payment_method_id: str) -> None:
    require_stripe()
    stripe.Customer.modify(customer_id, invoice_settings={"default_payment_method": payment_method_id})

def retrieve_payment_method(payment_method_id: str) -> Dict[str, Any]:
    """Retourne les champs d'affichage {id, brand, last4, exp_month, exp_year}."""
    require_stripe()
    pm = stripe.PaymentMethod.retrieve(payment_method_id)
    card = field(pm, "card")
    return {
        "id": field(pm, "id") or payment_method_id,
        "brand": field(card, "brand"),
        "last4": field(card, "last4"),
        "exp_month": field(card, "exp_month"),
        "exp_year": field(card, "exp_year"),
    }

# --- Checkout hébergé ---

def create_checkout_session(
    *,
    customer_id: Optional[str],
    customer_email: Optional[str],
    line_items: List[Dict[str, Any]],
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, str],
) -> Dict[str, Any]:
    """
    Crée une session Checkout en mode paiement unique (pas d'abonnement).
    Retour: {"id": "cs_...", "url": "https://checkout.stripe.com/..."}
    """
    require_stripe()
    params: Dict[str, Any] = {
        "line_items": line_items,
        "mode": "payment",
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata,
        "allow_promotion_codes": True,
        "billing_address_collection": "required",
    }
    if customer_id:
        params["customer"] = customer_id
    elif customer_email:
        params["customer_email"] = customer_email
    session = stripe.checkout.Session.create(**params)
    return {"id": field(session, "id"), "url": field(session, "url")}

def get_session(session_id: str) -> Dict[str, Any]:
    """
    Récupère une session Checkout et en extrait les champs utiles au règlement:
    id, payment_status, payment_intent (id), amount_total (unités mineures), currency, metadata.
    """
    require_stripe()
    session = stripe.checkout.Session.retrieve(session_id)
    return session_to_dict(session)

def session_to_dict(session: Any) -> Dict[str, Any]:
    metadata = field(session, "metadata") or {}
    return {
        "id": field(session, "id"),
        "payment_status": field(session, "payment_status"),
        "payment_intent": _object_id(field(session, "payment_intent")),
        "amount_total": field(session, "amount_total"),
        "currency": field(session, "currency"),
        "metadata": {k: metadata[k] for k in metadata.keys()} if metadata else {},
    }

# --- Débit hors session ---

def create_and_confirm_charge(
    *,
    customer_id: str,
    payment_method_id: str,
    amount_minor: int,
    currency: str,
    metadata: Dict[str, str],
    idempotency_key: str,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """
    PaymentIntent confirmé immédiatement, sans interaction client (off_session).
    Retour: {"id": "pi_...", "status": "succeeded" | "requires_action" | ...}
    Un refus carte lève stripe.CardError (voir declined_intent).
    """
    require_stripe()
    intent = stripe.PaymentIntent.create(
        amount=amount_minor,
        currency=currency,
        customer=customer_id,
        payment_method=payment_method_id,
        off_session=True,
        confirm=True,
        description=description,
        metadata=metadata,
        idempotency_key=idempotency_key,
    )
    return {"id": field(intent, "id"), "status": field(intent, "status")}

def declined_intent(exc: Exception) -> Dict[str, Any]:
    """
    Extrait {id, status, code, message} d'un stripe.CardError.
    Le PaymentIntent refusé est porté par error.payment_intent (objet ou json_body brut).
    """
    error = getattr(exc, "error", None)
    intent = field(error, "payment_intent")
    if intent is None:
        body = getattr(exc, "json_body", None) or {}
        intent = (body.get("error") or {}).get("payment_intent") if isinstance(body, dict) else None
    return {
        "id": _object_id(intent),
        "status": field(intent, "status"),
        "code": getattr(exc, "code", None),
        "message": getattr(exc, "user_message", None) or None,
    }

# --- Webhook ---

async def parse_event(request: Request):
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête Stripe-Signature
    - Valide la signature via Webhook.construct_event (STRIPE_WEBHOOK_SECRET)
    Retour: l’objet event si la signature est valide.
    """
    require_stripe()
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature") or request.headers.get("Stripe-Signature")
    return stripe.Webhook.construct_event(payload, sig_header, STRIPE_WEBHOOK_SECRET or "")
