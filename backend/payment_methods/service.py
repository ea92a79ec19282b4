"""Cas d'usage 'payment_methods' (lien utilisateur -> client Stripe -> moyen de paiement).
- ensure_customer: retourne le client Stripe de l'utilisateur, le crée au premier appel.
- attach: attache un moyen de paiement, le passe par défaut, stocke ses champs d'affichage.
- get: lit le moyen de paiement par défaut depuis le store (aucun appel Stripe).
- find_customer_id: client connu (store, puis recherche par email) pour le checkout.
"""
from typing import Any, Dict, Optional
import logging

import stripe

from backend.payment_methods import repository
from backend.payment_methods.models import PaymentMethodRecord
from backend.payments import stripe_client
from backend.utils.errors import (
    AttachRejected,
    InvalidRequest,
    NoCustomer,
    PersistenceFailure,
    ProcessorUnavailable,
)

logger = logging.getLogger(__name__)

def _user_id(user: Dict[str, Any]) -> str:
    uid = str((user or {}).get("id") or "")
    if not uid:
        raise InvalidRequest("Utilisateur invalide")
    return uid

def customer_idempotency_key(user_id: str) -> str:
    return f"customer-create:{user_id}"

def ensure_customer(user: Dict[str, Any]) -> str:
    """
    Retourne le stripe_customer_id de l'utilisateur.
    Deux premiers appels concurrents convergent vers le même id:
    - création Stripe avec une clé d'idempotence dérivée du user_id (même client renvoyé)
    - upsert insert-or-return-existing sur user_id côté store
    """
    uid = _user_id(user)
    row = repository.get_subscriber(uid)
    if row and row.get("stripe_customer_id"):
        return row["stripe_customer_id"]

    try:
        created_id = stripe_client.create_customer(
            email=user.get("email"),
            metadata={"supabase_user_id": uid},
            idempotency_key=customer_idempotency_key(uid),
        )
    except stripe_client.TRANSIENT_ERRORS as e:
        logger.warning("payment_methods.ensure_customer processor unavailable user_id=%s: %s", uid, e)
        raise ProcessorUnavailable() from e
    except stripe.StripeError as e:
        logger.exception("payment_methods.ensure_customer rejected user_id=%s", uid)
        raise InvalidRequest("Création du compte de facturation refusée") from e

    stored = repository.upsert_customer(user_id=uid, email=user.get("email"), customer_id=created_id)
    customer_id = stored["stripe_customer_id"]
    if customer_id != created_id:
        logger.info("payment_methods.ensure_customer concurrent creation user_id=%s kept=%s", uid, customer_id)
    else:
        logger.info("payment_methods.ensure_customer created user_id=%s customer_id=%s", uid, customer_id)
    return customer_id

def attach(user: Dict[str, Any], payment_method_token: str) -> PaymentMethodRecord:
    """
    Attache le token au client de l'utilisateur et le définit par défaut.
    - NoCustomer si ensure_customer n'a jamais été appelé
    - AttachRejected si Stripe refuse le token (carte expirée, etc.)
    L'ancien moyen par défaut est remplacé, pas conservé.
    """
    uid = _user_id(user)
    token = str(payment_method_token or "").strip()
    if not token:
        raise InvalidRequest("payment_method_token manquant")

    row = repository.get_subscriber(uid)
    customer_id = (row or {}).get("stripe_customer_id")
    if not customer_id:
        raise NoCustomer()

    try:
        stripe_client.attach_payment_method(token, customer_id)
        stripe_client.set_default_payment_method(customer_id, token)
        details = stripe_client.retrieve_payment_method(token)
    except stripe.CardError as e:
        logger.info("payment_methods.attach card rejected user_id=%s code=%s", uid, getattr(e, "code", None))
        raise AttachRejected(getattr(e, "user_message", None) or None) from e
    except stripe_client.TRANSIENT_ERRORS as e:
        logger.warning("payment_methods.attach processor unavailable user_id=%s: %s", uid, e)
        raise ProcessorUnavailable() from e
    except stripe.StripeError as e:
        logger.info("payment_methods.attach rejected user_id=%s code=%s", uid, getattr(e, "code", None))
        raise AttachRejected() from e

    record = PaymentMethodRecord(
        customer_id=customer_id,
        payment_method_id=details.get("id") or token,
        brand=details.get("brand"),
        last4=details.get("last4"),
        exp_month=details.get("exp_month"),
        exp_year=details.get("exp_year"),
    )
    if not repository.save_default_payment_method(uid, record.to_row()):
        logger.error("payment_methods.attach no subscriber row updated user_id=%s", uid)
        raise PersistenceFailure("Enregistrement du moyen de paiement impossible")
    logger.info("payment_methods.attach ok user_id=%s brand=%s last4=%s", uid, record.brand, record.last4)
    return record

def get(user: Dict[str, Any]) -> Optional[PaymentMethodRecord]:
    """None (pas une erreur) si pas de client ou pas de moyen de paiement par défaut."""
    return PaymentMethodRecord.from_row(repository.get_subscriber(_user_id(user)))

def find_customer_id(user: Dict[str, Any]) -> Optional[str]:
    """Client existant: d'abord l'id stocké, sinon recherche Stripe par email (best-effort)."""
    row = repository.get_subscriber(_user_id(user))
    if row and row.get("stripe_customer_id"):
        return row["stripe_customer_id"]
    email = (user or {}).get("email")
    if not email:
        return None
    try:
        return stripe_client.find_customer_by_email(email)
    except stripe.StripeError:
        # Sans id, Stripe créera le client lors du checkout
        logger.warning("payment_methods.find_customer_id lookup failed user_id=%s", user.get("id"))
        return None
