"""
Taxonomie des erreurs de facturation.
Chaque erreur porte un code stable (exposé au client), un statut HTTP et un message court.
Le rendu JSON est fait par backend.app_setup.exceptions.
"""
from typing import Any, Dict, Optional


class BillingError(Exception):
    code = "billing_error"
    status_code = 500
    default_detail = "Erreur de facturation"

    def __init__(self, detail: Optional[str] = None, **extra: Any):
        self.detail = detail or self.default_detail
        self.extra: Dict[str, Any] = {k: v for k, v in extra.items() if v is not None}
        super().__init__(self.detail)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.code, "detail": self.detail}
        payload.update(self.extra)
        return payload


class Unauthorized(BillingError):
    code = "unauthorized"
    status_code = 401
    default_detail = "Non authentifié"


class Forbidden(BillingError):
    code = "forbidden"
    status_code = 403
    default_detail = "Accès interdit"


class InvalidRequest(BillingError):
    code = "invalid_request"
    status_code = 400
    default_detail = "Requête invalide"


class InvalidTier(InvalidRequest):
    code = "invalid_tier"
    default_detail = "Formule inconnue"


class TripNotFound(InvalidRequest):
    code = "trip_not_found"
    status_code = 404
    default_detail = "Voyage introuvable"


class NoCustomer(BillingError):
    code = "no_customer"
    status_code = 409
    default_detail = "Aucun compte de facturation. Ajoutez un moyen de paiement d'abord."


class NoPaymentMethod(BillingError):
    code = "no_payment_method"
    status_code = 409
    default_detail = "Aucun moyen de paiement enregistré. Ajoutez un moyen de paiement d'abord."


class AttachRejected(BillingError):
    code = "attach_rejected"
    status_code = 402
    default_detail = "Moyen de paiement refusé"


class ChargeDeclined(BillingError):
    code = "charge_declined"
    status_code = 402
    default_detail = "Paiement refusé. Mettez à jour votre moyen de paiement."


class ProcessorUnavailable(BillingError):
    code = "processor_unavailable"
    status_code = 503
    default_detail = "Service de paiement indisponible, réessayez"


class PersistenceFailure(BillingError):
    code = "persistence_failure"
    status_code = 500
    default_detail = "Erreur d'enregistrement"
