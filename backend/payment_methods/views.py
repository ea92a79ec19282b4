import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend.payment_methods import service as payment_methods_service
from backend.utils.rate_limit import optional_rate_limit
from backend.utils.security import require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payment-methods", tags=["Payment methods API"])

class AttachRequest(BaseModel):
    payment_method_id: str = Field(min_length=1)

# module backend.payment_methods.views
@router.get("")
def get_payment_method(user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    """Moyen de paiement par défaut (lecture du store uniquement); null si aucun."""
    record = payment_methods_service.get(user)
    return {"payment_method": record.to_public() if record else None}

@router.post("", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def add_payment_method(req: AttachRequest, user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    """
    Enregistre un moyen de paiement tokenisé côté client (pm_...):
    1) crée le client Stripe au premier appel
    2) attache le token et le définit par défaut
    Erreurs: 402 attach_rejected, 503 processor_unavailable
    """
    payment_methods_service.ensure_customer(user)
    record = payment_methods_service.attach(user, req.payment_method_id)
    return {"payment_method": record.to_public()}
