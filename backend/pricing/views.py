from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from backend.pricing import service as pricing_service
from backend.pricing.tiers import list_tiers
from backend.trips.models import TripAttributes

router = APIRouter(prefix="/api/v1/pricing", tags=["Pricing API"])

class QuoteRequest(BaseModel):
    tier: str
    group_size: int = Field(default=1)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    destinations: List[str] = Field(default_factory=list)

# module backend.pricing.views
@router.get("/tiers")
def get_tiers() -> Dict[str, Any]:
    """Catalogue des formules (public)."""
    return {"tiers": [t.to_dict() for t in list_tiers()]}

@router.post("/quote")
def post_quote(req: QuoteRequest) -> Dict[str, Any]:
    """
    Devis ponctuel (public, aucune écriture).
    - 400 invalid_tier si la formule est inconnue
    - 400 invalid_request si group_size < 1 ou end_date < start_date
    """
    attributes = TripAttributes.from_payload(req.model_dump(exclude={"tier"}))
    return {"quote": pricing_service.quote(attributes, req.tier).to_dict()}
