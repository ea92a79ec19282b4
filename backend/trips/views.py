from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from backend.trips import service as trips_service
from backend.utils.security import require_user

router = APIRouter(prefix="/api/v1/trips", tags=["Trips API"])

class TripQuoteRequest(BaseModel):
    tier: str

# module backend.trips.views
@router.post("/{trip_id}/quote")
def quote_stored_trip(trip_id: str, req: TripQuoteRequest, user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    """Devis d'un voyage de l'utilisateur, persisté (tier, quoted_price, status=quoted)."""
    _, price = trips_service.quote_trip(user, trip_id, req.tier)
    return {"trip_id": trip_id, "quote": price.to_dict()}
