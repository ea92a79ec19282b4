# module backend.payments.models
from dataclasses import dataclass
from typing import Any, Dict, Optional

from backend.ledger.models import SUCCEEDED


@dataclass(frozen=True)
class ChargeResult:
    status: str
    charge_id: Optional[str]
    reason: Optional[str] = None
    replayed: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "charge_id": self.charge_id}


@dataclass(frozen=True)
class CheckoutSession:
    session_id: Optional[str]
    url: str
