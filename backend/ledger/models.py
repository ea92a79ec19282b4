# module backend.ledger.models
from dataclasses import dataclass
from typing import Any, Dict, Optional

SUCCEEDED = "succeeded"
FAILED = "failed"
REQUIRES_ACTION = "requires_action"

ATTEMPT_STATUSES = (SUCCEEDED, FAILED, REQUIRES_ACTION)


@dataclass(frozen=True)
class PaymentAttempt:
    """Une ligne trip_payments (append-only)."""
    trip_id: str
    amount: Any
    charge_id: Optional[str]
    status: str
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PaymentAttempt":
        return cls(
            trip_id=str(row.get("trip_id") or ""),
            amount=row.get("amount"),
            charge_id=row.get("stripe_payment_id"),
            status=str(row.get("status") or ""),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trip_id": self.trip_id,
            "amount": self.amount,
            "charge_id": self.charge_id,
            "status": self.status,
            "created_at": self.created_at,
        }
