# module backend.trips.models
"""Modèle Trip côté facturation.
- TripStatus: cycle draft -> quoted -> checkout_pending -> paid | payment_failed.
- TripAttributes: attributs utiles au devis, lus depuis le formulaire (form_data, camelCase)
  ou depuis un payload API (snake_case).
"""
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from backend.utils.errors import InvalidRequest


class TripStatus:
    DRAFT = "draft"
    QUOTED = "quoted"
    CHECKOUT_PENDING = "checkout_pending"
    PAID = "paid"
    PAYMENT_FAILED = "payment_failed"

    ALL = (DRAFT, QUOTED, CHECKOUT_PENDING, PAID, PAYMENT_FAILED)


def _parse_moment(value: Any, field_name: str) -> Optional[datetime]:
    """Accepte date, datetime ou chaîne ISO; retourne un datetime UTC ou None."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    else:
        try:
            moment = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            raise InvalidRequest(f"{field_name} invalide: {value!r}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(frozen=True)
class TripAttributes:
    group_size: int = 1
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    destinations: List[str] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.group_size, bool) or not isinstance(self.group_size, int) or self.group_size < 1:
            raise InvalidRequest("group_size doit être un entier >= 1")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise InvalidRequest("end_date doit être postérieure ou égale à start_date")

    @property
    def duration_days(self) -> int:
        # Dates absentes: durée implicite d'un jour
        if not self.start_date or not self.end_date:
            return 1
        return math.ceil((self.end_date - self.start_date).total_seconds() / 86400)

    @property
    def destination_count(self) -> int:
        return max(len(self.destinations), 1)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "TripAttributes":
        """Construit les attributs depuis un dict snake_case ou camelCase (form_data du wizard)."""
        data = data or {}
        raw_size = data.get("group_size", data.get("groupSize", 1))
        try:
            group_size = int(raw_size) if raw_size not in (None, "") else 1
        except (TypeError, ValueError):
            raise InvalidRequest("group_size doit être un entier >= 1")
        if isinstance(raw_size, float) and raw_size != group_size:
            raise InvalidRequest("group_size doit être un entier >= 1")

        raw_destinations = data.get("destinations", data.get("specificDestinations")) or []
        if isinstance(raw_destinations, str):
            raw_destinations = [raw_destinations]
        destinations = [str(d).strip() for d in raw_destinations if str(d or "").strip()]

        return cls(
            group_size=group_size,
            start_date=_parse_moment(data.get("start_date", data.get("startDate")), "start_date"),
            end_date=_parse_moment(data.get("end_date", data.get("endDate")), "end_date"),
            destinations=destinations,
        )
