# module backend.pricing.models
from dataclasses import dataclass, field, asdict
from decimal import Decimal
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class ServiceTier:
    """Entrée du catalogue: prix de base en unités entières de la devise, fonctionnalités (affichage)."""
    id: str
    name: str
    base_price: int
    description: str = ""
    features: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["features"] = list(self.features)
        return data


@dataclass(frozen=True)
class PriceQuote:
    """
    Devis dérivé (jamais persisté comme entité).
    Les suppléments restent en Decimal; seul total est arrondi (entier).
    """
    tier_id: str
    base_price: int
    per_person: Decimal
    duration: Decimal
    destination: Decimal
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier": self.tier_id,
            "base_price": self.base_price,
            "per_person_surcharge": float(self.per_person),
            "duration_surcharge": float(self.duration),
            "destination_surcharge": float(self.destination),
            "total": self.total,
        }
