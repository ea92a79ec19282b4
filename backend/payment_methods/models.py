# module backend.payment_methods.models
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PaymentMethodRecord:
    """Client de facturation + moyen de paiement par défaut (un seul par utilisateur)."""
    customer_id: str
    payment_method_id: str
    brand: Optional[str] = None
    last4: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None

    @classmethod
    def from_row(cls, row: Optional[Dict[str, Any]]) -> Optional["PaymentMethodRecord"]:
        """Ligne subscribers -> record, ou None sans client ou sans moyen par défaut."""
        row = row or {}
        customer_id = row.get("stripe_customer_id")
        payment_method_id = row.get("default_payment_method_id")
        if not customer_id or not payment_method_id:
            return None
        return cls(
            customer_id=customer_id,
            payment_method_id=payment_method_id,
            brand=row.get("card_brand"),
            last4=row.get("card_last4"),
            exp_month=row.get("card_exp_month"),
            exp_year=row.get("card_exp_year"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "default_payment_method_id": self.payment_method_id,
            "card_brand": self.brand,
            "card_last4": self.last4,
            "card_exp_month": self.exp_month,
            "card_exp_year": self.exp_year,
        }

    def to_public(self) -> Dict[str, Any]:
        """Champs exposés à l'UI (jamais l'id client)."""
        return {
            "id": self.payment_method_id,
            "brand": self.brand,
            "last4": self.last4,
            "exp_month": self.exp_month,
            "exp_year": self.exp_year,
        }
