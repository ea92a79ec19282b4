"""
Catalogue statique des formules, chargé une fois par processus.
"""
from typing import Dict, List

from backend.pricing.models import ServiceTier
from backend.utils.errors import InvalidTier

STANDARD = "standard"
EXECUTIVE = "executive"

SERVICE_TIERS: Dict[str, ServiceTier] = {
    STANDARD: ServiceTier(
        id=STANDARD,
        name="Standard",
        base_price=25,
        description="Itinéraire complet généré, à réserver soi-même",
        features=(
            "Itinéraire complet (durée illimitée)",
            "Restaurants et activités avec liens de réservation",
            "Suggestions d'hébergement",
            "Export PDF",
            "Support email (48h)",
        ),
    ),
    EXECUTIVE: ServiceTier(
        id=EXECUTIVE,
        name="Executive Concierge",
        base_price=500,
        description="Prix de départ d'une consultation accompagnée",
        features=(
            "Appel de consultation individuel",
            "Réservations complètes (vols, hôtels, transports)",
            "Coordinateur de voyage dédié",
            "Support 24/7 pendant le voyage",
            "Révisions illimitées",
        ),
    ),
}


def get_tier(tier_id: str) -> ServiceTier:
    tier = SERVICE_TIERS.get(str(tier_id or "").strip().lower())
    if tier is None:
        raise InvalidTier(f"Formule inconnue: {tier_id!r}")
    return tier


def list_tiers() -> List[ServiceTier]:
    return list(SERVICE_TIERS.values())
