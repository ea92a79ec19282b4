"""
Calcul de devis (pur: aucune I/O, aucun état).

Formule standard (suppléments additifs sur le prix de base):
- voyageurs: 3 par voyageur supplémentaire jusqu'au 5e inclus, puis 1 par voyageur au-delà
- durée: 2 par bloc complet de 5 jours (pas de prorata)
- destinations: 7.5 par destination au-delà de la première
Le total est arrondi (demi vers le haut) une seule fois, sur la somme finale.
La formule executive vaut toujours le prix de base (prix de départ d'une consultation).
"""
from decimal import Decimal, ROUND_HALF_UP

from backend.pricing.models import PriceQuote
from backend.pricing.tiers import EXECUTIVE, get_tier
from backend.trips.models import TripAttributes

PER_PERSON_FIRST = Decimal("3")
PER_PERSON_AFTER = Decimal("1")
FIRST_BAND_EXTRA_TRAVELERS = 4
DURATION_BLOCK_DAYS = 5
DURATION_BLOCK_PRICE = Decimal("2")
PER_EXTRA_DESTINATION = Decimal("7.5")

_ZERO = Decimal("0")


def per_person_surcharge(group_size: int) -> Decimal:
    extra = max(group_size - 1, 0)
    first_band = min(extra, FIRST_BAND_EXTRA_TRAVELERS)
    after_band = extra - first_band
    return first_band * PER_PERSON_FIRST + after_band * PER_PERSON_AFTER


def duration_surcharge(duration_days: int) -> Decimal:
    return (max(duration_days, 0) // DURATION_BLOCK_DAYS) * DURATION_BLOCK_PRICE


def destination_surcharge(destination_count: int) -> Decimal:
    if destination_count <= 1:
        return _ZERO
    return (destination_count - 1) * PER_EXTRA_DESTINATION


def round_half_up(amount: Decimal) -> int:
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def quote(attributes: TripAttributes, tier_id: str) -> PriceQuote:
    """Retourne le devis d'un voyage pour une formule. Lève InvalidTier si la formule est inconnue."""
    tier = get_tier(tier_id)
    base = Decimal(tier.base_price)

    if tier.id == EXECUTIVE:
        return PriceQuote(tier.id, tier.base_price, _ZERO, _ZERO, _ZERO, tier.base_price)

    per_person = per_person_surcharge(attributes.group_size)
    duration = duration_surcharge(attributes.duration_days)
    destination = destination_surcharge(attributes.destination_count)
    total = round_half_up(base + per_person + duration + destination)
    return PriceQuote(tier.id, tier.base_price, per_person, duration, destination, total)


def to_minor_units(amount) -> int:
    """Convertit un montant en unités entières de devise vers les unités mineures (centimes)."""
    return round_half_up(Decimal(str(amount)) * 100)
