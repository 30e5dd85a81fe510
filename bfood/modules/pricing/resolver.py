"""Tiered quantity pricing — unit price lookup and savings display.

All functions here are pure: they take already-fetched tiers and return new
values. Tier input order does not matter; tiers are re-sorted internally.
Duplicate minimum quantities are not detected here (the write path rejects
them), a stable sort simply keeps the first one encountered.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_FLOOR, Decimal

from bfood.modules.pricing.schemas import PriceTier, TierBand

_HALF = Decimal("0.5")


def resolve_applicable_tier(quantity: int, tiers: Iterable[PriceTier]) -> PriceTier | None:
    """Return the tier with the largest ``min_quantity`` not above ``quantity``.

    ``None`` means the product's base price applies, either because there are
    no tiers or because ``quantity`` is below every tier minimum.
    """
    for tier in sorted(tiers, key=lambda t: t.min_quantity, reverse=True):
        if tier.min_quantity <= quantity:
            return tier
    return None


def resolve_unit_price(quantity: int, base_price: Decimal, tiers: Iterable[PriceTier]) -> Decimal:
    tier = resolve_applicable_tier(quantity, tiers)
    if tier is None:
        return base_price
    return tier.price_per_unit


def compute_savings_percent(base_price: Decimal, tier_price: Decimal) -> int:
    """Percentage saved against base price, rounded half up.

    Returns 0 for a non-positive base price. Negative values (tier priced
    above base) are returned as-is so bad catalog data stays visible.
    """
    base = Decimal(base_price)
    if base <= 0:
        return 0
    ratio = (base - Decimal(tier_price)) / base * 100
    return int((ratio + _HALF).to_integral_value(rounding=ROUND_FLOOR))


def describe_tier_bands(
    base_price: Decimal,
    tiers: Iterable[PriceTier],
    quantity: int | None = None,
) -> list[TierBand]:
    """Build the quantity ranges table: base band first, then one band per tier.

    Each band spans up to the next tier's minimum minus one; the last band is
    open-ended. When ``quantity`` is given, the band whose price applies to it
    is flagged ``is_active``.
    """
    ordered = sorted(tiers, key=lambda t: t.min_quantity)
    if not ordered:
        return []

    active = resolve_applicable_tier(quantity, ordered) if quantity is not None else None

    bands = [
        TierBand(
            min_quantity=1,
            max_quantity=ordered[0].min_quantity - 1,
            price_per_unit=base_price,
            is_base=True,
            is_active=quantity is not None and active is None,
        )
    ]
    for index, tier in enumerate(ordered):
        next_tier = ordered[index + 1] if index + 1 < len(ordered) else None
        bands.append(
            TierBand(
                min_quantity=tier.min_quantity,
                max_quantity=next_tier.min_quantity - 1 if next_tier else None,
                price_per_unit=tier.price_per_unit,
                savings_percent=compute_savings_percent(base_price, tier.price_per_unit),
                is_active=active is not None and active is tier,
            )
        )
    return bands
