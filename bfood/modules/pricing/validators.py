"""Write-side validation for a product's price tier set."""

from __future__ import annotations

import logging
from decimal import Decimal

from bfood.exceptions import ValidationException
from bfood.modules.pricing.constants import MAX_PRICE_TIERS
from bfood.modules.pricing.schemas import PriceTierInput

logger = logging.getLogger(__name__)


def validate_price_tiers(
    tiers: list[PriceTierInput], base_price: Decimal
) -> list[PriceTierInput]:
    """Validate a full replacement tier set and return it sorted by minimum quantity.

    Raises ValidationException listing every offending field.
    """
    if len(tiers) > MAX_PRICE_TIERS:
        raise ValidationException(
            f"A product may have at most {MAX_PRICE_TIERS} price tiers",
            details=[{"field": "tiers", "message": f"got {len(tiers)}"}],
        )

    details: list[dict] = []
    seen: set[int] = set()
    for index, tier in enumerate(tiers):
        if tier.min_quantity < 1:
            details.append(
                {"field": f"tiers.{index}.min_quantity", "message": "must be at least 1"}
            )
        if tier.price_per_unit <= 0:
            details.append(
                {"field": f"tiers.{index}.price_per_unit", "message": "must be greater than 0"}
            )
        if tier.min_quantity in seen:
            details.append(
                {
                    "field": f"tiers.{index}.min_quantity",
                    "message": f"duplicate minimum quantity {tier.min_quantity}",
                }
            )
        seen.add(tier.min_quantity)

    if details:
        raise ValidationException("Invalid price tiers", details=details)

    for tier in tiers:
        if tier.price_per_unit > base_price:
            logger.warning(
                "Tier at min_quantity=%d priced %s above base price %s",
                tier.min_quantity, tier.price_per_unit, base_price,
            )

    return sorted(tiers, key=lambda t: t.min_quantity)
