"""Price tier persistence and quantity quotes."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from bfood.cache import QueryCache
from bfood.config import settings
from bfood.exceptions import ForbiddenException, NotFoundException
from bfood.models.price_tier import ProductPriceTier
from bfood.models.product import Product
from bfood.modules.pricing.constants import (
    PRICE_TIERS_CACHE_KEY,
    PRODUCTS_WITH_TIERS_CACHE_KEY,
)
from bfood.modules.pricing.resolver import (
    compute_savings_percent,
    describe_tier_bands,
    resolve_applicable_tier,
)
from bfood.modules.pricing.schemas import PriceQuote, PriceTier, PriceTierInput
from bfood.modules.pricing.validators import validate_price_tiers

logger = logging.getLogger(__name__)


class PriceTierService:
    def __init__(self, db: AsyncSession, cache: QueryCache):
        self.db = db
        self.cache = cache

    async def _get_product(self, product_id: uuid.UUID) -> Product:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundException(f"Product {product_id} not found")
        return product

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_tiers(self, product_id: uuid.UUID) -> list[PriceTier]:
        """Tiers for a product, ascending by minimum quantity (read-through cache)."""

        async def _load() -> list[dict]:
            result = await self.db.execute(
                select(ProductPriceTier)
                .where(ProductPriceTier.product_id == product_id)
                .order_by(ProductPriceTier.min_quantity.asc())
            )
            return [
                PriceTier.model_validate(row).model_dump(mode="json")
                for row in result.scalars().all()
            ]

        rows = await self.cache.get_or_set(
            PRICE_TIERS_CACHE_KEY.format(product_id=product_id),
            _load,
            ttl=settings.price_tiers_cache_ttl,
        )
        return [PriceTier.model_validate(row) for row in rows]

    async def list_tiers_for_products(
        self, product_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, list[PriceTier]]:
        """Tiers for many products in one query, keyed by product id."""
        tiers_by_product: dict[uuid.UUID, list[PriceTier]] = {pid: [] for pid in product_ids}
        if not product_ids:
            return tiers_by_product
        result = await self.db.execute(
            select(ProductPriceTier)
            .where(ProductPriceTier.product_id.in_(product_ids))
            .order_by(ProductPriceTier.min_quantity.asc())
        )
        for row in result.scalars().all():
            tiers_by_product[row.product_id].append(PriceTier.model_validate(row))
        return tiers_by_product

    async def list_products_with_tiers(self) -> list[uuid.UUID]:
        async def _load() -> list[str]:
            result = await self.db.execute(select(ProductPriceTier.product_id).distinct())
            return [str(pid) for pid in result.scalars().all()]

        ids = await self.cache.get_or_set(
            PRODUCTS_WITH_TIERS_CACHE_KEY, _load, ttl=settings.price_tiers_cache_ttl
        )
        return [uuid.UUID(pid) for pid in ids]

    # ------------------------------------------------------------------
    # Replace (supplier write path)
    # ------------------------------------------------------------------

    async def replace_tiers(
        self,
        product_id: uuid.UUID,
        supplier_id: uuid.UUID,
        tiers: list[PriceTierInput],
    ) -> list[PriceTier]:
        """Replace a product's whole tier set: delete all, insert the new ones."""
        product = await self._get_product(product_id)
        if product.supplier_id != supplier_id:
            raise ForbiddenException("Only the owning supplier can edit this product's pricing")

        ordered = validate_price_tiers(tiers, product.price)

        await self.db.execute(
            delete(ProductPriceTier).where(ProductPriceTier.product_id == product_id)
        )
        rows = [
            ProductPriceTier(
                product_id=product_id,
                min_quantity=tier.min_quantity,
                price_per_unit=tier.price_per_unit,
            )
            for tier in ordered
        ]
        self.db.add_all(rows)
        await self.db.flush()

        await self.cache.invalidate(PRICE_TIERS_CACHE_KEY.format(product_id=product_id))
        await self.cache.invalidate(PRODUCTS_WITH_TIERS_CACHE_KEY)

        logger.info(
            "Replaced price tiers for product %s: %d tiers", product_id, len(rows)
        )
        return [PriceTier.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Quote
    # ------------------------------------------------------------------

    async def quote(self, product_id: uuid.UUID, quantity: int) -> PriceQuote:
        product = await self._get_product(product_id)
        tiers = await self.list_tiers(product_id)

        tier = resolve_applicable_tier(quantity, tiers)
        unit_price = tier.price_per_unit if tier else product.price
        return PriceQuote(
            product_id=product_id,
            quantity=quantity,
            unit=product.unit,
            base_price=product.price,
            unit_price=unit_price,
            line_total=unit_price * quantity,
            savings_percent=compute_savings_percent(product.price, unit_price),
            applied_tier=tier,
            bands=describe_tier_bands(product.price, tiers, quantity),
        )
