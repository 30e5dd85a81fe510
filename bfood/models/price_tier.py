"""ProductPriceTier model — quantity breakpoint with a discounted unit price."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, Numeric, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bfood.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from bfood.models.product import Product


class ProductPriceTier(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "product_price_tiers"

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    min_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    product: Mapped[Product] = relationship(
        "Product", back_populates="price_tiers", lazy="noload"
    )

    __table_args__ = (
        UniqueConstraint("product_id", "min_quantity", name="uq_price_tiers_product_min_qty"),
    )
