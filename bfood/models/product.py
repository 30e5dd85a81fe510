"""Product model — a supplier's catalog entry with its base unit price."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bfood.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from bfood.models.price_tier import ProductPriceTier


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "products"

    supplier_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[str | None] = mapped_column(String(100))
    unit: Mapped[str] = mapped_column(String(30), nullable=False, default="unit")
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    delivery_fee: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    price_tiers: Mapped[list[ProductPriceTier]] = relationship(
        "ProductPriceTier",
        back_populates="product",
        lazy="noload",
        cascade="all, delete-orphan",
        order_by="ProductPriceTier.min_quantity",
    )

    __table_args__ = (Index("ix_products_supplier_id", "supplier_id"),)
