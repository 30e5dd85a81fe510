"""Profile model — business identity of a restaurant or supplier account."""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from bfood.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from bfood.models.enums import DeliveryOption, UserRole


class Profile(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, unique=True)
    role: Mapped[UserRole] = mapped_column(nullable=False)
    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30))
    city: Mapped[str | None] = mapped_column(String(100))
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Settlement display
    bank_name: Mapped[str | None] = mapped_column(String(255))
    bank_account_name: Mapped[str | None] = mapped_column(String(255))
    bank_iban: Mapped[str | None] = mapped_column(String(34))

    # Supplier delivery terms
    delivery_option: Mapped[DeliveryOption | None] = mapped_column()
    minimum_order_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    default_delivery_fee: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    google_maps_url: Mapped[str | None] = mapped_column(String(500))

    __table_args__ = (Index("ix_profiles_role", "role"),)
