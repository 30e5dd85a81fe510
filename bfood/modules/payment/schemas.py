"""Pydantic schemas for payment notifications."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from bfood.modules.order.schemas import PaymentNotification


class PaymentNotifyRequest(BaseModel):
    supplier_id: uuid.UUID
    order_id: uuid.UUID | None = None
    receipt_url: str | None = Field(None, max_length=1000)


class PaymentListResponse(BaseModel):
    items: list[PaymentNotification]
