"""Centralized v1 API router — all module routers are included here."""

from fastapi import APIRouter

from bfood.modules.order.router import router as order_router
from bfood.modules.payment.router import router as payment_router
from bfood.modules.pricing.router import router as pricing_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(pricing_router)
v1_router.include_router(order_router)
v1_router.include_router(payment_router)
