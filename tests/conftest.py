"""Pytest fixtures for BFood integration tests."""

import uuid
from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bfood.app import app
from bfood.cache import InMemoryQueryCache, get_cache
from bfood.database.base import Base
from bfood.database.session import get_db
from bfood.models.enums import DeliveryOption, UserRole
from bfood.models.price_tier import ProductPriceTier
from bfood.models.product import Product
from bfood.models.profile import Profile
from bfood.modules.auth.auth import AuthenticatedUser, get_current_user

# Use SQLite for lightweight in-process testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///file::memory:?cache=shared&uri=true"


@pytest_asyncio.fixture
async def async_test_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(async_test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        async_test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def cache() -> InMemoryQueryCache:
    return InMemoryQueryCache()


@pytest.fixture
def restaurant_user() -> AuthenticatedUser:
    return AuthenticatedUser(id=uuid.uuid4(), email="chef@example.com", role=UserRole.RESTAURANT)


@pytest.fixture
def supplier_user() -> AuthenticatedUser:
    return AuthenticatedUser(id=uuid.uuid4(), email="sales@example.com", role=UserRole.SUPPLIER)


@pytest.fixture
def admin_user() -> AuthenticatedUser:
    return AuthenticatedUser(id=uuid.uuid4(), email="ops@example.com", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def async_client(
    async_session: AsyncSession, cache: InMemoryQueryCache
) -> AsyncGenerator[AsyncClient, None]:
    """Yield an httpx AsyncClient wired to the app with a test DB session and cache.

    Authenticate with ``login(user)``; requests made before that get a 401.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Make every following request act as ``user``."""

    def _login(user: AuthenticatedUser) -> None:
        app.dependency_overrides[get_current_user] = lambda: user

    return _login


@pytest.fixture
def make_profile(async_session: AsyncSession):
    async def _make(
        user_id: uuid.UUID,
        role: UserRole = UserRole.SUPPLIER,
        business_name: str = "Al Noor Foods",
        delivery_option: DeliveryOption | None = DeliveryOption.WITH_FEE,
        minimum_order_amount: Decimal | None = None,
        default_delivery_fee: Decimal | None = None,
    ) -> Profile:
        profile = Profile(
            user_id=user_id,
            role=role,
            business_name=business_name,
            full_name=f"{business_name} Owner",
            city="Riyadh",
            is_approved=True,
            delivery_option=delivery_option,
            minimum_order_amount=minimum_order_amount,
            default_delivery_fee=default_delivery_fee,
        )
        async_session.add(profile)
        await async_session.flush()
        return profile

    return _make


@pytest.fixture
def make_product(async_session: AsyncSession):
    async def _make(
        supplier_id: uuid.UUID,
        price: Decimal = Decimal("10.00"),
        name: str = "Basmati Rice 5kg",
        delivery_fee: Decimal | None = None,
        is_available: bool = True,
        tiers: list[tuple[int, Decimal]] | None = None,
    ) -> Product:
        product = Product(
            supplier_id=supplier_id,
            name=name,
            unit="bag",
            price=price,
            delivery_fee=delivery_fee,
            is_available=is_available,
        )
        async_session.add(product)
        await async_session.flush()
        for min_quantity, price_per_unit in tiers or []:
            async_session.add(
                ProductPriceTier(
                    product_id=product.id,
                    min_quantity=min_quantity,
                    price_per_unit=price_per_unit,
                )
            )
        await async_session.flush()
        return product

    return _make
