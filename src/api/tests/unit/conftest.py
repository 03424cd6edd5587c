"""Unit test fixtures.

Storage-level tests run against a fresh SQLite file per test through
aiosqlite. The ORM tenant guard behaves the same on every dialect; only
the PostgreSQL row-level security layer is out of reach here.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Any, Awaitable, Callable
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from ulid import ULID

from documents.infrastructure.models import (
    CustomerAddressModel,
    CustomerModel,
    ItemModel,
    SupplierModel,
)
from iam.domain.value_objects import TenantId
from iam.infrastructure.models import TenantModel
from infrastructure.database.dependencies import build_sessionmaker
from infrastructure.database.models import Base
from infrastructure.database.tenant_session import TenantSession, bind_tenant
from shared_kernel.auth import JWTValidator, JWTValidatorProbe
from shared_kernel.middleware.tenant_context import TenantContext

TEST_SECRET = "unit-test-secret"
TEST_ISSUER = "bizops-test"

Seeder = Callable[..., Awaitable[None]]


def new_id() -> str:
    return str(ULID())


@pytest.fixture
def mock_jwt_probe() -> MagicMock:
    """Create a mock JWT validator probe."""
    return MagicMock(spec=JWTValidatorProbe)


@pytest.fixture
def jwt_validator(mock_jwt_probe: MagicMock) -> JWTValidator:
    """JWT validator with a test secret and issuer."""
    return JWTValidator(
        secret=TEST_SECRET,
        probe=mock_jwt_probe,
        issuer=TEST_ISSUER,
        token_ttl=timedelta(hours=1),
    )


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite database with the full schema."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'bizops.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine) -> async_sessionmaker[AsyncSession]:
    """Sessionmaker configured like the application's."""
    return build_sessionmaker(engine)


@pytest.fixture
def seed(sessionmaker: async_sessionmaker[AsyncSession]) -> Seeder:
    """Insert rows for one tenant through a bound session."""

    async def _seed(tenant_id: str, *rows: Any) -> None:
        async with sessionmaker() as session:
            await bind_tenant(session, tenant_id)
            async with session.begin():
                session.add_all(rows)

    return _seed


async def create_tenant(
    sessionmaker: async_sessionmaker[AsyncSession],
    code: str,
    status: str = "ACTIVE",
) -> TenantModel:
    tenant = TenantModel(
        id=TenantId.generate().value,
        code=code,
        name=code.title(),
        status=status,
        subscription_tier="STANDARD",
    )
    async with sessionmaker() as session:
        async with session.begin():
            session.add(tenant)
    return tenant


@pytest_asyncio.fixture
async def tenant_a(sessionmaker) -> TenantModel:
    return await create_tenant(sessionmaker, "ACME")


@pytest_asyncio.fixture
async def tenant_b(sessionmaker) -> TenantModel:
    return await create_tenant(sessionmaker, "GLOBEX")


class Parties:
    """Reference rows owned by one tenant."""

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        self.customer = CustomerModel(
            id=new_id(), tenant_id=tenant_id, code="C001", name="Customer One"
        )
        self.other_customer = CustomerModel(
            id=new_id(), tenant_id=tenant_id, code="C002", name="Customer Two"
        )
        self.inactive_customer = CustomerModel(
            id=new_id(),
            tenant_id=tenant_id,
            code="C003",
            name="Gone Customer",
            is_active=False,
        )
        self.address = CustomerAddressModel(
            id=new_id(),
            tenant_id=tenant_id,
            customer_id=self.customer.id,
            line1="1 Main St",
        )
        self.other_address = CustomerAddressModel(
            id=new_id(),
            tenant_id=tenant_id,
            customer_id=self.other_customer.id,
            line1="2 Side St",
        )
        self.supplier = SupplierModel(
            id=new_id(), tenant_id=tenant_id, code="S001", name="Supplier One"
        )
        self.item = ItemModel(
            id=new_id(),
            tenant_id=tenant_id,
            code="I001",
            name="Widget",
            unit_price=Decimal("50"),
        )

    def rows(self) -> list[Any]:
        return [
            self.customer,
            self.other_customer,
            self.inactive_customer,
            self.supplier,
            self.item,
            self.address,
            self.other_address,
        ]


@pytest_asyncio.fixture
async def parties_a(tenant_a: TenantModel, seed: Seeder) -> Parties:
    parties = Parties(tenant_a.id)
    await seed(tenant_a.id, *parties.rows())
    return parties


@pytest_asyncio.fixture
async def parties_b(tenant_b: TenantModel, seed: Seeder) -> Parties:
    parties = Parties(tenant_b.id)
    await seed(tenant_b.id, *parties.rows())
    return parties


async def open_tenant_session(
    sessionmaker: async_sessionmaker[AsyncSession], tenant_id: str
) -> TenantSession:
    session = sessionmaker()
    await bind_tenant(session, tenant_id)
    return TenantSession(
        tenant=TenantContext(tenant_id=tenant_id, source="credential"),
        session=session,
    )


@pytest_asyncio.fixture
async def tenant_session_a(sessionmaker, tenant_a) -> TenantSession:
    tenant_session = await open_tenant_session(sessionmaker, tenant_a.id)
    yield tenant_session
    await tenant_session.session.close()


@pytest_asyncio.fixture
async def tenant_session_b(sessionmaker, tenant_b) -> TenantSession:
    tenant_session = await open_tenant_session(sessionmaker, tenant_b.id)
    yield tenant_session
    await tenant_session.session.close()
