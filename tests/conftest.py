"""
Pytest configuration and fixtures for testing.

Provides an in-memory SQLite database seeded with two tenants, resolvers
for both window strategies and ready-made tenant contexts.
"""

import os

import pytest

# Set required environment variables for testing before importing app modules
os.environ.setdefault("KEYCLOAK_REALM", "test-realm")
os.environ.setdefault("KEYCLOAK_CLIENT_ID", "test-client")
os.environ.setdefault("KEYCLOAK_BASE_URL", "http://localhost:8080/")

# Database credentials (required, never used against a real server in tests)
os.environ.setdefault("DB_USER", "test-user")
os.environ.setdefault("DB_PASSWORD", "test-password")

from sqlalchemy.pool import StaticPool  # noqa: E402

from connection_core.entities import catalog  # noqa: E402
from connection_core.resolver import ConnectionResolver  # noqa: E402
from connection_core.schemas.context import TenantContext  # noqa: E402
from connection_core.storage.db import Database  # noqa: E402
from connection_core.storage.pagination import (  # noqa: E402
    KeysetWindowStrategy,
    OffsetWindowStrategy,
)
from tests.seed_data import (  # noqa: E402
    T1,
    T2,
    customer_portal_rows,
    document_rows,
    repair_order_rows,
)


@pytest.fixture
async def database():
    """Fresh in-memory SQLite database with seeded rows for T1 and T2."""
    db = Database(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()

    async with db.session() as session:
        session.add_all(repair_order_rows() + customer_portal_rows() + document_rows())
        await session.commit()

    yield db

    await db.dispose()


@pytest.fixture
def resolver(database):
    return ConnectionResolver(
        database, strategy=KeysetWindowStrategy(), default_page_size=20
    )


@pytest.fixture
def offset_resolver(database):
    return ConnectionResolver(
        database, strategy=OffsetWindowStrategy(), default_page_size=20
    )


@pytest.fixture(params=["keyset", "offset"])
def any_resolver(request, resolver, offset_resolver):
    """Runs a test once per window strategy."""
    return resolver if request.param == "keyset" else offset_resolver


@pytest.fixture
def t1_context():
    return TenantContext(
        tenant_id=T1,
        user_id="user-1",
        permissions=frozenset({"view-repair-orders"}),
        is_authenticated=True,
    )


@pytest.fixture
def t2_context():
    return TenantContext(
        tenant_id=T2,
        user_id="user-2",
        permissions=frozenset({"view-repair-orders"}),
        is_authenticated=True,
    )


@pytest.fixture
def anonymous_context():
    return TenantContext.anonymous()


@pytest.fixture
def repair_orders():
    return catalog.repair_orders


@pytest.fixture
def customer_portals():
    return catalog.customer_portals


@pytest.fixture
def documents():
    return catalog.documents


@pytest.fixture
def mock_user_data():
    """
    Provides mock decoded user data from a Keycloak access token.

    Returns:
        dict: Claims with client roles and the tenant claim
    """
    return {
        "sub": "f86caf01-69b4-4892-ba2d-ffa58fdd5dab",
        "preferred_username": "testuser",
        "exp": 9999999999,
        "azp": "test-client",
        "tenant_id": T1,
        "resource_access": {
            "test-client": {"roles": ["view-repair-orders"]}
        },
    }
