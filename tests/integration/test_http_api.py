"""
HTTP surface tests: routing, authentication, error envelope and headers.

The app is built around the seeded test database; Keycloak is patched so
bearer tokens decode to the ``mock_user_data`` claims.
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from connection_core import application
from connection_core.dependencies import get_database, get_resolver
from tests.seed_data import OPEN_ORDERS

AUTH = {"Authorization": "Bearer test-token"}


@pytest.fixture
async def app(database, resolver):
    app = application(database)
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_resolver] = lambda: resolver
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def keycloak(mock_user_data):
    with patch("connection_core.auth.KeycloakManager") as manager:
        manager.return_value.decode_token = AsyncMock(return_value=mock_user_data)
        yield manager.return_value


@pytest.fixture
async def client(app, keycloak):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.post("/connections/customerPortals", json={})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthenticated"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, path",
        [
            ("POST", "/connections/invoices"),
            ("POST", "/connections/customerPortals"),
            ("GET", "/connections/invoices/inv-1"),
            ("GET", "/connections/customerPortals/cp-1"),
        ],
    )
    async def test_anonymous_caller_cannot_tell_entities_apart(
        self, client, method, path
    ):
        kwargs = {"json": {}} if method == "POST" else {}

        response = await client.request(method, path, **kwargs)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_rejected_token(self, client, keycloak):
        keycloak.decode_token.side_effect = ValueError("Invalid token")

        response = await client.post(
            "/connections/customerPortals", json={}, headers=AUTH
        )

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        error = response.json()["error"]
        assert error["code"] == "unauthenticated"
        assert error["details"]["reason"] == "token_decode_error"

    @pytest.mark.asyncio
    async def test_missing_role(self, client, keycloak, mock_user_data):
        mock_user_data["resource_access"]["test-client"]["roles"] = []
        keycloak.decode_token.return_value = mock_user_data

        response = await client.post(
            "/connections/repairOrders", json={}, headers=AUTH
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "permission_denied"


class TestListConnection:
    @pytest.mark.asyncio
    async def test_page_is_rendered_in_camel_case(self, client):
        response = await client.post(
            "/connections/repairOrders",
            json={
                "filters": [
                    {"field": "status", "operator": "EQUALS", "value": "OPEN"}
                ],
                "pagination": {"first": 5},
                "facets": ["priority"],
            },
            headers=AUTH,
        )

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "private, max-age=60"
        body = response.json()
        assert body["totalCount"] == OPEN_ORDERS
        assert len(body["edges"]) == 5
        assert body["pageInfo"]["hasNextPage"] is True
        assert body["pageInfo"]["hasPreviousPage"] is False
        assert body["pageInfo"]["endCursor"] == body["edges"][-1]["cursor"]
        assert body["facets"][0]["field"] == "priority"
        assert body["edges"][0]["node"]["id"] == "ro-022"

    @pytest.mark.asyncio
    async def test_following_the_end_cursor(self, client):
        first = await client.post(
            "/connections/customerPortals",
            json={"pagination": {"first": 2}},
            headers=AUTH,
        )
        end_cursor = first.json()["pageInfo"]["endCursor"]

        second = await client.post(
            "/connections/customerPortals",
            json={"pagination": {"first": 2, "after": end_cursor}},
            headers=AUTH,
        )

        assert second.status_code == 200
        assert second.headers["Cache-Control"] == "private, max-age=300"
        ids = [e["node"]["id"] for e in first.json()["edges"]]
        ids += [e["node"]["id"] for e in second.json()["edges"]]
        assert ids == ["cp-4", "cp-3", "cp-2", "cp-1"]
        assert second.json()["pageInfo"]["hasNextPage"] is False

    @pytest.mark.asyncio
    async def test_scope_in_body(self, client):
        response = await client.post(
            "/connections/documents",
            json={"scope": {"portalId": "cp-2"}},
            headers=AUTH,
        )

        assert response.status_code == 200
        assert [e["node"]["id"] for e in response.json()["edges"]] == ["doc-4"]

    @pytest.mark.asyncio
    async def test_invalid_field(self, client):
        response = await client.post(
            "/connections/customerPortals",
            json={"sorts": [{"field": "__proto__", "direction": "ASC"}]},
            headers=AUTH,
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_field"
        assert error["details"]["field"] == "__proto__"

    @pytest.mark.asyncio
    async def test_invalid_cursor(self, client):
        response = await client.post(
            "/connections/customerPortals",
            json={"pagination": {"first": 2, "after": "not-a-cursor"}},
            headers=AUTH,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_cursor"

    @pytest.mark.asyncio
    async def test_mixed_pagination(self, client):
        response = await client.post(
            "/connections/customerPortals",
            json={"pagination": {"first": 2, "last": 2}},
            headers=AUTH,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_pagination"

    @pytest.mark.asyncio
    async def test_malformed_body(self, client):
        response = await client.post(
            "/connections/customerPortals",
            json={"filters": [], "orderBy": "name"},
            headers=AUTH,
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        assert error["details"]["errors"]

    @pytest.mark.asyncio
    async def test_unknown_entity(self, client):
        response = await client.post(
            "/connections/invoices", json={}, headers=AUTH
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"


class TestGetNode:
    @pytest.mark.asyncio
    async def test_visible_node(self, client):
        response = await client.get(
            "/connections/customerPortals/cp-1", headers=AUTH
        )

        assert response.status_code == 200
        assert response.json()["name"] == "100% Auto"

    @pytest.mark.asyncio
    async def test_foreign_node(self, client):
        response = await client.get(
            "/connections/customerPortals/cp-6", headers=AUTH
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"


class TestOperationalEndpoints:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "reachable",
            "entities": ["customerPortals", "documents", "repairOrders"],
        }

    @pytest.mark.asyncio
    async def test_health_when_store_is_down(self, client, database):
        down = OperationalError("SELECT 1", {}, OSError("connection refused"))

        with patch.object(database, "ping", AsyncMock(side_effect=down)):
            response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_metrics(self, client):
        await client.post("/connections/customerPortals", json={}, headers=AUTH)

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "connection_queries_total" in response.text
        assert "http_requests_total" in response.text

    @pytest.mark.asyncio
    async def test_correlation_id_is_echoed(self, client):
        response = await client.get(
            "/health", headers={"X-Correlation-ID": "abcd1234"}
        )

        assert response.headers["X-Correlation-ID"] == "abcd1234"
