"""Unit tests for the FastAPI application.

Requests go through the real app with the database session and the JWT
validator overridden to use the SQLite test database and test secret.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from iam.dependencies.authentication import get_jwt_validator
from infrastructure.database.dependencies import get_write_session
from infrastructure.database.models import utc_now
from main import app
from tests.unit.conftest import Parties

SIGNUP = {
    "companyName": "Acme Trading",
    "email": "owner@acme.test",
    "username": "owner",
    "password": "owner-password",
    "firstName": "Ada",
    "lastName": "Owner",
}


@pytest_asyncio.fixture
async def client(sessionmaker, jwt_validator):
    """HTTP client bound to the app with test storage and credentials."""

    async def _session():
        async with sessionmaker() as session:
            yield session

    app.dependency_overrides[get_write_session] = _session
    app.dependency_overrides[get_jwt_validator] = lambda: jwt_validator
    try:
        async with LifespanManager(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client
    finally:
        app.dependency_overrides.clear()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def signup(client: AsyncClient, **overrides) -> dict:
    response = await client.post("/api/auth/signup", json={**SIGNUP, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    """Tests for health and request correlation."""

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_api_health_reports_version(self, client: AsyncClient) -> None:
        response = await client.get("/api/health")

        assert response.json()["status"] == "ok"
        assert "version" in response.json()

    @pytest.mark.asyncio
    async def test_echoes_request_id(self, client: AsyncClient) -> None:
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_generates_request_id(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert len(response.headers["X-Request-ID"]) == 26


class TestErrorResponses:
    """Failures are answered as {"error": code, "message": text}."""

    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json() == {
            "error": "UNAUTHENTICATED",
            "message": "Authentication required",
        }

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/auth/me", headers=bearer("not.a.jwt"))

        assert response.status_code == 401
        assert response.json()["error"] == "UNAUTHENTICATED"

    @pytest.mark.asyncio
    async def test_login_without_tenant(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/auth/login", json={"email": "a@b.test", "password": "x"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "TENANT_REQUIRED"

    @pytest.mark.asyncio
    async def test_malformed_tenant_header(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/auth/login",
            json={"email": "a@b.test", "password": "x"},
            headers={"X-Tenant-ID": "1 OR 1=1"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "TENANT_ID_INVALID"

    @pytest.mark.asyncio
    async def test_request_validation(self, client: AsyncClient) -> None:
        response = await client.post("/api/auth/signup", json={"companyName": "Acme"})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_document_type(self, client: AsyncClient) -> None:
        response = await client.get("/api/documents/quotes/01ARZ3NDEKTSV4RRFFQ69G5FAV")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"


class TestAuthFlow:
    """Tests for signup, login, me and logout over HTTP."""

    @pytest.mark.asyncio
    async def test_signup_then_me(self, client: AsyncClient) -> None:
        account = await signup(client)

        response = await client.get("/api/auth/me", headers=bearer(account["token"]))

        assert response.status_code == 200
        assert response.json()["email"] == "owner@acme.test"
        assert response.json()["tenantId"] == account["tenantId"]
        assert account["companyCode"] == "ACME_TRADING"

    @pytest.mark.asyncio
    async def test_login_with_body_tenant_revokes_previous_token(
        self, client: AsyncClient
    ) -> None:
        account = await signup(client)

        response = await client.post(
            "/api/auth/login",
            json={
                "tenantId": account["tenantId"].lower(),
                "email": "owner@acme.test",
                "password": "owner-password",
            },
        )

        assert response.status_code == 200
        fresh = response.json()["token"]
        assert (await client.get("/api/auth/me", headers=bearer(fresh))).status_code == 200
        stale = await client.get("/api/auth/me", headers=bearer(account["token"]))
        assert stale.status_code == 401

    @pytest.mark.asyncio
    async def test_register_by_company_code(self, client: AsyncClient) -> None:
        account = await signup(client)

        response = await client.post(
            "/api/auth/register",
            json={
                "companyCode": "acme_trading",
                "email": "clerk@acme.test",
                "username": "clerk",
                "password": "clerk-password",
                "firstName": "Bob",
                "lastName": "Clerk",
            },
        )

        assert response.status_code == 201
        assert response.json()["tenantId"] == account["tenantId"]

    @pytest.mark.asyncio
    async def test_logout_ends_the_session(self, client: AsyncClient) -> None:
        account = await signup(client)
        headers = bearer(account["token"])

        response = await client.post("/api/auth/logout", headers=headers)

        assert response.status_code == 204
        assert (await client.get("/api/auth/me", headers=headers)).status_code == 401


class TestDocumentFlow:
    """An invoice is created, sent and paid over HTTP."""

    @pytest.mark.asyncio
    async def test_invoice_is_paid_by_allocated_payment(self, client: AsyncClient, seed) -> None:
        account = await signup(client)
        headers = bearer(account["token"])
        parties = Parties(account["tenantId"])
        await seed(account["tenantId"], *parties.rows())

        created = await client.post(
            "/api/documents/sales-invoices",
            headers=headers,
            json={
                "customerId": parties.customer.id,
                "documentDate": "2024-10-12",
                "dueDate": "2024-11-11",
                "lines": [
                    {
                        "itemId": parties.item.id,
                        "quantity": "2",
                        "unitPrice": "50",
                        "taxRate": "0.2",
                    }
                ],
            },
        )
        assert created.status_code == 201, created.text
        invoice = created.json()
        assert invoice["number"] == f"SI-{utc_now():%Y%m}-00001"
        assert Decimal(invoice["grandTotal"]) == Decimal("120.00")

        sent = await client.post(
            f"/api/documents/sales-invoices/{invoice['id']}/approve", headers=headers
        )
        assert sent.json()["status"] == "SENT"

        payment = await client.post(
            "/api/payments",
            headers=headers,
            json={
                "paymentType": "CUSTOMER_PAYMENT",
                "paymentMethod": "BANK_TRANSFER",
                "paymentDate": "2024-10-20",
                "amount": "120",
                "customerId": parties.customer.id,
                "allocations": [
                    {"invoiceType": "SALES_INVOICE", "invoiceId": invoice["id"], "amount": "120"}
                ],
            },
        )
        assert payment.status_code == 201, payment.text
        assert payment.json()["number"] == "PAY-20241020-00001"
        assert payment.json()["status"] == "COMPLETED"

        paid = await client.get(
            f"/api/documents/sales-invoices/{invoice['id']}", headers=headers
        )
        assert paid.json()["status"] == "PAID"
        assert Decimal(paid.json()["balanceDue"]) == 0

    @pytest.mark.asyncio
    async def test_other_company_cannot_read_the_document(
        self, client: AsyncClient, seed
    ) -> None:
        account = await signup(client)
        parties = Parties(account["tenantId"])
        await seed(account["tenantId"], *parties.rows())
        created = await client.post(
            "/api/documents/sales-orders",
            headers=bearer(account["token"]),
            json={
                "customerId": parties.customer.id,
                "documentDate": "2024-10-12",
                "lines": [{"itemId": parties.item.id, "quantity": "1", "unitPrice": "10"}],
            },
        )
        order_id = created.json()["id"]
        other = await signup(
            client, companyName="Globex", email="owner@globex.test", username="globex"
        )

        response = await client.get(
            f"/api/documents/sales-orders/{order_id}",
            headers={**bearer(other["token"]), "X-Tenant-ID": account["tenantId"]},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "DOCUMENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_reference_of_another_company_is_rejected(
        self, client: AsyncClient, seed
    ) -> None:
        account = await signup(client)
        other = await signup(
            client, companyName="Globex", email="owner@globex.test", username="globex"
        )
        foreign = Parties(other["tenantId"])
        await seed(other["tenantId"], *foreign.rows())

        response = await client.post(
            "/api/documents/sales-orders",
            headers=bearer(account["token"]),
            json={
                "customerId": foreign.customer.id,
                "documentDate": "2024-10-12",
                "lines": [{"itemId": foreign.item.id, "quantity": "1", "unitPrice": "10"}],
            },
        )

        assert response.status_code == 422
        assert response.json()["error"] == "CROSS_TENANT_REFERENCE"
