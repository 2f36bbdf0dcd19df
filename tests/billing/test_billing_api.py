"""
End-to-end tests for the billing HTTP API.
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

pytestmark = pytest.mark.asyncio

API = "/api/v1"


async def _snapshot(client, tenant_id: str, period: str) -> dict:
    response = await client.post(
        f"{API}/metering/snapshot", json={"tenant_id": tenant_id, "period": period}
    )
    assert response.status_code == 200, response.text
    return response.json()


async def _invoice(client, tenant_id: str, start: str, end: str):
    return await client.post(
        f"{API}/billing/invoices",
        json={"tenant_id": tenant_id, "billing_period_start": start, "billing_period_end": end},
    )


class TestMeteringAPI:
    async def test_snapshot(self, client, tenant_factory, door_factory):
        tenant = await tenant_factory()
        await door_factory(tenant.id, 100)

        record = await _snapshot(client, tenant.id, "2025-01-15T00:00:00Z")

        assert record["door_count"] == 100
        assert Decimal(record["calculated_amount"]) == Decimal("100.00")
        assert datetime.fromisoformat(record["period"]) == datetime(2025, 1, 1, tzinfo=UTC)

    async def test_snapshot_unknown_tenant(self, client):
        response = await client.post(f"{API}/metering/snapshot", json={"tenant_id": "missing"})

        assert response.status_code == 404
        assert response.json()["error_code"] == "TENANT_NOT_FOUND"

    async def test_snapshot_requires_tenant(self, client):
        response = await client.post(f"{API}/metering/snapshot", json={})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_run_all(self, client, tenant_factory):
        first = await tenant_factory()
        second = await tenant_factory()

        response = await client.post(f"{API}/metering/run-all", json={"period": "2025-01-01T00:00:00Z"})

        assert response.status_code == 200
        body = response.json()
        assert body["tracked"] == 2
        assert body["failed"] == 0
        assert {r["tenant_id"] for r in body["results"]} == {first.id, second.id}

    async def test_unbilled(self, client, tenant_factory):
        tenant = await tenant_factory()
        await _snapshot(client, tenant.id, "2025-02-01T00:00:00Z")
        await _snapshot(client, tenant.id, "2025-01-01T00:00:00Z")

        response = await client.get(f"{API}/metering/{tenant.id}/unbilled")

        assert response.status_code == 200
        periods = [r["period"][:7] for r in response.json()]
        assert periods == ["2025-01", "2025-02"]


class TestInvoiceAPI:
    async def test_issue_and_pay(self, client, tenant_factory, door_factory):
        tenant = await tenant_factory(subdomain="apitest")
        await door_factory(tenant.id, 100)
        await _snapshot(client, tenant.id, "2025-01-01T00:00:00Z")

        response = await _invoice(client, tenant.id, "2025-01-01T00:00:00Z", "2025-01-31T00:00:00Z")
        assert response.status_code == 201, response.text
        invoice = response.json()
        assert invoice["invoice_number"] == "INV-APITEST-00001"
        assert Decimal(invoice["amount"]) == Decimal("120.00")
        assert invoice["status"] == "ISSUED"

        fetched = await client.get(f"{API}/billing/invoices/{invoice['id']}")
        assert fetched.json()["invoice_number"] == "INV-APITEST-00001"

        paid = await client.post(
            f"{API}/billing/invoices/{invoice['id']}/pay",
            json={"paid_date": "2025-02-10T00:00:00Z"},
        )
        assert paid.status_code == 200
        assert paid.json()["status"] == "PAID"

        again = await client.post(f"{API}/billing/invoices/{invoice['id']}/pay")
        assert again.status_code == 409
        assert again.json()["error_code"] == "INVALID_INVOICE_STATUS"

    async def test_nothing_to_bill(self, client, tenant_factory):
        tenant = await tenant_factory()

        response = await _invoice(client, tenant.id, "2025-01-01T00:00:00Z", "2025-01-31T00:00:00Z")

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "NO_UNBILLED_USAGE"
        assert body["context"]["tenant_id"] == tenant.id

    async def test_reversed_range_rejected(self, client, tenant_factory):
        tenant = await tenant_factory()

        response = await _invoice(client, tenant.id, "2025-02-01T00:00:00Z", "2025-01-01T00:00:00Z")

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_list_and_check_overdue(self, client, tenant_factory, door_factory):
        tenant = await tenant_factory()
        await door_factory(tenant.id, 12)
        await _snapshot(client, tenant.id, "2025-01-01T00:00:00Z")
        created = await _invoice(client, tenant.id, "2025-01-01T00:00:00Z", "2025-01-31T00:00:00Z")

        listed = await client.get(f"{API}/billing/invoices", params={"tenant_id": tenant.id})
        assert [i["id"] for i in listed.json()] == [created.json()["id"]]

        # Issued just now with 30 day terms: nothing is overdue yet
        response = await client.post(f"{API}/billing/invoices/check-overdue")
        assert response.status_code == 200
        assert response.json() == {"updated": 0}

    async def test_invoice_not_found(self, client):
        response = await client.get(f"{API}/billing/invoices/missing")

        assert response.status_code == 404
        assert response.json()["error_code"] == "INVOICE_NOT_FOUND"


class TestLimitsAndSettingsAPI:
    async def test_limits(self, client, tenant_factory, door_factory):
        tenant = await tenant_factory(max_doors=100)
        await door_factory(tenant.id, 85)

        response = await client.get(f"{API}/limits/{tenant.id}")

        assert response.status_code == 200
        doors = response.json()["doors"]
        assert doors["current"] == 85
        assert doors["limit"] == 100
        assert doors["is_near_limit"] is True
        assert doors["is_at_limit"] is False

    async def test_update_settings(self, client, tenant_factory):
        tenant = await tenant_factory()

        response = await client.put(
            f"{API}/billing/{tenant.id}/settings", json={"max_doors": 500, "tax_rate": "0.05"}
        )

        assert response.status_code == 200, response.text
        assert response.json()["max_doors"] == 500

    async def test_invalid_settings(self, client, tenant_factory):
        tenant = await tenant_factory()

        response = await client.put(
            f"{API}/billing/{tenant.id}/settings", json={"price_per_door": "-5"}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_BILLING_CONFIG"

    async def test_overview(self, client, tenant_factory, door_factory):
        tenant = await tenant_factory()
        await door_factory(tenant.id, 24)

        response = await client.get(f"{API}/billing/{tenant.id}/overview")

        assert response.status_code == 200
        body = response.json()
        assert body["usage"]["doors"] == 24
        assert Decimal(body["costs"]["estimated_monthly_cost"]) == Decimal("24.00")
        assert body["costs"]["formatted_annual_cost"] == "£288.00"

    async def test_api_info(self, client):
        response = await client.get(f"{API}/info")

        assert response.status_code == 200
