"""
Report, export and dashboard endpoints
"""
import pytest
from datetime import datetime
from zoneinfo import ZoneInfo

IST = ZoneInfo("Asia/Kolkata")


@pytest.mark.asyncio
async def test_filtered_report(client, customer, other_customer, add_entry):
    mine = await add_entry(customer, datetime(2024, 6, 10, 6, 0, tzinfo=IST), 1)
    await add_entry(other_customer, datetime(2024, 6, 10, 9, 0, tzinfo=IST), 1)
    await add_entry(customer, datetime(2024, 5, 1, 6, 0, tzinfo=IST), 1)

    response = await client.get(
        "/api/v1/reports/entries",
        params={"customer_id": str(customer.id), "start_date": "2024-06-01", "end_date": "2024-06-30"}
    )

    assert response.status_code == 200
    assert [e["id"] for e in response.json()] == [str(mine.id)]


@pytest.mark.asyncio
async def test_report_defaults_to_all_customers(client, customer, other_customer, add_entry):
    await add_entry(customer, datetime(2024, 6, 10, 6, 0, tzinfo=IST), 1)
    await add_entry(other_customer, datetime(2024, 6, 11, 6, 0, tzinfo=IST), 1)

    response = await client.get("/api/v1/reports/entries")

    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_export_csv(client, customer, add_entry):
    await add_entry(customer, datetime(2024, 6, 10, 6, 0, tzinfo=IST), 1.5, "Cotton")

    response = await client.get("/api/v1/reports/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    body = response.content.decode("utf-8")
    assert body.startswith("\ufeff\"Start Date\",\"End Date\",\"Customer\"")
    assert body.endswith('"2024-06-10","2024-06-10","Ramesh Patil","06:00","07:30",1.50,"Cotton",240,"Pending"\n')


@pytest.mark.asyncio
async def test_export_empty(client):
    response = await client.get("/api/v1/reports/export")

    assert response.status_code == 404
    assert response.json()["error"] == "NoDataToExport"


@pytest.mark.asyncio
async def test_dashboard_shape(client, customer, add_entry):
    await add_entry(customer, datetime(2024, 6, 10, 6, 0, tzinfo=IST), 1)

    response = await client.get("/api/v1/dashboard")

    assert response.status_code == 200
    data = response.json()
    assert set(data) == {
        "todaySupplyHours", "todayRevenue", "pendingAmount", "monthlyRevenue",
        "sixMonthRevenue", "yearlyRevenue", "totalRevenue", "recentActivity"
    }
    assert data["pendingAmount"] == 200
    assert data["totalRevenue"] == 200
    assert data["recentActivity"][0]["time_slot"] == "06:00-07:00"
