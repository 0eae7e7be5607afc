"""HTTP API tests."""

from uuid import uuid4

import pytest

API = "/api/v1"


@pytest.fixture
async def room(make_room):
    return await make_room()


async def create_booking(client, room_id, start="2026-06-01", end="2026-07-06") -> dict:
    response = await client.post(
        f"{API}/bookings/",
        json={"room_id": str(room_id), "guest_name": "Ana Reyes", "start_date": start, "end_date": end},
        headers={"X-Actor": "caretaker"},
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestPricingQuote:
    async def test_quote(self, client, room):
        response = await client.get(
            f"{API}/rooms/{room.id}/pricing-quote",
            params={"start": "2026-06-01", "end": "2026-07-06"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["days"] == 35
        assert data["policy"] == "monthly_with_daily"
        assert data["breakdown"] == {"months": 1, "extra_days": 5}
        assert float(data["total"]) == 6500

    async def test_empty_range(self, client, room):
        response = await client.get(
            f"{API}/rooms/{room.id}/pricing-quote",
            params={"start": "2026-06-01", "end": "2026-06-01"},
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "validation_error"

    async def test_misconfigured_room(self, client, make_room):
        room = await make_room(billing_policy="monthly_with_daily", daily_rate=None)

        response = await client.get(
            f"{API}/rooms/{room.id}/pricing-quote",
            params={"start": "2026-06-01", "end": "2026-07-06"},
        )

        assert response.status_code == 409
        assert response.json()["kind"] == "configuration_error"

    async def test_unknown_room(self, client):
        response = await client.get(
            f"{API}/rooms/{uuid4()}/pricing-quote",
            params={"start": "2026-06-01", "end": "2026-07-06"},
        )

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"


class TestBookings:
    async def test_create_uses_quote(self, client, room):
        view = await create_booking(client, room.id)

        assert view["booking"]["status"] == "pending"
        assert float(view["booking"]["amount"]) == 6500
        assert view["payment"]["payment_status"] == "unpaid"
        assert float(view["payment"]["net_collected"]) == 0
        assert view["invoices"] == []
        assert view["refund_owed"] is False

    async def test_create_rejects_reversed_dates(self, client, room):
        response = await client.post(
            f"{API}/bookings/",
            json={
                "room_id": str(room.id),
                "guest_name": "Ana Reyes",
                "start_date": "2026-06-10",
                "end_date": "2026-06-01",
            },
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "validation_error"

    async def test_get_and_list(self, client, room):
        view = await create_booking(client, room.id)
        booking_id = view["booking"]["id"]

        response = await client.get(f"{API}/bookings/{booking_id}")
        assert response.status_code == 200
        assert response.json()["booking"]["reference"] == view["booking"]["reference"]

        response = await client.get(f"{API}/bookings/", params={"status": "pending"})
        assert response.json()["total"] == 1

        response = await client.get(f"{API}/bookings/", params={"status": "confirmed"})
        assert response.json()["total"] == 0

    async def test_partial_completed_is_not_a_status(self, client, room):
        booking_id = (await create_booking(client, room.id))["booking"]["id"]

        response = await client.patch(
            f"{API}/bookings/{booking_id}/status", json={"status": "partial-completed"}
        )

        assert response.status_code == 422

    async def test_unpaid_completion_is_412(self, client, room):
        booking_id = (await create_booking(client, room.id))["booking"]["id"]
        await client.patch(f"{API}/bookings/{booking_id}/status", json={"status": "confirmed"})

        response = await client.patch(
            f"{API}/bookings/{booking_id}/status", json={"status": "completed"}
        )

        assert response.status_code == 412
        body = response.json()
        assert body["kind"] == "precondition_failed"
        assert "unpaid" in body["detail"]

    async def test_backward_payment_is_409(self, client, room):
        booking_id = (await create_booking(client, room.id))["booking"]["id"]
        await client.patch(
            f"{API}/bookings/{booking_id}/payment-status", json={"payment_status": "paid"}
        )

        response = await client.patch(
            f"{API}/bookings/{booking_id}/payment-status", json={"payment_status": "unpaid"}
        )

        assert response.status_code == 409
        assert response.json()["kind"] == "invalid_transition"

    async def test_room_with_pending_booking_is_412(self, client, room):
        await create_booking(client, room.id)

        response = await client.post(
            f"{API}/bookings/",
            json={
                "room_id": str(room.id),
                "guest_name": "Ben Cruz",
                "start_date": "2026-06-01",
                "end_date": "2026-07-06",
            },
        )

        assert response.status_code == 412
        assert response.json()["kind"] == "precondition_failed"

    async def test_stay_below_minimum_is_422(self, client, make_room):
        room = await make_room(min_stay_days=60)

        response = await client.post(
            f"{API}/bookings/",
            json={
                "room_id": str(room.id),
                "guest_name": "Ana Reyes",
                "start_date": "2026-06-01",
                "end_date": "2026-07-06",
            },
        )

        assert response.status_code == 422
        assert "Minimum stay is 60 days" in response.json()["detail"]

    async def test_refund_amount_needs_should_refund(self, client, room):
        booking_id = (await create_booking(client, room.id))["booking"]["id"]

        response = await client.patch(
            f"{API}/bookings/{booking_id}/status",
            json={
                "status": "cancelled",
                "cancellation_reason": "Tenant moved out early",
                "refund_amount": "100",
            },
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "validation_error"

    async def test_unknown_booking(self, client):
        response = await client.patch(
            f"{API}/bookings/{uuid4()}/status", json={"status": "confirmed"}
        )

        assert response.status_code == 404


async def test_end_to_end_cancel_with_refund(client, room):
    view = await create_booking(client, room.id)
    booking_id = view["booking"]["id"]

    response = await client.patch(f"{API}/bookings/{booking_id}/status", json={"status": "confirmed"})
    assert response.status_code == 200
    assert len(response.json()["invoices"]) == 1

    response = await client.patch(
        f"{API}/bookings/{booking_id}/payment-status", json={"payment_status": "paid"}
    )
    assert response.status_code == 200
    assert float(response.json()["payment"]["amount_collected"]) == 6500
    assert float(response.json()["payment"]["net_collected"]) == 6500
    assert response.json()["booking"]["status"] == "confirmed"

    cancel = {
        "status": "cancelled",
        "cancellation_reason": "Tenant moved out early",
        "should_refund": True,
        "refund_amount": "6500",
    }
    response = await client.patch(f"{API}/bookings/{booking_id}/status", json=cancel)
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["booking"]["status"] == "cancelled"
    assert data["payment"]["payment_status"] == "refunded"
    assert float(data["payment"]["refund_amount"]) == 6500
    assert float(data["payment"]["net_collected"]) == 0
    assert data["invoices"][0]["status"] == "refunded"
    assert data["already_applied"] is False

    # Retrying the same request changes nothing
    response = await client.patch(f"{API}/bookings/{booking_id}/status", json=cancel)
    assert response.status_code == 200
    assert response.json()["already_applied"] is True

    response = await client.get(f"{API}/bookings/{booking_id}/history")
    actions = [entry["action"] for entry in response.json()]
    assert actions.count("refund_processed") == 1
    assert actions[0] == "booking_create"
    assert response.json()[0]["actor"] == "caretaker"


async def test_refund_owed_flow(client, room):
    booking_id = (await create_booking(client, room.id))["booking"]["id"]
    await client.patch(f"{API}/bookings/{booking_id}/status", json={"status": "confirmed"})
    await client.patch(
        f"{API}/bookings/{booking_id}/payment-status",
        json={"payment_status": "partial", "amount_collected_delta": "2000"},
    )

    response = await client.patch(
        f"{API}/bookings/{booking_id}/status",
        json={"status": "cancelled", "cancellation_reason": "Tenant moved out early"},
    )
    assert response.json()["refund_owed"] is True

    response = await client.get(f"{API}/bookings/stats")
    assert response.json()["refund_owed"] == 1
    assert response.json()["cancelled"] == 1

    response = await client.post(f"{API}/bookings/{booking_id}/refund", json={"refund_amount": "2500"})
    assert response.status_code == 422
    assert response.json()["kind"] == "validation_error"

    response = await client.post(f"{API}/bookings/{booking_id}/refund", json={"refund_amount": "2000"})
    assert response.status_code == 200
    assert response.json()["refund_owed"] is False
    assert response.json()["payment"]["payment_status"] == "refunded"
    assert float(response.json()["payment"]["net_collected"]) == 0
