"""
Tests for order endpoints (create, list, list transactions).

These tests verify:
  - Orders are created OPEN with the chosen card and a 2-decimal total
  - The card must belong to the caller
  - Listing returns only the caller's orders, with payment state
  - An order's transactions are visible only to its owner
  - Request validation (negative totals, long addresses)
"""

import uuid

from checkout_api.services import preference_service

OTHER_VALID_CARD = "4111111111111111"
THIRD_VALID_CARD = "5555555555554444"


class TestCreateOrder:
    """Tests for POST /api/v1/orders."""

    async def test_create_order(self, client, alice, store_card):
        card = (await store_card(alice)).json()

        response = await client.post(
            "/api/v1/orders",
            json={
                "tokenizedCardId": card["cardId"],
                "deliveryAddress": "Av. Principal 123",
                "totalAmountCents": 4200,
            },
            headers=alice["headers"],
        )
        assert response.status_code == 201
        data = response.json()
        uuid.UUID(data["orderId"])
        assert data["clientId"] == alice["id"]
        assert data["cardId"] == card["cardId"]
        assert data["cardLastFourDigits"] == "6467"
        assert data["totalAmountCents"] == 4200
        assert data["totalAmount"] == "42.00"
        assert data["deliveryAddress"] == "Av. Principal 123"
        assert data["isBlocked"] is False

    async def test_zero_total_allowed(self, client, alice, create_order):
        order = await create_order(alice, total_amount_cents=0)
        assert order["totalAmount"] == "0.00"

    async def test_negative_total_rejected(self, client, alice, store_card):
        card = (await store_card(alice)).json()
        response = await client.post(
            "/api/v1/orders",
            json={
                "tokenizedCardId": card["cardId"],
                "deliveryAddress": "Av. Principal 123",
                "totalAmountCents": -1,
            },
            headers=alice["headers"],
        )
        assert response.status_code == 422

    async def test_long_address_rejected(self, client, alice, store_card):
        card = (await store_card(alice)).json()
        response = await client.post(
            "/api/v1/orders",
            json={
                "tokenizedCardId": card["cardId"],
                "deliveryAddress": "x" * 101,
                "totalAmountCents": 100,
            },
            headers=alice["headers"],
        )
        assert response.status_code == 422

    async def test_cannot_use_someone_elses_card(self, client, alice, bob, store_card):
        bob_card = (await store_card(bob, OTHER_VALID_CARD)).json()
        response = await client.post(
            "/api/v1/orders",
            json={
                "tokenizedCardId": bob_card["cardId"],
                "deliveryAddress": "Av. Principal 123",
                "totalAmountCents": 100,
            },
            headers=alice["headers"],
        )
        assert response.status_code == 403

    async def test_unknown_card(self, client, alice):
        response = await client.post(
            "/api/v1/orders",
            json={
                "tokenizedCardId": str(uuid.uuid4()),
                "deliveryAddress": "Av. Principal 123",
                "totalAmountCents": 100,
            },
            headers=alice["headers"],
        )
        assert response.status_code == 404

    async def test_requires_authentication(self, client):
        response = await client.post("/api/v1/orders", json={})
        assert response.status_code == 401


class TestListOrders:
    """Tests for GET /api/v1/orders."""

    async def test_lists_only_my_orders(self, client, alice, bob, create_order):
        mine = await create_order(alice)
        theirs = await create_order(bob, card_number=OTHER_VALID_CARD)

        response = await client.get("/api/v1/orders", headers=alice["headers"])
        assert response.status_code == 200
        ids = {o["orderId"] for o in response.json()}
        assert ids == {mine["orderId"]}
        assert theirs["orderId"] not in ids

    async def test_several_orders_on_one_card(self, client, alice, create_order):
        first = await create_order(alice)
        second = await create_order(alice, total_amount_cents=999, card_id=first["cardId"])

        response = await client.get("/api/v1/orders", headers=alice["headers"])
        orders = {o["orderId"]: o for o in response.json()}
        assert set(orders) == {first["orderId"], second["orderId"]}
        assert orders[second["orderId"]]["totalAmount"] == "9.99"
        assert all(o["cardLastFourDigits"] == "6467" for o in orders.values())

    async def test_list_shows_blocked_state(self, client, alice, create_order, set_preference):
        await set_preference(preference_service.PAYMENT_REJECTION_RATE, "100")
        await set_preference(preference_service.PAYMENT_MAX_ATTEMPTS, "1")
        order = await create_order(alice, card_number=THIRD_VALID_CARD)
        await client.post(f"/api/v1/orders/{order['orderId']}/pay", headers=alice["headers"])

        response = await client.get("/api/v1/orders", headers=alice["headers"])
        assert response.json()[0]["isBlocked"] is True


class TestOrderTransactions:
    """Tests for GET /api/v1/orders/{id}/transactions."""

    async def test_lists_attempts_in_order(self, client, alice, create_order, set_preference):
        await set_preference(preference_service.PAYMENT_REJECTION_RATE, "100")
        order = await create_order(alice)
        url = f"/api/v1/orders/{order['orderId']}"
        await client.post(f"{url}/pay", headers=alice["headers"])
        await set_preference(preference_service.PAYMENT_REJECTION_RATE, "0")
        await client.post(f"{url}/pay", headers=alice["headers"])

        response = await client.get(f"{url}/transactions", headers=alice["headers"])
        assert response.status_code == 200
        rows = response.json()
        assert [(r["attemptNo"], r["status"]) for r in rows] == [(1, "REJECTED"), (2, "SUCCESS")]
        assert all(r["amount"] == "42.00" for r in rows)

    async def test_empty_before_any_attempt(self, client, alice, create_order):
        order = await create_order(alice)
        response = await client.get(
            f"/api/v1/orders/{order['orderId']}/transactions", headers=alice["headers"],
        )
        assert response.status_code == 200
        assert response.json() == []

    async def test_other_client_cannot_see_transactions(self, client, alice, bob, create_order):
        order = await create_order(alice)
        await client.post(f"/api/v1/orders/{order['orderId']}/pay", headers=alice["headers"])

        response = await client.get(
            f"/api/v1/orders/{order['orderId']}/transactions", headers=bob["headers"],
        )
        assert response.status_code == 403

    async def test_unknown_order(self, client, alice):
        response = await client.get(
            f"/api/v1/orders/{uuid.uuid4()}/transactions", headers=alice["headers"],
        )
        assert response.status_code == 404
