#!/usr/bin/env python3
"""
Demo seed script — populates the database with sample data for demos.

!! NOT FOR PRODUCTION !!
This script creates test clients with known passwords, stores well-known
test card numbers and drives a few payments through the real API. It is
intended ONLY for local demos and frontend development.

Usage:
    # With the API server running on localhost:8000:
    python demo/seed.py --api-key <API_KEY>

    # API key from the environment instead:
    API_KEY=<API_KEY> python demo/seed.py

    # Reset the database and re-seed:
    python demo/seed.py --reset

    # Custom server URL:
    python demo/seed.py --base-url http://localhost:9000

Login credentials after seeding:
    ┌────────────┬───────────────────┐
    │ Username   │ Password          │
    ├────────────┼───────────────────┤
    │ alice      │ AliceDemo123!     │
    │ bob        │ BobDemo123!       │
    │ carol      │ CarolDemo123!     │
    └────────────┴───────────────────┘
"""

import argparse
import asyncio
import os
import random
import sys

import httpx

BASE_URL = "http://localhost:8000"

# Tokenization is rejected at random (tokencard.rejection_rate), so retry a few times
TOKENIZE_RETRIES = 5

# ---------------------------------------------------------------------------
# Demo clients
# ---------------------------------------------------------------------------

# Public test card numbers; every one passes the Luhn check. Card numbers are
# globally unique in the vault, so no two clients share one.
CLIENTS = [
    {
        "username": "alice",
        "email": "alice.chen@example.com",
        "password": "AliceDemo123!",
        "first_name": "Alice",
        "last_name": "Chen",
        "cards": [
            {"number": "4539148803436467", "cvv": "123", "month": "12", "year": "29"},
            {"number": "5555555555554444", "cvv": "456", "month": "06", "year": "30"},
        ],
        "orders": [4_250, 18_999, 7_500],
    },
    {
        "username": "bob",
        "email": "bob.martinez@example.com",
        "password": "BobDemo123!",
        "first_name": "Bob",
        "last_name": "Martinez",
        "cards": [
            {"number": "4111111111111111", "cvv": "321", "month": "03", "year": "31"},
        ],
        "orders": [12_000, 2_999],
    },
    {
        "username": "carol",
        "email": "carol.nguyen@example.com",
        "password": "CarolDemo123!",
        "first_name": "Carol",
        "last_name": "Nguyen",
        "cards": [
            {"number": "378282246310005", "cvv": "1234", "month": "09", "year": "28"},
            {"number": "6011111111111117", "cvv": "987", "month": "01", "year": "32"},
        ],
        "orders": [54_000],
    },
]

ADDRESSES = [
    "Av. Principal 123", "Calle 45 #12-30", "Carrera 7 #80-15",
    "Diagonal 22 Sur 14-05", "Transversal 9 #101-40",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def log(msg: str) -> None:
    print(f"  {msg}")


def cents_to_amount(cents: int) -> str:
    return f"${cents / 100:,.2f}"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def signup(client: httpx.AsyncClient, profile: dict) -> dict:
    """Sign up a client, return {client_id, token}."""
    resp = await client.post(f"{BASE_URL}/auth/signup", json={
        "username": profile["username"],
        "email": profile["email"],
        "password": profile["password"],
        "first_name": profile["first_name"],
        "last_name": profile["last_name"],
    })
    resp.raise_for_status()
    data = resp.json()
    return {"client_id": data["client_id"], "token": data["token"]}


async def store_card(client: httpx.AsyncClient, api_key: str, client_id: str, card: dict) -> str | None:
    """Tokenize and store a card; returns the card id, or None if it never got through."""
    for _ in range(TOKENIZE_RETRIES):
        resp = await client.post(
            f"{BASE_URL}/api/v1/cards",
            json={
                "clientId": client_id,
                "cardNumber": card["number"],
                "cvv": card["cvv"],
                "expirationMonth": card["month"],
                "expirationYear": card["year"],
            },
            headers={"X-API-KEY": api_key},
        )
        if resp.status_code == 201:
            return resp.json()["cardId"]
        if resp.status_code == 409:
            log(f"  Card ending in {card['number'][-4:]} already stored, skipping")
            return None
        if resp.json().get("error_type") != "provider_rejected":
            resp.raise_for_status()
    log(f"  Provider kept rejecting card ending in {card['number'][-4:]}")
    return None


async def create_order(client: httpx.AsyncClient, token: str, card_id: str, total_cents: int) -> dict:
    resp = await client.post(
        f"{BASE_URL}/api/v1/orders",
        json={
            "tokenizedCardId": card_id,
            "deliveryAddress": random.choice(ADDRESSES),
            "totalAmountCents": total_cents,
        },
        headers=auth_header(token),
    )
    resp.raise_for_status()
    return resp.json()


async def pay_until_settled(client: httpx.AsyncClient, token: str, order_id: str) -> str:
    """
    Retry payment until it succeeds or the order is blocked.

    Returns "paid", "blocked", or the error_type of the last failure.
    """
    while True:
        resp = await client.post(
            f"{BASE_URL}/api/v1/orders/{order_id}/pay",
            headers=auth_header(token),
        )
        if resp.status_code == 200:
            return "paid"
        body = resp.json()
        if body.get("error_type") == "payment_rejected":
            log(f"    Attempt {body['transaction']['attemptNo']} rejected")
            if body.get("order_blocked"):
                return "blocked"
            continue
        if body.get("error_type") == "order_blocked":
            return "blocked"
        return body.get("error_type", str(resp.status_code))


# ---------------------------------------------------------------------------
# Seed logic
# ---------------------------------------------------------------------------

async def seed(base_url: str, api_key: str) -> None:
    global BASE_URL
    BASE_URL = base_url

    print("\n========================================")
    print("  DEMO SEED — NOT FOR PRODUCTION")
    print("========================================\n")

    outcomes = {"paid": 0, "blocked": 0, "open": 0}

    async with httpx.AsyncClient(timeout=30.0) as client:
        # Health check
        try:
            health = await client.get(f"{BASE_URL}/health")
            health.raise_for_status()
        except (httpx.ConnectError, httpx.HTTPStatusError):
            print(f"  ERROR: Cannot connect to {BASE_URL}")
            print("  Start the server first: uvicorn checkout_api.main:app --reload\n")
            sys.exit(1)

        for profile in CLIENTS:
            name = f"{profile['first_name']} {profile['last_name']}"
            print(f"\nCreating {name}...")
            account = await signup(client, profile)
            log(f"Login: {profile['username']} / {profile['password']}")

            card_ids = []
            for card in profile["cards"]:
                card_id = await store_card(client, api_key, account["client_id"], card)
                if card_id:
                    card_ids.append(card_id)
                    log(f"  Card ending in {card['number'][-4:]} stored")

            if not card_ids:
                log("  No cards stored, skipping orders")
                continue

            for i, total_cents in enumerate(profile["orders"]):
                order = await create_order(client, account["token"], random.choice(card_ids), total_cents)
                log(f"  Order {order['orderId'][:8]} for {cents_to_amount(total_cents)}")

                # Leave the last order of each client unpaid so the UI has an open one
                if i == len(profile["orders"]) - 1 and len(profile["orders"]) > 1:
                    outcomes["open"] += 1
                    log("    Left open")
                    continue

                result = await pay_until_settled(client, account["token"], order["orderId"])
                outcomes[result] = outcomes.get(result, 0) + 1
                log(f"    {result.capitalize()}")

    # --- Summary ---
    print("\n========================================")
    print("  SEED COMPLETE — Login Credentials")
    print("========================================")
    print(f"\n  {'Username':<12s} {'Password':<20s}")
    print(f"  {'─' * 12} {'─' * 20}")
    for profile in CLIENTS:
        print(f"  {profile['username']:<12s} {profile['password']:<20s}")
    print(f"\n  Orders: {outcomes['paid']} paid, {outcomes['blocked']} blocked, {outcomes['open']} open\n")


def reset_database() -> None:
    """Delete the SQLite database file so the server recreates it on restart."""
    db_path = os.path.join(os.path.dirname(__file__), "..", "data", "checkout.db")
    db_path = os.path.normpath(db_path)

    if os.path.exists(db_path):
        os.remove(db_path)
        print(f"\n  Deleted {db_path}")
        print("  Restart the server to recreate empty tables.\n")
    else:
        print(f"\n  No database found at {db_path}\n")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Demo seed script — NOT FOR PRODUCTION",
        epilog="Creates sample clients, cards, orders, and payments for demos.",
    )
    parser.add_argument(
        "--base-url", default="http://localhost:8000",
        help="Base URL of the running API (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--api-key", default=os.environ.get("API_KEY"),
        help="Service API key for card storage (default: $API_KEY)",
    )
    parser.add_argument(
        "--reset", action="store_true",
        help="Delete the database file and exit (restart server to recreate)",
    )
    args = parser.parse_args()

    if args.reset:
        reset_database()
        return

    if not args.api_key:
        parser.error("an API key is required: pass --api-key or set API_KEY")

    await seed(args.base_url, args.api_key)


if __name__ == "__main__":
    asyncio.run(main())
