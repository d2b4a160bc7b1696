# tests/orders_test.py
from __future__ import annotations

from pymongo.errors import PyMongoError


def place(client, name: str, price, quantity) -> dict:
    resp = client.post(
        "/api/checkout",
        json={
            "products": [{"productName": name, "price": price, "quantity": quantity}],
            "customer": {"name": "A", "email": "a@b.com", "address": "1 Rd"},
        },
    )
    assert resp.status_code == 201
    return resp.json()["order"]


def test_empty_store_lists_nothing(client):
    resp = client.get("/api/orders")

    assert resp.status_code == 200
    assert resp.json() == []


def test_created_order_round_trips_through_listing(client):
    created = place(client, "Mug", 9.99, 2)

    listed = client.get("/api/orders").json()

    assert listed == [created]
    assert listed[0]["products"] == [{"productName": "Mug", "price": 9.99, "quantity": 2}]
    assert listed[0]["customer"] == {"name": "A", "email": "a@b.com", "address": "1 Rd"}


def test_listing_keeps_insertion_order(client):
    place(client, "Mug", 9.99, 2)
    place(client, "Plate", 4.5, 1)

    names = [o["products"][0]["productName"] for o in client.get("/api/orders").json()]

    assert names == ["Mug", "Plate"]


def test_listing_twice_returns_identical_results(client):
    place(client, "Mug", 9.99, 2)
    place(client, "Bowl", 6, 3)

    first = client.get("/api/orders").json()
    second = client.get("/api/orders").json()

    assert first == second


def test_store_failure_returns_500(client, store, monkeypatch):
    def broken(*args, **kwargs):
        raise PyMongoError("server selection timeout")

    monkeypatch.setattr(store, "get_documents", broken)

    resp = client.get("/api/orders")

    assert resp.status_code == 500
    assert resp.json() == {"message": "Failed to fetch orders", "error": "server selection timeout"}


def test_root_and_degraded_health(client, store, monkeypatch):
    assert client.get("/").json() == {"message": "Checkout Backend Running"}

    def broken():
        raise PyMongoError("down")

    monkeypatch.setattr(store, "ping", broken)
    health = client.get("/health").json()

    assert health == {"status": "degraded", "checks": {"database": "error: down"}}
