# tests/database_test.py
from __future__ import annotations

from datetime import datetime

import pytest
from bson import ObjectId

from database import MongoStore, doc_to_dict
from schemas import parse_order


def test_doc_to_dict_converts_ids_and_datetimes():
    oid = ObjectId()
    when = datetime(2024, 5, 1, 12, 30)

    out = doc_to_dict({"_id": oid, "created_at": when, "customer": {"name": "A"}})

    assert out == {"id": str(oid), "created_at": "2024-05-01T12:30:00", "customer": {"name": "A"}}


def test_create_document_stamps_and_drops_empty_fields(store):
    order = parse_order({
        "products": [{"productName": "Mug", "price": 9.99, "quantity": 2}],
        "customer": {"name": "A", "email": "a@b.com", "address": "1 Rd"},
    })

    new_id = store.create_document("order", order)
    doc = store.get_document("order", new_id)

    assert str(doc["_id"]) == new_id
    assert doc["created_at"] == doc["updated_at"]
    assert "imageUrl" not in doc["products"][0]


def test_get_document_with_bad_id_returns_none(store):
    assert store.get_document("order", "not-an-object-id") is None


def test_get_documents_returns_everything(store):
    store.create_document("order", {"n": 1})
    store.create_document("order", {"n": 2})

    assert [d["n"] for d in store.get_documents("order")] == [1, 2]
    assert [d["n"] for d in store.get_documents("order", {"n": 2})] == [2]


def test_closed_store_refuses_work(store):
    store.close()

    with pytest.raises(RuntimeError):
        store.get_documents("order")
