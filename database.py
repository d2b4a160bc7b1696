"""
Database helpers

MongoStore wraps one MongoClient with an explicit lifecycle: open() at
startup, close() at shutdown. Handlers receive the store through FastAPI
dependencies instead of importing a module-level connection.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient


def doc_to_dict(doc: dict) -> dict:
    out = {}
    for k, v in doc.items():
        if isinstance(v, ObjectId):
            out[k] = str(v)
        elif isinstance(v, datetime):
            out[k] = v.isoformat()
        else:
            out[k] = v
    if "_id" in out:
        out["id"] = out.pop("_id")
    return out


class MongoStore:
    def __init__(self, url: str = "mongodb://localhost:27017", name: str = "checkout", client=None):
        self.url = url
        self.name = name
        self._client = client
        self.db = client[name] if client is not None else None

    def open(self) -> None:
        if self._client is None:
            self._client = MongoClient(self.url, serverSelectionTimeoutMS=3000)
            self.db = self._client[self.name]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self.db = None

    def _collection(self, collection_name: str):
        if self.db is None:
            raise RuntimeError("Database not configured")
        return self.db[collection_name]

    def ping(self) -> None:
        if self.db is None:
            raise RuntimeError("Database not configured")
        self.db.command("ping")

    def create_document(self, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
        """Insert one document with created_at/updated_at stamps, return its id."""
        if isinstance(data, BaseModel):
            data = data.model_dump(exclude_none=True)
        doc = dict(data)
        now = datetime.now(timezone.utc)
        doc["created_at"] = now
        doc["updated_at"] = now
        result = self._collection(collection_name).insert_one(doc)
        return str(result.inserted_id)

    def get_document(self, collection_name: str, document_id: str) -> Optional[dict]:
        try:
            oid = ObjectId(document_id)
        except (InvalidId, TypeError):
            return None
        return self._collection(collection_name).find_one({"_id": oid})

    def get_documents(self, collection_name: str, filter_dict: Optional[dict] = None) -> List[dict]:
        # natural order, no sort or limit
        return list(self._collection(collection_name).find(filter_dict or {}))
