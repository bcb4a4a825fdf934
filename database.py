"""
Database helpers

MongoDB is the persistence boundary for the inspection catalog and for
submitted inspections. Connection settings come from config.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

import config

_client: Optional[MongoClient] = None
db: Optional[Database] = None

if config.DATABASE_URL and config.DATABASE_NAME:
    _client = MongoClient(config.DATABASE_URL)
    db = _client[config.DATABASE_NAME]


def get_db() -> Optional[Database]:
    return db


def _as_dict(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json")
    return dict(data)


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]], database: Optional[Database] = None) -> str:
    """Insert a document stamped with created_at/updated_at, return its id as a string."""
    target = database if database is not None else db
    if target is None:
        raise RuntimeError("Database not available. Check DATABASE_URL and DATABASE_NAME.")

    doc = _as_dict(data)
    now = datetime.now(timezone.utc)
    doc.setdefault("created_at", now)
    doc["updated_at"] = now

    result = target[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    database: Optional[Database] = None,
) -> List[Dict[str, Any]]:
    target = database if database is not None else db
    if target is None:
        raise RuntimeError("Database not available. Check DATABASE_URL and DATABASE_NAME.")

    cursor = target[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
