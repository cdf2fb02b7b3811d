"""
MongoDB access for the Farm Setup Planner.

`db` is None when DATABASE_URL is not configured; callers must check it.
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import MongoClient

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "smart_agriculture")

db = None
if DATABASE_URL:
    # MongoClient connects lazily, so a down server surfaces on first use
    _client = MongoClient(DATABASE_URL, tz_aware=True, serverSelectionTimeoutMS=5000)
    db = _client[DATABASE_NAME]
else:
    logger.warning("DATABASE_URL not set; persistence is disabled")


def _require_db():
    if db is None:
        raise RuntimeError("Database not configured")
    return db


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document, stamping created_at/updated_at, and return its id."""
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    now = datetime.now(timezone.utc)
    doc["created_at"] = now
    doc["updated_at"] = now
    result = _require_db()[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  limit: Optional[int] = None, sort: Optional[List[tuple]] = None) -> List[Dict[str, Any]]:
    cursor = _require_db()[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def get_document_by_id(collection_name: str, document_id: str) -> Optional[Dict[str, Any]]:
    try:
        oid = ObjectId(document_id)
    except (InvalidId, TypeError):
        return None
    return _require_db()[collection_name].find_one({"_id": oid})
