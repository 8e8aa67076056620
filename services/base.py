from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database

from database import ID_FIELDS, new_identity, timestamps, utcnow
from errors import ClientInputError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_RECORDS_PER_PAGE = 10


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    per_page: int = DEFAULT_RECORDS_PER_PAGE

    @classmethod
    def from_query(cls, page: Any = None, record_per_page: Any = None) -> "Pagination":
        """Absent, non-numeric or < 1 values fall back to page 1 / 10 records."""
        return cls(
            page=_positive_int(page, DEFAULT_PAGE),
            per_page=_positive_int(record_per_page, DEFAULT_RECORDS_PER_PAGE),
        )

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.per_page

    def meta(self, total: int, label: str) -> Dict[str, int]:
        return {
            "current_page": self.page,
            "records_per_page": self.per_page,
            f"total_{label}": total,
            "total_pages": math.ceil(total / self.per_page),
        }


Page = Tuple[List[Dict[str, Any]], Dict[str, int]]


def changed_fields(values: Dict[str, Any]) -> Dict[str, Any]:
    """Drop fields the client left out or sent empty."""
    return {k: v for k, v in values.items() if v is not None and v != ""}


class EntityService:
    collection_name: str = ""
    label: str = ""            # plural, used in pagination totals
    noun: str = "Record"       # used in messages
    hidden_fields: Tuple[str, ...] = ()

    def __init__(self, db: Database):
        self.db = db
        self.collection = db[self.collection_name]
        self.id_field = ID_FIELDS[self.collection_name]

    # ---------- reads ----------
    def public(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        hidden = set(self.hidden_fields) | {"_id"}
        return {k: v for k, v in doc.items() if k not in hidden}

    def find(self, entity_id: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({self.id_field: entity_id})

    def get_or_404(self, entity_id: str, message: str = "") -> Dict[str, Any]:
        doc = self.find(entity_id) if entity_id else None
        if doc is None:
            raise NotFoundError(message or f"{self.noun} not found")
        return doc

    def get(self, entity_id: str) -> Dict[str, Any]:
        return self.public(self.get_or_404(entity_id))

    def exists(self, entity_id: str) -> bool:
        return bool(entity_id) and self.collection.count_documents({self.id_field: entity_id}, limit=1) > 0

    def list(self, pagination: Pagination, filter_dict: Optional[Dict[str, Any]] = None) -> Page:
        match = filter_dict or {}
        projection: Dict[str, int] = {"_id": 0}
        for field in self.hidden_fields:
            projection[field] = 0
        pipeline = [
            {"$match": match},
            {"$sort": {"_id": 1}},
            {"$skip": pagination.skip},
            {"$limit": pagination.per_page},
            {"$project": projection},
        ]
        records = list(self.collection.aggregate(pipeline))
        total = self.collection.count_documents(match)
        return records, pagination.meta(total, self.label)

    # ---------- writes ----------
    def insert(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        oid, entity_id = new_identity()
        doc = {**fields, "_id": oid, self.id_field: entity_id, **timestamps()}
        self.collection.insert_one(doc)
        logger.info("%s %s created", self.noun, entity_id)
        return self.public(doc)

    def apply_update(self, entity_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        doc = self.collection.find_one_and_update(
            {self.id_field: entity_id},
            {"$set": {**changes, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFoundError(f"{self.noun} not found")
        logger.info("%s %s updated (%s)", self.noun, entity_id, ", ".join(sorted(changes)) or "timestamp")
        return self.public(doc)

    def ensure_unique(self, field: str, value: Any, message: str, exclude_id: Optional[str] = None) -> None:
        # the unique index still rejects a concurrent duplicate that slips past this check
        query: Dict[str, Any] = {field: value}
        if exclude_id:
            query[self.id_field] = {"$ne": exclude_id}
        if self.collection.count_documents(query, limit=1):
            raise ConflictError(message)

    def require_changes(self, changes: Dict[str, Any]) -> None:
        if not changes:
            raise ClientInputError("No fields to update")

    def delete(self, entity_id: str) -> Dict[str, Any]:
        doc = self.collection.find_one_and_delete({self.id_field: entity_id}) if entity_id else None
        if doc is None:
            raise NotFoundError(f"{self.noun} not found")
        logger.info("%s %s deleted", self.noun, entity_id)
        return self.public(doc)
