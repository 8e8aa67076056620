import logging
from typing import Any, Dict

from pymongo import ReturnDocument

from database import TABLES, utcnow
from errors import ConflictError
from schemas import TableCreate, TableStatus, TableUpdate

from .base import EntityService, Pagination, Page, changed_fields

logger = logging.getLogger(__name__)

DUPLICATE_NUMBER = "Table number already exists"


class TableService(EntityService):
    collection_name = TABLES
    label = "tables"
    noun = "Table"

    def create(self, body: TableCreate) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "number_of_guests": body.number_of_guests,
            "status": TableStatus.NOT_RESERVED.value,
        }
        # left out entirely when unassigned so the sparse unique index skips it
        if body.table_number is not None:
            self.ensure_unique("table_number", body.table_number, DUPLICATE_NUMBER)
            fields["table_number"] = body.table_number
        return self.insert(fields)

    def update(self, table_id: str, body: TableUpdate) -> Dict[str, Any]:
        existing = self.get_or_404(table_id)
        changes = changed_fields(body.model_dump())
        self.require_changes(changes)
        if "table_number" in changes and changes["table_number"] != existing.get("table_number"):
            self.ensure_unique("table_number", changes["table_number"], DUPLICATE_NUMBER, exclude_id=table_id)
        return self.apply_update(table_id, changes)

    def _transition(self, table_id: str, target: TableStatus) -> Dict[str, Any]:
        # conditional update so two concurrent reservations cannot both succeed
        doc = self.collection.find_one_and_update(
            {self.id_field: table_id, "status": {"$ne": target.value}},
            {"$set": {"status": target.value, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            self.get_or_404(table_id)
            raise ConflictError(f"Table is already {target.value.lower()}")
        logger.info("Table %s is now %s", table_id, target.value)
        return self.public(doc)

    def reserve(self, table_id: str) -> Dict[str, Any]:
        return self._transition(table_id, TableStatus.RESERVED)

    def unreserve(self, table_id: str) -> Dict[str, Any]:
        return self._transition(table_id, TableStatus.NOT_RESERVED)

    def list_by_status(self, status: TableStatus, pagination: Pagination) -> Page:
        return self.list(pagination, {"status": status.value})

    def is_reserved(self, table: Dict[str, Any]) -> bool:
        return table.get("status") == TableStatus.RESERVED.value
