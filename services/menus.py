from datetime import datetime, timezone
from typing import Any, Dict, Optional

from database import MENUS
from errors import ClientInputError
from schemas import MenuCreate, MenuUpdate

from .base import EntityService, changed_fields


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def check_window(start: Optional[datetime], end: Optional[datetime]) -> None:
    start, end = as_utc(start), as_utc(end)
    if start is not None and end is not None and start >= end:
        raise ClientInputError("start_date must be before end_date")


def menu_key(name: str) -> str:
    return name.lower()


class MenuService(EntityService):
    collection_name = MENUS
    label = "menus"
    noun = "Menu"

    def create(self, body: MenuCreate) -> Dict[str, Any]:
        check_window(body.start_date, body.end_date)
        unique_id = menu_key(body.name)
        self.ensure_unique("unique_id", unique_id, "Menu with this name already exists")
        return self.insert({
            "name": body.name,
            "category": body.category,
            "start_date": as_utc(body.start_date),
            "end_date": as_utc(body.end_date),
            "unique_id": unique_id,
        })

    def update(self, menu_id: str, body: MenuUpdate) -> Dict[str, Any]:
        existing = self.get_or_404(menu_id)
        changes = changed_fields(body.model_dump())
        self.require_changes(changes)

        for field in ("start_date", "end_date"):
            if field in changes:
                changes[field] = as_utc(changes[field])
        check_window(
            changes.get("start_date", existing.get("start_date")),
            changes.get("end_date", existing.get("end_date")),
        )

        if "name" in changes:
            if len(changes["name"]) < 2:
                raise ClientInputError("name must be at least 2 characters")
            unique_id = menu_key(changes["name"])
            if unique_id != existing.get("unique_id"):
                self.ensure_unique("unique_id", unique_id, "Another menu with this name already exists", exclude_id=menu_id)
            changes["unique_id"] = unique_id
        if "category" in changes and len(changes["category"]) < 2:
            raise ClientInputError("category must be at least 2 characters")

        return self.apply_update(menu_id, changes)
