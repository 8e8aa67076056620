from typing import Any, Dict

from pymongo.database import Database

from database import FOODS
from errors import ClientInputError
from schemas import FoodCreate, FoodUpdate

from .base import EntityService, Pagination, Page, changed_fields
from .menus import MenuService

DUPLICATE_FOOD = "Food item with the same name already exists in this menu"


def food_key(menu_id: str, name: str) -> str:
    return f"{menu_id}-{name}"


class FoodService(EntityService):
    collection_name = FOODS
    label = "foods"
    noun = "Food item"

    def __init__(self, db: Database, menus: MenuService):
        super().__init__(db)
        self.menus = menus

    def _require_menu(self, menu_id: str) -> None:
        self.menus.get_or_404(menu_id, "Menu not found")

    def create(self, body: FoodCreate) -> Dict[str, Any]:
        self._require_menu(body.menu_id)
        unique_food_id = food_key(body.menu_id, body.name)
        self.ensure_unique("unique_food_id", unique_food_id, DUPLICATE_FOOD)
        return self.insert({
            "name": body.name,
            "price": body.price,
            "food_image": body.food_image,
            "menu_id": body.menu_id,
            "unique_food_id": unique_food_id,
        })

    def update(self, food_id: str, body: FoodUpdate) -> Dict[str, Any]:
        existing = self.get_or_404(food_id)
        changes = changed_fields(body.model_dump())
        self.require_changes(changes)

        if "name" in changes and len(changes["name"]) < 2:
            raise ClientInputError("name must be at least 2 characters")
        if "menu_id" in changes and changes["menu_id"] != existing.get("menu_id"):
            self._require_menu(changes["menu_id"])

        menu_id = changes.get("menu_id", existing.get("menu_id"))
        name = changes.get("name", existing.get("name"))
        unique_food_id = food_key(menu_id, name)
        if unique_food_id != existing.get("unique_food_id"):
            self.ensure_unique("unique_food_id", unique_food_id, DUPLICATE_FOOD, exclude_id=food_id)
            changes["unique_food_id"] = unique_food_id
        return self.apply_update(food_id, changes)

    def list_by_menu(self, menu_id: str, pagination: Pagination) -> Page:
        self._require_menu(menu_id)
        return self.list(pagination, {"menu_id": menu_id})
