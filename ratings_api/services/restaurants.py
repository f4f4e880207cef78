"""
Restaurant and menu management.
"""
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ratings_api.core.errors import AlreadyExists, NotFound
from ratings_api.db.session import atomic
from ratings_api.models.restaurant import MenuItem, Restaurant
from ratings_api.schemas.restaurant import MenuItemCreate


class RestaurantService:

    def __init__(self, db: Session):
        self.db = db

    def create_restaurant(
        self,
        restaurant_id: str,
        cuisine: str,
        menu: Optional[Iterable[MenuItemCreate]] = None,
    ) -> Restaurant:
        """Create a restaurant and, optionally, its initial menu."""
        with atomic(self.db):
            if self.db.get(Restaurant, restaurant_id) is not None:
                raise AlreadyExists(f"Restaurant {restaurant_id} already exists")

            restaurant = Restaurant(id=restaurant_id, cuisine=cuisine)
            for item in menu or []:
                restaurant.menu.append(MenuItem(name=item.name, price=item.price))
            self.db.add(restaurant)

        self.db.refresh(restaurant)
        return restaurant

    def get_restaurants(self) -> List[Restaurant]:
        stmt = select(Restaurant).options(selectinload(Restaurant.menu)).order_by(Restaurant.id)
        return list(self.db.execute(stmt).scalars().all())

    def get_restaurant(self, restaurant_id: str) -> Restaurant:
        restaurant = self.db.get(Restaurant, restaurant_id)
        if restaurant is None:
            raise NotFound(f"Restaurant {restaurant_id} not found")
        return restaurant

    def update_restaurant(self, restaurant_id: str, cuisine: str) -> Restaurant:
        with atomic(self.db):
            restaurant = self.get_restaurant(restaurant_id)
            restaurant.cuisine = cuisine

        self.db.refresh(restaurant)
        return restaurant

    def delete_restaurant(self, restaurant_id: str) -> int:
        """Delete a restaurant together with menu items no other restaurant lists."""
        with atomic(self.db):
            restaurant = self.get_restaurant(restaurant_id)
            orphans = [item for item in restaurant.menu if len(item.restaurants) == 1]
            for item in orphans:
                self.db.delete(item)
            self.db.delete(restaurant)
        return 1

    def create_menu_item(self, restaurant_id: str, item: MenuItemCreate) -> MenuItem:
        """Insert the item and its join row in one transaction."""
        with atomic(self.db):
            restaurant = self.get_restaurant(restaurant_id)
            menu_item = MenuItem(name=item.name, price=item.price)
            restaurant.menu.append(menu_item)

        self.db.refresh(menu_item)
        return menu_item

    def delete_menu_item(self, restaurant_id: str, menu_item_id: int) -> int:
        with atomic(self.db):
            restaurant = self.get_restaurant(restaurant_id)
            menu_item = next((item for item in restaurant.menu if item.id == menu_item_id), None)
            if menu_item is None:
                raise NotFound(f"Menu item {menu_item_id} not found on {restaurant_id}")
            self.db.delete(menu_item)
        return 1
