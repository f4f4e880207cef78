"""
Restaurants and their menus.
"""
from sqlalchemy import Column, String, Integer, Float, ForeignKey, Table
from sqlalchemy.orm import relationship

from ratings_api.db.base import Base


restaurant_menu_items = Table(
    "restaurant_menu_items",
    Base.metadata,
    Column("restaurant_id", String(100), ForeignKey("restaurants.id", ondelete="CASCADE"), primary_key=True),
    Column("menu_item_id", Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), primary_key=True),
)


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(String(100), primary_key=True)
    cuisine = Column(String(100), nullable=False)

    menu = relationship(
        "MenuItem",
        secondary=restaurant_menu_items,
        back_populates="restaurants",
        order_by="MenuItem.id",
    )

    def __repr__(self):
        return f"<Restaurant {self.id}>"


class MenuItem(Base):
    """A dish on a restaurant's menu, attached through the join table."""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)

    restaurants = relationship("Restaurant", secondary=restaurant_menu_items, back_populates="menu")

    @property
    def restaurant_id(self):
        return self.restaurants[0].id if self.restaurants else None
