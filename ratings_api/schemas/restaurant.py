"""
Restaurant and menu Pydantic schemas.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MenuItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    price: float = Field(ge=0)


class MenuItemResponse(BaseModel):
    id: int
    name: str
    price: float
    restaurant_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RestaurantCreate(BaseModel):
    id: str = Field(min_length=1, max_length=100)
    cuisine: str = Field(min_length=1, max_length=100)
    menu: List[MenuItemCreate] = []


class RestaurantUpdate(BaseModel):
    cuisine: str = Field(min_length=1, max_length=100)


class RestaurantResponse(BaseModel):
    id: str
    cuisine: str
    menu: List[MenuItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class RestaurantAverageResponse(BaseModel):
    """A restaurant with its current-quarter average in one group."""
    restaurant: RestaurantResponse
    average_score: float
    rating_count: int
    is_complete: bool

    model_config = ConfigDict(from_attributes=True)
