"""
Restaurants, menus and group-scoped restaurant ratings.
"""
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ratings_api.core.deps import get_current_user
from ratings_api.core.errors import NotAMember
from ratings_api.core.periods import Period, current_period_info
from ratings_api.db.session import get_db
from ratings_api.models.user import User
from ratings_api.schemas.rating import RatingCompletionResponse, RatingResponse, RatingsOverviewResponse
from ratings_api.schemas.restaurant import (
    MenuItemCreate,
    MenuItemResponse,
    RestaurantAverageResponse,
    RestaurantCreate,
    RestaurantResponse,
    RestaurantUpdate,
)
from ratings_api.services.aggregation import AggregationService
from ratings_api.services.completion import CompletionDetector
from ratings_api.services.groups import GroupService
from ratings_api.services.ratings import RatingService
from ratings_api.services.restaurants import RestaurantService

router = APIRouter(tags=["restaurants"])


def _require_member(db: Session, user: User, group_id: str) -> None:
    if not GroupService(db).is_member(user.id, group_id):
        raise NotAMember(f"User {user.id} is not a member of group {group_id}")


@router.post("/restaurants", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
def create_restaurant(
    restaurant_data: RestaurantCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return RestaurantService(db).create_restaurant(
        restaurant_data.id, restaurant_data.cuisine, restaurant_data.menu
    )


@router.get("/restaurants", response_model=List[RestaurantResponse])
def list_restaurants(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return RestaurantService(db).get_restaurants()


@router.get("/restaurants_with_avg_rating", response_model=List[RestaurantAverageResponse])
def restaurants_with_avg_rating(
    group_id: str = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All restaurants ranked by their current-quarter average in the group."""
    _require_member(db, current_user, group_id)
    averages = AggregationService(db).restaurants_with_avg_rating(group_id, current_period_info())
    return [RestaurantAverageResponse.model_validate(average) for average in averages]


@router.get("/restaurants/{restaurant_id}", response_model=RestaurantResponse)
def get_restaurant(
    restaurant_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return RestaurantService(db).get_restaurant(restaurant_id)


@router.put("/restaurants/{restaurant_id}", response_model=RestaurantResponse)
def update_restaurant(
    restaurant_id: str,
    restaurant_data: RestaurantUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return RestaurantService(db).update_restaurant(restaurant_id, restaurant_data.cuisine)


@router.delete("/restaurants/{restaurant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_restaurant(
    restaurant_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    RestaurantService(db).delete_restaurant(restaurant_id)


@router.get("/restaurants/{restaurant_id}/menu", response_model=List[MenuItemResponse])
def get_menu(
    restaurant_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return RestaurantService(db).get_restaurant(restaurant_id).menu


@router.post(
    "/restaurants/{restaurant_id}/menu",
    response_model=MenuItemResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_menu_item(
    restaurant_id: str,
    item: MenuItemCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return RestaurantService(db).create_menu_item(restaurant_id, item)


@router.delete("/restaurants/{restaurant_id}/menu/{menu_item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_item(
    restaurant_id: str,
    menu_item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    RestaurantService(db).delete_menu_item(restaurant_id, menu_item_id)


@router.get("/restaurants/{restaurant_id}/ratings", response_model=RatingsOverviewResponse)
def get_restaurant_ratings(
    restaurant_id: str,
    group_id: str = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current-quarter ratings by every member plus averages of earlier quarters."""
    _require_member(db, current_user, group_id)
    overview = RatingService(db).get_ratings_by_restaurant(group_id, restaurant_id, current_period_info())
    return RatingsOverviewResponse.model_validate(overview)


@router.get("/restaurants/{restaurant_id}/ratings/{year}/{period}", response_model=List[RatingResponse])
def get_restaurant_ratings_for_period(
    restaurant_id: str,
    year: int,
    period: Period,
    group_id: str = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _require_member(db, current_user, group_id)
    return RatingService(db).get_ratings_by_restaurant_per_period(group_id, restaurant_id, year, period)


@router.get("/restaurants/{restaurant_id}/is_rating_complete", response_model=RatingCompletionResponse)
def is_rating_complete(
    restaurant_id: str,
    group_id: str = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _require_member(db, current_user, group_id)
    period_info = current_period_info()
    return RatingCompletionResponse(
        restaurant_id=restaurant_id,
        group_id=group_id,
        year=period_info.year,
        period=period_info.period,
        is_complete=CompletionDetector(db).is_complete(restaurant_id, group_id, period_info),
    )
