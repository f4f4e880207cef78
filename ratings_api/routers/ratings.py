"""
A user's ratings: submit, update, read and delete.
"""
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ratings_api.core.deps import get_dispatcher, require_self
from ratings_api.core.errors import NotFound
from ratings_api.core.periods import current_period_info
from ratings_api.db.session import get_db
from ratings_api.models.user import User
from ratings_api.schemas.rating import (
    DeleteResponse,
    RatingCreate,
    RatingResponse,
    RatingsOverviewResponse,
    RatingSubmit,
    RatingSubmitResponse,
)
from ratings_api.services.dispatcher import NotificationDispatcher
from ratings_api.services.ratings import RatingService
from ratings_api.services.submission import RatingSubmissionService, completion_message

router = APIRouter(prefix="/users/{user_id}/ratings", tags=["ratings"])


def _to_create(user: User, rating_data: RatingSubmit) -> RatingCreate:
    return RatingCreate(
        group_id=rating_data.group_id,
        restaurant_id=rating_data.restaurant_id,
        user_id=user.id,
        username=user.username,
        score=rating_data.score,
    )


@router.post("", response_model=RatingSubmitResponse)
def submit_rating(
    rating_data: RatingSubmit,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_self),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Rate a restaurant for the current quarter, creating or updating the
    caller's rating. The group is notified once the last member has rated.
    """
    result = RatingSubmissionService(db).submit(
        _to_create(current_user, rating_data), current_user.id, current_period_info()
    )

    if result.notify:
        background_tasks.add_task(
            dispatcher.dispatch, rating_data.group_id, completion_message(rating_data.restaurant_id)
        )

    return RatingSubmitResponse(
        rating=RatingResponse.model_validate(result.rating),
        is_complete=result.is_complete,
    )


@router.put("", response_model=RatingResponse)
def update_rating(
    rating_data: RatingSubmit,
    current_user: User = Depends(require_self),
    db: Session = Depends(get_db),
):
    """Change the score of the caller's current-quarter rating."""
    return RatingService(db).update_rating(
        _to_create(current_user, rating_data), current_user.id, current_period_info()
    )


@router.get("", response_model=RatingsOverviewResponse)
def get_ratings(
    group_id: Optional[str] = Query(None),
    current_user: User = Depends(require_self),
    db: Session = Depends(get_db),
):
    service = RatingService(db)
    period_info = current_period_info()
    if group_id is None:
        overview = service.get_ratings_by_user(current_user.id, period_info)
    else:
        overview = service.get_ratings_by_user_and_group(current_user.id, group_id, period_info)
    return RatingsOverviewResponse.model_validate(overview)


@router.get("/{restaurant_id}", response_model=RatingResponse)
def get_rating(
    restaurant_id: str,
    group_id: str = Query(...),
    current_user: User = Depends(require_self),
    db: Session = Depends(get_db),
):
    return RatingService(db).get_rating(current_user.id, restaurant_id, group_id, current_period_info())


@router.delete("/{rating_id}", response_model=DeleteResponse)
def delete_rating(
    rating_id: int,
    group_id: str = Query(...),
    current_user: User = Depends(require_self),
    db: Session = Depends(get_db),
):
    deleted = RatingService(db).delete_rating(rating_id, current_user.id, group_id)
    if deleted == 0:
        raise NotFound(f"Rating {rating_id} not found")
    return DeleteResponse(deleted=deleted)
