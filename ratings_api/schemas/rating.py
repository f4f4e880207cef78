"""
Rating Pydantic schemas for API request/response models.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ratings_api.core.periods import Period


class RatingCreate(BaseModel):
    """A rating as submitted for one (group, restaurant, user)."""
    group_id: str
    restaurant_id: str
    user_id: str
    username: str
    score: float = Field(ge=0, le=10)


class RatingSubmit(BaseModel):
    """Request body for submitting a rating; the rater comes from the token."""
    group_id: str
    restaurant_id: str
    score: float = Field(ge=0, le=10)


class RatingResponse(BaseModel):
    id: int
    group_id: str
    restaurant_id: str
    user_id: str
    username: str
    score: float
    created_at: datetime
    updated_at: datetime
    period: Period
    color: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AverageRatingPerPeriodResponse(BaseModel):
    restaurant_id: str
    year: int
    period: Period
    average_score: float
    rating_count: int

    model_config = ConfigDict(from_attributes=True)


class RatingsOverviewResponse(BaseModel):
    """Current-quarter ratings plus per-quarter averages of earlier quarters."""
    current_period_ratings: List[RatingResponse]
    historical_ratings: List[AverageRatingPerPeriodResponse]

    model_config = ConfigDict(from_attributes=True)


class RatingSubmitResponse(BaseModel):
    rating: RatingResponse
    is_complete: bool


class RatingCompletionResponse(BaseModel):
    restaurant_id: str
    group_id: str
    year: int
    period: Period
    is_complete: bool


class DeleteResponse(BaseModel):
    deleted: int
