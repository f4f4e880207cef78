"""
Rating store: CRUD and period-scoped queries over ratings.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, delete
from sqlalchemy.orm import Session, selectinload

from ratings_api.core.errors import NotAMember, NotFound
from ratings_api.core.periods import Period, PeriodInfo, current_period_info, utcnow
from ratings_api.db.session import atomic
from ratings_api.models.group import GroupMembership
from ratings_api.models.rating import Rating
from ratings_api.schemas.rating import RatingCreate


@dataclass
class AverageRatingPerPeriod:
    """Average score of one restaurant over one past quarter. Computed on read."""
    restaurant_id: str
    year: int
    period: Period
    average_score: float
    rating_count: int


@dataclass
class RatingsOverview:
    """Current-quarter detail plus per-quarter history."""
    current_period_ratings: List[Rating] = field(default_factory=list)
    historical_ratings: List[AverageRatingPerPeriod] = field(default_factory=list)


class RatingService:
    """
    Service for reading and writing ratings.

    Writes re-validate group membership inside the same transaction as the
    write itself; reads that are "current" are always scoped to the
    ``PeriodInfo`` handed in by the caller.
    """

    def __init__(self, db: Session):
        self.db = db

    def _require_membership(self, user_id: str, group_id: str) -> None:
        # Row lock on the membership so a concurrent removal waits for this
        # transaction to finish.
        stmt = select(GroupMembership.id).where(
            GroupMembership.user_id == user_id,
            GroupMembership.group_id == group_id,
        ).with_for_update()

        if self.db.execute(stmt).scalar_one_or_none() is None:
            raise NotAMember(f"User {user_id} is not a member of group {group_id}")

    def create_rating(self, new_rating: RatingCreate, period_info: Optional[PeriodInfo] = None) -> Rating:
        """
        Insert a rating stamped now, pinned into ``period_info``.

        Callers are responsible for checking ``is_rated_by_user`` first and
        routing to ``update_rating`` instead; no duplicate check happens here.

        Raises:
            NotAMember: the user holds no membership in the group
        """
        period_info = period_info or current_period_info()
        now = period_info.clamp(utcnow())
        rating = Rating(
            group_id=new_rating.group_id,
            restaurant_id=new_rating.restaurant_id,
            user_id=new_rating.user_id,
            username=new_rating.username,
            score=new_rating.score,
            created_at=now,
            updated_at=now,
        )

        with atomic(self.db):
            self._require_membership(new_rating.user_id, new_rating.group_id)
            self.db.add(rating)

        self.db.refresh(rating)
        return rating

    def update_rating(
        self,
        new_rating: RatingCreate,
        user_id: str,
        period_info: Optional[PeriodInfo] = None,
    ) -> Rating:
        """
        Update score and username of the user's rating in the current quarter.

        Only the row created inside ``period_info`` is touched; ratings from
        earlier quarters are history and never modified.

        Raises:
            NotAMember: the user holds no membership in the group
            NotFound: the user has no rating for this restaurant this quarter
        """
        period_info = period_info or current_period_info()
        lower, upper = period_info.bounds()

        with atomic(self.db):
            self._require_membership(user_id, new_rating.group_id)

            stmt = select(Rating).where(
                Rating.group_id == new_rating.group_id,
                Rating.user_id == user_id,
                Rating.restaurant_id == new_rating.restaurant_id,
                Rating.created_at >= lower,
                Rating.created_at < upper,
            ).with_for_update()
            rating = self.db.execute(stmt).scalars().first()

            if rating is None:
                raise NotFound(
                    f"No {period_info.period.value} {period_info.year} rating of "
                    f"{new_rating.restaurant_id} by user {user_id}"
                )

            rating.score = new_rating.score
            rating.username = new_rating.username
            rating.updated_at = period_info.clamp(utcnow())

        self.db.refresh(rating)
        return rating

    def get_rating(
        self,
        user_id: str,
        restaurant_id: str,
        group_id: str,
        period_info: Optional[PeriodInfo] = None,
    ) -> Rating:
        """Get the user's current-quarter rating of a restaurant."""
        period_info = period_info or current_period_info()
        lower, upper = period_info.bounds()

        stmt = select(Rating).options(selectinload(Rating.user)).where(
            Rating.user_id == user_id,
            Rating.restaurant_id == restaurant_id,
            Rating.group_id == group_id,
            Rating.created_at >= lower,
            Rating.created_at < upper,
        )
        rating = self.db.execute(stmt).scalars().first()
        if rating is None:
            raise NotFound("Rating not found")
        return rating

    def get_ratings_by_user(
        self,
        user_id: str,
        period_info: Optional[PeriodInfo] = None,
    ) -> RatingsOverview:
        """All of a user's ratings across every group."""
        return self._overview([Rating.user_id == user_id], period_info)

    def get_ratings_by_user_and_group(
        self,
        user_id: str,
        group_id: str,
        period_info: Optional[PeriodInfo] = None,
    ) -> RatingsOverview:
        return self._overview(
            [Rating.user_id == user_id, Rating.group_id == group_id],
            period_info,
        )

    def get_ratings_by_restaurant(
        self,
        group_id: str,
        restaurant_id: str,
        period_info: Optional[PeriodInfo] = None,
    ) -> RatingsOverview:
        """Ratings of one restaurant by every rater in the group."""
        return self._overview(
            [Rating.group_id == group_id, Rating.restaurant_id == restaurant_id],
            period_info,
        )

    def get_ratings_by_restaurant_per_period(
        self,
        group_id: str,
        restaurant_id: str,
        year: int,
        period: Period,
    ) -> List[Rating]:
        """Raw ratings created inside the given quarter, oldest first."""
        lower, upper = PeriodInfo.for_period(period, year).bounds()

        stmt = (
            select(Rating)
            .options(selectinload(Rating.user))
            .where(
                Rating.group_id == group_id,
                Rating.restaurant_id == restaurant_id,
                Rating.created_at >= lower,
                Rating.created_at < upper,
            )
            .order_by(Rating.created_at, Rating.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def is_rated_by_user(self, restaurant_id: str, user_id: str, group_id: str) -> bool:
        """
        Whether the user has ever rated the restaurant in the group.

        Not scoped to a quarter: a rating from any earlier quarter counts.
        """
        stmt = select(Rating.id).where(
            Rating.restaurant_id == restaurant_id,
            Rating.user_id == user_id,
            Rating.group_id == group_id,
        ).limit(1)
        return self.db.execute(stmt).scalar_one_or_none() is not None

    def delete_rating(self, rating_id: int, user_id: str, group_id: str) -> int:
        """Delete one of the user's ratings. Returns the number of rows removed."""
        with atomic(self.db):
            result = self.db.execute(
                delete(Rating).where(
                    Rating.id == rating_id,
                    Rating.user_id == user_id,
                    Rating.group_id == group_id,
                )
            )
        return result.rowcount

    def _overview(self, filters: list, period_info: Optional[PeriodInfo]) -> RatingsOverview:
        period_info = period_info or current_period_info()

        stmt = (
            select(Rating)
            .options(selectinload(Rating.user))
            .where(*filters)
            .order_by(Rating.created_at, Rating.id)
        )
        ratings = self.db.execute(stmt).scalars().all()

        overview = RatingsOverview()
        history: List[Rating] = []
        for rating in ratings:
            if period_info.contains(rating.created_at):
                overview.current_period_ratings.append(rating)
            else:
                history.append(rating)

        overview.historical_ratings = self._average_per_period(history)
        return overview

    def _average_per_period(self, ratings: List[Rating]) -> List[AverageRatingPerPeriod]:
        """Group ratings by (restaurant, year, quarter) and average their scores."""
        buckets: Dict[Tuple[str, int, Period], List[float]] = defaultdict(list)
        for rating in ratings:
            buckets[(rating.restaurant_id, rating.year, rating.period)].append(rating.score)

        averages = [
            AverageRatingPerPeriod(
                restaurant_id=restaurant_id,
                year=year,
                period=period,
                average_score=sum(scores) / len(scores),
                rating_count=len(scores),
            )
            for (restaurant_id, year, period), scores in buckets.items()
        ]
        averages.sort(key=lambda a: (a.year, a.period.ordinal, a.restaurant_id))
        return averages
