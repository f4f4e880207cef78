"""
Restaurant ranking by current-quarter average rating within a group.
"""
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select, func, distinct
from sqlalchemy.orm import Session, selectinload

from ratings_api.core.errors import NotFound
from ratings_api.core.periods import PeriodInfo, current_period_info
from ratings_api.models.group import Group
from ratings_api.models.rating import Rating
from ratings_api.models.restaurant import Restaurant
from ratings_api.services.completion import CompletionDetector


@dataclass
class RestaurantAverage:
    restaurant: Restaurant
    average_score: float
    rating_count: int
    is_complete: bool


class AggregationService:

    def __init__(self, db: Session):
        self.db = db

    def restaurants_with_avg_rating(
        self,
        group_id: str,
        period_info: Optional[PeriodInfo] = None,
    ) -> List[RestaurantAverage]:
        """
        Every restaurant with its current-quarter average in the group.

        Incomplete rounds report their partial average. Ordering: restaurants
        nobody has rated this quarter come last (average 0.0), the rest by
        descending average; ties by restaurant id ascending.
        """
        period_info = period_info or current_period_info()
        if self.db.get(Group, group_id) is None:
            raise NotFound(f"Group {group_id} not found")

        lower, upper = period_info.bounds()
        stmt = (
            select(
                Rating.restaurant_id,
                func.avg(Rating.score).label("average_score"),
                func.count(Rating.id).label("rating_count"),
                func.count(distinct(Rating.user_id)).label("rater_count"),
            )
            .where(
                Rating.group_id == group_id,
                Rating.created_at >= lower,
                Rating.created_at < upper,
            )
            .group_by(Rating.restaurant_id)
        )
        stats = {row.restaurant_id: row for row in self.db.execute(stmt).all()}

        member_count = CompletionDetector(self.db).member_count(group_id)
        restaurants = self.db.execute(
            select(Restaurant).options(selectinload(Restaurant.menu))
        ).scalars().all()

        results = []
        for restaurant in restaurants:
            row = stats.get(restaurant.id)
            if row is None:
                results.append(RestaurantAverage(restaurant, 0.0, 0, False))
                continue
            results.append(
                RestaurantAverage(
                    restaurant=restaurant,
                    average_score=float(row.average_score),
                    rating_count=row.rating_count,
                    is_complete=member_count > 0 and row.rater_count == member_count,
                )
            )

        results.sort(key=lambda r: (r.rating_count == 0, -r.average_score, r.restaurant.id))
        return results
