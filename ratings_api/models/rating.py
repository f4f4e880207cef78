from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from ratings_api.core.periods import period_of, utcnow
from ratings_api.db.base import Base


class Rating(Base):
    """
    A member's score for a restaurant within a group.

    At most one rating exists per (group, restaurant, user) within a quarter;
    re-rating in the same quarter updates the row in place. The period is not
    stored: it is derived from ``updated_at``, so editing a rating after a
    quarter boundary moves it into the new quarter.

    Ratings outlive the rater's membership in the group.
    """
    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    restaurant_id = Column(String(100), ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    username = Column(String(100), nullable=False)  # Snapshot at rating time
    score = Column(Float, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User")
    restaurant = relationship("Restaurant")

    __table_args__ = (
        Index("idx_ratings_group_restaurant_created", "group_id", "restaurant_id", "created_at"),
        Index("idx_ratings_user", "user_id"),
    )

    @property
    def period(self):
        return period_of(self.updated_at)

    @property
    def year(self) -> int:
        return self.updated_at.year

    @property
    def color(self):
        return self.user.color if self.user is not None else None

    def __repr__(self):
        return f"<Rating group={self.group_id} restaurant={self.restaurant_id} user={self.user_id} score={self.score}>"
