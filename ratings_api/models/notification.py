"""
Completion notification ledger and web push subscriptions.
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from ratings_api.core.periods import Period, utcnow
from ratings_api.db.base import Base


class RatingNotification(Base):
    """
    One row per completion notification sent for (restaurant, group) within
    the quarter containing ``notified_at``.

    ``year``/``period`` duplicate the bucket of ``notified_at`` so the store can
    reject a second row for the same quarter when two completing requests race.
    """
    __tablename__ = "rating_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurant_id = Column(String(100), ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False)
    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    notified_at = Column(DateTime, nullable=False, default=utcnow)
    year = Column(Integer, nullable=False)
    period = Column(Enum(Period, name="rating_period"), nullable=False)

    __table_args__ = (
        UniqueConstraint("restaurant_id", "group_id", "year", "period", name="uq_rating_notification_period"),
        Index("idx_rating_notifications_lookup", "restaurant_id", "group_id", "notified_at"),
    )


class PushSubscription(Base):
    """Browser push endpoint. A browser may resubscribe at the same endpoint with new keys."""
    __tablename__ = "push_subscriptions"

    endpoint = Column(String(768), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    p256dh = Column(String(255), nullable=False)
    auth = Column(String(255), nullable=False)

    user = relationship("User", back_populates="push_subscriptions")

    def as_subscription_info(self) -> dict:
        """Shape expected by the push transport."""
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
