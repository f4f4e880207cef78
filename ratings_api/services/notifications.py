"""
Completion notification dedup ledger.

Holds at most one row per (restaurant, group, quarter). A completion
notification may only be dispatched after its ledger row is committed, and
the row is never rolled back when delivery later fails: once recorded, the
quarter's notification counts as sent.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ratings_api.core.errors import StoreError
from ratings_api.core.periods import PeriodInfo, current_period_info, utcnow
from ratings_api.db.session import atomic
from ratings_api.models.notification import RatingNotification

logger = logging.getLogger(__name__)


class NotificationLedger:

    def __init__(self, db: Session):
        self.db = db

    def notification_already_sent(
        self,
        restaurant_id: str,
        group_id: str,
        period_info: Optional[PeriodInfo] = None,
    ) -> bool:
        """Whether a ledger row exists with ``notified_at`` inside the quarter."""
        period_info = period_info or current_period_info()
        lower, upper = period_info.bounds()

        stmt = select(RatingNotification.id).where(
            RatingNotification.restaurant_id == restaurant_id,
            RatingNotification.group_id == group_id,
            RatingNotification.notified_at >= lower,
            RatingNotification.notified_at < upper,
        ).limit(1)
        return self.db.execute(stmt).scalar_one_or_none() is not None

    def record_notification(
        self,
        restaurant_id: str,
        group_id: str,
        period_info: Optional[PeriodInfo] = None,
    ) -> bool:
        """
        Insert and commit a ledger row stamped now.

        Returns False if another request recorded the same quarter first (the
        unique bucket constraint rejected the insert).
        """
        period_info = period_info or current_period_info()

        try:
            with atomic(self.db):
                self.db.add(self._entry(restaurant_id, group_id, period_info))
        except StoreError as e:
            if is_duplicate_notification(e):
                self._log_lost_race(restaurant_id, group_id, period_info)
                return False
            raise

        return True

    def stage_claim(self, restaurant_id: str, group_id: str, period_info: PeriodInfo) -> bool:
        """
        Check-then-insert inside the caller's open transaction.

        The row is flushed but not committed; it becomes durable together with
        whatever else the caller's transaction read or wrote. A concurrent
        insert for the same quarter surfaces as ``IntegrityError`` on flush.
        """
        if self.notification_already_sent(restaurant_id, group_id, period_info):
            logger.debug(f"Notification for {restaurant_id}/{group_id} already sent this period")
            return False

        self.db.add(self._entry(restaurant_id, group_id, period_info))
        self.db.flush()
        return True

    def claim(self, restaurant_id: str, group_id: str, period_info: Optional[PeriodInfo] = None) -> bool:
        """
        Check-then-record as one committed unit. True means the caller owns
        this quarter's dispatch.
        """
        period_info = period_info or current_period_info()

        try:
            with atomic(self.db):
                return self.stage_claim(restaurant_id, group_id, period_info)
        except StoreError as e:
            if is_duplicate_notification(e):
                self._log_lost_race(restaurant_id, group_id, period_info)
                return False
            raise

    @staticmethod
    def _entry(restaurant_id: str, group_id: str, period_info: PeriodInfo) -> RatingNotification:
        return RatingNotification(
            restaurant_id=restaurant_id,
            group_id=group_id,
            notified_at=period_info.clamp(utcnow()),
            year=period_info.year,
            period=period_info.period,
        )

    @staticmethod
    def _log_lost_race(restaurant_id: str, group_id: str, period_info: PeriodInfo) -> None:
        logger.info(
            f"Notification for {restaurant_id}/{group_id} "
            f"{period_info.period.value} {period_info.year} already recorded by a concurrent request"
        )


def is_duplicate_notification(error: StoreError) -> bool:
    """Whether a failed write was the ledger's unique quarter bucket rejecting a second row."""
    return isinstance(error.__cause__, IntegrityError)
