"""
Submit-rating use case: write, check completion, claim the notification.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ratings_api.core.errors import NotFound, StoreError
from ratings_api.core.periods import PeriodInfo, current_period_info
from ratings_api.db.session import atomic
from ratings_api.models.rating import Rating
from ratings_api.schemas.rating import RatingCreate
from ratings_api.services.completion import CompletionDetector
from ratings_api.services.notifications import NotificationLedger, is_duplicate_notification
from ratings_api.services.ratings import RatingService

logger = logging.getLogger(__name__)


def completion_message(restaurant_id: str) -> str:
    return f"Everyone has rated {restaurant_id}!"


@dataclass
class SubmissionResult:
    rating: Rating
    is_complete: bool
    # True only for the one request that recorded this quarter's ledger row
    notify: bool


class RatingSubmissionService:

    def __init__(self, db: Session):
        self.db = db
        self.ratings = RatingService(db)
        self.completion = CompletionDetector(db)
        self.ledger = NotificationLedger(db)

    def submit(
        self,
        new_rating: RatingCreate,
        user_id: str,
        period_info: Optional[PeriodInfo] = None,
    ) -> SubmissionResult:
        """
        Create or update the user's rating, then claim the completion
        notification if this write completed the round.

        The period is resolved once and shared by every step. The completion
        check and the ledger claim run in one transaction, so a round that a
        concurrent membership change made incomplete is never claimed. When
        ``notify`` is set the ledger row is already committed; the caller
        dispatches the push after returning, and a failed dispatch leaves the
        row in place.
        """
        period_info = period_info or current_period_info()

        if self.ratings.is_rated_by_user(new_rating.restaurant_id, user_id, new_rating.group_id):
            try:
                rating = self.ratings.update_rating(new_rating, user_id, period_info)
            except NotFound:
                # Only rated in earlier quarters: this quarter starts a new row.
                rating = self.ratings.create_rating(new_rating, period_info)
        else:
            rating = self.ratings.create_rating(new_rating, period_info)

        restaurant_id, group_id = new_rating.restaurant_id, new_rating.group_id
        try:
            with atomic(self.db):
                is_complete = self.completion.evaluate(restaurant_id, group_id, period_info)
                notify = is_complete and self.ledger.stage_claim(restaurant_id, group_id, period_info)
        except StoreError as e:
            if not is_duplicate_notification(e):
                raise
            # A concurrent request committed this quarter's ledger row first.
            is_complete, notify = True, False

        if notify:
            logger.info(
                f"Rating round for {restaurant_id} in group {group_id} "
                f"complete for {period_info.period.value} {period_info.year}"
            )

        return SubmissionResult(rating=rating, is_complete=is_complete, notify=notify)
