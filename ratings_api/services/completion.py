"""
Rating round completion.

A restaurant's round in a group is complete once as many distinct users have
rated it in the current quarter as the group has members.
"""
import logging
from typing import Optional

from sqlalchemy import select, func, distinct
from sqlalchemy.orm import Session

from ratings_api.core.periods import PeriodInfo, current_period_info
from ratings_api.db.session import atomic
from ratings_api.models.group import Group, GroupMembership
from ratings_api.models.rating import Rating

logger = logging.getLogger(__name__)


class CompletionDetector:
    """Compares group size against the number of current-quarter raters."""

    def __init__(self, db: Session):
        self.db = db

    def lock_group(self, group_id: str) -> None:
        self.db.execute(select(Group.id).where(Group.id == group_id).with_for_update()).scalar_one_or_none()

    def member_count(self, group_id: str) -> int:
        stmt = select(func.count(GroupMembership.id)).where(GroupMembership.group_id == group_id)
        return self.db.execute(stmt).scalar_one()

    def rater_count(self, restaurant_id: str, group_id: str, period_info: PeriodInfo) -> int:
        lower, upper = period_info.bounds()
        stmt = select(func.count(distinct(Rating.user_id))).where(
            Rating.group_id == group_id,
            Rating.restaurant_id == restaurant_id,
            Rating.created_at >= lower,
            Rating.created_at < upper,
        )
        return self.db.execute(stmt).scalar_one()

    def is_complete(
        self,
        restaurant_id: str,
        group_id: str,
        period_info: Optional[PeriodInfo] = None,
    ) -> bool:
        """
        Whether every member has rated the restaurant this quarter.

        This compares counts, not identities: a member who rated and then left
        the group still counts as a rater while no longer counting as a member,
        so a replacement member's rating can complete the round early. Both
        counts are read in the same transaction.
        """
        period_info = period_info or current_period_info()

        with atomic(self.db):
            return self.evaluate(restaurant_id, group_id, period_info)

    def evaluate(self, restaurant_id: str, group_id: str, period_info: PeriodInfo) -> bool:
        """
        Completion read inside the caller's open transaction; commits nothing.

        Locks the group row first, so membership changes (which take the same
        lock) wait until the caller's transaction ends.
        """
        self.lock_group(group_id)
        members = self.member_count(group_id)
        raters = self.rater_count(restaurant_id, group_id, period_info)

        complete = members > 0 and members == raters
        logger.debug(
            f"Completion {restaurant_id}/{group_id} {period_info.period.value} {period_info.year}: "
            f"{raters}/{members} raters, complete={complete}"
        )
        return complete
