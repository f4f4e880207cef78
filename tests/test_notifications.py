"""
Tests for the completion notification ledger.
"""
from datetime import datetime

from sqlalchemy import select, func

from ratings_api.core.periods import Period, PeriodInfo, current_period_info
from ratings_api.models.notification import RatingNotification
from ratings_api.services.notifications import NotificationLedger


def ledger_rows(db) -> int:
    return db.execute(select(func.count(RatingNotification.id))).scalar_one()


class TestLedger:

    def test_record_then_already_sent(self, db, group, pizzeria):
        ledger = NotificationLedger(db)
        assert not ledger.notification_already_sent("pizzeria", group.id)

        assert ledger.record_notification("pizzeria", group.id)
        assert ledger.notification_already_sent("pizzeria", group.id)

    def test_claim_only_once_per_quarter(self, db, group, pizzeria):
        ledger = NotificationLedger(db)

        assert ledger.claim("pizzeria", group.id)
        assert not ledger.claim("pizzeria", group.id)
        assert ledger_rows(db) == 1

    def test_duplicate_insert_rejected_by_store(self, db, group, pizzeria):
        """A racing second insert for the same quarter loses without raising."""
        ledger = NotificationLedger(db)

        assert ledger.record_notification("pizzeria", group.id)
        assert not ledger.record_notification("pizzeria", group.id)
        assert ledger_rows(db) == 1

    def test_row_in_previous_quarter_does_not_block(self, db, group, pizzeria):
        db.add(RatingNotification(
            restaurant_id="pizzeria",
            group_id=group.id,
            notified_at=datetime(2024, 2, 10, 9, 0),
            year=2024,
            period=Period.Q1,
        ))
        db.commit()

        ledger = NotificationLedger(db)
        assert ledger.notification_already_sent(
            "pizzeria", group.id, PeriodInfo.for_period(Period.Q1, 2024)
        )
        assert not ledger.notification_already_sent("pizzeria", group.id)
        assert ledger.claim("pizzeria", group.id)

    def test_scoped_per_group(self, db, alice, group, pizzeria):
        from conftest import make_group

        other = make_group(db, alice, name="Other")
        ledger = NotificationLedger(db)

        assert ledger.claim("pizzeria", group.id)
        assert ledger.claim("pizzeria", other.id)

    def test_recorded_bucket_matches_current_period(self, db, group, pizzeria):
        NotificationLedger(db).record_notification("pizzeria", group.id)

        row = db.execute(select(RatingNotification)).scalar_one()
        info = current_period_info()
        assert (row.year, row.period) == (info.year, info.period)
