"""
Tests for the rating store: creation, in-period updates, scoped reads and history.
"""
import pytest
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ratings_api.core.errors import NotAMember, NotFound
from ratings_api.core.periods import Period, current_period_info
from ratings_api.models.group import GroupMembership
from ratings_api.models.rating import Rating
from ratings_api.schemas.rating import RatingCreate
from ratings_api.services.ratings import RatingService

from conftest import add_past_rating, make_restaurant


def rating_for(user, group, restaurant_id, score) -> RatingCreate:
    return RatingCreate(
        group_id=group.id,
        restaurant_id=restaurant_id,
        user_id=user.id,
        username=user.username,
        score=score,
    )


def count_ratings(db: Session, **filters) -> int:
    stmt = select(func.count()).select_from(Rating).filter_by(**filters)
    return db.execute(stmt).scalar_one()


class TestCreateRating:

    def test_create_stamps_current_period(self, db, alice, group, pizzeria):
        rating = RatingService(db).create_rating(rating_for(alice, group, "pizzeria", 8))

        assert rating.id is not None
        assert rating.score == 8
        assert rating.created_at == rating.updated_at
        assert rating.period == current_period_info().period

    def test_non_member_rejected(self, db, carol, group, pizzeria):
        with pytest.raises(NotAMember):
            RatingService(db).create_rating(rating_for(carol, group, "pizzeria", 5))

        assert count_ratings(db) == 0


class TestUpdateRating:

    def test_rerating_keeps_a_single_row(self, db, alice, group, pizzeria):
        """Repeated submissions in one quarter update the same row."""
        service = RatingService(db)
        service.create_rating(rating_for(alice, group, "pizzeria", 4))

        for score in (5, 6, 9):
            updated = service.update_rating(rating_for(alice, group, "pizzeria", score), alice.id)

        assert updated.score == 9
        assert count_ratings(db, group_id=group.id, restaurant_id="pizzeria", user_id=alice.id) == 1

    def test_update_without_current_rating_raises(self, db, alice, group, pizzeria):
        with pytest.raises(NotFound):
            RatingService(db).update_rating(rating_for(alice, group, "pizzeria", 7), alice.id)

    def test_update_does_not_touch_past_quarters(self, db, alice, group, pizzeria):
        past = add_past_rating(db, group, "pizzeria", alice, 3, 2020, Period.Q1)

        with pytest.raises(NotFound):
            RatingService(db).update_rating(rating_for(alice, group, "pizzeria", 10), alice.id)

        db.refresh(past)
        assert past.score == 3

    def test_update_after_leaving_group_rejected(self, db, alice, bob, group, pizzeria):
        service = RatingService(db)
        service.create_rating(rating_for(bob, group, "pizzeria", 6))

        membership = db.execute(
            select(GroupMembership).where(GroupMembership.user_id == bob.id)
        ).scalar_one()
        db.delete(membership)
        db.commit()

        with pytest.raises(NotAMember):
            service.update_rating(rating_for(bob, group, "pizzeria", 9), bob.id)


class TestIsRatedByUser:

    def test_counts_ratings_from_any_quarter(self, db, alice, group, pizzeria):
        service = RatingService(db)
        assert not service.is_rated_by_user("pizzeria", alice.id, group.id)

        add_past_rating(db, group, "pizzeria", alice, 7, 2021, Period.Q2)
        assert service.is_rated_by_user("pizzeria", alice.id, group.id)


class TestReads:

    def test_get_rating_current_period_only(self, db, alice, group, pizzeria):
        add_past_rating(db, group, "pizzeria", alice, 2, 2022, Period.Q4)
        service = RatingService(db)

        with pytest.raises(NotFound):
            service.get_rating(alice.id, "pizzeria", group.id)

        service.create_rating(rating_for(alice, group, "pizzeria", 8))
        assert service.get_rating(alice.id, "pizzeria", group.id).score == 8

    def test_overview_splits_current_and_history(self, db, alice, bob, group, pizzeria):
        make_restaurant(db, "sushi-bar", "Japanese")
        add_past_rating(db, group, "pizzeria", alice, 6, 2023, Period.Q1)
        add_past_rating(db, group, "pizzeria", bob, 8, 2023, Period.Q1)
        add_past_rating(db, group, "pizzeria", alice, 2, 2022, Period.Q3)
        add_past_rating(db, group, "sushi-bar", alice, 9, 2023, Period.Q1)

        service = RatingService(db)
        service.create_rating(rating_for(alice, group, "pizzeria", 10))

        overview = service.get_ratings_by_restaurant(group.id, "pizzeria")

        assert [r.score for r in overview.current_period_ratings] == [10]
        history = [(h.year, h.period, h.average_score, h.rating_count) for h in overview.historical_ratings]
        assert history == [
            (2022, Period.Q3, 2.0, 1),
            (2023, Period.Q1, 7.0, 2),
        ]

    def test_history_ordered_by_year_then_quarter(self, db, alice, group, pizzeria):
        add_past_rating(db, group, "pizzeria", alice, 5, 2023, Period.Q4)
        add_past_rating(db, group, "pizzeria", alice, 5, 2023, Period.Q2)
        add_past_rating(db, group, "pizzeria", alice, 5, 2021, Period.Q3)

        overview = RatingService(db).get_ratings_by_user(alice.id)

        assert [(h.year, h.period) for h in overview.historical_ratings] == [
            (2021, Period.Q3),
            (2023, Period.Q2),
            (2023, Period.Q4),
        ]

    def test_ratings_by_user_and_group(self, db, alice, bob, group, pizzeria):
        from conftest import make_group

        other = make_group(db, alice, name="Book Club")
        service = RatingService(db)
        service.create_rating(rating_for(alice, group, "pizzeria", 7))
        service.create_rating(rating_for(alice, other, "pizzeria", 3))

        assert len(service.get_ratings_by_user(alice.id).current_period_ratings) == 2
        scoped = service.get_ratings_by_user_and_group(alice.id, other.id)
        assert [r.score for r in scoped.current_period_ratings] == [3]

    def test_ratings_per_period(self, db, alice, bob, group, pizzeria):
        add_past_rating(db, group, "pizzeria", alice, 4, 2024, Period.Q2)
        add_past_rating(db, group, "pizzeria", bob, 6, 2024, Period.Q2)
        add_past_rating(db, group, "pizzeria", bob, 1, 2024, Period.Q3)

        ratings = RatingService(db).get_ratings_by_restaurant_per_period(group.id, "pizzeria", 2024, Period.Q2)

        assert sorted(r.score for r in ratings) == [4, 6]

    def test_color_comes_from_user(self, db, alice, group, pizzeria):
        RatingService(db).create_rating(rating_for(alice, group, "pizzeria", 8))

        rating = RatingService(db).get_rating(alice.id, "pizzeria", group.id)
        assert rating.color == "#ff0000"


class TestDeleteRating:

    def test_delete_scoped_to_owner_and_group(self, db, alice, bob, group, pizzeria):
        service = RatingService(db)
        rating = service.create_rating(rating_for(alice, group, "pizzeria", 8))

        assert service.delete_rating(rating.id, bob.id, group.id) == 0
        assert service.delete_rating(rating.id, alice.id, group.id) == 1
        assert count_ratings(db) == 0


class TestMembershipRemoval:

    def test_ratings_survive_membership_deletion(self, db, alice, bob, group, pizzeria):
        RatingService(db).create_rating(rating_for(bob, group, "pizzeria", 6))

        membership = db.execute(
            select(GroupMembership).where(GroupMembership.user_id == bob.id)
        ).scalar_one()
        db.delete(membership)
        db.commit()

        assert count_ratings(db, user_id=bob.id, group_id=group.id) == 1
