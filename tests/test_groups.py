"""
Tests for group creation and membership management.
"""
import pytest
from sqlalchemy import select

from ratings_api.core.errors import AlreadyExists, NotFound
from ratings_api.models.group import GroupMembership, Role
from ratings_api.services.groups import GroupService


class TestGroupService:

    def test_creator_becomes_admin(self, db, alice):
        group = GroupService(db).create_group(alice.id, "Friday Lunch", "Weekly team lunch")

        [membership] = GroupService(db).get_members(group.id)
        assert membership.user_id == alice.id
        assert membership.role == Role.ADMIN
        assert GroupService(db).is_admin(alice.id, group.id)

    def test_create_for_unknown_user(self, db):
        with pytest.raises(NotFound):
            GroupService(db).create_group("ghost", "Nobody's group")

    def test_join_as_member(self, db, alice, bob):
        service = GroupService(db)
        group = service.create_group(alice.id, "Friday Lunch")

        membership = service.join_group(bob.id, group.id)

        assert membership.role == Role.MEMBER
        assert service.is_member(bob.id, group.id)
        assert not service.is_admin(bob.id, group.id)

    def test_join_twice_rejected(self, db, alice, group):
        with pytest.raises(AlreadyExists):
            GroupService(db).join_group(alice.id, group.id)

    def test_join_unknown_group(self, db, alice):
        with pytest.raises(NotFound):
            GroupService(db).join_group(alice.id, "missing")

    def test_get_memberships_loads_groups(self, db, alice, group):
        from conftest import make_group

        make_group(db, alice, name="Book Club")

        names = sorted(m.group.name for m in GroupService(db).get_memberships(alice.id))
        assert names == ["Book Club", "Lunch Club"]

    def test_delete_membership(self, db, bob, group):
        service = GroupService(db)
        membership = db.execute(
            select(GroupMembership).where(GroupMembership.user_id == bob.id)
        ).scalar_one()

        assert service.delete_membership(membership.id) == 1
        assert not service.is_member(bob.id, group.id)

        with pytest.raises(NotFound):
            service.delete_membership(membership.id)

    def test_delete_group(self, db, group):
        service = GroupService(db)
        service.delete_group(group.id)

        with pytest.raises(NotFound):
            service.get_group(group.id)
