"""
Tests for user listing and account deletion endpoints.
"""
from fastapi.testclient import TestClient
from sqlalchemy import select

from ratings_api.models.group import GroupMembership
from ratings_api.models.notification import PushSubscription
from ratings_api.models.user import User
from ratings_api.services.push import PushSubscriptionService

from conftest import auth_headers


class TestListUsers:

    def test_lists_users_by_username(self, client: TestClient, alice, bob, carol):
        response = client.get("/api/users", headers=auth_headers(bob))

        assert response.status_code == 200
        data = response.json()
        assert [u["username"] for u in data] == ["alice", "bob", "carol"]
        assert data[0]["color"] == "#ff0000"
        assert "password" not in data[0]

    def test_requires_token(self, client: TestClient, alice):
        response = client.get("/api/users")

        assert response.status_code == 401


class TestDeleteUser:

    def test_cannot_delete_another_user(self, client: TestClient, db, alice, bob):
        response = client.delete(f"/api/users/{bob.id}", headers=auth_headers(alice))

        assert response.status_code == 403
        db.expire_all()
        assert db.get(User, bob.id) is not None

    def test_delete_self_removes_memberships_and_subscriptions(self, client: TestClient, db, alice, bob, group):
        PushSubscriptionService(db).upsert_subscription(bob.id, "https://push.example/send/bob", "key", "auth")
        PushSubscriptionService(db).upsert_subscription(alice.id, "https://push.example/send/alice", "key", "auth")
        bob_id = bob.id

        response = client.delete(f"/api/users/{bob_id}", headers=auth_headers(bob))

        assert response.status_code == 204
        db.expire_all()
        assert db.get(User, bob_id) is None
        assert db.execute(
            select(GroupMembership).where(GroupMembership.user_id == bob_id)
        ).scalars().all() == []
        assert db.execute(
            select(PushSubscription).where(PushSubscription.user_id == bob_id)
        ).scalars().all() == []

        # Other users keep theirs
        assert db.get(User, alice.id) is not None
        members = db.execute(select(GroupMembership.user_id).where(GroupMembership.group_id == group.id)).scalars().all()
        assert members == [alice.id]
        assert db.get(PushSubscription, "https://push.example/send/alice") is not None

    def test_deleted_user_token_rejected(self, client: TestClient, alice):
        headers = auth_headers(alice)
        assert client.delete(f"/api/users/{alice.id}", headers=headers).status_code == 204

        response = client.get("/api/users", headers=headers)

        assert response.status_code == 401
