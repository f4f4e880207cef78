"""
Tests for group endpoints.
"""
from fastapi.testclient import TestClient
from sqlalchemy import select

from ratings_api.models.group import GroupMembership

from conftest import auth_headers


class TestGroupsRouter:

    def test_create_and_list_memberships(self, client: TestClient, alice):
        response = client.post(
            "/api/groups", json={"name": "Dinner Crew", "description": "Fridays"}, headers=auth_headers(alice)
        )
        assert response.status_code == 201
        group_id = response.json()["id"]

        response = client.get(f"/api/groups/{alice.id}", headers=auth_headers(alice))
        [membership] = response.json()
        assert membership["group"]["id"] == group_id
        assert membership["role"] == "Admin"

    def test_join(self, client: TestClient, carol, group):
        response = client.post("/api/groups/join", json={"group_id": group.id}, headers=auth_headers(carol))

        assert response.status_code == 201
        assert response.json()["role"] == "Member"

        response = client.post("/api/groups/join", json={"group_id": group.id}, headers=auth_headers(carol))
        assert response.status_code == 409

    def test_join_unknown_group(self, client: TestClient, carol):
        response = client.post("/api/groups/join", json={"group_id": "missing"}, headers=auth_headers(carol))

        assert response.status_code == 404

    def test_cannot_list_other_users_memberships(self, client: TestClient, alice, bob, group):
        assert client.get(f"/api/groups/{bob.id}", headers=auth_headers(alice)).status_code == 403

    def test_member_can_leave(self, client: TestClient, db, bob, group):
        membership_id = db.execute(
            select(GroupMembership.id).where(GroupMembership.user_id == bob.id)
        ).scalar_one()

        response = client.delete(f"/api/groups/memberships/{membership_id}", headers=auth_headers(bob))

        assert response.status_code == 204

    def test_member_cannot_remove_others(self, client: TestClient, db, alice, bob, group):
        membership_id = db.execute(
            select(GroupMembership.id).where(GroupMembership.user_id == alice.id)
        ).scalar_one()

        response = client.delete(f"/api/groups/memberships/{membership_id}", headers=auth_headers(bob))

        assert response.status_code == 403

    def test_only_admin_deletes_group(self, client: TestClient, alice, bob, group):
        assert client.delete(f"/api/groups/{group.id}", headers=auth_headers(bob)).status_code == 403
        assert client.delete(f"/api/groups/{group.id}", headers=auth_headers(alice)).status_code == 204
