"""Integration tests for admin endpoints."""
import pytest

from naijapulse.db.models import Profile


@pytest.mark.integration
class TestAdminAccess:
    @pytest.mark.parametrize("method,path", [
        ("get", "/api/v1/admin/stats"),
        ("get", "/api/v1/admin/polls"),
        ("get", "/api/v1/admin/users"),
        ("get", "/api/v1/admin/reports"),
        ("delete", "/api/v1/admin/polls/some-id"),
    ])
    def test_requires_sign_in(self, client, guest_headers, method, path):
        response = getattr(client, method)(path, headers=guest_headers)
        assert response.status_code == 401

    def test_non_admin_forbidden(self, client, user_headers):
        response = client.get("/api/v1/admin/stats", headers=user_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"


@pytest.mark.integration
class TestAdminPolls:
    def test_stats(self, client, admin_headers, make_poll, guest_headers):
        poll = make_poll()
        client.post(f"/api/v1/polls/{poll['id']}/votes", json={"option_index": 0}, headers=guest_headers)
        client.patch(f"/api/v1/admin/polls/{poll['id']}/sponsored", headers=admin_headers)

        stats = client.get("/api/v1/admin/stats", headers=admin_headers).json()

        assert stats["total_polls"] == 1
        assert stats["total_votes"] == 1
        assert stats["total_users"] == 1
        assert stats["sponsored_polls"] == 1
        assert stats["revenue_potential"] == 1000

    def test_toggle_sponsored_twice_restores(self, client, admin_headers, make_poll):
        poll = make_poll()
        url = f"/api/v1/admin/polls/{poll['id']}/sponsored"

        assert client.patch(url, headers=admin_headers).json()["is_sponsored"] is True
        assert client.patch(url, headers=admin_headers).json()["is_sponsored"] is False
        assert client.get(f"/api/v1/polls/{poll['id']}").json()["is_sponsored"] is False

    def test_set_sponsored_explicitly(self, client, admin_headers, make_poll):
        poll = make_poll()
        url = f"/api/v1/admin/polls/{poll['id']}/sponsored"
        client.patch(url, json={"is_sponsored": True}, headers=admin_headers)
        assert client.patch(url, json={"is_sponsored": True}, headers=admin_headers).json()["is_sponsored"] is True

    def test_rename_poll(self, client, admin_headers, make_poll):
        poll = make_poll()
        response = client.patch(f"/api/v1/admin/polls/{poll['id']}/title", json={"title": "Jollof wars"}, headers=admin_headers)
        assert response.json()["title"] == "Jollof wars"

    def test_delete_poll_cascades(self, client, admin_headers, make_poll, guest_headers):
        poll = make_poll()
        client.post(f"/api/v1/polls/{poll['id']}/votes", json={"option_index": 0}, headers=guest_headers)
        comment = client.post(f"/api/v1/polls/{poll['id']}/comments", json={"content": "Hi"}, headers=guest_headers).json()
        client.post(
            "/api/v1/reports",
            json={"target_type": "comment", "target_id": str(comment["id"]), "reason": "Spam"},
            headers=guest_headers,
        )

        response = client.delete(f"/api/v1/admin/polls/{poll['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert client.get(f"/api/v1/polls/{poll['id']}").status_code == 404
        assert client.get("/api/v1/admin/reports", headers=admin_headers).json() == []

        stats = client.get("/api/v1/admin/stats", headers=admin_headers).json()
        assert stats["total_votes"] == 0
        assert stats["total_comments"] == 0

    def test_delete_missing_poll(self, client, admin_headers):
        assert client.delete("/api/v1/admin/polls/missing", headers=admin_headers).status_code == 404

    def test_delete_comment(self, client, admin_headers, make_poll, guest_headers):
        poll = make_poll()
        url = f"/api/v1/polls/{poll['id']}/comments"
        parent = client.post(url, json={"content": "Parent"}, headers=guest_headers).json()
        client.post(url, json={"content": "Reply", "parent_id": parent["id"]}, headers=guest_headers)

        assert client.delete(f"/api/v1/admin/comments/{parent['id']}", headers=admin_headers).status_code == 200

        thread = client.get(url).json()
        assert [c["content"] for c in thread] == ["Reply"]


@pytest.mark.integration
class TestAdminUsers:
    def test_list_and_promote(self, client, admin_headers, user_headers):
        client.get("/api/v1/me", headers=user_headers)

        users = client.get("/api/v1/admin/users", headers=admin_headers).json()
        assert {u["id"] for u in users} == {"admin-1", "user-ada"}

        response = client.patch("/api/v1/admin/users/user-ada", json={"is_admin": True}, headers=admin_headers)
        assert response.json()["is_admin"] is True
        assert client.get("/api/v1/admin/stats", headers=user_headers).status_code == 200

    def test_cannot_demote_self(self, client, admin_headers):
        response = client.patch("/api/v1/admin/users/admin-1", json={"is_admin": False}, headers=admin_headers)
        assert response.status_code == 400

    def test_delete_user(self, client, admin_headers, db_session):
        db_session.add(Profile(id="user-2", display_name="Tunde"))
        db_session.commit()

        assert client.delete("/api/v1/admin/users/user-2", headers=admin_headers).status_code == 200
        assert client.delete("/api/v1/admin/users/user-2", headers=admin_headers).status_code == 404
        assert client.delete("/api/v1/admin/users/admin-1", headers=admin_headers).status_code == 400


@pytest.mark.integration
class TestAdminReports:
    def _report(self, client, headers, target_type, target_id, reason="Spam"):
        response = client.post(
            "/api/v1/reports",
            json={"target_type": target_type, "target_id": str(target_id), "reason": reason},
            headers=headers,
        )
        assert response.status_code == 200
        return response.json()

    def test_list_enriched_newest_first(self, client, admin_headers, make_poll, guest_headers):
        poll = make_poll()
        comment = client.post(f"/api/v1/polls/{poll['id']}/comments", json={"content": "Rude"}, headers=guest_headers).json()
        first = self._report(client, guest_headers, "poll", poll["id"])
        second = self._report(client, guest_headers, "comment", comment["id"], reason="Inappropriate")

        reports = client.get("/api/v1/admin/reports", headers=admin_headers).json()

        assert [r["id"] for r in reports] == [second["id"], first["id"]]
        assert reports[0]["comment_content"] == "Rude"
        assert reports[1]["poll_title"] == "Best jollof"

    def test_dismiss_keeps_content(self, client, admin_headers, make_poll, guest_headers):
        poll = make_poll()
        report = self._report(client, guest_headers, "poll", poll["id"])

        assert client.delete(f"/api/v1/admin/reports/{report['id']}", headers=admin_headers).status_code == 200
        assert client.get("/api/v1/admin/reports", headers=admin_headers).json() == []
        assert client.get(f"/api/v1/polls/{poll['id']}").status_code == 200

    def test_delete_target(self, client, admin_headers, make_poll, guest_headers):
        poll = make_poll()
        report = self._report(client, guest_headers, "poll", poll["id"])

        response = client.delete(f"/api/v1/admin/reports/{report['id']}/target", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"report_id": report["id"], "target_type": "poll", "target_id": poll["id"]}
        assert client.get(f"/api/v1/polls/{poll['id']}").status_code == 404

    def test_missing_report(self, client, admin_headers):
        assert client.delete("/api/v1/admin/reports/999", headers=admin_headers).status_code == 404
        assert client.delete("/api/v1/admin/reports/999/target", headers=admin_headers).status_code == 404
