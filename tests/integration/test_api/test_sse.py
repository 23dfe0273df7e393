"""Integration tests for SSE (Server-Sent Events) endpoints."""
from unittest.mock import patch

import pytest


async def one_event():
    yield 'data: {"test": "data"}\n\n'


def assert_stream_headers(response):
    assert response.status_code == 200
    assert response.headers["content-type"] == "text/event-stream; charset=utf-8"
    assert response.headers["cache-control"] == "no-cache"
    assert response.headers["connection"] == "keep-alive"
    assert response.headers["x-accel-buffering"] == "no"


@pytest.mark.integration
class TestSSEPollEndpoint:
    @patch("naijapulse.api.v1.endpoints.sse.live_view_generator")
    def test_poll_stream(self, mock_generator, client, make_poll, guest_headers):
        # Mock the generator to prevent infinite streaming
        mock_generator.return_value = one_event()
        poll = make_poll()

        response = client.get(f"/api/v1/sse/polls/{poll['id']}", headers=guest_headers)

        assert_stream_headers(response)
        assert response.text == 'data: {"test": "data"}\n\n'

        composer = mock_generator.call_args.args[1]
        assert composer.poll_id == poll["id"]
        assert composer.actor.token == guest_headers["X-Guest-Id"]

    def test_missing_poll_is_404_before_streaming(self, client):
        response = client.get("/api/v1/sse/polls/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "Poll not found"


@pytest.mark.integration
class TestSSEAdminReports:
    @patch("naijapulse.api.v1.endpoints.sse.live_view_generator")
    def test_admin_stream(self, mock_generator, client, admin_headers):
        mock_generator.return_value = one_event()
        assert_stream_headers(client.get("/api/v1/sse/admin/reports", headers=admin_headers))

    def test_requires_admin(self, client, user_headers, guest_headers):
        assert client.get("/api/v1/sse/admin/reports", headers=guest_headers).status_code == 401
        assert client.get("/api/v1/sse/admin/reports", headers=user_headers).status_code == 403


@pytest.mark.integration
class TestSSENotifications:
    @patch("naijapulse.api.v1.endpoints.sse.notification_generator")
    def test_topics_parsed(self, mock_generator, client):
        mock_generator.return_value = one_event()

        response = client.get("/api/v1/sse/notifications?topics=vote.created,poll.created")

        assert_stream_headers(response)
        assert mock_generator.call_args.args[2] == ["vote.created", "poll.created"]

    def test_unknown_topic(self, client):
        response = client.get("/api/v1/sse/notifications?topics=vote.deleted")
        assert response.status_code == 400
        assert "Unknown topics" in response.json()["detail"]
