"""Tests for the live poll view composer.

These run against the SQLite test database with the session hooks routed
to a private change feed, so every service call below reaches the
composer the same way it would in production.
"""
import pytest

from naijapulse.core.actors import AuthenticatedActor, GuestActor
from naijapulse.core.exceptions import AlreadyVotedError, NotFoundError
from naijapulse.realtime.composer import PollViewComposer
from naijapulse.realtime.feed import ChangeFeed
from naijapulse.services.comments import post_comment
from naijapulse.services.polls import delete_poll, update_poll_title
from naijapulse.services.votes import cast_vote

from tests.conftest import GUEST_TOKEN, OTHER_GUEST_TOKEN


def counts(view):
    return [option["count"] for option in view["results"]["options"]]


@pytest.mark.unit
class TestPollViewComposer:
    @pytest.mark.asyncio
    async def test_open_loads_snapshot(self, feed, session_factory, db_session, make_poll):
        poll = make_poll()
        cast_vote(db_session, poll["id"], AuthenticatedActor("u1"), 0)
        cast_vote(db_session, poll["id"], AuthenticatedActor("u2"), 0)
        cast_vote(db_session, poll["id"], GuestActor(OTHER_GUEST_TOKEN), 1)

        async with PollViewComposer(poll["id"], feed=feed, session_factory=session_factory) as composer:
            view = composer.view()
            assert view["live"] is True
            assert view["results"]["total_votes"] == 3
            assert counts(view) == [2, 1, 0]
            assert [o["percentage"] for o in view["results"]["options"]] == [66.7, 33.3, 0.0]
            assert [o["label"] for o in view["results"]["options"]] == ["A", "B", "C"]
            assert view["eligibility"]["has_voted"] is False

    @pytest.mark.asyncio
    async def test_missing_poll_opens_no_channels(self, feed, session_factory):
        composer = PollViewComposer("no-such-poll", feed=feed, session_factory=session_factory)
        with pytest.raises(NotFoundError):
            await composer.open()
        assert feed.channel_count == 0
        assert not composer.is_open

    @pytest.mark.asyncio
    async def test_live_vote_updates_view(self, feed, session_factory, db_session, make_poll):
        poll = make_poll()

        async with PollViewComposer(poll["id"], feed=feed, session_factory=session_factory) as composer:
            assert await composer.wait_for_change(timeout=0.01) is True
            assert await composer.wait_for_change(timeout=0.01) is False

            cast_vote(db_session, poll["id"], AuthenticatedActor("u1"), 2)
            await composer.flush()

            assert await composer.wait_for_change(timeout=1) is True
            view = composer.view()
            assert view["results"]["total_votes"] == 1
            assert counts(view) == [0, 0, 1]
            assert view["poll"]["vote_count"] == 1

    @pytest.mark.asyncio
    async def test_other_polls_do_not_leak_in(self, feed, session_factory, db_session, make_poll):
        poll = make_poll()
        other = make_poll(title="Other poll")

        async with PollViewComposer(poll["id"], feed=feed, session_factory=session_factory) as composer:
            cast_vote(db_session, other["id"], AuthenticatedActor("u1"), 0)
            post_comment(db_session, other["id"], AuthenticatedActor("u1"), "Elsewhere")
            await composer.flush()

            view = composer.view()
            assert view["results"]["total_votes"] == 0
            assert view["comment_count"] == 0
            assert view["poll"]["title"] == "Best jollof"

    @pytest.mark.asyncio
    async def test_guest_who_voted_cannot_vote_again(self, feed, session_factory, db_session, make_poll):
        poll = make_poll()
        guest = GuestActor(GUEST_TOKEN)
        cast_vote(db_session, poll["id"], guest, 1)

        async with PollViewComposer(poll["id"], guest, feed=feed, session_factory=session_factory) as composer:
            eligibility = composer.view()["eligibility"]
            assert eligibility["has_voted"] is True
            assert eligibility["option_index"] == 1

            with pytest.raises(AlreadyVotedError):
                await composer.submit_vote(0)
            assert composer.view()["results"]["total_votes"] == 1

    @pytest.mark.asyncio
    async def test_submit_vote_is_applied_once(self, feed, session_factory, make_poll):
        poll = make_poll()
        guest = GuestActor(GUEST_TOKEN)

        async with PollViewComposer(poll["id"], guest, feed=feed, session_factory=session_factory) as composer:
            row = await composer.submit_vote(1)

            # Optimistic update before the feed echo arrives
            view = composer.view()
            assert view["eligibility"] == {"has_voted": True, "option_index": 1, "vote_id": row["id"]}
            assert counts(view) == [0, 1, 0]

            await composer.flush()
            assert composer.view()["results"]["total_votes"] == 1

    @pytest.mark.asyncio
    async def test_submit_vote_validates_option(self, feed, session_factory, make_poll):
        poll = make_poll()

        async with PollViewComposer(
            poll["id"], GuestActor(GUEST_TOKEN), feed=feed, session_factory=session_factory
        ) as composer:
            with pytest.raises(ValueError, match="Invalid option"):
                await composer.submit_vote(3)
            assert composer.has_voted is False

    @pytest.mark.asyncio
    async def test_submit_vote_requires_actor(self, feed, session_factory, make_poll):
        poll = make_poll()

        async with PollViewComposer(poll["id"], feed=feed, session_factory=session_factory) as composer:
            with pytest.raises(ValueError):
                await composer.submit_vote(0)

    @pytest.mark.asyncio
    async def test_vote_elsewhere_marks_actor_voted(self, feed, session_factory, db_session, make_poll):
        poll = make_poll()
        user = AuthenticatedActor("user-ada")

        async with PollViewComposer(poll["id"], user, feed=feed, session_factory=session_factory) as composer:
            # Same user voting from another tab
            cast_vote(db_session, poll["id"], user, 0)
            await composer.flush()
            assert composer.has_voted is True
            assert composer.view()["eligibility"]["option_index"] == 0

    @pytest.mark.asyncio
    async def test_live_comments_are_threaded(self, feed, session_factory, db_session, make_poll):
        poll = make_poll()
        author = AuthenticatedActor("u1")

        async with PollViewComposer(poll["id"], feed=feed, session_factory=session_factory) as composer:
            parent = post_comment(db_session, poll["id"], author, "First!")
            post_comment(db_session, poll["id"], GuestActor(GUEST_TOKEN), "Reply", parent_id=parent["id"])
            await composer.flush()

            view = composer.view()
            assert view["comment_count"] == 2
            assert len(view["comments"]) == 1
            assert view["comments"][0]["content"] == "First!"
            assert view["comments"][0]["replies"][0]["content"] == "Reply"

    @pytest.mark.asyncio
    async def test_poll_update_and_delete(self, feed, session_factory, db_session, make_poll):
        poll = make_poll()

        async with PollViewComposer(poll["id"], feed=feed, session_factory=session_factory) as composer:
            update_poll_title(db_session, poll["id"], "Renamed")
            await composer.flush()
            assert composer.view()["poll"]["title"] == "Renamed"

            delete_poll(db_session, poll["id"])
            await composer.flush()
            assert composer.view()["deleted"] is True

    @pytest.mark.asyncio
    async def test_refetch_after_delete_marks_deleted(self, feed, session_factory, db_session, make_poll):
        poll = make_poll()

        async with PollViewComposer(poll["id"], feed=feed, session_factory=session_factory) as composer:
            delete_poll(db_session, poll["id"])
            await composer.refetch()
            assert composer.deleted is True

    @pytest.mark.asyncio
    async def test_close_releases_every_channel(self, feed, session_factory, make_poll):
        poll = make_poll()
        composer = PollViewComposer(poll["id"], feed=feed, session_factory=session_factory)

        await composer.open()
        await composer.open()
        assert feed.channel_count == 3

        await composer.close()
        await composer.close()
        assert feed.channel_count == 0
        assert len(composer.votes) == 0

    @pytest.mark.asyncio
    async def test_refused_channels_still_show_snapshot(self, session_factory, db_session, make_poll):
        poll = make_poll()
        cast_vote(db_session, poll["id"], AuthenticatedActor("u1"), 0)
        full_feed = ChangeFeed(max_channels=0)

        async with PollViewComposer(poll["id"], feed=full_feed, session_factory=session_factory) as composer:
            view = composer.view()
            assert view["live"] is False
            assert view["results"]["total_votes"] == 1

            # Missed events are picked up by a refetch
            cast_vote(db_session, poll["id"], AuthenticatedActor("u2"), 1)
            await composer.refetch()
            assert composer.view()["results"]["total_votes"] == 2
