"""
Live view of one poll for one actor.

``PollViewComposer`` owns the channels, aggregators and eligibility state
behind a poll page::

    async with PollViewComposer(poll_id, actor) as composer:
        send(composer.view())
        while await composer.wait_for_change(timeout=30) or True:
            ...

Entering reads the poll (NotFoundError if it does not exist), opens the
vote, comment and poll channels, loads snapshots and checks whether the
actor has already voted. Leaving closes every channel and discards the
in-memory state, so the next entry starts from a fresh snapshot.
"""
import asyncio
from typing import Any, Callable, ContextManager, Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from naijapulse.core.actors import Actor, row_belongs_to
from naijapulse.core.exceptions import AlreadyVotedError, NotFoundError
from naijapulse.db.session import get_db_context
from naijapulse.realtime.comments import CommentFeed
from naijapulse.realtime.feed import Channel, ChangeFeed, ChannelStatus, change_feed
from naijapulse.realtime.votes import VoteAggregator
from naijapulse.services.comments import fetch_comments
from naijapulse.services.polls import get_poll
from naijapulse.services.votes import (
    cast_vote,
    check_vote_eligibility,
    fetch_votes,
    validate_option_index,
)

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


class PollViewComposer:
    """
    Args:
        poll_id: Poll to follow
        actor: Viewer; None for a read-only view with no eligibility state
        feed: Change feed to subscribe to
        session_factory: Returns a context-managed SQLAlchemy session
    """

    def __init__(
        self,
        poll_id: str,
        actor: Optional[Actor] = None,
        *,
        feed: ChangeFeed = change_feed,
        session_factory: SessionFactory = get_db_context,
    ):
        self.poll_id = poll_id
        self.actor = actor
        self._feed = feed
        self._session_factory = session_factory

        self.poll: Optional[Dict[str, Any]] = None
        self.votes = VoteAggregator(0, on_change=self._mark_changed)
        self.comments = CommentFeed(on_change=self._mark_changed)
        self.my_vote: Optional[Dict[str, Any]] = None
        self.deleted = False
        self.version = 0

        self._channels: List[Channel] = []
        self._changed = asyncio.Event()
        self._is_open = False

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def has_voted(self) -> bool:
        return self.my_vote is not None

    @property
    def is_live(self) -> bool:
        """True while every channel is subscribed."""
        return bool(self._channels) and all(
            channel.status is ChannelStatus.SUBSCRIBED for channel in self._channels
        )

    async def open(self) -> "PollViewComposer":
        if self._is_open:
            return self

        with self._session_factory() as db:
            self.poll = get_poll(db, self.poll_id)

        self.votes.set_option_count(len(self.poll["options"]))
        self.deleted = False
        self._is_open = True

        scope = ("poll_id", self.poll_id)
        self._channels = [
            Channel(
                self._feed, "votes", scope=scope,
                on_insert=self._on_vote_insert, on_delete=self._on_vote_delete,
            ),
            Channel(
                self._feed, "comments", scope=scope,
                on_insert=self.comments.apply_insert,
                on_update=self.comments.apply_update,
                on_delete=self.comments.apply_delete,
            ),
            Channel(
                self._feed, "polls", scope=("id", self.poll_id),
                on_update=self._on_poll_update, on_delete=self._on_poll_delete,
            ),
        ]
        for channel in self._channels:
            if not await channel.open():
                # Keep going; the snapshot below still fills the view
                logger.warning("poll_view_channel_unavailable", poll_id=self.poll_id, channel=channel.name)

        try:
            await self.refetch()
            self._check_eligibility()
        except Exception:
            await self.close()
            raise

        logger.info("poll_view_opened", poll_id=self.poll_id, live=self.is_live)
        return self

    async def close(self) -> None:
        if not self._is_open:
            return
        self._is_open = False

        channels, self._channels = self._channels, []
        for channel in channels:
            await channel.close()

        self.votes.reset()
        self.comments.reset()
        logger.info("poll_view_closed", poll_id=self.poll_id)

    async def __aenter__(self) -> "PollViewComposer":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def refetch(self) -> None:
        """Replace in-memory state with a fresh snapshot from the store."""
        with self._session_factory() as db:
            try:
                poll = get_poll(db, self.poll_id)
            except NotFoundError:
                self._on_poll_delete(None)
                return
            votes = fetch_votes(db, self.poll_id)
            comments = fetch_comments(db, self.poll_id)

        self.poll = poll
        self.votes.reset()
        self.votes.set_option_count(len(poll["options"]))
        self.votes.merge(votes)
        self.comments.reset()
        self.comments.merge(comments)
        self._adopt_own_vote(self.votes.votes)
        self._mark_changed()

    async def flush(self) -> None:
        """Wait for every queued change event to be applied."""
        for channel in self._channels:
            await channel.flush()

    async def wait_for_change(self, timeout: Optional[float] = None) -> bool:
        """Block until the view changes. Returns False if ``timeout`` passed first."""
        if not self._changed.is_set():
            try:
                await asyncio.wait_for(self._changed.wait(), timeout)
            except asyncio.TimeoutError:
                return False
        self._changed.clear()
        return True

    async def submit_vote(self, option_index: int) -> Dict[str, Any]:
        """
        Cast the actor's vote and show it immediately.

        Raises:
            AlreadyVotedError: If the actor already voted on this poll
            ValueError: If there is no actor or the option is out of range
        """
        if self.actor is None:
            raise ValueError("An identity is required to vote")
        if self.has_voted:
            raise AlreadyVotedError()
        validate_option_index(option_index, self.votes.option_count)

        try:
            with self._session_factory() as db:
                row = cast_vote(db, self.poll_id, self.actor, option_index)
        except AlreadyVotedError:
            self._check_eligibility()
            raise

        self.record_vote(row)
        return row

    def record_vote(self, row: Dict[str, Any]) -> None:
        """Optimistically apply the actor's own vote before the feed echoes it."""
        self.votes.apply_insert(row)
        self.my_vote = dict(row)
        self._mark_changed()

    def view(self) -> Dict[str, Any]:
        options = list(self.poll["options"]) if self.poll else []
        tree = self.comments.tree()
        return {
            "poll": self.poll,
            "deleted": self.deleted,
            "live": self.is_live,
            "version": self.version,
            "results": {
                "total_votes": self.votes.total,
                "options": [
                    {
                        "index": tally.index,
                        "label": tally.label,
                        "count": tally.count,
                        "percentage": tally.percentage,
                    }
                    for tally in self.votes.tallies(options)
                ],
            },
            "eligibility": {
                "has_voted": self.has_voted,
                "option_index": self.my_vote["option_index"] if self.my_vote else None,
                "vote_id": self.my_vote["id"] if self.my_vote else None,
            },
            "comment_count": len(self.comments),
            "comments": [node.to_dict() for node in tree],
        }

    def _check_eligibility(self) -> None:
        if self.actor is None or self.has_voted:
            return
        with self._session_factory() as db:
            eligibility = check_vote_eligibility(db, self.poll_id, self.actor)
        if eligibility["has_voted"]:
            self.my_vote = {"id": eligibility["vote_id"], "option_index": eligibility["option_index"]}
            self._mark_changed()

    def _adopt_own_vote(self, rows) -> None:
        if self.actor is None or self.has_voted:
            return
        for row in rows:
            if row_belongs_to(row, self.actor):
                self.my_vote = dict(row)
                return

    def _on_vote_insert(self, row: Dict[str, Any]) -> None:
        self.votes.apply_insert(row)
        self._adopt_own_vote([row])

    def _on_vote_delete(self, row: Dict[str, Any]) -> None:
        # Eligibility is sticky: a removed vote does not reopen the ballot
        self.votes.apply_delete(row)

    def _on_poll_update(self, row: Dict[str, Any]) -> None:
        self.poll = row
        self.votes.set_option_count(len(row.get("options") or []))
        self._mark_changed()

    def _on_poll_delete(self, row: Optional[Dict[str, Any]]) -> None:
        self.deleted = True
        self._mark_changed()

    def _mark_changed(self) -> None:
        self.version += 1
        self._changed.set()
