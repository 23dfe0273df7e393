"""Live moderation queue backed by the reports channel."""
import asyncio
from typing import Any, Callable, ContextManager, Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from naijapulse.db.session import get_db_context
from naijapulse.realtime.feed import Channel, ChangeFeed, ChannelStatus, change_feed
from naijapulse.realtime.reports import ReportFeedCache
from naijapulse.services.reports import fetch_reports, load_target_preview

logger = structlog.get_logger(__name__)


class ModerationFeed:
    """
    Enriched, newest-first report list kept current from the change feed.

    Used as ``async with ModerationFeed() as feed`` by the admin stream.
    """

    def __init__(
        self,
        *,
        feed: ChangeFeed = change_feed,
        session_factory: Callable[[], ContextManager[Session]] = get_db_context,
    ):
        self._feed = feed
        self._session_factory = session_factory
        self.cache = ReportFeedCache(self._load_preview, on_change=self._mark_changed)
        self._channel: Optional[Channel] = None
        self._changed = asyncio.Event()
        self.version = 0

    @property
    def is_live(self) -> bool:
        return self._channel is not None and self._channel.status is ChannelStatus.SUBSCRIBED

    @property
    def reports(self) -> List[Dict[str, Any]]:
        return self.cache.reports

    async def open(self) -> "ModerationFeed":
        if self._channel is not None:
            return self

        self._channel = Channel(
            self._feed,
            "reports",
            on_insert=self.cache.apply_insert,
            on_update=self.cache.apply_update,
            on_delete=self.cache.apply_delete,
            name="reports:moderation",
        )
        await self._channel.open()

        try:
            await self.refetch()
        except Exception:
            await self.close()
            raise
        return self

    async def close(self) -> None:
        channel, self._channel = self._channel, None
        if channel is not None:
            await channel.close()
            self.cache.reset()

    async def __aenter__(self) -> "ModerationFeed":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def refetch(self) -> None:
        with self._session_factory() as db:
            rows = fetch_reports(db)
        self.cache.reset()
        self.cache.merge(rows)
        self._mark_changed()

    async def flush(self) -> None:
        if self._channel is not None:
            await self._channel.flush()

    async def wait_for_change(self, timeout: Optional[float] = None) -> bool:
        if not self._changed.is_set():
            try:
                await asyncio.wait_for(self._changed.wait(), timeout)
            except asyncio.TimeoutError:
                return False
        self._changed.clear()
        return True

    def _load_preview(self, row: Dict[str, Any]) -> Dict[str, Any]:
        with self._session_factory() as db:
            return load_target_preview(db, row["target_type"], row["target_id"])

    def _mark_changed(self) -> None:
        self.version += 1
        self._changed.set()
