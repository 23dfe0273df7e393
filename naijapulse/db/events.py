"""
Session hooks that turn committed ORM changes into change feed events.

Rows are captured during flush and only published after the outer
transaction commits, so consumers never see changes that were rolled back.
Deleted rows, and the stored versions of rows about to be updated, are
captured in ``before_flush`` before the flush writes over them.
"""
from typing import List, Optional

from sqlalchemy import event, inspect, select
from sqlalchemy.orm import Session

from naijapulse.core.logging_config import get_logger
from naijapulse.db.rows import as_row
from naijapulse.realtime.feed import ChangeEvent, ChangeFeed, ChangeType, change_feed

logger = get_logger(__name__)

PENDING_KEY = "naijapulse.pending_changes"
DELETED_KEY = "naijapulse.pending_deletes"
UPDATED_KEY = "naijapulse.pending_updates"

_installed_feed: Optional[ChangeFeed] = None


def _table_name(instance) -> Optional[str]:
    table = getattr(instance, "__table__", None)
    return table.name if table is not None else None


def _stored_row(session: Session, instance) -> Optional[dict]:
    """Row as currently stored, read on the flush's own connection."""
    state = inspect(instance)
    if state.identity is None:
        return None
    mapper = state.mapper
    criteria = [column == value for column, value in zip(mapper.primary_key, state.identity)]
    stored = session.connection().execute(select(mapper.local_table).where(*criteria)).mappings().first()
    if stored is None:
        return None

    row = {}
    for attr in mapper.column_attrs:
        value = stored[attr.columns[0].key]
        row[attr.key] = list(value) if isinstance(value, list) else value
    return row


def _before_flush(session: Session, flush_context, instances) -> None:
    deleted = session.info.setdefault(DELETED_KEY, {})
    for instance in session.deleted:
        if _table_name(instance):
            deleted[id(instance)] = as_row(instance)

    updated = session.info.setdefault(UPDATED_KEY, {})
    with session.no_autoflush:
        for instance in session.dirty:
            if _table_name(instance) and session.is_modified(instance, include_collections=False):
                updated.setdefault(id(instance), _stored_row(session, instance))


def _after_flush(session: Session, flush_context) -> None:
    pending: List[ChangeEvent] = session.info.setdefault(PENDING_KEY, [])
    deleted = session.info.pop(DELETED_KEY, {})
    updated = session.info.pop(UPDATED_KEY, {})

    for instance in session.new:
        table = _table_name(instance)
        if table:
            pending.append(ChangeEvent(table, ChangeType.INSERT, new=as_row(instance)))

    for instance in session.dirty:
        table = _table_name(instance)
        if table and session.is_modified(instance, include_collections=False):
            old = updated.get(id(instance))
            if old is None:
                old = {"id": inspect(instance).identity[0]}
            pending.append(ChangeEvent(table, ChangeType.UPDATE, new=as_row(instance), old=old))

    for instance in session.deleted:
        table = _table_name(instance)
        if table:
            old = deleted.get(id(instance))
            if old is None:
                old = {"id": inspect(instance).identity[0]}
            pending.append(ChangeEvent(table, ChangeType.DELETE, old=old))


def _after_commit(session: Session) -> None:
    events = session.info.pop(PENDING_KEY, [])
    if not events or _installed_feed is None:
        return
    for change in events:
        _installed_feed.publish(change)
    logger.debug("changes_published", count=len(events))


def _discard(session: Session, *args) -> None:
    session.info.pop(PENDING_KEY, None)
    session.info.pop(DELETED_KEY, None)
    session.info.pop(UPDATED_KEY, None)


_HOOKS = (
    ("before_flush", _before_flush),
    ("after_flush", _after_flush),
    ("after_commit", _after_commit),
    ("after_rollback", _discard),
)


def install_change_capture(feed: ChangeFeed = change_feed) -> None:
    """Register the session hooks once per process and route them to ``feed``."""
    global _installed_feed
    _installed_feed = feed

    for name, fn in _HOOKS:
        if not event.contains(Session, name, fn):
            event.listen(Session, name, fn)


def uninstall_change_capture() -> None:
    global _installed_feed
    _installed_feed = None

    for name, fn in _HOOKS:
        if event.contains(Session, name, fn):
            event.remove(Session, name, fn)
