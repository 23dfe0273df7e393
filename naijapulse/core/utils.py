"""General utility functions."""
import random
import string
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from naijapulse.core.constants import DEFAULT_DISPLAY_NAME

BASE36_ALPHABET = string.digits + string.ascii_lowercase


def generate_guest_token() -> str:
    """
    Generate a guest identity token.

    Time-and-random composite: ``guest_<epoch millis>_<9 base36 chars>``.
    """
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices(BASE36_ALPHABET, k=9))
    return f"guest_{millis}_{suffix}"


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    """UTC ISO-8601 string, or None."""
    if dt is None:
        return None
    return to_utc(dt).isoformat()


def compute_duration_end(duration_days: int, now: Optional[datetime] = None) -> Optional[datetime]:
    """End timestamp for a poll running ``duration_days`` days (0 = no limit)."""
    if duration_days == 0:
        return None
    start = now or datetime.now(timezone.utc)
    return to_utc(start) + timedelta(days=duration_days)


def is_poll_open(duration_end: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """
    Check if a poll still accepts votes.

    Args:
        duration_end: Poll end timestamp (naive values are assumed UTC); None means no limit
        now: Override for the current time

    Returns:
        bool: True if the poll has no end or the end is in the future
    """
    if duration_end is None:
        return True
    current = now or datetime.now(timezone.utc)
    return to_utc(current) < to_utc(duration_end)


def display_name_from_claims(claims: dict) -> str:
    """
    Derive a display name from auth provider claims.

    ``john.doe@gmail.com`` becomes ``John Doe``; phone-only accounts get
    ``Naija User <last six digits>``.
    """
    email = claims.get("email")
    if email:
        username = email.split("@")[0]
        words = [w for w in username.replace("_", ".").replace("-", ".").split(".") if w]
        if words:
            return " ".join(w[:1].upper() + w[1:].lower() for w in words)

    phone = claims.get("phone")
    if phone:
        return f"{DEFAULT_DISPLAY_NAME} {phone[-6:]}"

    return DEFAULT_DISPLAY_NAME


def parse_timestamp(value: Any) -> datetime:
    """
    Sortable UTC datetime from a row value.

    Accepts datetimes (naive values are assumed UTC) and ISO-8601 strings;
    anything else sorts first.
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, str):
        return to_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    return datetime.min.replace(tzinfo=timezone.utc)
