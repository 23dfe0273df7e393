"""Actor identity: an authenticated user or an anonymous guest.

On the wire an actor occupies two nullable columns (``user_id`` /
``guest_id``); in code it is always exactly one of the two variants below.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Union


@dataclass(frozen=True)
class AuthenticatedActor:
    user_id: str

    def __post_init__(self):
        if not self.user_id:
            raise ValueError("Authenticated actor requires a user id")

    @property
    def is_guest(self) -> bool:
        return False

    def to_columns(self) -> Dict[str, Optional[str]]:
        return {"user_id": self.user_id, "guest_id": None}


@dataclass(frozen=True)
class GuestActor:
    token: str

    def __post_init__(self):
        if not self.token:
            raise ValueError("Guest actor requires a guest token")

    @property
    def is_guest(self) -> bool:
        return True

    def to_columns(self) -> Dict[str, Optional[str]]:
        return {"user_id": None, "guest_id": self.token}


Actor = Union[AuthenticatedActor, GuestActor]


def actor_from_columns(user_id: Optional[str], guest_id: Optional[str]) -> Actor:
    """Rebuild an actor from a row's identity columns.

    Raises:
        ValueError: If both or neither column is set
    """
    if user_id and guest_id:
        raise ValueError("Row has both user_id and guest_id set")
    if user_id:
        return AuthenticatedActor(user_id)
    if guest_id:
        return GuestActor(guest_id)
    raise ValueError("Row has neither user_id nor guest_id set")


def row_belongs_to(row: dict, actor: Actor, user_key: str = "user_id") -> bool:
    """Whether a vote/comment/report row was written by ``actor``."""
    if isinstance(actor, AuthenticatedActor):
        return row.get(user_key) == actor.user_id
    return row.get("guest_id") == actor.token
