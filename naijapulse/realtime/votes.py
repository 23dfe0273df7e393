"""
Live vote tallies for a single poll.

Votes are held by id, so a row that arrives both in the snapshot and
through the change feed is counted once. Counts, totals and percentages
are always derived from that set, never incremented in place.
"""
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import structlog

from naijapulse.core.actors import Actor, row_belongs_to

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OptionTally:
    index: int
    label: Optional[str]
    count: int
    percentage: float


def compute_percentages(counts: Sequence[int]) -> List[float]:
    """Share of the total per option, rounded to one decimal; all zero when nobody voted."""
    total = sum(counts)
    if total == 0:
        return [0.0 for _ in counts]
    return [round(count / total * 100, 1) for count in counts]


def tally_votes(votes: Iterable[Mapping], option_count: int) -> List[int]:
    """Count votes per option index. Indexes outside the poll's options are ignored."""
    counter = Counter(vote["option_index"] for vote in votes)
    return [counter.get(index, 0) for index in range(option_count)]


class VoteAggregator:
    """
    Deduplicated vote set plus the tallies derived from it.

    Args:
        option_count: Number of options on the poll
        on_change: Called after any mutation that changed the set
    """

    def __init__(self, option_count: int, on_change: Optional[Callable[[], None]] = None):
        if option_count < 0:
            raise ValueError("option_count must not be negative")
        self._option_count = option_count
        self._votes: Dict[int, dict] = {}
        self._counts: List[int] = [0] * option_count
        self._on_change = on_change

    @property
    def option_count(self) -> int:
        return self._option_count

    @property
    def votes(self) -> List[dict]:
        return list(self._votes.values())

    @property
    def counts(self) -> List[int]:
        return list(self._counts)

    @property
    def total(self) -> int:
        return sum(self._counts)

    @property
    def percentages(self) -> List[float]:
        return compute_percentages(self._counts)

    def __len__(self) -> int:
        return len(self._votes)

    def __contains__(self, vote_id) -> bool:
        return vote_id in self._votes

    def merge(self, rows: Iterable[Mapping]) -> int:
        """Union a snapshot into the set. Returns how many rows were new."""
        added = 0
        for row in rows:
            if self._add(row):
                added += 1
        if added:
            self._recompute()
        return added

    def apply_insert(self, row: Mapping) -> bool:
        if not self._add(row):
            return False
        self._recompute()
        return True

    def apply_delete(self, row: Mapping) -> bool:
        vote_id = row.get("id") if row else None
        if vote_id is None or self._votes.pop(vote_id, None) is None:
            return False
        self._recompute()
        return True

    def set_option_count(self, option_count: int) -> None:
        if option_count == self._option_count:
            return
        self._option_count = option_count
        self._recompute()

    def reset(self) -> None:
        self._votes.clear()
        self._counts = [0] * self._option_count

    def find_vote(self, actor: Actor) -> Optional[dict]:
        """The vote cast by ``actor``, if it is in the set."""
        for vote in self._votes.values():
            if row_belongs_to(vote, actor):
                return vote
        return None

    def tallies(self, labels: Optional[Sequence[str]] = None) -> List[OptionTally]:
        percentages = self.percentages
        return [
            OptionTally(
                index=index,
                label=labels[index] if labels is not None and index < len(labels) else None,
                count=count,
                percentage=percentages[index],
            )
            for index, count in enumerate(self._counts)
        ]

    def _add(self, row: Mapping) -> bool:
        vote_id = row.get("id") if row else None
        if vote_id is None:
            logger.warning("vote_row_without_id")
            return False
        if vote_id in self._votes:
            return False
        self._votes[vote_id] = dict(row)
        return True

    def _recompute(self) -> None:
        counts = tally_votes(self._votes.values(), self._option_count)
        self._counts = counts
        if self._on_change is not None:
            self._on_change()
