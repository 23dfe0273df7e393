"""
Moderation queue cache.

Reports arrive as bare rows (target type + id); each one is enriched once
with a preview of what was reported before it is shown. A failed lookup
leaves the preview empty rather than dropping the report.
"""
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import structlog

from naijapulse.core.utils import parse_timestamp

logger = structlog.get_logger(__name__)

PREVIEW_FIELDS = ("poll_title", "poll_question", "comment_content", "creator_name")

PreviewLoader = Callable[[Mapping], Mapping[str, Any]]


def empty_preview() -> Dict[str, Any]:
    return {name: None for name in PREVIEW_FIELDS}


class ReportFeedCache:
    """
    Newest-first, deduplicated list of enriched reports.

    Args:
        preview_loader: Returns preview fields for a report row; may raise
        on_change: Called after any mutation that changed the list
    """

    def __init__(
        self,
        preview_loader: PreviewLoader,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._load_preview = preview_loader
        self._reports: Dict[Any, dict] = {}
        self._on_change = on_change

    @property
    def reports(self) -> List[dict]:
        return sorted(
            self._reports.values(),
            key=lambda report: (parse_timestamp(report.get("created_at")), report.get("id")),
            reverse=True,
        )

    def __len__(self) -> int:
        return len(self._reports)

    def __contains__(self, report_id) -> bool:
        return report_id in self._reports

    def merge(self, rows: Iterable[Mapping]) -> int:
        # Enriched one at a time; previews are point reads against the store
        added = 0
        for row in rows:
            report_id = row.get("id")
            if report_id is None or report_id in self._reports:
                continue
            self._reports[report_id] = self._enrich(row)
            added += 1
        if added:
            self._changed()
        return added

    def apply_insert(self, row: Mapping) -> bool:
        return self.merge([row]) == 1

    def apply_update(self, row: Mapping) -> bool:
        report_id = row.get("id")
        if report_id not in self._reports:
            return False
        self._reports[report_id] = self._enrich(row)
        self._changed()
        return True

    def apply_delete(self, row: Mapping) -> bool:
        if self._reports.pop(row.get("id"), None) is None:
            return False
        self._changed()
        return True

    def reset(self) -> None:
        self._reports.clear()

    def _enrich(self, row: Mapping) -> dict:
        preview = empty_preview()
        try:
            loaded = self._load_preview(row)
        except Exception as e:
            logger.warning(
                "report_enrichment_failed",
                report_id=row.get("id"),
                target_type=row.get("target_type"),
                target_id=row.get("target_id"),
                error=str(e),
            )
        else:
            for name in PREVIEW_FIELDS:
                if loaded and name in loaded:
                    preview[name] = loaded[name]
        return {**dict(row), **preview}

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
