from .admin import get_stats
from .comments import delete_comment, fetch_comments, get_comment_thread, post_comment
from .polls import (
    create_poll,
    delete_poll,
    get_poll,
    list_polls,
    set_sponsored,
    update_poll_title,
)
from .profiles import (
    delete_profile,
    ensure_profile,
    get_profile,
    list_profiles,
    set_language,
    update_display_name,
    update_profile,
)
from .reports import (
    delete_report_target,
    dismiss_report,
    fetch_reports,
    list_reports,
    load_target_preview,
    submit_report,
)
from .votes import cast_vote, check_vote_eligibility, fetch_votes, get_poll_results

__all__ = [
    # admin
    "get_stats",
    # comments
    "delete_comment",
    "fetch_comments",
    "get_comment_thread",
    "post_comment",
    # polls
    "create_poll",
    "delete_poll",
    "get_poll",
    "list_polls",
    "set_sponsored",
    "update_poll_title",
    # profiles
    "delete_profile",
    "ensure_profile",
    "get_profile",
    "list_profiles",
    "set_language",
    "update_display_name",
    "update_profile",
    # reports
    "delete_report_target",
    "dismiss_report",
    "fetch_reports",
    "list_reports",
    "load_target_preview",
    "submit_report",
    # votes
    "cast_vote",
    "check_vote_eligibility",
    "fetch_votes",
    "get_poll_results",
]
