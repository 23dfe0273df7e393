"""Unit tests for poll service."""
from datetime import datetime, timedelta, timezone

import pytest

from naijapulse.core.actors import AuthenticatedActor, GuestActor
from naijapulse.core.exceptions import NotFoundError
from naijapulse.db.models import Comment, Poll, Report, Vote
from naijapulse.services.comments import post_comment
from naijapulse.services.polls import (
    create_poll,
    delete_poll,
    get_poll,
    list_polls,
    normalize_category,
    normalize_options,
    set_sponsored,
    update_poll_title,
)
from naijapulse.services.reports import submit_report
from naijapulse.services.votes import cast_vote

from tests.conftest import GUEST_TOKEN


@pytest.mark.unit
class TestNormalization:
    @pytest.mark.parametrize("raw", ["politics", "POLITICS", " Politics "])
    def test_category_case_insensitive(self, raw):
        assert normalize_category(raw) == "Politics"

    @pytest.mark.parametrize("raw", ["", "Weather", None])
    def test_unknown_category(self, raw):
        with pytest.raises(ValueError, match="Category must be one of"):
            normalize_category(raw)

    def test_yes_no_preset_ignores_options(self):
        assert normalize_options("yes_no", ["Maybe", "Later", "Never"]) == ["Yes", "No"]

    def test_option_bounds(self):
        with pytest.raises(ValueError, match="at least 2"):
            normalize_options("multiple", ["Only one"])
        with pytest.raises(ValueError, match="at most 6"):
            normalize_options("multiple", [str(i) for i in range(7)])

    def test_blank_option_rejected(self):
        with pytest.raises(ValueError):
            normalize_options("multiple", ["A", "  "])


@pytest.mark.unit
class TestCreatePoll:
    def test_create_multiple_choice(self, db_session, creator):
        poll = create_poll(
            db_session, creator, "Creator One",
            title="Best jollof", question="Which country?", category="lifestyle",
            options=["Nigeria", "Ghana"],
        )

        assert poll["category"] == "Lifestyle"
        assert poll["options"] == ["Nigeria", "Ghana"]
        assert poll["type"] == "multiple"
        assert poll["creator_id"] == "creator-1"
        assert poll["creator_name"] == "Creator One"
        assert poll["vote_count"] == 0
        assert poll["is_sponsored"] is False
        assert poll["duration_end"] is not None

    def test_yes_no_poll(self, db_session, creator):
        poll = create_poll(
            db_session, creator, "Creator One",
            title="Fuel", question="Will fuel prices drop?", category="Economy",
            options=["A", "B", "C"], poll_type="yes_no",
        )
        assert poll["options"] == ["Yes", "No"]

    def test_no_end_date(self, db_session, make_poll):
        assert make_poll(duration_days=0)["duration_end"] is None

    def test_guest_cannot_create(self, db_session):
        with pytest.raises(ValueError, match="signed in"):
            create_poll(
                db_session, GuestActor(GUEST_TOKEN), "Guest",
                title="T", question="Q", category="Sports", options=["A", "B"],
            )

    @pytest.mark.parametrize("field,value", [
        ("duration_days", 5),
        ("poll_type", "ranked"),
        ("title", "   "),
        ("category", "Weather"),
    ])
    def test_invalid_fields(self, make_poll, db_session, field, value):
        with pytest.raises(ValueError):
            make_poll(**{field: value})
        assert db_session.query(Poll).count() == 0


@pytest.mark.unit
class TestListPolls:
    def _age(self, db_session, poll, minutes):
        model = db_session.get(Poll, poll["id"])
        model.created_at = datetime.now(timezone.utc) - timedelta(minutes=minutes)
        db_session.commit()

    def test_newest_first(self, db_session, make_poll):
        old = make_poll(title="Old")
        new = make_poll(title="New")
        self._age(db_session, old, 10)
        self._age(db_session, new, 1)

        assert [p["id"] for p in list_polls(db_session)] == [new["id"], old["id"]]

    def test_filters(self, db_session, make_poll):
        make_poll(title="Election", category="Politics", question="Who wins?")
        make_poll(title="Super Eagles", category="Sports", question="Who scores?")

        assert [p["title"] for p in list_polls(db_session, category="politics")] == ["Election"]
        assert len(list_polls(db_session, category="All")) == 2
        assert [p["title"] for p in list_polls(db_session, search="eagles")] == ["Super Eagles"]
        assert len(list_polls(db_session, search="who")) == 2

    def test_featured_only_sponsored(self, db_session, make_poll):
        sponsored = make_poll(title="Sponsored")
        make_poll(title="Regular")
        set_sponsored(db_session, sponsored["id"], True)

        assert [p["id"] for p in list_polls(db_session, featured=True)] == [sponsored["id"]]

    def test_pagination(self, db_session, make_poll):
        for i in range(3):
            make_poll(title=f"Poll {i}")
        assert len(list_polls(db_session, limit=2)) == 2
        assert len(list_polls(db_session, limit=2, offset=2)) == 1


@pytest.mark.unit
class TestPollAdmin:
    def test_get_missing(self, db_session):
        with pytest.raises(NotFoundError):
            get_poll(db_session, "missing")

    def test_toggle_sponsored_twice_restores(self, db_session, make_poll):
        poll = make_poll()
        assert set_sponsored(db_session, poll["id"])["is_sponsored"] is True
        assert set_sponsored(db_session, poll["id"])["is_sponsored"] is False

    def test_update_title(self, db_session, make_poll):
        poll = make_poll()
        assert update_poll_title(db_session, poll["id"], " <b>Renamed</b> ")["title"] == "Renamed"

    def test_delete_cascades(self, db_session, make_poll, guest):
        poll = make_poll()
        keep = make_poll(title="Keep")
        cast_vote(db_session, poll["id"], guest, 0)
        comment = post_comment(db_session, poll["id"], guest, "Nice one")
        submit_report(db_session, guest, "poll", poll["id"], "Spam")
        submit_report(db_session, guest, "comment", comment["id"], "Inappropriate")
        kept_report = submit_report(db_session, guest, "poll", keep["id"], "Other")

        delete_poll(db_session, poll["id"])

        assert db_session.query(Poll).count() == 1
        assert db_session.query(Vote).count() == 0
        assert db_session.query(Comment).count() == 0
        assert [r.id for r in db_session.query(Report).all()] == [kept_report["id"]]

    def test_delete_missing(self, db_session):
        with pytest.raises(NotFoundError):
            delete_poll(db_session, "missing")
