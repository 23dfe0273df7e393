"""Unit tests for profile service."""
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import IntegrityError

from naijapulse.core.exceptions import NotFoundError
from naijapulse.db.models import Profile
from naijapulse.services.profiles import (
    delete_profile,
    ensure_profile,
    get_profile,
    list_profiles,
    set_language,
    update_display_name,
    update_profile,
)


@pytest.mark.unit
class TestEnsureProfile:
    def test_created_with_name_from_email(self, db_session):
        profile = ensure_profile(db_session, "user-1", {"email": "john.doe@gmail.com"})

        assert profile["id"] == "user-1"
        assert profile["display_name"] == "John Doe"
        assert profile["is_admin"] is False

    def test_existing_profile_unchanged(self, db_session):
        ensure_profile(db_session, "user-1", {"email": "john.doe@gmail.com"})
        profile = ensure_profile(db_session, "user-1", {"email": "someone.else@gmail.com"})

        assert profile["display_name"] == "John Doe"
        assert db_session.query(Profile).count() == 1

    def test_no_claims(self, db_session):
        assert ensure_profile(db_session, "user-2")["display_name"] == "Naija User"

    def test_concurrent_creation_returns_winner(self):
        """IntegrityError on insert means another request created the profile first."""
        winner = Profile(id="user-1", display_name="Winner", is_admin=False)

        mock_query = Mock()
        mock_query.filter.return_value = mock_query
        mock_query.first.side_effect = [None, winner]

        mock_db = Mock()
        mock_db.query.return_value = mock_query
        mock_db.commit.side_effect = IntegrityError("INSERT INTO profiles", {}, Exception("UNIQUE"))

        profile = ensure_profile(mock_db, "user-1", {"email": "late@example.com"})

        assert profile["display_name"] == "Winner"
        mock_db.rollback.assert_called_once()


@pytest.mark.unit
class TestProfileUpdates:
    def test_update_display_name(self, db_session):
        ensure_profile(db_session, "user-1")
        assert update_display_name(db_session, "user-1", "  Ada <i>Obi</i> ")["display_name"] == "Ada Obi"

    def test_display_name_required(self, db_session):
        ensure_profile(db_session, "user-1")
        with pytest.raises(ValueError):
            update_display_name(db_session, "user-1", "   ")

    def test_language(self, db_session):
        ensure_profile(db_session, "user-1")
        assert set_language(db_session, "user-1", "pidgin")["language"] == "pidgin"
        with pytest.raises(ValueError, match="Language must be one of"):
            set_language(db_session, "user-1", "fr")

    def test_missing_profile(self, db_session):
        with pytest.raises(NotFoundError):
            get_profile(db_session, "ghost")
        with pytest.raises(NotFoundError):
            update_display_name(db_session, "ghost", "Name")


@pytest.mark.unit
class TestProfileAdmin:
    def test_promote_and_rename(self, db_session):
        ensure_profile(db_session, "user-1")
        profile = update_profile(db_session, "user-1", display_name="Moderator", is_admin=True)

        assert profile["display_name"] == "Moderator"
        assert profile["is_admin"] is True

    def test_partial_update(self, db_session):
        ensure_profile(db_session, "user-1", {"email": "ada@example.com"})
        profile = update_profile(db_session, "user-1", is_admin=True)
        assert profile["display_name"] == "Ada"

    def test_list_and_delete(self, db_session):
        ensure_profile(db_session, "user-1")
        ensure_profile(db_session, "user-2")
        assert {p["id"] for p in list_profiles(db_session)} == {"user-1", "user-2"}

        delete_profile(db_session, "user-1")
        assert [p["id"] for p in list_profiles(db_session)] == ["user-2"]
        with pytest.raises(NotFoundError):
            delete_profile(db_session, "user-1")
