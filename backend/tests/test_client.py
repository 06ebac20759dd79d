"""Tests for the client layer: edit session state machine and the API client."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import PASSWORD, sample_draft
from lineups.client.api import ApiError, AuthenticationRequired, CompositionApiClient, NotFoundError
from lineups.client.editor import EditSession, SessionClosed, SessionState, UnknownPlayer
from lineups.client.session import AuthSession
from lineups.coordinates import editor_surface


class FakeApi:
    """Records what the session sends; optionally fails."""

    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.created = []
        self.updated = []

    def create_composition(self, draft):
        if self.fail_with:
            raise self.fail_with
        self.created.append(draft)
        return {"id": 41, **draft}

    def update_composition(self, composition_id, draft):
        if self.fail_with:
            raise self.fail_with
        self.updated.append((composition_id, draft))


@pytest.fixture
def api(client):
    api = CompositionApiClient(client, AuthSession())
    api.register("coach@example.com", PASSWORD)
    api.login("coach@example.com", PASSWORD)
    return api


class TestEditSessionStates:
    """EMPTY -> POPULATED -> SAVED | DISCARDED."""

    def test_new_session_is_empty(self):
        """A fresh session has no players and no server id."""
        session = EditSession()
        assert session.state is SessionState.EMPTY
        assert session.draft.id is None

    def test_add_player_assigns_negative_ids(self):
        """Locally added players get decreasing negative ids."""
        session = EditSession()
        first = session.add_player("GK1", number=1)
        second = session.add_player("CB")
        assert (first.id, second.id) == (-1, -2)
        assert first.is_temporary
        assert session.state is SessionState.POPULATED

    def test_discard_closes(self):
        """A discarded session refuses further edits."""
        session = EditSession()
        session.add_player("GK1")
        session.discard()
        assert session.state is SessionState.DISCARDED
        with pytest.raises(SessionClosed):
            session.add_player("Late")

    def test_saved_session_rejects_edits(self):
        """A saved session refuses edits and a second save."""
        session = EditSession()
        session.set_details(name="Base", formation="4-4-2")
        session.save(FakeApi())
        assert session.state is SessionState.SAVED
        with pytest.raises(SessionClosed):
            session.set_details(name="Again")
        with pytest.raises(SessionClosed):
            session.save(FakeApi())


class TestEditSessionEdits:
    """Local edits on the draft."""

    def test_update_player_accepts_camel_case(self):
        """Player updates accept the wire field names."""
        session = EditSession()
        player = session.add_player("GK1")
        updated = session.update_player(player.id, playerName="Keeper", number=1, color="#00FF00")
        assert updated.player_name == "Keeper"
        assert session.player(player.id).number == 1

    def test_update_player_rejects_unknown_field(self):
        """Unknown player fields are an error, not silently dropped."""
        session = EditSession()
        player = session.add_player("GK1")
        with pytest.raises(TypeError):
            session.update_player(player.id, shirt="red")

    def test_delete_clears_selection(self):
        """Deleting the selected player clears the selection."""
        session = EditSession()
        player = session.add_player("GK1")
        session.select_player(player.id)
        assert session.selected is player
        session.delete_player(player.id)
        assert session.selected_id is None
        assert session.draft.players == []

    def test_select_unknown_player(self):
        """Selecting a player that is not in the draft fails."""
        with pytest.raises(UnknownPlayer):
            EditSession().select_player(7)

    def test_pixel_drop_uses_inverted_y(self):
        """A drop near the top of the editor lands near y=1."""
        session = EditSession()
        player = session.add_player("Striker")
        surface = editor_surface(680, 1050)
        session.pixel_drop(player.id, 340, 105, surface)
        assert player.x == pytest.approx(0.5)
        assert player.y == pytest.approx(0.9)
        assert session.pixel_position(player.id, surface) == pytest.approx((340, 105))

    def test_pixel_drop_on_unsized_surface_is_ignored(self):
        """Drops on a surface with no size leave the player where it was."""
        session = EditSession()
        player = session.add_player("Striker", x=0.2, y=0.3)
        assert session.pixel_drop(player.id, 10, 10, editor_surface(0, 0)) is None
        assert (player.x, player.y) == (0.2, 0.3)


class TestEditSessionSave:
    """Save sends the full draft, never temp ids, and keeps the draft on failure."""

    def test_create_strips_temp_ids(self):
        """A new draft is created without sending temporary ids."""
        session = EditSession()
        session.set_details(name="Base", formation="4-4-2")
        session.add_player("GK1", number=1, x=0.5, y=0.05)
        fake = FakeApi()
        session.save(fake)
        sent = fake.created[0]
        assert sent["isFavorite"] is False
        assert all("id" not in p for p in sent["players"])
        assert session.draft.id == 41

    def test_existing_composition_is_updated(self):
        """A fetched composition is saved with a full-replace update."""
        session = EditSession.from_composition({
            "id": 7,
            "name": "Base",
            "formation": "4-4-2",
            "isFavorite": True,
            "players": [{"id": 70, "playerName": "GK1", "number": 1, "x": 0.5, "y": 0.05}],
        })
        assert session.state is SessionState.POPULATED
        session.add_player("Sub")
        fake = FakeApi()
        session.save(fake)
        composition_id, sent = fake.updated[0]
        assert composition_id == 7
        assert [p["playerName"] for p in sent["players"]] == ["GK1", "Sub"]
        assert fake.created == []

    def test_failure_keeps_draft(self):
        """A failed save keeps the draft so it can be retried."""
        session = EditSession()
        session.set_details(name="Base", formation="4-4-2")
        session.add_player("GK1")
        error = ApiError(500, "An internal error occurred")
        with pytest.raises(ApiError):
            session.save(FakeApi(fail_with=error))
        assert session.state is SessionState.POPULATED
        assert session.last_error is error
        assert [p.player_name for p in session.draft.players] == ["GK1"]

        session.save(FakeApi())
        assert session.state is SessionState.SAVED
        assert session.last_error is None


class TestApiClient:
    """CompositionApiClient against the real app."""

    def test_crud(self, api):
        """The client covers the whole composition lifecycle."""
        created = api.create_composition(sample_draft())
        assert api.list_compositions()[0]["id"] == created["id"]
        api.update_composition(created["id"], sample_draft(players=[]))
        assert api.get_composition(created["id"])["players"] == []
        assert api.set_favorite(created["id"], True)["isFavorite"] is True
        assert api.export_pdf(created["id"]).startswith(b"%PDF")
        api.delete_composition(created["id"])
        with pytest.raises(NotFoundError):
            api.get_composition(created["id"])

    def test_validation_error(self, api):
        """Server validation errors come back with their field details."""
        with pytest.raises(ApiError) as exc_info:
            api.create_composition({"formation": "4-4-2"})
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail["errors"][0]["field"] == "name"

    def test_refresh_and_retry(self, api):
        """A rejected access token is refreshed once and the call replayed."""
        old_refresh = api.auth.refresh_token
        api.auth.access_token = "expired-or-garbage"
        assert api.list_compositions() == []
        assert api.auth.refresh_token != old_refresh
        assert api.auth.access_token != "expired-or-garbage"

    def test_failed_refresh_clears_session(self, api):
        """When refresh fails too, the session is cleared."""
        api.auth.update("expired-or-garbage", "revoked-refresh-token")
        with pytest.raises(AuthenticationRequired):
            api.list_compositions()
        assert not api.auth.is_authenticated
        assert api.auth.refresh_token is None

    def test_no_refresh_token(self, client):
        """Without a refresh token a 401 is final."""
        api = CompositionApiClient(client, AuthSession())
        with pytest.raises(AuthenticationRequired):
            api.list_compositions()

    def test_profile_update_swaps_access_token(self, api):
        """A profile edit replaces the access token."""
        old_token = api.auth.access_token
        api.update_profile(PASSWORD, username="coach")
        assert api.auth.access_token != old_token
        assert api.get_profile()["username"] == "coach"

    def test_full_session_round_trip(self, api):
        """Create, reopen, move and save through the real API."""
        session = EditSession()
        session.set_details(name="Derby", formation="4-3-3")
        session.add_player("GK1", number=1, x=0.5, y=0.05)
        saved = session.save(api)

        fetched = api.get_composition(saved["id"])
        reopened = EditSession.from_composition(fetched)
        reopened.move_player(fetched["players"][0]["id"], 0.4, 0.1)
        reopened.save(api)
        assert api.get_composition(saved["id"])["players"][0]["x"] == pytest.approx(0.4)
