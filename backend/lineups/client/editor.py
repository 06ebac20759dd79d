"""In-memory edit session for one composition.

States:
    EMPTY      fresh draft, nothing placed yet
    POPULATED  at least one edit happened (add / update / move / delete / details)
    SAVED      draft accepted by the server (terminal)
    DISCARDED  user left without saving (terminal)

Edits never touch the network. `save()` sends the whole draft, matching the
server's full-replace update. Players added locally get negative temporary
ids; those ids are stripped before sending and the server assigns real ones.
"""

from __future__ import annotations

import enum
import itertools
import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from lineups.client.api import CompositionApiClient
from lineups.coordinates import Surface, to_normalized, to_surface

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    EMPTY = "empty"
    POPULATED = "populated"
    SAVED = "saved"
    DISCARDED = "discarded"


class SessionClosed(Exception):
    """Raised when editing a session that was already saved or discarded."""


class UnknownPlayer(KeyError):
    pass


@dataclass
class DraftPlayer:
    id: int
    player_name: str
    x: float
    y: float
    position: Optional[str] = None
    number: Optional[int] = None
    color: Optional[str] = None

    @property
    def is_temporary(self) -> bool:
        return self.id < 0

    def to_payload(self) -> dict:
        return {
            "playerName": self.player_name,
            "position": self.position,
            "number": self.number,
            "color": self.color,
            "x": self.x,
            "y": self.y,
        }


@dataclass
class DraftComposition:
    name: str = ""
    formation: str = ""
    description: Optional[str] = None
    is_favorite: bool = False
    players: list[DraftPlayer] = field(default_factory=list)
    id: Optional[int] = None

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "formation": self.formation,
            "description": self.description,
            "isFavorite": self.is_favorite,
            "players": [p.to_payload() for p in self.players],
        }


_PLAYER_FIELDS = {"player_name", "position", "number", "color", "x", "y"}
_CAMEL_TO_SNAKE = {"playerName": "player_name"}


def _player_from_dict(data: dict) -> DraftPlayer:
    return DraftPlayer(
        id=data["id"],
        player_name=data.get("playerName") or data.get("player_name") or "",
        position=data.get("position"),
        number=data.get("number"),
        color=data.get("color"),
        x=float(data.get("x", 0.5)),
        y=float(data.get("y", 0.5)),
    )


class EditSession:
    def __init__(self, draft: Optional[DraftComposition] = None):
        self.draft = draft or DraftComposition()
        self.state = SessionState.POPULATED if self.draft.players else SessionState.EMPTY
        self.selected_id: Optional[int] = None
        self.last_error: Optional[Exception] = None
        self._temp_ids = itertools.count(-1, -1)

    @classmethod
    def from_composition(cls, data: dict) -> "EditSession":
        """Start editing a composition fetched from the server."""
        draft = DraftComposition(
            id=data.get("id"),
            name=data.get("name", ""),
            formation=data.get("formation", ""),
            description=data.get("description"),
            is_favorite=bool(data.get("isFavorite", False)),
            players=[_player_from_dict(p) for p in data.get("players", [])],
        )
        return cls(draft)

    # ── Guards ──────────────────────────────────────────────────────────────

    @property
    def is_closed(self) -> bool:
        return self.state in (SessionState.SAVED, SessionState.DISCARDED)

    def _editing(self) -> None:
        if self.is_closed:
            raise SessionClosed(f"Session is {self.state.value}")

    def _touched(self) -> None:
        self.state = SessionState.POPULATED

    def _index(self, player_id: int) -> int:
        for i, player in enumerate(self.draft.players):
            if player.id == player_id:
                return i
        raise UnknownPlayer(player_id)

    def player(self, player_id: int) -> DraftPlayer:
        return self.draft.players[self._index(player_id)]

    @property
    def selected(self) -> Optional[DraftPlayer]:
        if self.selected_id is None:
            return None
        try:
            return self.player(self.selected_id)
        except UnknownPlayer:
            return None

    # ── Edits ───────────────────────────────────────────────────────────────

    def set_details(self, name: Optional[str] = None, formation: Optional[str] = None,
                    description: Optional[str] = None, is_favorite: Optional[bool] = None) -> None:
        self._editing()
        if name is not None:
            self.draft.name = name
        if formation is not None:
            self.draft.formation = formation
        if description is not None:
            self.draft.description = description
        if is_favorite is not None:
            self.draft.is_favorite = is_favorite
        self._touched()

    def add_player(self, player_name: str, x: float = 0.5, y: float = 0.5, position: Optional[str] = None,
                   number: Optional[int] = None, color: Optional[str] = None) -> DraftPlayer:
        self._editing()
        player = DraftPlayer(
            id=next(self._temp_ids),
            player_name=player_name,
            x=x,
            y=y,
            position=position,
            number=number,
            color=color,
        )
        self.draft.players.append(player)
        self._touched()
        return player

    def update_player(self, player_id: int, **fields) -> DraftPlayer:
        """Replace the matching entry; keys are snake_case or camelCase player fields."""
        self._editing()
        index = self._index(player_id)
        changes = {}
        for key, value in fields.items():
            key = _CAMEL_TO_SNAKE.get(key, key)
            if key not in _PLAYER_FIELDS:
                raise TypeError(f"Unknown player field: {key}")
            changes[key] = value
        updated = replace(self.draft.players[index], **changes)
        self.draft.players[index] = updated
        self._touched()
        return updated

    def move_player(self, player_id: int, x: float, y: float) -> DraftPlayer:
        """Update coordinates only."""
        self._editing()
        player = self.player(player_id)
        player.x = x
        player.y = y
        self._touched()
        return player

    def pixel_drop(self, player_id: int, px: float, py: float, surface: Surface) -> Optional[DraftPlayer]:
        """Finish a drag in editor pixels. Ignored when the surface has no size yet."""
        point = to_normalized(surface, px, py)
        if point is None:
            logger.warning(f"Ignoring drop of player {player_id}: invalid editor surface {surface}")
            return None
        return self.move_player(player_id, *point)

    def pixel_position(self, player_id: int, surface: Surface) -> Optional[tuple[float, float]]:
        player = self.player(player_id)
        return to_surface(surface, player.x, player.y)

    def delete_player(self, player_id: int) -> None:
        self._editing()
        del self.draft.players[self._index(player_id)]
        if self.selected_id == player_id:
            self.selected_id = None
        self._touched()

    def select_player(self, player_id: Optional[int]) -> None:
        if player_id is not None:
            self._index(player_id)
        self.selected_id = player_id

    # ── Terminal transitions ────────────────────────────────────────────────

    def discard(self) -> None:
        self._editing()
        self.state = SessionState.DISCARDED

    def save(self, client: CompositionApiClient) -> Optional[dict]:
        """Send the whole draft. On failure the draft is kept as-is and the error re-raised."""
        self._editing()
        payload = self.draft.to_payload()
        try:
            if self.draft.id is None:
                saved = client.create_composition(payload)
                self.draft.id = saved["id"]
            else:
                client.update_composition(self.draft.id, payload)
                saved = None
        except Exception as exc:
            self.last_error = exc
            logger.warning(f"Save failed, draft kept: {exc}")
            raise
        self.last_error = None
        self.state = SessionState.SAVED
        return saved
