"""Composition draft validation.

`validate_composition_draft` never raises for bad input. It returns a
`DraftValidation` that either carries the parsed draft or the list of
field-level errors, so callers decide how to report them before the store
is ever touched.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import ValidationError

from lineups.schemas.composition import CompositionDraft

MAX_NAME_LENGTH = 200
MAX_FORMATION_LENGTH = 50
MAX_PLAYER_NAME_LENGTH = 200
MAX_POSITION_LENGTH = 100
MAX_JERSEY_NUMBER = 999

# Standard formations offered by the editor. Formation stays a free string.
KNOWN_FORMATIONS = ("4-4-2", "4-3-3", "3-5-2", "4-2-3-1", "3-4-3", "5-3-2")

# Ownership and ids are assigned server-side; these keys are dropped from input.
_SERVER_ASSIGNED_KEYS = {"id", "ownerId", "owner_id", "userId", "user_id", "createdAt", "updatedAt"}


@dataclass
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


@dataclass
class DraftValidation:
    draft: Optional[CompositionDraft] = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.draft is not None and not self.errors


def is_known_formation(label: str) -> bool:
    return (label or "").strip() in KNOWN_FORMATIONS


def _loc_to_field(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "body"


def _strip_server_keys(payload: dict) -> dict:
    clean = {k: v for k, v in payload.items() if k not in _SERVER_ASSIGNED_KEYS}
    players = clean.get("players")
    if isinstance(players, list):
        clean["players"] = [
            {k: v for k, v in p.items() if k not in _SERVER_ASSIGNED_KEYS} if isinstance(p, dict) else p
            for p in players
        ]
    return clean


def _check_text(errors: list[FieldError], name: str, value: Optional[str], max_length: int, required: bool):
    if value is None:
        if required:
            errors.append(FieldError(name, "Field required"))
        return
    if required and not value.strip():
        errors.append(FieldError(name, "Must not be blank"))
    elif len(value) > max_length:
        errors.append(FieldError(name, f"Must be at most {max_length} characters"))


def validate_composition_draft(payload: Any) -> DraftValidation:
    """Validate a create/update body. See module docstring."""
    if not isinstance(payload, dict):
        return DraftValidation(errors=[FieldError("body", "Expected a JSON object")])

    payload = _strip_server_keys(payload)
    if payload.get("players") is None:
        payload["players"] = []

    try:
        draft = CompositionDraft.model_validate(payload)
    except ValidationError as exc:
        return DraftValidation(errors=[
            FieldError(_loc_to_field(err["loc"]), err["msg"]) for err in exc.errors()
        ])

    errors: list[FieldError] = []
    _check_text(errors, "name", draft.name, MAX_NAME_LENGTH, required=True)
    _check_text(errors, "formation", draft.formation, MAX_FORMATION_LENGTH, required=True)

    for i, player in enumerate(draft.players):
        prefix = f"players.{i}"
        _check_text(errors, f"{prefix}.playerName", player.player_name, MAX_PLAYER_NAME_LENGTH, required=True)
        _check_text(errors, f"{prefix}.position", player.position, MAX_POSITION_LENGTH, required=False)
        if player.number is not None and not 0 <= player.number <= MAX_JERSEY_NUMBER:
            errors.append(FieldError(f"{prefix}.number", f"Must be between 0 and {MAX_JERSEY_NUMBER}"))
        # Out-of-range coordinates are accepted; only non-numbers are rejected.
        if not math.isfinite(player.x):
            errors.append(FieldError(f"{prefix}.x", "Must be a finite number"))
        if not math.isfinite(player.y):
            errors.append(FieldError(f"{prefix}.y", "Must be a finite number"))

    if errors:
        return DraftValidation(errors=errors)

    draft.name = draft.name.strip()
    draft.formation = draft.formation.strip()
    for player in draft.players:
        player.player_name = player.player_name.strip()
    return DraftValidation(draft=draft)
