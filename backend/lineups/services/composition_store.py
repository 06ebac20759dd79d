"""Composition store — owner-scoped CRUD over compositions and their players.

Every function takes the session and the caller's owner id first. A
composition that does not exist and one that belongs to another user are
indistinguishable to the caller: both come back as None / False.

Writes are a single commit. Any SQLAlchemy failure rolls the session back
and surfaces as StoreUnavailable; absence is never an exception.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from lineups.middleware.auth import Caller, can_access
from lineups.models.composition import TeamComposition, PlayerPosition
from lineups.schemas.composition import CompositionDraft, PlayerPositionIn
from lineups.services.errors import StoreUnavailable

logger = logging.getLogger(__name__)


def _player_rows(players: list[PlayerPositionIn]) -> list[PlayerPosition]:
    return [
        PlayerPosition(
            player_name=p.player_name,
            position=p.position,
            number=p.number,
            color=p.color,
            x=p.x,
            y=p.y,
        )
        for p in players
    ]


def _fail(db: Session, owner_id: str, operation: str, composition_id, exc: Exception) -> StoreUnavailable:
    db.rollback()
    logger.error(
        f"Store failure during {operation} (user={owner_id}, composition={composition_id}): {exc}",
        exc_info=True,
    )
    return StoreUnavailable(f"{operation} failed")


def _load_owned(db: Session, owner_id: str, composition_id: int) -> Optional[TeamComposition]:
    composition = (
        db.query(TeamComposition)
        .options(selectinload(TeamComposition.players))
        .filter(TeamComposition.id == composition_id, TeamComposition.user_id == owner_id)
        .first()
    )
    if composition is None or not can_access(Caller(user_id=owner_id), composition.user_id):
        return None
    return composition


def list_compositions(db: Session, owner_id: str) -> list[TeamComposition]:
    """All compositions owned by `owner_id`, players loaded."""
    logger.info(f"Listing compositions for user {owner_id}")
    try:
        result = (
            db.query(TeamComposition)
            .options(selectinload(TeamComposition.players))
            .filter(TeamComposition.user_id == owner_id)
            .order_by(TeamComposition.id)
            .all()
        )
    except SQLAlchemyError as exc:
        raise _fail(db, owner_id, "list", None, exc) from exc
    logger.info(f"Found {len(result)} compositions for user {owner_id}")
    return result


def get_composition(db: Session, owner_id: str, composition_id: int) -> Optional[TeamComposition]:
    """The composition if it exists and belongs to `owner_id`, else None."""
    try:
        composition = _load_owned(db, owner_id, composition_id)
    except SQLAlchemyError as exc:
        raise _fail(db, owner_id, "get", composition_id, exc) from exc
    if composition is None:
        logger.warning(f"Composition {composition_id} not found for user {owner_id}")
    return composition


def create_composition(db: Session, owner_id: str, draft: CompositionDraft) -> TeamComposition:
    """Persist a new composition with its players. Owner always comes from the caller."""
    logger.info(f"Creating composition for user {owner_id}")
    now = datetime.now(timezone.utc)
    composition = TeamComposition(
        user_id=owner_id,
        name=draft.name,
        formation=draft.formation,
        description=draft.description,
        is_favorite=draft.is_favorite,
        created_at=now,
        updated_at=now,
    )
    composition.players = _player_rows(draft.players)
    try:
        db.add(composition)
        db.commit()
        db.refresh(composition)
    except SQLAlchemyError as exc:
        raise _fail(db, owner_id, "create", None, exc) from exc
    logger.info(f"Created composition {composition.id} for user {owner_id}")
    return composition


def update_composition(
    db: Session,
    owner_id: str,
    composition_id: int,
    draft: CompositionDraft,
) -> Optional[TeamComposition]:
    """Full replace of fields and players. None when absent or not owned."""
    logger.info(f"Updating composition {composition_id} for user {owner_id}")
    try:
        existing = _load_owned(db, owner_id, composition_id)
        if existing is None:
            logger.warning(f"Composition {composition_id} not found for update (user {owner_id})")
            return None

        existing.name = draft.name
        existing.formation = draft.formation
        existing.description = draft.description
        existing.is_favorite = draft.is_favorite
        existing.updated_at = datetime.now(timezone.utc)

        db.query(PlayerPosition).filter(
            PlayerPosition.team_composition_id == existing.id
        ).delete(synchronize_session=False)
        db.expire(existing, ["players"])
        for row in _player_rows(draft.players):
            row.team_composition_id = existing.id
            db.add(row)

        db.commit()
        db.refresh(existing)
    except SQLAlchemyError as exc:
        raise _fail(db, owner_id, "update", composition_id, exc) from exc
    logger.info(f"Updated composition {composition_id} for user {owner_id}")
    return existing


def set_favorite(
    db: Session,
    owner_id: str,
    composition_id: int,
    is_favorite: bool,
) -> Optional[TeamComposition]:
    """Toggle the favorite flag without touching players."""
    try:
        existing = _load_owned(db, owner_id, composition_id)
        if existing is None:
            logger.warning(f"Composition {composition_id} not found for favorite (user {owner_id})")
            return None
        existing.is_favorite = is_favorite
        existing.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(existing)
    except SQLAlchemyError as exc:
        raise _fail(db, owner_id, "favorite", composition_id, exc) from exc
    return existing


def delete_composition(db: Session, owner_id: str, composition_id: int) -> bool:
    """Delete a composition and its players in one transaction."""
    logger.info(f"Deleting composition {composition_id} for user {owner_id}")
    try:
        existing = _load_owned(db, owner_id, composition_id)
        if existing is None:
            logger.warning(f"Composition {composition_id} not found for deletion (user {owner_id})")
            return False

        db.query(PlayerPosition).filter(
            PlayerPosition.team_composition_id == existing.id
        ).delete(synchronize_session=False)
        db.expire(existing, ["players"])
        db.delete(existing)
        db.commit()
    except SQLAlchemyError as exc:
        raise _fail(db, owner_id, "delete", composition_id, exc) from exc
    logger.info(f"Deleted composition {composition_id} for user {owner_id}")
    return True


def count_players(db: Session, composition_id: int) -> int:
    """Number of player rows referencing `composition_id`, orphans included."""
    return (
        db.query(func.count(PlayerPosition.id))
        .filter(PlayerPosition.team_composition_id == composition_id)
        .scalar()
    )
