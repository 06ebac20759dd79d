"""Compositions router — owner-scoped CRUD, favorite toggle and PDF export."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from lineups.database import get_db
from lineups.export.pdf import export_composition_pdf, safe_filename
from lineups.middleware.auth import Caller, get_current_caller
from lineups.models.composition import TeamComposition
from lineups.schemas.composition import (
    CompositionResponse,
    FavoriteUpdate,
    FieldErrorResponse,
    PlayerPositionResponse,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from lineups.services import composition_store
from lineups.services.errors import ExportError, StoreUnavailable
from lineups.validation import validate_composition_draft

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/compositions", tags=["compositions"])

NOT_FOUND = "Composition not found"
BAD_REQUEST = {400: {"model": ValidationErrorResponse, "description": "Validation failed"}}


def _composition_to_response(composition: TeamComposition) -> CompositionResponse:
    """Convert a TeamComposition ORM row to a response schema."""
    return CompositionResponse(
        id=composition.id,
        name=composition.name,
        formation=composition.formation,
        description=composition.description,
        is_favorite=bool(composition.is_favorite),
        players=[
            PlayerPositionResponse(
                id=p.id,
                player_name=p.player_name,
                position=p.position,
                number=p.number,
                color=p.color,
                x=p.x,
                y=p.y,
            )
            for p in composition.players
        ],
        created_at=composition.created_at.isoformat() if composition.created_at else "",
        updated_at=composition.updated_at.isoformat() if composition.updated_at else "",
    )


def _validated(payload: Any):
    result = validate_composition_draft(payload)
    if not result.ok:
        raise HTTPException(
            status_code=400,
            detail=ValidationErrorDetail(
                errors=[FieldErrorResponse(**e.to_dict()) for e in result.errors]
            ).model_dump(),
        )
    return result.draft


def _store_failure(caller: Caller, operation: str, composition_id=None) -> HTTPException:
    logger.error(f"{operation} failed for user {caller.user_id} (composition {composition_id})")
    return HTTPException(status_code=500, detail="An internal error occurred")


@router.get("", response_model=list[CompositionResponse])
def list_compositions(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    """All compositions of the authenticated user, players included."""
    try:
        compositions = composition_store.list_compositions(db, caller.user_id)
    except StoreUnavailable:
        raise _store_failure(caller, "list")
    return [_composition_to_response(c) for c in compositions]


@router.get("/{composition_id}", response_model=CompositionResponse)
def get_composition(
    composition_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    try:
        composition = composition_store.get_composition(db, caller.user_id, composition_id)
    except StoreUnavailable:
        raise _store_failure(caller, "get", composition_id)
    if composition is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return _composition_to_response(composition)


@router.post("", response_model=CompositionResponse, status_code=201, responses=BAD_REQUEST)
def create_composition(
    response: Response,
    payload: Any = Body(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    """Create a composition owned by the caller, with its initial players."""
    draft = _validated(payload)
    try:
        composition = composition_store.create_composition(db, caller.user_id, draft)
    except StoreUnavailable:
        raise _store_failure(caller, "create")
    response.headers["Location"] = f"/compositions/{composition.id}"
    return _composition_to_response(composition)


@router.put("/{composition_id}", status_code=204, responses=BAD_REQUEST)
def update_composition(
    composition_id: int,
    payload: Any = Body(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    """Full replace: fields are overwritten and the player list is recreated."""
    draft = _validated(payload)
    try:
        updated = composition_store.update_composition(db, caller.user_id, composition_id, draft)
    except StoreUnavailable:
        raise _store_failure(caller, "update", composition_id)
    if updated is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return Response(status_code=204)


@router.patch("/{composition_id}/favorite", response_model=CompositionResponse, responses=BAD_REQUEST)
def set_favorite(
    composition_id: int,
    req: FavoriteUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    try:
        composition = composition_store.set_favorite(db, caller.user_id, composition_id, req.is_favorite)
    except StoreUnavailable:
        raise _store_failure(caller, "favorite", composition_id)
    if composition is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return _composition_to_response(composition)


@router.delete("/{composition_id}", status_code=204)
def delete_composition(
    composition_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    try:
        deleted = composition_store.delete_composition(db, caller.user_id, composition_id)
    except StoreUnavailable:
        raise _store_failure(caller, "delete", composition_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return Response(status_code=204)


@router.get("/{composition_id}/export.pdf")
def export_composition(
    composition_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    """Download the two-page PDF (pitch diagram + roster)."""
    try:
        composition = composition_store.get_composition(db, caller.user_id, composition_id)
    except StoreUnavailable:
        raise _store_failure(caller, "export", composition_id)
    if composition is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)

    try:
        data = export_composition_pdf(composition)
    except ExportError:
        logger.error(f"Export failed for user {caller.user_id} (composition {composition_id})")
        return JSONResponse(status_code=500, content={"detail": "Export failed"})

    filename = safe_filename(composition.name)
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
