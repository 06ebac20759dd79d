"""Composition request/response schemas.

Wire format is camelCase (`playerName`, `isFavorite`, ...); the Python side
stays snake_case through the alias generator.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class PlayerPositionIn(CamelModel):
    # Strict: booleans and numeric strings are malformed, JSON ints still pass.
    player_name: str
    position: Optional[str] = None
    number: Optional[int] = Field(default=None, strict=True)
    color: Optional[str] = None
    x: float = Field(strict=True)
    y: float = Field(strict=True)


class CompositionDraft(CamelModel):
    """Body of POST /compositions and PUT /compositions/{id} (full replace)."""

    name: str
    formation: str
    description: Optional[str] = None
    is_favorite: bool = False
    players: list[PlayerPositionIn] = []


class FavoriteUpdate(CamelModel):
    is_favorite: bool


class PlayerPositionResponse(CamelModel):
    id: int
    player_name: str
    position: Optional[str] = None
    number: Optional[int] = None
    color: Optional[str] = None
    x: float
    y: float


class CompositionResponse(CamelModel):
    id: int
    name: str
    formation: str
    description: Optional[str] = None
    is_favorite: bool
    players: list[PlayerPositionResponse] = []
    created_at: str
    updated_at: str


class FieldErrorResponse(BaseModel):
    field: str
    message: str


class ValidationErrorDetail(BaseModel):
    message: str = "Validation failed"
    errors: list[FieldErrorResponse]


class ValidationErrorResponse(BaseModel):
    """Body of every 400 from the composition routes."""

    detail: ValidationErrorDetail
