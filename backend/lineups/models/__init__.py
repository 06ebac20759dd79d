"""SQLAlchemy ORM models."""

from lineups.models.user import User
from lineups.models.refresh_token import RefreshToken
from lineups.models.composition import TeamComposition, PlayerPosition

__all__ = [
    "User",
    "RefreshToken",
    "TeamComposition",
    "PlayerPosition",
]
