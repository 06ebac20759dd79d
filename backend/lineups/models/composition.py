"""TeamComposition and PlayerPosition models.

Player coordinates are normalized to the field: x=0 is the left touchline,
x=1 the right one; y=0 is the bottom edge and y=1 the top edge. Values are
stored as given, without clamping.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from lineups.database import Base


class TeamComposition(Base):
    __tablename__ = "team_compositions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    formation = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    is_favorite = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    user = relationship("User", back_populates="compositions")
    players = relationship(
        "PlayerPosition",
        back_populates="composition",
        order_by="PlayerPosition.id",
        passive_deletes=True,
    )


class PlayerPosition(Base):
    __tablename__ = "player_positions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_composition_id = Column(
        Integer,
        ForeignKey("team_compositions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    player_name = Column(String(200), nullable=False)
    position = Column(String(100), nullable=True)  # role label, e.g. "Left Winger"
    number = Column(Integer, nullable=True)
    color = Column(String(20), nullable=True)
    x = Column(Float, nullable=False)
    y = Column(Float, nullable=False)

    # Relationships
    composition = relationship("TeamComposition", back_populates="players")
