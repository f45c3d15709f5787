"""
SQLAlchemy models for players and adventures.
"""

from datetime import datetime
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from .database import Base


class Player(Base):
    __tablename__ = "players"

    id = Column(String(36), primary_key=True)  # uuid
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(64), unique=True, nullable=False, index=True)  # display name, no spaces/special
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class AdventureRecord(Base):
    __tablename__ = "adventures"
    __table_args__ = (UniqueConstraint("created_by", "save_slot", name="uq_adventure_slot"),)

    id = Column(String(36), primary_key=True)  # uuid
    name = Column(String(128), nullable=False)  # user-defined adventure name
    join_code = Column(String(8), unique=True, nullable=True, index=True)  # 4-char code for multiplayer; null for solo
    created_at = Column(DateTime, default=datetime.utcnow)
    created_by = Column(String(36), ForeignKey("players.id"), nullable=False)  # creator player_id
    save_slot = Column(Integer, nullable=False, default=0)  # 0..SAVE_SLOTS-1, unique per creator
    status = Column(String(32), nullable=False, default="preparing")  # preparing | started | complete
    adventure_state = Column(Text, nullable=False)  # JSON snapshot (Adventure.to_json)
    players = Column(Text, nullable=False)  # JSON array of { "player_id": str, "goblin": "p1".."p4" }
    config = Column(Text, nullable=True)  # JSON: { "catalog_id": str }
