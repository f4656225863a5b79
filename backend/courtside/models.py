from sqlalchemy import Column, DateTime, Index, Integer, JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from .db import Base


class MatchRecord(Base):
    """Stored snapshot of one live match.

    ``state`` holds the full camelCase JSON of the scoring aggregate; the
    other columns are copies or bookkeeping used for listing, token checks
    and optimistic concurrency (``version``).
    """

    __tablename__ = "match"

    id = Column(String, primary_key=True)
    state = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    status = Column(String, nullable=False, default="in-progress")
    player1_name = Column(String, nullable=False)
    player2_name = Column(String, nullable=False)
    admin_token_hash = Column(String, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (Index("ix_match_status_updated_at", "status", "updated_at"),)
