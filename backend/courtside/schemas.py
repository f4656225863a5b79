from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .scoring.models import (
    GamesAdjusted,
    Match,
    MatchConfig,
    MatchEvent,
    MatchPaused,
    MatchResumed,
    MatchStatus,
    Player,
    PointRemoved,
    PointSituation,
    PointWon,
    ServerChanged,
)


class MatchCreate(BaseModel):
    config: MatchConfig
    firstServer: Player = "player1"


class MatchOut(BaseModel):
    id: str
    version: int
    shareUrl: str
    createdAt: datetime
    updatedAt: datetime
    state: Match
    situation: Optional[PointSituation] = None


class MatchCreatedOut(BaseModel):
    """Returned once, on creation: the admin token is never shown again."""

    match: MatchOut
    adminToken: str


class MatchSummaryOut(BaseModel):
    id: str
    player1Name: str
    player2Name: str
    status: MatchStatus
    scoreline: str
    matchWinner: Optional[Player] = None
    updatedAt: datetime


class MatchListOut(BaseModel):
    matches: List[MatchSummaryOut]
    limit: int
    offset: int


_PLAYER_EVENTS = {"POINT", "UNDO", "SERVER", "ADJUST"}


class EventIn(BaseModel):
    type: Literal["POINT", "UNDO", "SERVER", "ADJUST", "PAUSE", "RESUME"]
    player: Optional[Player] = None
    setNumber: Optional[int] = Field(default=None, ge=1)
    delta: Optional[int] = None
    expectedVersion: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _validate_fields(self) -> "EventIn":
        if self.type in _PLAYER_EVENTS and self.player is None:
            raise ValueError(f"player is required for {self.type} events")
        if self.type == "ADJUST":
            missing = [
                field
                for field in ("setNumber", "delta")
                if getattr(self, field) is None
            ]
            if missing:
                raise ValueError("setNumber and delta are required for ADJUST events")
        return self

    def to_event(self) -> MatchEvent:
        if self.type == "POINT":
            return PointWon(player=self.player)
        if self.type == "UNDO":
            return PointRemoved(player=self.player)
        if self.type == "SERVER":
            return ServerChanged(player=self.player)
        if self.type == "ADJUST":
            return GamesAdjusted(
                set_number=self.setNumber, player=self.player, delta=self.delta
            )
        if self.type == "PAUSE":
            return MatchPaused()
        return MatchResumed()
