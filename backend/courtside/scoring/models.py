"""Typed state of a live tennis match.

Everything here is plain data. The rules that move it forward live in
:mod:`.tennis` (points, games, tiebreaks) and :mod:`.match` (sets, match
completion, history).

Models accept and emit the camelCase keys used on the wire
(``player1Points``, ``isTieBreak`` ...) while exposing snake_case attributes
to Python callers. Tennis point values are a closed string enumeration so
that ``"40"`` in a game score is never confused with a raw game count.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Player = Literal["player1", "player2"]
PLAYERS: tuple[Player, Player] = ("player1", "player2")

ScoringSystem = Literal["ad", "no-ad"]
MatchFormat = Literal["single", "best-of-3", "best-of-5"]
TieBreakRules = Literal["none", "7-point", "10-point"]
MatchStatus = Literal["in-progress", "completed", "paused"]

SETS_IN_FORMAT: Dict[str, int] = {"single": 1, "best-of-3": 3, "best-of-5": 5}
SETS_TO_WIN: Dict[str, int] = {"single": 1, "best-of-3": 2, "best-of-5": 3}


def other_player(player: Player) -> Player:
    return "player2" if player == "player1" else "player1"


class TennisPoint(str, Enum):
    LOVE = "0"
    FIFTEEN = "15"
    THIRTY = "30"
    FORTY = "40"
    ADVANTAGE = "advantage"
    GAME = "game"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        """Return the JSON-compatible camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)


class MatchConfig(_WireModel):
    """Rules a match is played under. Immutable once the match starts."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    scoring_system: ScoringSystem = Field(alias="scoringSystem")
    match_format: MatchFormat = Field(alias="matchFormat")
    set_duration: Literal[4, 6, 8] = Field(alias="setDuration")
    tie_break_rules: TieBreakRules = Field(alias="tieBreakRules")
    player1_name: str = Field(alias="player1Name", min_length=1, max_length=100)
    player2_name: str = Field(alias="player2Name", min_length=1, max_length=100)
    final_set_tie_break: bool = Field(default=False, alias="finalSetTieBreak")
    final_set_tie_break_points: Optional[Literal[7, 10]] = Field(
        default=None, alias="finalSetTieBreakPoints"
    )

    @field_validator("player1_name", "player2_name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        if not isinstance(value, str):
            raise TypeError("player names must be strings")
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("player names must not be empty")
        return trimmed

    def player_name(self, player: Player) -> str:
        return self.player1_name if player == "player1" else self.player2_name


class GameScore(_WireModel):
    player1_points: TennisPoint = Field(default=TennisPoint.LOVE, alias="player1Points")
    player2_points: TennisPoint = Field(default=TennisPoint.LOVE, alias="player2Points")
    server: Player = "player1"

    @field_validator("player1_points", "player2_points", mode="before")
    @classmethod
    def _coerce_numeric_point(cls, value: Any) -> Any:
        # Older clients send bare numbers for 0/15/30/40.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def points(self, player: Player) -> TennisPoint:
        return self.player1_points if player == "player1" else self.player2_points


class TieBreakScore(_WireModel):
    player1_points: int = Field(default=0, ge=0, alias="player1Points")
    player2_points: int = Field(default=0, ge=0, alias="player2Points")
    is_complete: bool = Field(default=False, alias="isComplete")
    winner: Optional[Player] = None
    server: Player = "player1"

    def points(self, player: Player) -> int:
        return self.player1_points if player == "player1" else self.player2_points


class TieBreakTally(_WireModel):
    """Final point count of a finished tiebreak, kept on its set."""

    player1_points: int = Field(ge=0, alias="player1Points")
    player2_points: int = Field(ge=0, alias="player2Points")


class SetScore(_WireModel):
    player1_games: int = Field(default=0, ge=0, alias="player1Games")
    player2_games: int = Field(default=0, ge=0, alias="player2Games")
    is_complete: bool = Field(default=False, alias="isComplete")
    winner: Optional[Player] = None
    tie_break_score: Optional[TieBreakTally] = Field(default=None, alias="tieBreakScore")

    def games(self, player: Player) -> int:
        return self.player1_games if player == "player1" else self.player2_games


# -----------------------------------------------------------------------------
# History
# -----------------------------------------------------------------------------
class GameResult(_WireModel):
    type: Literal["game"] = "game"
    set_number: int = Field(alias="setNumber")
    game_number: int = Field(alias="gameNumber")
    server: Player
    winner: Player
    player1_games: int = Field(alias="player1Games")
    player2_games: int = Field(alias="player2Games")


class TiebreakResult(_WireModel):
    type: Literal["tiebreak"] = "tiebreak"
    set_number: int = Field(alias="setNumber")
    winner: Player
    player1_points: int = Field(alias="player1Points")
    player2_points: int = Field(alias="player2Points")


class SetWin(_WireModel):
    type: Literal["set"] = "set"
    set_number: int = Field(alias="setNumber")
    winner: Player
    player1_games: int = Field(alias="player1Games")
    player2_games: int = Field(alias="player2Games")


class MatchComplete(_WireModel):
    type: Literal["match"] = "match"
    winner: Player
    final_scoreline: str = Field(alias="finalScoreline")
    player1_sets: int = Field(alias="player1Sets")
    player2_sets: int = Field(alias="player2Sets")


HistoryEntry = Annotated[
    Union[GameResult, TiebreakResult, SetWin, MatchComplete],
    Field(discriminator="type"),
]


class Match(_WireModel):
    """Root aggregate. Only :mod:`.match` produces new versions of it."""

    config: MatchConfig
    status: MatchStatus = "in-progress"
    current_set: int = Field(default=1, ge=1, alias="currentSet")
    game_number: int = Field(default=1, ge=1, alias="gameNumber")
    sets: List[SetScore] = Field(default_factory=lambda: [SetScore()])
    current_game_score: GameScore = Field(
        default_factory=GameScore, alias="currentGameScore"
    )
    is_tie_break: bool = Field(default=False, alias="isTieBreak")
    tie_break_score: Optional[TieBreakScore] = Field(default=None, alias="tieBreakScore")
    game_history: List[HistoryEntry] = Field(default_factory=list, alias="gameHistory")
    match_winner: Optional[Player] = Field(default=None, alias="matchWinner")
    final_scoreline: Optional[str] = Field(default=None, alias="finalScoreline")

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


# -----------------------------------------------------------------------------
# Events accepted by the reducer
# -----------------------------------------------------------------------------
class PointWon(_WireModel):
    type: Literal["point"] = "point"
    player: Player


class PointRemoved(_WireModel):
    type: Literal["undo"] = "undo"
    player: Player


class ServerChanged(_WireModel):
    type: Literal["server"] = "server"
    player: Player


class GamesAdjusted(_WireModel):
    type: Literal["adjust"] = "adjust"
    set_number: int = Field(ge=1, alias="setNumber")
    player: Player
    delta: int


class MatchPaused(_WireModel):
    type: Literal["pause"] = "pause"


class MatchResumed(_WireModel):
    type: Literal["resume"] = "resume"


MatchEvent = Annotated[
    Union[PointWon, PointRemoved, ServerChanged, GamesAdjusted, MatchPaused, MatchResumed],
    Field(discriminator="type"),
]


class PointSituation(_WireModel):
    """What the next point could decide, for scoreboard banners."""

    kind: Literal["match-point", "set-point", "break-point"]
    player: Player
