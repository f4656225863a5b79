"""Tennis scoring engine.
Advances points → games and tiebreak points, and evaluates set conditions.

All functions are pure: they return new score objects and leave their
arguments untouched. Callers are expected to retire a game once either side
shows ``game``; further calls on a decided game return it unchanged.
"""

from typing import Dict, Optional

from .models import (
    GameScore,
    MatchConfig,
    Player,
    SetScore,
    TennisPoint,
    TieBreakScore,
    other_player,
)

_LADDER = (
    TennisPoint.LOVE,
    TennisPoint.FIFTEEN,
    TennisPoint.THIRTY,
    TennisPoint.FORTY,
)
_POINT_FIELDS = {"player1": "player1_points", "player2": "player2_points"}

DEFAULT_FINAL_SET_TIE_BREAK_POINTS = 10


def _with_points(game_score: GameScore, updates: Dict[Player, TennisPoint]) -> GameScore:
    return game_score.model_copy(
        update={_POINT_FIELDS[player]: point for player, point in updates.items()}
    )


def game_winner(game_score: GameScore) -> Optional[Player]:
    """Return the player showing ``game``, if any."""
    if game_score.player1_points == TennisPoint.GAME:
        return "player1"
    if game_score.player2_points == TennisPoint.GAME:
        return "player2"
    return None


def add_point_to_game(
    game_score: GameScore, scoring_player: Player, config: MatchConfig
) -> GameScore:
    if game_winner(game_score) is not None:
        return game_score.model_copy()

    opponent = other_player(scoring_player)
    mine = game_score.points(scoring_player)
    theirs = game_score.points(opponent)

    if mine in (TennisPoint.LOVE, TennisPoint.FIFTEEN, TennisPoint.THIRTY):
        step = _LADDER[_LADDER.index(mine) + 1]
        return _with_points(game_score, {scoring_player: step})

    if mine == TennisPoint.FORTY:
        # No-ad: 40 always converts, deuce included.
        if config.scoring_system == "no-ad" or theirs not in (
            TennisPoint.FORTY,
            TennisPoint.ADVANTAGE,
        ):
            return _with_points(game_score, {scoring_player: TennisPoint.GAME})
        if theirs == TennisPoint.FORTY:
            return _with_points(game_score, {scoring_player: TennisPoint.ADVANTAGE})
        # Opponent loses the advantage: back to deuce.
        return _with_points(
            game_score,
            {scoring_player: TennisPoint.FORTY, opponent: TennisPoint.FORTY},
        )

    if mine == TennisPoint.ADVANTAGE:
        return _with_points(game_score, {scoring_player: TennisPoint.GAME})

    return game_score.model_copy()


def remove_point_from_game(
    game_score: GameScore, scoring_player: Player, config: MatchConfig
) -> GameScore:
    """Step ``scoring_player`` back one rung, for correcting a mis-scored point."""
    opponent = other_player(scoring_player)
    mine = game_score.points(scoring_player)
    theirs = game_score.points(opponent)

    if mine == TennisPoint.LOVE:
        return game_score.model_copy()

    if mine in (TennisPoint.FIFTEEN, TennisPoint.THIRTY):
        step = _LADDER[_LADDER.index(mine) - 1]
        return _with_points(game_score, {scoring_player: step})

    if mine == TennisPoint.FORTY:
        if theirs == TennisPoint.ADVANTAGE:
            return _with_points(
                game_score,
                {scoring_player: TennisPoint.THIRTY, opponent: TennisPoint.FORTY},
            )
        return _with_points(game_score, {scoring_player: TennisPoint.THIRTY})

    if mine == TennisPoint.ADVANTAGE:
        return _with_points(
            game_score,
            {scoring_player: TennisPoint.FORTY, opponent: TennisPoint.FORTY},
        )

    # Undo a won game.
    if config.scoring_system == "ad" and theirs == TennisPoint.FORTY:
        return _with_points(game_score, {scoring_player: TennisPoint.ADVANTAGE})
    return _with_points(game_score, {scoring_player: TennisPoint.FORTY})


def is_set_won(set_score: SetScore, config: MatchConfig) -> bool:
    a, b = set_score.player1_games, set_score.player2_games
    needed = config.set_duration
    return (a >= needed and a - b >= 2) or (b >= needed and b - a >= 2)


def is_tie_break_needed(set_score: SetScore, config: MatchConfig) -> bool:
    if config.tie_break_rules == "none":
        return False
    needed = config.set_duration
    return set_score.player1_games == needed and set_score.player2_games == needed


def tie_break_points_required(
    config: MatchConfig,
    is_final_set_tie_break: bool = False,
    final_set_tie_break_points: Optional[int] = None,
) -> int:
    if is_final_set_tie_break:
        return final_set_tie_break_points or DEFAULT_FINAL_SET_TIE_BREAK_POINTS
    return 10 if config.tie_break_rules == "10-point" else 7


def tie_break_opener(tie_break_score: TieBreakScore) -> Player:
    """Player who served the first point of the tiebreak.

    ``server`` is whoever serves point ``n + 1``; under 1-2-2 rotation the
    opener serves points 1, 4, 5, 8, 9 ...
    """
    next_point_number = tie_break_score.player1_points + tie_break_score.player2_points + 1
    if next_point_number % 4 in (0, 1):
        return tie_break_score.server
    return other_player(tie_break_score.server)


def add_point_to_tie_break(
    tie_break_score: TieBreakScore,
    scoring_player: Player,
    config: MatchConfig,
    is_final_set_tie_break: bool = False,
    final_set_tie_break_points: Optional[int] = None,
) -> TieBreakScore:
    """Add a tiebreak point and work out who serves the next one.

    Serves follow the 1-2-2-2 pattern: the opening server takes point 1 alone,
    then each player serves two in a row. The returned ``server`` is the
    player due to serve the *next* point.
    """

    if tie_break_score.is_complete:
        return tie_break_score.model_copy()

    required = tie_break_points_required(
        config, is_final_set_tie_break, final_set_tie_break_points
    )
    played = tie_break_score.player1_points + tie_break_score.player2_points
    points = {
        "player1": tie_break_score.player1_points,
        "player2": tie_break_score.player2_points,
    }
    points[scoring_player] += 1
    mine = points[scoring_player]
    theirs = points[other_player(scoring_player)]
    complete = mine >= required and mine - theirs >= 2

    next_point_number = played + 2
    server = tie_break_score.server
    if next_point_number % 2 == 0:
        server = other_player(server)

    return TieBreakScore(
        player1_points=points["player1"],
        player2_points=points["player2"],
        is_complete=complete,
        winner=scoring_player if complete else None,
        server=server,
    )
