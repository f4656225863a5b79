"""Match controller.

A reducer over :class:`~.models.Match`: each operation takes the current
match and returns the next one, cascading game → set → tiebreak → match
transitions through the engine in :mod:`.tennis`.

The functions never mutate their argument and never raise for a valid
match and player. Events that do not apply (a completed or paused match, a
finished set, undo inside a tiebreak) return an unchanged copy, so callers
detect a rejected event by comparing states.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from pydantic import TypeAdapter

from .models import (
    PLAYERS,
    SETS_IN_FORMAT,
    SETS_TO_WIN,
    GameResult,
    GamesAdjusted,
    GameScore,
    Match,
    MatchComplete,
    MatchConfig,
    MatchEvent,
    MatchPaused,
    MatchResumed,
    Player,
    PointRemoved,
    PointSituation,
    PointWon,
    ServerChanged,
    SetScore,
    SetWin,
    TennisPoint,
    TieBreakScore,
    TieBreakTally,
    TiebreakResult,
    other_player,
)
from .tennis import (
    DEFAULT_FINAL_SET_TIE_BREAK_POINTS,
    add_point_to_game,
    add_point_to_tie_break,
    game_winner,
    is_set_won,
    is_tie_break_needed,
    remove_point_from_game,
    tie_break_opener,
)

logger = logging.getLogger(__name__)

_event_adapter: TypeAdapter = TypeAdapter(MatchEvent)
_SITUATION_RANK = {"break-point": 1, "set-point": 2, "match-point": 3}


def create_match(
    config: Union[MatchConfig, Mapping[str, Any]], *, first_server: Player = "player1"
) -> Match:
    """Start a match: one empty set and a 0-0 game.

    ``config`` may be a validated :class:`MatchConfig` or its JSON mapping;
    invalid configurations raise :class:`pydantic.ValidationError` here,
    before any scoring happens.
    """

    if not isinstance(config, MatchConfig):
        config = MatchConfig.model_validate(config)
    return Match(config=config, current_game_score=GameScore(server=first_server))


# -----------------------------------------------------------------------------
# Derived values
# -----------------------------------------------------------------------------
def sets_to_win(config: MatchConfig) -> int:
    return SETS_TO_WIN[config.match_format]


def is_final_set_tie_break(config: MatchConfig, set_number: int) -> bool:
    """True when ``set_number`` is the deciding set and is played as a tiebreak."""
    if not config.final_set_tie_break or config.match_format == "single":
        return False
    return set_number == SETS_IN_FORMAT[config.match_format]


def sets_won(match: Match) -> Tuple[int, int]:
    completed = [s for s in match.sets if s.is_complete]
    return (
        sum(1 for s in completed if s.winner == "player1"),
        sum(1 for s in completed if s.winner == "player2"),
    )


def format_scoreline(sets: Iterable[SetScore], winner: Player) -> str:
    """Render completed sets as ``"6-4, 6-7(7-5)..."``-style text.

    Games are shown from ``winner``'s side; tiebreak points are shown
    winner-first.
    """

    loser = other_player(winner)
    parts = []
    for set_score in sets:
        if not set_score.is_complete:
            continue
        text = f"{set_score.games(winner)}-{set_score.games(loser)}"
        tally = set_score.tie_break_score
        if tally is not None:
            high = max(tally.player1_points, tally.player2_points)
            low = min(tally.player1_points, tally.player2_points)
            text += f"({high}-{low})"
        parts.append(text)
    return ", ".join(parts)


def running_scoreline(match: Match) -> str:
    """Every started set as ``player1-player2`` games, e.g. ``"6-4, 2-3"``.

    Sets decided by a tiebreak carry the tiebreak points the same way.
    """

    parts = []
    for index, set_score in enumerate(match.sets, start=1):
        if index > match.current_set:
            break
        text = f"{set_score.player1_games}-{set_score.player2_games}"
        tally = set_score.tie_break_score
        if tally is not None:
            text += f"({tally.player1_points}-{tally.player2_points})"
        parts.append(text)
    return ", ".join(parts)


def format_point(point: TennisPoint, opponent_point: Optional[TennisPoint] = None) -> str:
    """Scoreboard label for a game point value."""
    if point == TennisPoint.LOVE:
        return "" if opponent_point == TennisPoint.ADVANTAGE else "0"
    if point == TennisPoint.ADVANTAGE:
        return "Ad"
    if point == TennisPoint.GAME:
        return "Game"
    return point.value


# -----------------------------------------------------------------------------
# Internal transitions (operate on a private copy)
# -----------------------------------------------------------------------------
def _active_set(match: Match) -> Optional[SetScore]:
    index = match.current_set - 1
    if index >= len(match.sets):
        return None
    return match.sets[index]


def _accepts_events(match: Match, action: str) -> bool:
    if match.status != "in-progress":
        logger.debug("Ignoring %s: match is %s", action, match.status)
        return False
    current = _active_set(match)
    if current is None or current.is_complete:
        logger.debug("Ignoring %s: set %d is already complete", action, match.current_set)
        return False
    return True


def _add_games(set_score: SetScore, player: Player, delta: int) -> None:
    if player == "player1":
        set_score.player1_games = max(0, set_score.player1_games + delta)
    else:
        set_score.player2_games = max(0, set_score.player2_games + delta)


def _enter_tie_break(match: Match, server: Player) -> None:
    match.current_game_score = GameScore(server=server)
    match.is_tie_break = True
    match.tie_break_score = TieBreakScore(server=server)


def _start_next_set(match: Match, server: Player) -> None:
    match.current_set += 1
    if len(match.sets) < match.current_set:
        match.sets.append(SetScore())
    match.game_number = 1
    match.current_game_score = GameScore(server=server)
    match.is_tie_break = False
    match.tie_break_score = None
    if is_final_set_tie_break(match.config, match.current_set):
        _enter_tie_break(match, server)


def _complete_match_if_decided(match: Match) -> bool:
    player1_sets, player2_sets = sets_won(match)
    if max(player1_sets, player2_sets) < sets_to_win(match.config):
        return False

    # Equal counts cannot happen under the rules above; player1 is kept as
    # the fallback to stay compatible with stored matches.
    winner: Player = "player1" if player1_sets >= player2_sets else "player2"
    scoreline = format_scoreline(match.sets, winner)
    match.status = "completed"
    match.match_winner = winner
    match.final_scoreline = scoreline
    match.is_tie_break = False
    match.tie_break_score = None
    match.game_history.append(
        MatchComplete(
            winner=winner,
            final_scoreline=scoreline,
            player1_sets=player1_sets,
            player2_sets=player2_sets,
        )
    )
    return True


def _close_set(match: Match, winner: Player, next_server: Player) -> None:
    current = match.sets[match.current_set - 1]
    current.is_complete = True
    current.winner = winner
    if not _complete_match_if_decided(match):
        _start_next_set(match, next_server)


def _resolve_set(match: Match, next_server: Player, *, record_set_win: bool) -> None:
    """Apply what the active set's game tally implies: tiebreak, set or nothing."""
    current = match.sets[match.current_set - 1]
    config = match.config

    if is_tie_break_needed(current, config):
        _enter_tie_break(match, next_server)
        return

    if is_set_won(current, config):
        winner: Player = (
            "player1" if current.player1_games > current.player2_games else "player2"
        )
        if record_set_win:
            match.game_history.append(
                SetWin(
                    set_number=match.current_set,
                    winner=winner,
                    player1_games=current.player1_games,
                    player2_games=current.player2_games,
                )
            )
        _close_set(match, winner, next_server)


def _score_game_point(match: Match, player: Player) -> None:
    game = add_point_to_game(match.current_game_score, player, match.config)
    winner = game_winner(game)
    if winner is None:
        match.current_game_score = game
        return

    current = match.sets[match.current_set - 1]
    _add_games(current, winner, 1)
    match.game_history.append(
        GameResult(
            set_number=match.current_set,
            game_number=match.game_number,
            server=game.server,
            winner=winner,
            player1_games=current.player1_games,
            player2_games=current.player2_games,
        )
    )
    match.game_number += 1
    next_server = other_player(game.server)
    match.current_game_score = GameScore(server=next_server)
    _resolve_set(match, next_server, record_set_win=False)


def _score_tie_break_point(match: Match, player: Player) -> None:
    config = match.config
    set_number = match.current_set
    tie_break = match.tie_break_score or TieBreakScore(
        server=match.current_game_score.server
    )
    tie_break = add_point_to_tie_break(
        tie_break,
        player,
        config,
        is_final_set_tie_break(config, set_number),
        config.final_set_tie_break_points or DEFAULT_FINAL_SET_TIE_BREAK_POINTS,
    )
    if not tie_break.is_complete or tie_break.winner is None:
        match.tie_break_score = tie_break
        return

    winner = tie_break.winner
    match.game_history.append(
        TiebreakResult(
            set_number=set_number,
            winner=winner,
            player1_points=tie_break.player1_points,
            player2_points=tie_break.player2_points,
        )
    )
    current = match.sets[set_number - 1]
    _add_games(current, winner, 1)
    current.tie_break_score = TieBreakTally(
        player1_points=tie_break.player1_points,
        player2_points=tie_break.player2_points,
    )
    match.is_tie_break = False
    match.tie_break_score = None
    _close_set(match, winner, other_player(tie_break_opener(tie_break)))


# -----------------------------------------------------------------------------
# Operations
# -----------------------------------------------------------------------------
def score_point(match: Match, player: Player) -> Match:
    if not _accepts_events(match, f"point for {player}"):
        return match.model_copy(deep=True)

    updated = match.model_copy(deep=True)
    if updated.is_tie_break:
        _score_tie_break_point(updated, player)
    else:
        _score_game_point(updated, player)
    return updated


def remove_point(match: Match, player: Player) -> Match:
    """Take back the last point credited to ``player`` in the current game.

    Not supported inside a tiebreak; the match is returned unchanged.
    """

    if not _accepts_events(match, f"undo for {player}"):
        return match.model_copy(deep=True)
    if match.is_tie_break:
        logger.debug("Ignoring undo for %s: tiebreak points cannot be removed", player)
        return match.model_copy(deep=True)

    updated = match.model_copy(deep=True)
    updated.current_game_score = remove_point_from_game(
        updated.current_game_score, player, updated.config
    )
    return updated


def set_server(match: Match, player: Player) -> Match:
    if not _accepts_events(match, f"server change to {player}"):
        return match.model_copy(deep=True)

    updated = match.model_copy(deep=True)
    if updated.is_tie_break and updated.tie_break_score is not None:
        updated.tie_break_score.server = player
    else:
        updated.current_game_score.server = player
    return updated


def adjust_games(match: Match, set_number: int, player: Player, delta: int) -> Match:
    """Correct the game tally of the active set by ``delta`` (floored at 0).

    The set is re-evaluated afterwards, so an adjustment can open a
    tiebreak or close the set (recorded as a ``SetWin`` history entry).
    """

    if delta == 0 or set_number != match.current_set:
        return match.model_copy(deep=True)
    if not _accepts_events(match, f"game adjustment for {player}"):
        return match.model_copy(deep=True)

    updated = match.model_copy(deep=True)
    current = updated.sets[set_number - 1]
    before = current.games(player)
    _add_games(current, player, delta)
    if current.games(player) == before:
        return updated

    server = updated.current_game_score.server
    if updated.is_tie_break and not is_final_set_tie_break(updated.config, set_number):
        updated.is_tie_break = False
        updated.tie_break_score = None
    if not updated.is_tie_break:
        _resolve_set(updated, server, record_set_win=True)
    return updated


def pause_match(match: Match) -> Match:
    updated = match.model_copy(deep=True)
    if updated.status == "in-progress":
        updated.status = "paused"
    return updated


def resume_match(match: Match) -> Match:
    updated = match.model_copy(deep=True)
    if updated.status == "paused":
        updated.status = "in-progress"
    return updated


def reduce(match: Match, event: Union[MatchEvent, Mapping[str, Any]]) -> Match:
    """Apply one event. Mappings are validated against the event union first."""
    if isinstance(event, Mapping):
        event = _event_adapter.validate_python(event)

    if isinstance(event, PointWon):
        return score_point(match, event.player)
    if isinstance(event, PointRemoved):
        return remove_point(match, event.player)
    if isinstance(event, ServerChanged):
        return set_server(match, event.player)
    if isinstance(event, GamesAdjusted):
        return adjust_games(match, event.set_number, event.player, event.delta)
    if isinstance(event, MatchPaused):
        return pause_match(match)
    if isinstance(event, MatchResumed):
        return resume_match(match)
    raise TypeError(f"unsupported match event: {type(event).__name__}")


def replay(
    config: Union[MatchConfig, Mapping[str, Any]],
    events: Iterable[Union[MatchEvent, Mapping[str, Any]]],
) -> Match:
    match = create_match(config)
    for event in events:
        match = reduce(match, event)
    return match


def point_situation(match: Match) -> Optional[PointSituation]:
    """Report whether the next point is a match, set or break point.

    Worked out by scoring the next point for each player on a copy. When
    both players have something at stake the more significant one wins.
    """

    if not _accepts_events(match, "point situation"):
        return None

    best: Optional[PointSituation] = None
    for player in PLAYERS:
        after = score_point(match, player)
        if after.status == "completed":
            kind = "match-point"
        elif after.current_set != match.current_set:
            kind = "set-point"
        elif (
            not match.is_tie_break
            and len(after.game_history) > len(match.game_history)
            and player != match.current_game_score.server
        ):
            kind = "break-point"
        else:
            continue
        if best is None or _SITUATION_RANK[kind] > _SITUATION_RANK[best.kind]:
            best = PointSituation(kind=kind, player=player)
    return best
