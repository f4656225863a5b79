"""Tennis scoring core: data model, point/game engine and match reducer."""

from . import match, models, tennis
from .match import (
    adjust_games,
    create_match,
    format_point,
    format_scoreline,
    pause_match,
    point_situation,
    reduce,
    remove_point,
    replay,
    running_scoreline,
    resume_match,
    score_point,
    set_server,
    sets_to_win,
    sets_won,
)
from .models import Match, MatchConfig, MatchEvent, Player

__all__ = [
    "match",
    "models",
    "tennis",
    "Match",
    "MatchConfig",
    "MatchEvent",
    "Player",
    "adjust_games",
    "create_match",
    "format_point",
    "format_scoreline",
    "pause_match",
    "point_situation",
    "reduce",
    "remove_point",
    "replay",
    "running_scoreline",
    "resume_match",
    "score_point",
    "set_server",
    "sets_to_win",
    "sets_won",
]
