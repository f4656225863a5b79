#!/usr/bin/env python3
"""Replay a sequence of points through the scoring core and print the result.

Handy for checking a disputed score or reproducing a bug report without a
running API::

    python backend/scripts/replay_match.py --format single --set-duration 4 \
        "1111 1111 1111 1111"

Points are written as ``1`` or ``2`` (the player who won the point) and may
be grouped freely with spaces or commas. ``u1``/``u2`` take back the last
point credited to that player.
"""

from __future__ import annotations

import argparse
import json
import os
import re
import sys
from typing import List, Optional, Sequence

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pydantic import ValidationError

from courtside import scoring
from courtside.scoring.models import (
    Match,
    MatchConfig,
    MatchEvent,
    Player,
    PointRemoved,
    PointWon,
)

_PLAYER_BY_DIGIT: dict[str, Player] = {"1": "player1", "2": "player2"}
_SEPARATORS = re.compile(r"[\s,]+")


def parse_points(raw: str) -> List[MatchEvent]:
    """Turn ``"11 2u2,1"``-style text into point and undo events."""

    events: List[MatchEvent] = []
    for chunk in _SEPARATORS.split(raw.strip()):
        index = 0
        while index < len(chunk):
            char = chunk[index].lower()
            if char == "u":
                digit = chunk[index + 1 : index + 2]
                if digit not in _PLAYER_BY_DIGIT:
                    raise ValueError(f"undo token must be u1 or u2 (got {chunk!r})")
                events.append(PointRemoved(player=_PLAYER_BY_DIGIT[digit]))
                index += 2
                continue
            if char not in _PLAYER_BY_DIGIT:
                raise ValueError(f"unexpected character {chunk[index]!r} in points")
            events.append(PointWon(player=_PLAYER_BY_DIGIT[char]))
            index += 1
    return events


def _build_config(args: argparse.Namespace) -> MatchConfig:
    return MatchConfig(
        scoring_system=args.scoring,
        match_format=args.format,
        set_duration=args.set_duration,
        tie_break_rules=args.tiebreak,
        player1_name=args.player1,
        player2_name=args.player2,
        final_set_tie_break=args.final_set_tiebreak is not None,
        final_set_tie_break_points=args.final_set_tiebreak,
    )


def summarize(match: Match) -> str:
    config = match.config
    lines = [f"{config.player1_name} vs {config.player2_name}"]
    if match.is_completed and match.match_winner is not None:
        winner = config.player_name(match.match_winner)
        lines.append(f"{winner} won {match.final_scoreline}")
        return "\n".join(lines)

    lines.append(f"Sets: {scoring.running_scoreline(match)} ({match.status})")
    if match.is_tie_break and match.tie_break_score is not None:
        tie_break = match.tie_break_score
        lines.append(
            f"Tiebreak: {tie_break.player1_points}-{tie_break.player2_points}"
        )
        server = tie_break.server
    else:
        game = match.current_game_score
        p1 = scoring.format_point(game.player1_points, game.player2_points)
        p2 = scoring.format_point(game.player2_points, game.player1_points)
        lines.append(f"Game: {p1 or '-'} / {p2 or '-'}")
        server = game.server
    lines.append(f"Serving: {config.player_name(server)}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replay points through the tennis scoring core."
    )
    parser.add_argument(
        "points",
        nargs="*",
        help="Point winners as 1/2 characters; u1/u2 undo a point.",
    )
    parser.add_argument(
        "--format",
        default="best-of-3",
        choices=["single", "best-of-3", "best-of-5"],
    )
    parser.add_argument("--scoring", default="ad", choices=["ad", "no-ad"])
    parser.add_argument("--set-duration", type=int, default=6)
    parser.add_argument(
        "--tiebreak",
        default="7-point",
        choices=["none", "7-point", "10-point"],
    )
    parser.add_argument(
        "--final-set-tiebreak",
        type=int,
        metavar="POINTS",
        help="Play the deciding set as a single tiebreak to POINTS (7 or 10).",
    )
    parser.add_argument("--player1", default="Player 1")
    parser.add_argument("--player2", default="Player 2")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the final match state as JSON instead of a summary.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = _build_config(args)
    except ValidationError as exc:
        print(f"Invalid match configuration:\n{exc}", file=sys.stderr)
        return 2

    try:
        events = parse_points(" ".join(args.points))
    except ValueError as exc:
        parser.error(str(exc))

    match = scoring.replay(config, events)
    if args.json:
        print(json.dumps(match.to_json(), indent=2))
    else:
        print(summarize(match))
    return 0


if __name__ == "__main__":
    sys.exit(main())
