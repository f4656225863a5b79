import os, sys
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))
from courtside.scoring import tennis
from courtside.scoring.models import (
    GameScore,
    MatchConfig,
    SetScore,
    TennisPoint,
    TieBreakScore,
)


def _config(**overrides):
    data = {
        "scoringSystem": "ad",
        "matchFormat": "best-of-3",
        "setDuration": 6,
        "tieBreakRules": "7-point",
        "player1Name": "Ana",
        "player2Name": "Bea",
    }
    data.update(overrides)
    return MatchConfig.model_validate(data)


def _game(p1, p2, server="player1"):
    return GameScore(player1_points=p1, player2_points=p2, server=server)


def test_point_progression_to_game():
    config = _config()
    score = GameScore()
    seen = []
    for _ in range(4):
        score = tennis.add_point_to_game(score, "player1", config)
        seen.append(score.player1_points)
    assert seen == [
        TennisPoint.FIFTEEN,
        TennisPoint.THIRTY,
        TennisPoint.FORTY,
        TennisPoint.GAME,
    ]
    assert score.player2_points == TennisPoint.LOVE
    assert tennis.game_winner(score) == "player1"


def test_deuce_advantage_cycle():
    config = _config()
    score = _game("40", "40")

    score = tennis.add_point_to_game(score, "player1", config)
    assert (score.player1_points, score.player2_points) == ("advantage", "40")

    # Advantage is lost, not transferred.
    score = tennis.add_point_to_game(score, "player2", config)
    assert (score.player1_points, score.player2_points) == ("40", "40")

    score = tennis.add_point_to_game(score, "player1", config)
    score = tennis.add_point_to_game(score, "player1", config)
    assert score.player1_points == TennisPoint.GAME
    assert tennis.game_winner(score) == "player1"


def test_forty_wins_outright_when_opponent_below_forty():
    config = _config()
    score = tennis.add_point_to_game(_game("40", "30"), "player1", config)
    assert score.player1_points == TennisPoint.GAME


def test_no_ad_deuce_point_decides_game():
    config = _config(scoringSystem="no-ad")
    score = tennis.add_point_to_game(_game("40", "40"), "player2", config)
    assert (score.player1_points, score.player2_points) == ("40", "game")


def test_add_point_leaves_input_untouched():
    config = _config()
    score = _game("15", "30")
    tennis.add_point_to_game(score, "player1", config)
    assert score.player1_points == TennisPoint.FIFTEEN


def test_decided_game_is_returned_unchanged():
    config = _config()
    score = _game("game", "15")
    assert tennis.add_point_to_game(score, "player2", config) == score


def test_numeric_points_are_accepted():
    score = GameScore.model_validate({"player1Points": 15, "player2Points": 0})
    assert score.player1_points == TennisPoint.FIFTEEN
    assert score.player2_points == TennisPoint.LOVE


@pytest.mark.parametrize(
    "before, scoring_system, expected",
    [
        (("30", "0"), "ad", ("15", "0")),
        (("15", "0"), "ad", ("0", "0")),
        (("0", "30"), "ad", ("0", "30")),
        (("40", "15"), "ad", ("30", "15")),
        (("40", "advantage"), "ad", ("30", "40")),
        (("advantage", "40"), "ad", ("40", "40")),
        (("game", "40"), "ad", ("advantage", "40")),
        (("game", "30"), "ad", ("40", "30")),
        (("game", "40"), "no-ad", ("40", "40")),
    ],
)
def test_remove_point_from_game(before, scoring_system, expected):
    config = _config(scoringSystem=scoring_system)
    score = tennis.remove_point_from_game(_game(*before), "player1", config)
    assert (score.player1_points, score.player2_points) == expected


@pytest.mark.parametrize(
    "games, duration, won",
    [
        ((6, 4), 6, True),
        ((6, 5), 6, False),
        ((7, 5), 6, True),
        ((5, 7), 6, True),
        ((4, 2), 4, True),
        ((4, 3), 4, False),
        ((8, 6), 8, True),
        ((7, 6), 8, False),
    ],
)
def test_is_set_won(games, duration, won):
    config = _config(setDuration=duration)
    set_score = SetScore(player1_games=games[0], player2_games=games[1])
    assert tennis.is_set_won(set_score, config) is won


def test_is_tie_break_needed():
    assert tennis.is_tie_break_needed(
        SetScore(player1_games=6, player2_games=6), _config()
    )
    assert not tennis.is_tie_break_needed(
        SetScore(player1_games=6, player2_games=5), _config()
    )
    assert not tennis.is_tie_break_needed(
        SetScore(player1_games=6, player2_games=6), _config(tieBreakRules="none")
    )
    assert tennis.is_tie_break_needed(
        SetScore(player1_games=4, player2_games=4), _config(setDuration=4)
    )


def test_tie_break_needs_two_point_margin():
    config = _config()
    score = TieBreakScore(player1_points=6, player2_points=6)
    score = tennis.add_point_to_tie_break(score, "player1", config)
    assert (score.player1_points, score.is_complete) == (7, False)
    score = tennis.add_point_to_tie_break(score, "player1", config)
    assert score.is_complete
    assert score.winner == "player1"


def test_ten_point_tie_break():
    config = _config(tieBreakRules="10-point")
    score = TieBreakScore(player1_points=0, player2_points=6)
    score = tennis.add_point_to_tie_break(score, "player2", config)
    assert not score.is_complete
    for _ in range(3):
        score = tennis.add_point_to_tie_break(score, "player2", config)
    assert score.player2_points == 10
    assert score.is_complete
    assert score.winner == "player2"


def test_final_set_tie_break_points_override_rules():
    config = _config(tieBreakRules="7-point")
    score = TieBreakScore(player1_points=6, player2_points=0)
    score = tennis.add_point_to_tie_break(
        score, "player1", config, is_final_set_tie_break=True
    )
    assert not score.is_complete

    score = TieBreakScore(player1_points=6, player2_points=0)
    score = tennis.add_point_to_tie_break(
        score,
        "player1",
        config,
        is_final_set_tie_break=True,
        final_set_tie_break_points=7,
    )
    assert score.is_complete


def test_tie_break_serve_rotation():
    config = _config()
    score = TieBreakScore(server="player1")
    servers = [score.server]
    for _ in range(6):
        score = tennis.add_point_to_tie_break(score, "player1", config)
        servers.append(score.server)
    assert servers == [
        "player1",
        "player2",
        "player2",
        "player1",
        "player1",
        "player2",
        "player2",
    ]


def test_completed_tie_break_is_returned_unchanged():
    config = _config()
    score = TieBreakScore(
        player1_points=7, player2_points=3, is_complete=True, winner="player1"
    )
    assert tennis.add_point_to_tie_break(score, "player2", config) == score


@pytest.mark.parametrize(
    "p1, p2, opener",
    [
        (0, 0, "player1"),
        (1, 0, "player1"),
        (1, 1, "player1"),
        (2, 1, "player1"),
        (5, 2, "player2"),
        (6, 5, "player2"),
    ],
)
def test_tie_break_opener_from_final_server(p1, p2, opener):
    config = _config()
    score = TieBreakScore(server=opener)
    for _ in range(p1):
        score = tennis.add_point_to_tie_break(score, "player1", config)
    for _ in range(p2):
        score = tennis.add_point_to_tie_break(score, "player2", config)
    assert tennis.tie_break_opener(score) == opener
