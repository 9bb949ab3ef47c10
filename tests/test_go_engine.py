import subprocess
from unittest import mock

import numpy as np
import pytest

from dimnet.go_engine import HANDICAP_POINTS, fixed_handicap, parse_score, score_game


def _board():
    return np.zeros(19 * 19, dtype=np.float32)


def test_fixed_handicap_two_stones():
    board = fixed_handicap(_board(), 2)
    assert board[72] == 1
    assert board[288] == 1
    assert board.sum() == 2


def test_fixed_handicap_all_stones_are_placed():
    board = fixed_handicap(_board(), 9)
    assert sorted(np.flatnonzero(board).tolist()) == sorted(HANDICAP_POINTS)


def test_fixed_handicap_zero_leaves_board_empty():
    assert not fixed_handicap(_board(), 0).any()


def test_fixed_handicap_too_many():
    with pytest.raises(ValueError):
        fixed_handicap(_board(), 10)


def test_fixed_handicap_negative():
    with pytest.raises(ValueError):
        fixed_handicap(_board(), -1)


def test_parse_score_black():
    assert parse_score(["= B+3.5"]) == pytest.approx(3.5)


def test_parse_score_white_is_negative():
    assert parse_score(["= W+7.5"]) == pytest.approx(-7.5)


def test_parse_score_skips_other_lines():
    lines = ["", "= ", "= B+12"]
    assert parse_score(lines) == pytest.approx(12.0)


def test_parse_score_without_result():
    assert parse_score(["? unknown command", ""]) == 0.0


def test_score_game_feeds_position_and_reads_score():
    board = _board()
    board[0] = 1
    board[20] = -1
    # Five commands: komi, boardsize, clear_board and two plays, each answered by two lines.
    replies = "= \n\n" * 5 + "= W+2.5\n\n"
    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=replies, stderr="")
    with mock.patch("dimnet.go_engine.subprocess.run", return_value=completed) as run:
        score = score_game(board, "gnugo")
    assert score == pytest.approx(-2.5)
    args, kwargs = run.call_args
    assert args[0] == ["gnugo", "--mode", "gtp"]
    sent = kwargs["input"]
    assert "play black A19\n" in sent
    assert sent.endswith("final_score\n")


def test_score_game_missing_program():
    with pytest.raises(FileNotFoundError):
        score_game(_board(), "/nonexistent/dir/gnugo-missing")