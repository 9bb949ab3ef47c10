"""Go engine helpers: handicap stones and scoring through an external GTP program."""

from __future__ import annotations

import io
import re
import subprocess
import sys

import numpy as np

from dimnet.go_text import print_game

HANDICAP_POINTS = (72, 288, 300, 60, 180, 174, 186, 66, 294)
"""Board indexes of the fixed handicap stones, in the order they are placed."""

_PLAYER = re.compile(r"=\s*(\S)")
_SCORE = re.compile(r"\+\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def fixed_handicap(board, count):
    """Place ``count`` black handicap stones on ``board`` in place; return it."""
    if not 0 <= count <= len(HANDICAP_POINTS):
        raise ValueError(f"handicap must be between 0 and {len(HANDICAP_POINTS)}")
    if not isinstance(board, np.ndarray) or board.size != 19 * 19:
        raise ValueError("board must be a numpy array of 361 points")
    flat = board.reshape(-1)
    flat[list(HANDICAP_POINTS[:count])] = 1
    return board


def parse_score(lines):
    """Return the score in the first ``= B+n`` or ``= W+n`` line; white scores are negative."""
    player = None
    score = 0.0
    for line in lines:
        print(f"{line}  \t", end="", file=sys.stderr)
        match = _PLAYER.match(line)
        if not match:
            continue
        player = match.group(1)
        found = _SCORE.match(line, match.end())
        if found:
            score = float(found.group(1))
            break
    if player == "W":
        score = -score
    return score


def score_game(board, gnugo="./gnugo"):
    """Score ``board`` with an external GTP program; positive means black is ahead."""
    commands = io.StringIO()
    count = print_game(board, commands)
    commands.write("final_score\n")
    if isinstance(gnugo, str):
        argv = [gnugo, "--mode", "gtp"]
    else:
        argv = list(gnugo)
    result = subprocess.run(
        argv, input=commands.getvalue(), capture_output=True, text=True, check=False
    )
    lines = result.stdout.splitlines()
    return parse_score(lines[2 * count:])