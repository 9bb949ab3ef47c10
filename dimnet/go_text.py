"""Text forms of Go boards, moves and games."""

from __future__ import annotations

import re

import numpy as np

SIZE = 19
POINTS = SIZE * SIZE
RECORD_SIZE = 94
"""Bytes in one stored move: row, column and a packed board."""

MARKED = 2
"""Number of suggested points shown on a printed board."""

_VERTEX = re.compile(r"\s*([A-Za-z])\s*([+-]?\d+)?")


def _flat(board) -> np.ndarray:
    flat = np.asarray(board).reshape(-1)
    if flat.size != POINTS:
        raise ValueError(f"board must have {POINTS} points")
    return flat


def format_board(board, swap=1, indexes=None):
    """Render a board with column letters, row numbers and marked suggestions."""
    flat = _flat(board)
    marks = list(indexes[:MARKED]) if indexes is not None else None
    header = "".join(f"{chr(ord('A') + i + (1 if i > 7 else 0))} " for i in range(SIZE))
    lines = ["   " + header]
    for j in range(SIZE):
        parts = [f"{SIZE - j:2d}"]
        for i in range(SIZE):
            index = j * SIZE + i
            if marks is not None:
                hits = [n for n, mark in enumerate(marks) if mark == index]
                if hits:
                    parts.extend(f" {n + 1}" for n in hits)
                    continue
            value = flat[index] * -swap
            if value > 0:
                parts.append(" O")
            elif value < 0:
                parts.append(" X")
            else:
                parts.append("  ")
        lines.append("".join(parts))
    return "\n".join(lines) + "\n"


def print_game(board, stream):
    """Write GTP commands that set up ``board``; return the number of commands written."""
    flat = _flat(board)
    stream.write("komi 6.5\n")
    stream.write("boardsize 19\n")
    stream.write("clear_board\n")
    count = 3
    for j in range(SIZE):
        for i in range(SIZE):
            value = flat[j * SIZE + i]
            letter = chr(ord("A") + i + (1 if i >= 8 else 0))
            if value == 1:
                stream.write(f"play black {letter}{SIZE - j}\n")
            elif value == -1:
                stream.write(f"play white {letter}{SIZE - j}\n")
            if value:
                count += 1
    return count


def load_go_moves(filename):
    """Read fixed-size move records; a short record at the end is dropped."""
    with open(filename, "rb") as handle:
        raw = handle.read()
    moves = [
        raw[start:start + RECORD_SIZE]
        for start in range(0, len(raw) - RECORD_SIZE + 1, RECORD_SIZE)
    ]
    print(len(moves))
    return moves


def format_vertex(row, col):
    """Return the GTP name of a point, skipping the letter I."""
    if not (0 <= row < SIZE and 0 <= col < SIZE):
        raise ValueError(f"point ({row}, {col}) is off the board")
    letter = chr(ord("A") + col + (1 if col >= 8 else 0))
    return f"{letter}{SIZE - row}"


def parse_vertex(text):
    """Return ``(row, col)`` for a GTP point name, or None for a pass."""
    match = _VERTEX.match(text)
    if not match:
        raise ValueError(f"not a vertex: {text!r}")
    letter, number = match.group(1), match.group(2)
    if letter in "pP" and number is None:
        return None
    if number is None:
        raise ValueError(f"vertex has no row: {text!r}")
    col = ord(letter.upper()) - ord("A")
    if col >= 8:
        col -= 1
    row = SIZE - int(number)
    if not (0 <= row < SIZE and 0 <= col < SIZE):
        raise ValueError(f"vertex off the board: {text!r}")
    return row, col