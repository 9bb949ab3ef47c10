"""Go board state: packing, liberties, moves and legality on a 19x19 board."""

from __future__ import annotations

import numpy as np

SIZE = 19
POINTS = SIZE * SIZE
PACKED_LENGTH = POINTS // 4 + 1
"""Bytes in a packed board: two bits per point, four points per byte."""


def _as_board(board) -> np.ndarray:
    if not isinstance(board, np.ndarray) or board.size != POINTS:
        raise ValueError(f"board must be a numpy array of {POINTS} points")
    return board.reshape(-1)


def _neighbours(row: int, col: int):
    yield row + 1, col
    yield row - 1, col
    yield row, col + 1
    yield row, col - 1


def _on_board(row: int, col: int) -> bool:
    return 0 <= row < SIZE and 0 <= col < SIZE


def string_to_board(packed):
    """Unpack a packed board into 361 values: 1 for own stones, -1 for the opponent's."""
    data = bytes(packed)
    if len(data) < PACKED_LENGTH:
        raise ValueError(f"packed board needs {PACKED_LENGTH} bytes, got {len(data)}")
    raw = np.frombuffer(data[:PACKED_LENGTH], dtype=np.uint8)
    bits = np.unpackbits(raw, bitorder="little").reshape(PACKED_LENGTH * 4, 2)[:POINTS]
    me = bits[:, 0].astype(bool)
    you = bits[:, 1].astype(bool)
    return np.where(me, 1.0, np.where(you, -1.0, 0.0)).astype(np.float32)


def board_to_string(board):
    """Pack a board of 361 values into bytes, two bits per point."""
    flat = np.asarray(board).reshape(-1)
    if flat.size != POINTS:
        raise ValueError(f"board must have {POINTS} points")
    bits = np.zeros((PACKED_LENGTH * 4, 2), dtype=np.uint8)
    bits[:POINTS, 0] = flat == 1
    bits[:POINTS, 1] = flat == -1
    return np.packbits(bits.reshape(-1), bitorder="little").tobytes()


def calculate_liberties(board):
    """Return, for every stone, the number of empty points next to its group; 0 elsewhere."""
    flat = np.asarray(board).reshape(-1)
    if flat.size != POINTS:
        raise ValueError(f"board must have {POINTS} points")
    liberties = np.zeros(POINTS, dtype=np.int32)
    seen = np.zeros(POINTS, dtype=bool)
    for start in np.flatnonzero(flat):
        if seen[start]:
            continue
        colour = flat[start]
        group = []
        empties = set()
        stack = [(int(start) // SIZE, int(start) % SIZE)]
        seen[start] = True
        while stack:
            row, col = stack.pop()
            group.append(row * SIZE + col)
            for r, c in _neighbours(row, col):
                if not _on_board(r, c):
                    continue
                index = r * SIZE + c
                if flat[index] == 0:
                    empties.add(index)
                elif flat[index] == colour and not seen[index]:
                    seen[index] = True
                    stack.append((r, c))
        liberties[group] = len(empties)
    return liberties


def flip_board(board):
    """Swap the colours of all stones in place and return the board."""
    flat = _as_board(board)
    np.negative(flat, out=flat)
    return board


def _remove_connected(flat: np.ndarray, liberties: np.ndarray, colour: float,
                      row: int, col: int) -> None:
    stack = [(row, col)]
    while stack:
        r, c = stack.pop()
        if not _on_board(r, c):
            continue
        index = r * SIZE + c
        if flat[index] != colour or liberties[index] != 1:
            continue
        flat[index] = 0
        stack.extend(_neighbours(r, c))


def move_go(board, player, row, col):
    """Place a stone of ``player`` and remove the opposing groups it captures, in place."""
    flat = _as_board(board)
    if not _on_board(row, col):
        raise ValueError(f"point ({row}, {col}) is off the board")
    liberties = calculate_liberties(flat)
    flat[row * SIZE + col] = player
    for r, c in _neighbours(row, col):
        _remove_connected(flat, liberties, -player, r, c)
    return board


def _makes_safe(flat: np.ndarray, liberties: np.ndarray, player: float, row: int, col: int) -> bool:
    if not _on_board(row, col):
        return False
    index = row * SIZE + col
    if flat[index] == -player:
        return liberties[index] <= 1
    if flat[index] == 0:
        return True
    return liberties[index] > 1


def suicide_go(board, player, row, col):
    """Return True if a stone of ``player`` at the point would have no way to live."""
    flat = _as_board(board)
    liberties = calculate_liberties(flat)
    return not any(
        _makes_safe(flat, liberties, player, r, c) for r, c in _neighbours(row, col)
    )


def legal_go(board, ko, player, row, col):
    """Return True if the point is empty and playing there does not repeat ``ko``.

    The board is left as it was.
    """
    flat = _as_board(board)
    if flat[row * SIZE + col]:
        return False
    saved = flat.copy()
    move_go(flat, player, row, col)
    after = board_to_string(flat)
    flat[:] = saved
    return after != bytes(ko)[:PACKED_LENGTH]