"""Reading box labels and turning them into truth vectors for training."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

NUMCHARS = 37
"""Symbols per captcha position: ten digits, 26 letters and one blank."""

SWAG_REPLACEMENTS = (
    ("images", "labels"),
    ("JPEGImages", "labels"),
    (".jpg", ".txt"),
    (".JPG", ".txt"),
    (".JPEG", ".txt"),
)

REGION_REPLACEMENTS = (
    ("images", "labels"),
    ("JPEGImages", "labels"),
    (".jpg", ".txt"),
    (".png", ".txt"),
    (".JPG", ".txt"),
    (".JPEG", ".txt"),
)

DETECTION_REPLACEMENTS = (
    ("images", "labels"),
    ("JPEGImages", "labels"),
    ("raw", "labels"),
    (".jpg", ".txt"),
    (".png", ".txt"),
    (".JPG", ".txt"),
    (".JPEG", ".txt"),
)

_MISSING = 999999.0


@dataclass
class BoxLabel:
    """A labelled box given by its centre and size, with its edges."""

    id: int
    x: float
    y: float
    w: float
    h: float
    left: float
    right: float
    top: float
    bottom: float

    @classmethod
    def from_center(cls, label_id, x, y, w, h):
        """Build a label from a centre point and a size."""
        return cls(
            id=label_id, x=x, y=y, w=w, h=h,
            left=x - w / 2, right=x + w / 2,
            top=y - h / 2, bottom=y + h / 2,
        )


def distance_from_edge(x, max_value):
    """Return how far ``x`` lies from the edges of ``[0, max_value)``, scaled to at most 1."""
    half = max_value // 2
    dx = abs(half - x)
    dx = (half + 1 - dx) * 2
    return min(dx / max_value, 1.0)


def label_path(path, replacements):
    """Apply each ``(find, replace)`` pair to its first occurrence in ``path``."""
    result = str(path)
    for find, replace in replacements:
        result = result.replace(find, replace, 1)
    return result


def _parse_boxes(tokens: Sequence[str]) -> list[BoxLabel]:
    boxes = []
    for start in range(0, len(tokens) - 4, 5):
        group = tokens[start:start + 5]
        try:
            label_id = int(group[0])
            x, y, w, h = (float(value) for value in group[1:])
        except ValueError:
            break
        boxes.append(BoxLabel.from_center(label_id, x, y, w, h))
    return boxes


def read_boxes(path):
    """Read ``id x y w h`` records from a label file until one fails to parse."""
    text = Path(path).read_text()
    return _parse_boxes(text.split())


def randomize_boxes(boxes, rng=None):
    """Shuffle ``boxes`` in place by swapping each with a random position; return the list."""
    generator = rng if rng is not None else np.random.default_rng()
    n = len(boxes)
    for i in range(n):
        index = int(generator.integers(n))
        boxes[i], boxes[index] = boxes[index], boxes[i]
    return boxes


def _constrain(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def correct_boxes(boxes, dx, dy, sx, sy, flip):
    """Move boxes into the frame of a scaled, shifted and maybe mirrored image, in place."""
    for box in boxes:
        if box.x == 0 and box.y == 0:
            box.x = box.y = box.w = box.h = _MISSING
            continue
        box.left = box.left * sx - dx
        box.right = box.right * sx - dx
        box.top = box.top * sy - dy
        box.bottom = box.bottom * sy - dy

        if flip:
            box.left, box.right = 1.0 - box.right, 1.0 - box.left

        box.left = _constrain(box.left)
        box.right = _constrain(box.right)
        box.top = _constrain(box.top)
        box.bottom = _constrain(box.bottom)

        box.x = (box.left + box.right) / 2
        box.y = (box.top + box.bottom) / 2
        box.w = _constrain(box.right - box.left)
        box.h = _constrain(box.bottom - box.top)
    return boxes


def _prepared_boxes(path, replacements, flip, dx, dy, sx, sy, rng) -> list[BoxLabel]:
    boxes = read_boxes(label_path(path, replacements))
    randomize_boxes(boxes, rng)
    return correct_boxes(boxes, dx, dy, sx, sy, flip)


def fill_truth_swag(path, classes, flip, dx, dy, sx, sy, rng=None):
    """Return a truth vector of up to 30 boxes, each ``x y w h`` and a one-hot class."""
    stride = 4 + classes
    truth = np.zeros(stride * 30, dtype=np.float32)
    boxes = _prepared_boxes(path, SWAG_REPLACEMENTS, flip, dx, dy, sx, sy, rng)
    for i, box in enumerate(boxes[:30]):
        if box.w < 0 or box.h < 0:
            continue
        index = stride * i
        truth[index:index + 4] = (box.x, box.y, box.w, box.h)
        if box.id < classes:
            truth[index + 4 + box.id] = 1
    return truth


def fill_truth_region(path, classes, num_boxes, flip, dx, dy, sx, sy, rng=None):
    """Return a grid truth vector: per cell an object flag, one-hot class and box."""
    stride = 5 + classes
    truth = np.zeros(num_boxes * num_boxes * stride, dtype=np.float32)
    boxes = _prepared_boxes(path, REGION_REPLACEMENTS, flip, dx, dy, sx, sy, rng)
    for box in boxes:
        if box.w < 0.005 or box.h < 0.005:
            continue
        col = int(box.x * num_boxes)
        row = int(box.y * num_boxes)
        index = (col + row * num_boxes) * stride
        if index < 0 or index + stride > truth.size:
            continue
        if truth[index]:
            continue
        truth[index] = 1
        if box.id < classes:
            truth[index + 1 + box.id] = 1
        offset = index + 1 + classes
        truth[offset:offset + 4] = (
            box.x * num_boxes - col,
            box.y * num_boxes - row,
            box.w,
            box.h,
        )
    return truth


def fill_truth_detection(path, num_boxes, classes, flip, dx, dy, sx, sy, rng=None):
    """Return a truth vector of up to ``num_boxes`` records ``x y w h id``."""
    truth = np.zeros(5 * num_boxes, dtype=np.float32)
    boxes = _prepared_boxes(path, DETECTION_REPLACEMENTS, flip, dx, dy, sx, sy, rng)
    for i, box in enumerate(boxes[:num_boxes]):
        if box.w < 0.001 or box.h < 0.001:
            continue
        truth[i * 5:i * 5 + 5] = (box.x, box.y, box.w, box.h, box.id)
    return truth


def _alphanum_to_int(char: str) -> int:
    if "0" <= char <= "9":
        return ord(char) - ord("0")
    if "a" <= char <= "z":
        return ord(char) - ord("a") + 10
    raise ValueError(f"not a captcha character: {char!r}")


def _captcha_text(path: str) -> Iterable[str]:
    name = str(path).rsplit("/", 1)[-1]
    return name.split(".", 1)[0]


def fill_truth_captcha(path, n):
    """Return ``n`` one-hot rows of ``NUMCHARS`` for the characters in the file name."""
    truth = np.zeros(n * NUMCHARS, dtype=np.float32)
    text = list(_captcha_text(path))[:n]
    for i, char in enumerate(text):
        truth[i * NUMCHARS + _alphanum_to_int(char)] = 1
    for i in range(len(text), n):
        truth[i * NUMCHARS + NUMCHARS - 1] = 1
    return truth