"""Helpers for evaluating a detector: device lists, proposals and recall overlap."""

from __future__ import annotations

import re

import numpy as np

from dimnet.detection import Box

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def parse_gpu_list(text):
    """Return the device numbers in a comma separated list.

    An entry that does not start with a number counts as device 0.
    """
    if text is None:
        raise ValueError("no device list given")
    return [_leading_int(part) for part in str(text).split(",")]


def _objectness(probs) -> np.ndarray:
    array = np.asarray(probs, dtype=np.float32)
    if array.size == 0:
        return np.zeros(0, dtype=np.float32)
    if array.ndim != 2:
        raise ValueError("probs must be two-dimensional")
    return array[:, 0]


def count_proposals(probs, thresh):
    """Return how many boxes have an objectness above ``thresh``."""
    return int(np.count_nonzero(_objectness(probs) > thresh))


def _as_box(value) -> Box:
    if isinstance(value, Box):
        return value
    return Box(float(value.x), float(value.y), float(value.w), float(value.h))


def best_iou(boxes, probs, truth, thresh):
    """Return the best overlap with ``truth`` among boxes whose objectness is above ``thresh``."""
    objectness = _objectness(probs)
    if len(boxes) > objectness.size:
        raise ValueError("fewer probability rows than boxes")
    target = _as_box(truth)
    best = 0.0
    for box, score in zip(boxes, objectness):
        if score > thresh:
            iou = _as_box(box).iou(target)
            if iou > best:
                best = iou
    return best