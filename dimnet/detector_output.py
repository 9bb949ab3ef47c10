"""Text records for detector results in the COCO, VOC and ImageNet formats."""

from __future__ import annotations

import re

import numpy as np

COCO_IDS = (
    1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 13, 14, 15, 16, 17, 18, 19, 20, 21, 22, 23, 24, 25,
    27, 28, 31, 32, 33, 34, 35, 36, 37, 38, 39, 40, 41, 42, 43, 44, 46, 47, 48, 49, 50, 51,
    52, 53, 54, 55, 56, 57, 58, 59, 60, 61, 62, 63, 64, 65, 67, 70, 72, 73, 74, 75, 76, 77,
    78, 79, 80, 81, 82, 84, 85, 86, 87, 88, 89, 90,
)
"""COCO category ids in the order of the detector's classes."""

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _f32(value) -> float:
    return float(np.float32(value))


def coco_image_id(filename):
    """Return the number that follows the last underscore of ``filename``."""
    name = str(filename)
    position = name.rfind("_")
    if position < 0:
        raise ValueError(f"no image id in {name!r}")
    match = _LEADING_INT.match(name, position + 1)
    return int(match.group(1)) if match else 0


def _edges(box, offset: float):
    half_w = box.w / 2.0
    half_h = box.h / 2.0
    return (
        _f32(box.x - half_w + offset),
        _f32(box.x + half_w + offset),
        _f32(box.y - half_h + offset),
        _f32(box.y + half_h + offset),
    )


def _probs(probs, count: int, classes: int) -> np.ndarray:
    array = np.asarray(probs, dtype=np.float32)
    if array.ndim != 2 or array.shape[0] < count or array.shape[1] < classes:
        raise ValueError(
            f"probs must have at least {count} rows and {classes} columns"
        )
    return array


def coco_lines(image_path, boxes, probs, classes, w, h):
    """Return one COCO JSON record (with trailing comma) per non-zero probability."""
    if classes > len(COCO_IDS):
        raise ValueError(f"at most {len(COCO_IDS)} COCO classes are known")
    image_id = coco_image_id(image_path)
    table = _probs(probs, len(boxes), classes)
    lines = []
    for box, row in zip(boxes, table):
        xmin, xmax, ymin, ymax = _edges(box, 0.0)
        xmin = max(xmin, 0.0)
        ymin = max(ymin, 0.0)
        xmax = min(xmax, float(w))
        ymax = min(ymax, float(h))
        bw = _f32(xmax - xmin)
        bh = _f32(ymax - ymin)
        for j in range(classes):
            score = float(row[j])
            if score:
                lines.append(
                    f'{{"image_id":{image_id}, "category_id":{COCO_IDS[j]}, '
                    f'"bbox":[{xmin:f}, {ymin:f}, {bw:f}, {bh:f}], "score":{score:f}}},'
                )
    return lines


def voc_lines(image_id, boxes, probs, classes, w, h):
    """Return, for each class, the VOC lines ``id score xmin ymin xmax ymax``.

    Coordinates are one-based and clipped to the image.
    """
    table = _probs(probs, len(boxes), classes)
    per_class = [[] for _ in range(classes)]
    for box, row in zip(boxes, table):
        xmin, xmax, ymin, ymax = _edges(box, 1.0)
        xmin = max(xmin, 1.0)
        ymin = max(ymin, 1.0)
        xmax = min(xmax, float(w))
        ymax = min(ymax, float(h))
        for j in range(classes):
            score = float(row[j])
            if score:
                per_class[j].append(
                    f"{image_id} {score:f} {xmin:f} {ymin:f} {xmax:f} {ymax:f}"
                )
    return per_class


def imagenet_lines(image_id, boxes, probs, classes, w, h):
    """Return ImageNet lines ``id class score xmin ymin xmax ymax`` with one-based classes."""
    table = _probs(probs, len(boxes), classes)
    lines = []
    for box, row in zip(boxes, table):
        xmin, xmax, ymin, ymax = _edges(box, 0.0)
        xmin = max(xmin, 0.0)
        ymin = max(ymin, 0.0)
        xmax = min(xmax, float(w))
        ymax = min(ymax, float(h))
        for j in range(classes):
            score = float(row[j])
            if score:
                lines.append(
                    f"{int(image_id)} {j + 1} {score:f} {xmin:f} {ymin:f} {xmax:f} {ymax:f}"
                )
    return lines