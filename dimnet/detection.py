"""Detection layer: grid cells that predict classes, objectness and boxes."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass

import numpy as np


def _overlap(c1: float, w1: float, c2: float, w2: float) -> float:
    left = max(c1 - w1 / 2, c2 - w2 / 2)
    right = min(c1 + w1 / 2, c2 + w2 / 2)
    return right - left


@dataclass
class Box:
    """A box given by its centre and its size."""

    x: float
    y: float
    w: float
    h: float

    def _intersection(self, other: "Box") -> float:
        width = _overlap(self.x, self.w, other.x, other.w)
        height = _overlap(self.y, self.h, other.y, other.h)
        if width < 0 or height < 0:
            return 0.0
        return width * height

    def iou(self, other):
        """Intersection over union of the two boxes."""
        inter = self._intersection(other)
        union = self.w * self.h + other.w * other.h - inter
        if union <= 0:
            return 0.0
        return inter / union

    def rmse(self, other):
        """Root of the summed squared differences of centre and size."""
        return math.sqrt(
            (self.x - other.x) ** 2
            + (self.y - other.y) ** 2
            + (self.w - other.w) ** 2
            + (self.h - other.h) ** 2
        )


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else float("nan")


def get_detection_boxes(output, side, n, classes, sqrt=False, w=1, h=1, thresh=0.0,
                        only_objectness=False):
    """Decode one image's predictions into boxes and per-class probabilities.

    Returns ``(boxes, probs)`` with ``side * side * n`` boxes scaled to ``w x h`` and a
    ``probs`` array of shape ``(side * side * n, classes)``; probabilities not above
    ``thresh`` are zero.
    """
    output = np.asarray(output, dtype=np.float32).reshape(-1)
    locations = side * side
    cls_end = locations * classes
    obj_end = cls_end + locations * n
    need = obj_end + locations * n * 4
    if output.size < need:
        raise ValueError(f"expected at least {need} values, got {output.size}")
    cls = output[:cls_end].reshape(locations, classes).astype(np.float64)
    scale = output[cls_end:obj_end].reshape(locations, n).astype(np.float64)
    coords = output[obj_end:need].reshape(locations, n, 4).astype(np.float64)

    cells = np.arange(locations)
    col = (cells % side)[:, None]
    row = (cells // side)[:, None]
    power = 2 if sqrt else 1
    xs = (coords[..., 0] + col) / side * w
    ys = (coords[..., 1] + row) / side * h
    ws = coords[..., 2] ** power * w
    hs = coords[..., 3] ** power * h

    probs = scale[:, :, None] * cls[:, None, :]
    probs = np.where(probs > thresh, probs, 0.0).reshape(locations * n, classes)
    if only_objectness and classes > 0:
        probs[:, 0] = scale.reshape(-1)

    boxes = [
        Box(float(x), float(y), float(bw), float(bh))
        for x, y, bw, bh in zip(xs.ravel(), ys.ravel(), ws.ravel(), hs.ravel())
    ]
    return boxes, probs.astype(np.float32)


class DetectionLayer:
    """Final layer of a grid detector, computing its own training error."""

    def __init__(self, batch, inputs, n, side, classes, coords=4, rescore=False):
        if side * side * ((1 + coords) * n + classes) != inputs:
            raise ValueError(
                "inputs must equal side*side*((1+coords)*n+classes)"
            )
        self.batch = batch
        self.inputs = inputs
        self.outputs = inputs
        self.n = n
        self.side = side
        self.w = side
        self.h = side
        self.classes = classes
        self.coords = coords
        self.rescore = bool(rescore)
        self.truths = side * side * (1 + coords + classes)
        self.softmax = False
        self.sqrt = False
        self.forced = False
        self.random = False
        self.object_scale = 1.0
        self.noobject_scale = 1.0
        self.class_scale = 1.0
        self.coord_scale = 1.0
        self.cost = 0.0
        self.output = np.zeros(batch * inputs, dtype=np.float32)
        self.delta = np.zeros(batch * inputs, dtype=np.float32)
        print("Detection Layer", file=sys.stderr)

    def _predicted_box(self, box_index: int) -> Box:
        out = self.output
        box = Box(
            float(out[box_index]) / self.side,
            float(out[box_index + 1]) / self.side,
            float(out[box_index + 2]),
            float(out[box_index + 3]),
        )
        if self.sqrt:
            box.w = box.w * box.w
            box.h = box.h * box.h
        return box

    def _apply_softmax(self) -> None:
        locations = self.side * self.side
        rows = self.output.reshape(self.batch, self.inputs)
        cls = rows[:, :locations * self.classes].reshape(self.batch, locations, self.classes)
        shifted = cls - cls.max(axis=-1, keepdims=True)
        exp = np.exp(shifted)
        cls[...] = exp / exp.sum(axis=-1, keepdims=True)

    def forward(self, values, truth=None, train=False, seen=0, rng=None):
        """Copy ``values`` to the output and, when training, compute delta and cost."""
        values = np.asarray(values, dtype=np.float32).reshape(-1)
        if values.size != self.batch * self.inputs:
            raise ValueError(f"expected {self.batch * self.inputs} values, got {values.size}")
        self.output = values.copy()
        if self.softmax and self.classes:
            self._apply_softmax()
        if not train:
            return self.output
        if truth is None:
            raise ValueError("training needs a truth vector")
        truth = np.asarray(truth, dtype=np.float32).reshape(-1)
        if truth.size < self.batch * self.truths:
            raise ValueError(f"expected {self.batch * self.truths} truth values, got {truth.size}")
        generator = rng if rng is not None else np.random.default_rng()

        out = self.output
        delta = np.zeros_like(out)
        locations = self.side * self.side
        stride = 1 + self.coords + self.classes
        avg_iou = avg_cat = avg_allcat = avg_obj = avg_anyobj = 0.0
        count = 0

        for b in range(self.batch):
            index = b * self.inputs
            for i in range(locations):
                truth_index = (b * locations + i) * stride
                p_start = index + locations * self.classes + i * self.n
                objectness = out[p_start:p_start + self.n]
                delta[p_start:p_start + self.n] = self.noobject_scale * (0 - objectness)
                avg_anyobj += float(objectness.sum())

                if not int(truth[truth_index]):
                    continue

                class_index = index + i * self.classes
                t_cls = truth[truth_index + 1:truth_index + 1 + self.classes]
                o_cls = out[class_index:class_index + self.classes]
                delta[class_index:class_index + self.classes] = self.class_scale * (t_cls - o_cls)
                avg_cat += float(o_cls[t_cls != 0].sum())
                avg_allcat += float(o_cls.sum())

                tbox_index = truth_index + 1 + self.classes
                tb = truth[tbox_index:tbox_index + 4]
                truth_box = Box(float(tb[0]) / self.side, float(tb[1]) / self.side,
                                float(tb[2]), float(tb[3]))

                box_base = index + locations * (self.classes + self.n)
                best_index = -1
                best_iou = 0.0
                best_rmse = 20.0
                for j in range(self.n):
                    out_box = self._predicted_box(box_base + (i * self.n + j) * self.coords)
                    iou = out_box.iou(truth_box)
                    rmse = out_box.rmse(truth_box)
                    if best_iou > 0 or iou > 0:
                        if iou > best_iou:
                            best_iou = iou
                            best_index = j
                    elif rmse < best_rmse:
                        best_rmse = rmse
                        best_index = j

                if self.forced:
                    best_index = 1 if truth_box.w * truth_box.h < 0.1 else 0
                if self.random and seen < 64000:
                    best_index = int(generator.integers(self.n))

                box_index = box_base + (i * self.n + best_index) * self.coords
                iou = self._predicted_box(box_index).iou(truth_box)

                p_index = p_start + best_index
                avg_obj += float(out[p_index])
                if self.rescore:
                    delta[p_index] = self.object_scale * (iou - out[p_index])
                else:
                    delta[p_index] = self.object_scale * (1.0 - out[p_index])

                for k in range(4):
                    delta[box_index + k] = self.coord_scale * (tb[k] - out[box_index + k])
                if self.sqrt:
                    delta[box_index + 2] = self.coord_scale * (math.sqrt(tb[2]) - out[box_index + 2])
                    delta[box_index + 3] = self.coord_scale * (math.sqrt(tb[3]) - out[box_index + 3])

                avg_iou += iou
                count += 1

        self.delta = delta
        self.cost = float(np.dot(delta.astype(np.float64), delta.astype(np.float64)))
        print(
            f"Detection Avg IOU: {_ratio(avg_iou, count):f}, "
            f"Pos Cat: {_ratio(avg_cat, count):f}, "
            f"All Cat: {_ratio(avg_allcat, count * self.classes):f}, "
            f"Pos Obj: {_ratio(avg_obj, count):f}, "
            f"Any Obj: {_ratio(avg_anyobj, self.batch * locations * self.n):f}, "
            f"count: {count}"
        )
        return self.output

    def backward(self, delta):
        """Add this layer's delta to ``delta`` in place and return it."""
        if delta is None:
            return None
        if delta.size != self.delta.size:
            raise ValueError(f"expected {self.delta.size} values, got {delta.size}")
        flat = delta.reshape(-1)
        flat += self.delta
        return delta

    def boxes(self, w, h, thresh, only_objectness=False):
        """Decode the first image of the last output into ``(boxes, probs)``."""
        return get_detection_boxes(
            self.output[:self.outputs], self.side, self.n, self.classes, self.sqrt,
            w, h, thresh, only_objectness,
        )