"""Crop layer: random (training) or centred (inference) crops with optional mirroring."""

from __future__ import annotations

import sys

import numpy as np


class CropLayer:
    """Crops ``batch`` images of ``c x h x w`` to ``c x crop_height x crop_width``."""

    def __init__(self, batch, h, w, c, crop_height, crop_width, flip=False,
                 angle=0.0, saturation=1.0, exposure=1.0, noadjust=False):
        print(
            f"Crop Layer: {h} x {w} -> {crop_height} x {crop_width} x {c} image",
            file=sys.stderr,
        )
        self.batch = batch
        self.h = h
        self.w = w
        self.c = c
        self.scale = crop_height / h
        self.flip = bool(flip)
        self.angle = angle
        self.saturation = saturation
        self.exposure = exposure
        self.noadjust = bool(noadjust)
        self.out_w = crop_width
        self.out_h = crop_height
        self.out_c = c
        self.inputs = w * h * c
        self.outputs = self.out_w * self.out_h * self.out_c
        self.output = np.zeros(self.outputs * batch, dtype=np.float32)

    def forward(self, values, train, rng=None):
        """Crop ``values`` (flat, batch x c x h x w) into ``self.output`` and return it."""
        if self.out_h > self.h or self.out_w > self.w:
            raise ValueError("crop is larger than the input image")
        values = np.asarray(values, dtype=np.float32)
        if values.size != self.batch * self.inputs:
            raise ValueError(f"expected {self.batch * self.inputs} values, got {values.size}")
        if train:
            generator = rng if rng is not None else np.random.default_rng()
            flip = self.flip and bool(generator.integers(2))
            dh = int(generator.integers(self.h - self.out_h + 1))
            dw = int(generator.integers(self.w - self.out_w + 1))
        else:
            flip = False
            dh = (self.h - self.out_h) // 2
            dw = (self.w - self.out_w) // 2
        scale, trans = (1.0, 0.0) if self.noadjust else (2.0, -1.0)

        images = values.reshape(self.batch, self.c, self.h, self.w)
        rows = images[:, :, dh:dh + self.out_h, :]
        if flip:
            window = rows[:, :, :, self.w - dw - self.out_w:self.w - dw][..., ::-1]
        else:
            window = rows[:, :, :, dw:dw + self.out_w]
        self.output = (window * scale + trans).astype(np.float32).reshape(-1)
        return self.output

    def backward(self, delta):
        """Cropping passes no gradient back; ``delta`` is left as it is."""
        return None

    def resize(self, w, h):
        """Resize the input, keeping the crop scale fixed."""
        self.w = w
        self.h = h
        self.out_w = int(self.scale * w)
        self.out_h = int(self.scale * h)
        self.inputs = self.w * self.h * self.c
        self.outputs = self.out_h * self.out_w * self.out_c
        self.output = np.zeros(self.batch * self.outputs, dtype=np.float32)

    def output_image(self):
        """Return the first cropped image as a ``c x out_h x out_w`` view."""
        return self.output[:self.outputs].reshape(self.out_c, self.out_h, self.out_w)