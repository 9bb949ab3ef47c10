"""Dropout layer."""

from __future__ import annotations

import sys

import numpy as np


class DropoutLayer:
    """Zeroes inputs with a given probability during training and rescales the rest."""

    def __init__(self, batch, inputs, probability):
        if not 0 <= probability < 1:
            raise ValueError("probability must be in [0, 1)")
        self.batch = batch
        self.inputs = inputs
        self.outputs = inputs
        self.probability = probability
        self.scale = 1.0 / (1.0 - probability)
        self.rand = np.zeros(inputs * batch, dtype=np.float32)
        print(
            f"dropout       p = {probability:.2f}               {inputs:4d}  ->  {inputs:4d}",
            file=sys.stderr,
        )

    def _check(self, values):
        if values.size != self.batch * self.inputs:
            raise ValueError(
                f"expected {self.batch * self.inputs} values, got {values.size}"
            )

    def forward(self, values, train, rng=None):
        """Apply dropout to ``values`` in place when training; return them."""
        if not train:
            return values
        self._check(values)
        generator = rng if rng is not None else np.random.default_rng()
        self.rand = generator.random(values.size, dtype=np.float32)
        flat = values.reshape(-1)
        dropped = self.rand < self.probability
        flat[dropped] = 0
        flat[~dropped] *= self.scale
        return values

    def backward(self, delta):
        """Apply the mask of the last forward pass to ``delta`` in place; return it."""
        if delta is None:
            return None
        self._check(delta)
        flat = delta.reshape(-1)
        dropped = self.rand < self.probability
        flat[dropped] = 0
        flat[~dropped] *= self.scale
        return delta

    def resize(self, inputs):
        """Change the number of inputs per example."""
        self.inputs = inputs
        self.outputs = inputs
        self.rand = np.zeros(inputs * self.batch, dtype=np.float32)