"""General matrix multiplication on float32 arrays."""

from __future__ import annotations

import time

import numpy as np


def _as_matrix(name: str, value) -> np.ndarray:
    array = np.asarray(value, dtype=np.float32)
    if array.ndim != 2:
        raise ValueError(f"{name} must be two-dimensional, got shape {array.shape}")
    return array


def gemm(a, b, c, alpha=1.0, beta=1.0, trans_a=False, trans_b=False):
    """Compute ``c = beta * c + alpha * op(a) @ op(b)`` in place and return ``c``.

    ``op(x)`` is ``x.T`` when the matching ``trans_*`` flag is set.
    """
    left = _as_matrix("a", a)
    right = _as_matrix("b", b)
    if trans_a:
        left = left.T
    if trans_b:
        right = right.T
    if not isinstance(c, np.ndarray) or c.ndim != 2:
        raise ValueError("c must be a two-dimensional numpy array")
    m, k = left.shape
    k2, n = right.shape
    if k != k2:
        raise ValueError(f"inner dimensions differ: {k} and {k2}")
    if c.shape != (m, n):
        raise ValueError(f"c has shape {c.shape}, expected {(m, n)}")
    c *= np.float32(beta)
    c += np.float32(alpha) * (left @ right)
    return c


def gemm_bin(a_bits, b, c):
    """Add ``b[k]`` to row ``i`` of ``c`` where ``a_bits[i, k]`` is set, subtract it otherwise."""
    bits = np.asarray(a_bits)
    if bits.ndim != 2:
        raise ValueError("a_bits must be two-dimensional")
    right = _as_matrix("b", b)
    if bits.shape[1] != right.shape[0]:
        raise ValueError(f"inner dimensions differ: {bits.shape[1]} and {right.shape[0]}")
    if not isinstance(c, np.ndarray) or c.shape != (bits.shape[0], right.shape[1]):
        raise ValueError("c must be an array of shape (rows of a_bits, columns of b)")
    signs = np.where(bits != 0, np.float32(1), np.float32(-1))
    c += signs @ right
    return c


def random_matrix(rows, cols, rng=None):
    """Return a ``rows x cols`` float32 matrix of uniform values in [0, 1]."""
    if rows < 0 or cols < 0:
        raise ValueError("matrix dimensions must be non-negative")
    generator = rng if rng is not None else np.random.default_rng()
    return generator.random((rows, cols), dtype=np.float32)


def time_gemm(trans_a, trans_b, m, k, n, repeats=10):
    """Time ``repeats`` multiplications of random matrices; print and return the seconds taken."""
    rng = np.random.default_rng()
    a = random_matrix(k, m, rng) if trans_a else random_matrix(m, k, rng)
    b = random_matrix(n, k, rng) if trans_b else random_matrix(k, n, rng)
    c = random_matrix(m, n, rng)
    start = time.process_time()
    for _ in range(repeats):
        gemm(a, b, c, 1.0, 1.0, trans_a, trans_b)
    elapsed = time.process_time() - start
    print(
        f"Matrix Multiplication {m}x{k} * {k}x{n}, "
        f"TA={int(bool(trans_a))}, TB={int(bool(trans_b))}: {elapsed:f} s"
    )
    return elapsed