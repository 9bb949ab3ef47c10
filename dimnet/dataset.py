"""Training data held as pairs of matrices, with loaders and batch helpers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np

SECRET_NUM = -1234.0
"""Truth value that marks an entry the cost should ignore."""

CIFAR_RECORDS = 10000
CIFAR_PIXELS = 3072
CIFAR_CLASSES = 10
GO_POINTS = 19 * 19


@dataclass
class Data:
    """Inputs ``X`` and targets ``y``, one example per row."""

    X: np.ndarray
    y: np.ndarray
    w: int = 0
    h: int = 0

    def __post_init__(self):
        self.X = np.asarray(self.X, dtype=np.float32)
        self.y = np.asarray(self.y, dtype=np.float32)
        if self.X.ndim != 2 or self.y.ndim != 2:
            raise ValueError("X and y must be two-dimensional")
        if self.X.shape[0] != self.y.shape[0]:
            raise ValueError(
                f"X has {self.X.shape[0]} rows but y has {self.y.shape[0]}"
            )

    @property
    def rows(self) -> int:
        """Number of examples."""
        return self.X.shape[0]


def _read_lines(filename) -> list[str]:
    with open(filename, "r") as handle:
        return [line.rstrip("\n") for line in handle]


def get_paths(filename):
    """Return the lines of ``filename`` without their line endings."""
    return _read_lines(filename)


def get_labels(filename):
    """Return the label names listed one per line in ``filename``."""
    return _read_lines(filename)


def get_random_paths(paths, n, rng=None):
    """Pick ``n`` paths at random, with replacement."""
    if not paths:
        raise ValueError("no paths to choose from")
    generator = rng if rng is not None else np.random.default_rng()
    picks = generator.integers(len(paths), size=n)
    return [paths[int(index)] for index in picks]


def find_replace_paths(paths, find, replace):
    """Replace the first occurrence of ``find`` in each path."""
    return [str(path).replace(find, replace, 1) for path in paths]


def fill_truth(path, labels):
    """Return a vector with 1 for every label whose name occurs in ``path``."""
    truth = np.array([1.0 if label in path else 0.0 for label in labels], dtype=np.float32)
    count = int(truth.sum())
    k = len(labels)
    if count != 1 and (k != 1 or count != 0):
        print(f"Too many or too few labels: {count}, {path}")
    return truth


def fill_hierarchy(truth, parents, group_sizes, mask_value=SECRET_NUM):
    """Mark the ancestors of every set label and mask groups with no label set, in place."""
    for j in range(len(parents)):
        if truth[j]:
            parent = parents[j]
            while parent >= 0:
                truth[parent] = 1
                parent = parents[parent]
    start = 0
    for size in group_sizes:
        group = truth[start:start + size]
        if not np.any(group):
            group[:] = mask_value
        start += size
    return truth


def _read_ints(path: Path) -> list[int]:
    values = []
    for token in path.read_text().split():
        try:
            values.append(int(token))
        except ValueError:
            break
    return values


def load_tags_paths(paths, k):
    """Return an ``n x k`` matrix of tags read from the label file of each image."""
    y = np.zeros((len(paths), k), dtype=np.float32)
    count = 0
    for i, path in enumerate(paths):
        label = str(path).replace("imgs", "labels", 1).replace("_iconl.jpeg", ".txt", 1)
        candidate = Path(label)
        if not candidate.is_file():
            candidate = Path(label.replace("labels", "labels2", 1))
            if not candidate.is_file():
                continue
        count += 1
        for tag in _read_ints(candidate):
            if 0 <= tag < k:
                y[i, tag] = 1
    print(f"{count}/{len(paths)}")
    return y


def load_regression_labels_paths(paths):
    """Return an ``n x 1`` matrix of the first number in each image's target file."""
    y = np.zeros((len(paths), 1), dtype=np.float32)
    for i, path in enumerate(paths):
        target = str(path)
        for find, replace in (
            ("images", "targets"),
            ("JPEGImages", "targets"),
            (".jpg", ".txt"),
            (".png", ".txt"),
        ):
            target = target.replace(find, replace, 1)
        tokens = Path(target).read_text().split()
        if not tokens:
            raise ValueError(f"no target value in {target}")
        y[i, 0] = float(tokens[0])
    return y


def concat_data(first, second):
    """Return the rows of ``first`` followed by those of ``second``."""
    return Data(
        np.concatenate([first.X, second.X]),
        np.concatenate([first.y, second.y]),
    )


def concat_datas(datas):
    """Join several data sets; each one's rows come before those joined so far."""
    out = None
    for data in datas:
        out = data if out is None else concat_data(data, out)
    if out is None:
        return Data(np.zeros((0, 0)), np.zeros((0, 0)))
    return Data(out.X.copy(), out.y.copy())


def _part_bounds(rows: int, part: int, total: int) -> tuple[int, int]:
    if total <= 0 or not 0 <= part < total:
        raise ValueError(f"part {part} is not one of {total} parts")
    return rows * part // total, rows * (part + 1) // total


def get_data_part(data, part, total):
    """Return part ``part`` of ``total`` equal slices, sharing memory with ``data``."""
    start, end = _part_bounds(data.rows, part, total)
    return Data(data.X[start:end], data.y[start:end], data.w, data.h)


def get_random_data(data, num, rng=None):
    """Return ``num`` examples drawn at random, with replacement."""
    if data.rows == 0:
        raise ValueError("no examples to choose from")
    generator = rng if rng is not None else np.random.default_rng()
    index = generator.integers(data.rows, size=num)
    return Data(data.X[index], data.y[index], data.w, data.h)


def split_data(data, part, total):
    """Return ``(train, test)`` where ``test`` is slice ``part`` of ``total``."""
    start, end = _part_bounds(data.rows, part, total)
    train = Data(
        np.concatenate([data.X[:start], data.X[end:]]),
        np.concatenate([data.y[:start], data.y[end:]]),
        data.w, data.h,
    )
    test = Data(data.X[start:end].copy(), data.y[start:end].copy(), data.w, data.h)
    return train, test


def get_random_batch(data, n, rng=None):
    """Return ``(X, y)`` for ``n`` examples drawn at random."""
    if data.rows == 0:
        raise ValueError("no examples to choose from")
    generator = rng if rng is not None else np.random.default_rng()
    index = generator.integers(data.rows, size=n)
    return data.X[index].copy(), data.y[index].copy()


def get_next_batch(data, n, offset):
    """Return ``(X, y)`` for the ``n`` examples starting at ``offset``."""
    if offset < 0 or n < 0 or offset + n > data.rows:
        raise IndexError(f"rows {offset}..{offset + n} exceed {data.rows} examples")
    return data.X[offset:offset + n].copy(), data.y[offset:offset + n].copy()


def smooth_data(data, eps=0.1):
    """Blend the targets towards a uniform distribution, in place."""
    cols = data.y.shape[1]
    if cols:
        data.y *= np.float32(1 - eps)
        data.y += np.float32(eps / cols)
    return data


def randomize_data(data, rng=None):
    """Shuffle the examples in place, keeping each input with its target."""
    generator = rng if rng is not None else np.random.default_rng()
    for i in range(data.rows - 1, 0, -1):
        index = int(generator.integers(i))
        data.X[[i, index]] = data.X[[index, i]]
        data.y[[i, index]] = data.y[[index, i]]
    return data


def scale_data_rows(data, s):
    """Multiply every input by ``s`` in place."""
    data.X *= np.float32(s)
    return data


def translate_data_rows(data, s):
    """Add ``s`` to every input in place."""
    data.X += np.float32(s)
    return data


def normalize_data_rows(data):
    """Give every input row zero mean and unit variance, in place."""
    if data.X.size == 0:
        return data
    mean = data.X.mean(axis=1, keepdims=True)
    std = data.X.std(axis=1, keepdims=True)
    std[std == 0] = 1
    data.X -= mean
    data.X /= std
    return data


def copy_data(data):
    """Return a deep copy of ``data``."""
    return Data(data.X.copy(), data.y.copy(), data.w, data.h)


def _read_cifar_batch(filename) -> tuple[np.ndarray, np.ndarray]:
    raw = Path(filename).read_bytes()
    record = CIFAR_PIXELS + 1
    if len(raw) < CIFAR_RECORDS * record:
        raise ValueError(
            f"{filename} holds {len(raw) // record} records, expected {CIFAR_RECORDS}"
        )
    records = np.frombuffer(raw, dtype=np.uint8, count=CIFAR_RECORDS * record)
    records = records.reshape(CIFAR_RECORDS, record)
    labels = records[:, 0]
    if np.any(labels >= CIFAR_CLASSES):
        raise ValueError(f"{filename} has a class label outside 0..{CIFAR_CLASSES - 1}")
    X = records[:, 1:].astype(np.float32)
    y = np.zeros((CIFAR_RECORDS, CIFAR_CLASSES), dtype=np.float32)
    y[np.arange(CIFAR_RECORDS), labels] = 1
    return X, y


def load_cifar10_data(filename):
    """Load one CIFAR-10 binary batch with inputs scaled to [0, 1]."""
    X, y = _read_cifar_batch(filename)
    return scale_data_rows(Data(X, y), 1.0 / 255)


def load_all_cifar10(directory="data/cifar/cifar-10-batches-bin"):
    """Load the five CIFAR-10 training batches, scaled and with smoothed targets."""
    parts = [
        _read_cifar_batch(Path(directory) / f"data_batch_{b}.bin") for b in range(1, 6)
    ]
    data = Data(
        np.concatenate([X for X, _ in parts]),
        np.concatenate([y for _, y in parts]),
    )
    scale_data_rows(data, 1.0 / 255)
    return smooth_data(data)


def load_go(filename):
    """Load Go positions: a ``row col`` line followed by a 361-character board line."""
    lines = _read_lines(filename)
    if len(lines) % 2:
        raise ValueError(f"{filename} ends with a move that has no board")
    count = len(lines) // 2
    X = np.zeros((count, GO_POINTS), dtype=np.float32)
    y = np.zeros((count, GO_POINTS), dtype=np.float32)
    for i in range(count):
        move, board = lines[2 * i], lines[2 * i + 1]
        try:
            row, col = (int(value) for value in move.split()[:2])
        except ValueError as exc:
            raise ValueError(f"bad move line: {move!r}") from exc
        if not (0 <= row < 19 and 0 <= col < 19):
            raise ValueError(f"move off the board: {move!r}")
        if len(board) < GO_POINTS:
            raise ValueError(f"board line {2 * i + 2} is too short")
        y[i, row * 19 + col] = 1
        cells = np.frombuffer(board[:GO_POINTS].encode("latin-1"), dtype=np.uint8)
        X[i, cells == ord("1")] = 1
        X[i, cells == ord("2")] = -1
    return Data(X, y)