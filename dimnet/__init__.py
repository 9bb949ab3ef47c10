"""NumPy network layers, training data loaders, detection output helpers and a Go board model."""

__version__ = "0.1.0"

__all__ = [
    "crop",
    "dataset",
    "detection",
    "detector_eval",
    "detector_output",
    "dropout",
    "gemm",
    "go_board",
    "go_engine",
    "go_text",
    "labels",
]