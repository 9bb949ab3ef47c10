# dimnet

`dimnet` is a small NumPy library. It contains a few neural network layers,
loaders for training data, output writers for object detectors and a model of
a 19×19 Go board.

## What is in it

- `dimnet.gemm` provides `gemm(a, b, c, alpha, beta, trans_a, trans_b)`. It
  computes `c = beta * c + alpha * op(a) · op(b)` in place on a float32 array.
  The module also has `gemm_bin`, which adds or subtracts rows of `b` according
  to a bit matrix, `random_matrix` for uniform float32 matrices, and
  `time_gemm` for timing repeated multiplications.
- `dimnet.dropout.DropoutLayer` zeroes inputs with the given probability
  while training and scales the remaining inputs by `1 / (1 - p)`. Its
  `backward` applies the same mask to a gradient. `resize` changes the input
  count.
- `dimnet.crop.CropLayer` takes a random crop when training, which may also be
  mirrored, and a centred crop otherwise. Values are mapped to `2x - 1` unless
  `noadjust` is set. The layer also has `resize` and `output_image`. Its
  `backward` passes no gradient.
- `dimnet.detection` contains:
  - `Box`, with `iou` and `rmse`.
  - `DetectionLayer`. `forward(values, truth, train, seen, rng)` computes the
    delta and the cost for grid detection while training. `backward(delta)`
    adds that delta in place. `boxes(w, h, thresh, only_objectness)` decodes
    predictions.
  - `get_detection_boxes`, a standalone version of the decoder.
- `dimnet.labels` reads `id x y w h` label files into `BoxLabel` records
  (`read_boxes`). It shuffles them (`randomize_boxes`) and moves them into the
  frame of a cropped, scaled or flipped image (`correct_boxes`). It builds
  truth vectors with `fill_truth_swag`, `fill_truth_region`,
  `fill_truth_detection` and `fill_truth_captcha`. `label_path` maps an image
  path to its label file.
- `dimnet.dataset` defines `Data`, which pairs input and target matrices. It
  has functions that operate on `Data`:
  - Joining: `concat_data`, `concat_datas`.
  - Slicing and splitting: `get_data_part`, `split_data`.
  - Sampling and batching: `get_random_data`, `get_random_batch`,
    `get_next_batch`.
  - Shuffling: `randomize_data`.
  - Scaling and normalising: `scale_data_rows`, `translate_data_rows`,
    `normalize_data_rows`, `smooth_data`.
  - Copying: `copy_data`.

  It also provides:
  - Path and label list readers: `get_paths`, `get_labels`,
    `get_random_paths`, `find_replace_paths`.
  - Label helpers: `fill_truth`, `fill_hierarchy`, `load_tags_paths`,
    `load_regression_labels_paths`.
  - Loaders for the CIFAR-10 binary batches (`load_cifar10_data`,
    `load_all_cifar10`) and for text Go position files (`load_go`).
- `dimnet.detector_output` formats detections as text lines:
  - `coco_lines` gives COCO JSON records.
  - `voc_lines` gives per-class VOC lines.
  - `imagenet_lines` gives ImageNet lines.
  - `coco_image_id` extracts the image id from a file name.
- `dimnet.detector_eval` contains `parse_gpu_list`, `count_proposals` and
  `best_iou`, which are used for recall evaluation.
- `dimnet.go_board` packs and unpacks boards in a 91-byte encoding with
  `string_to_board` and `board_to_string`. It also provides
  `calculate_liberties`, `flip_board`, `move_go` (which handles captures),
  `suicide_go` and `legal_go` (which checks ko).
- `dimnet.go_text` prints boards with `format_board`. `print_game` writes a
  position as GTP commands. `load_go_moves` reads fixed 94-byte move records.
  `format_vertex` and `parse_vertex` convert points to and from GTP vertex
  names.
- `dimnet.go_engine` places handicap stones with `fixed_handicap`. It scores a
  position by sending it to an external GTP program (`score_game`, which runs
  `./gnugo --mode gtp` by default) and reading the reply with `parse_score`.

## Requirements

Python 3.10 or newer and NumPy.

## Examples

```python
import numpy as np
from dimnet.gemm import gemm

a = np.arange(6, dtype=np.float32).reshape(2, 3)
b = np.ones((3, 2), dtype=np.float32)
c = np.zeros((2, 2), dtype=np.float32)
gemm(a, b, c, 1.0, 0.0, False, False)
```

```python
import numpy as np
from dimnet.dropout import DropoutLayer

rng = np.random.default_rng(0)
layer = DropoutLayer(batch=1, inputs=8, probability=0.5)
out = layer.forward(np.ones(8, dtype=np.float32), train=True, rng=rng)
grad = layer.backward(np.ones(8, dtype=np.float32))
```

```python
from dimnet.labels import read_boxes

for box in read_boxes("labels/000001.txt"):
    print(box.id, box.x, box.y, box.w, box.h)
```

```python
from dimnet.go_board import board_to_string, move_go, string_to_board
from dimnet.go_text import format_board

board = string_to_board(bytes(91))
move_go(board, 1, 3, 3)
print(format_board(board, 1, None))
packed = board_to_string(board)
```

## What it does not do

The package is a library only. It has no command-line program. It does not do
the following:

- It does not parse network configuration files or load or save weight files.
- It does not build whole networks or run training loops.
- It does not decode or resize images.
- It does not run a live camera demo.
- It does not run a full GTP engine loop, and it does not pick moves with a
  network.

The layers compute on the CPU with NumPy. There is no GPU support.

## Running the tests

Install the `test` extra and run `pytest`. The tests are in `tests/`.