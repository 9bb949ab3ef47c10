import numpy as np
import pytest

from dimnet.labels import (
    DETECTION_REPLACEMENTS,
    NUMCHARS,
    REGION_REPLACEMENTS,
    SWAG_REPLACEMENTS,
    BoxLabel,
    correct_boxes,
    distance_from_edge,
    fill_truth_captcha,
    fill_truth_detection,
    fill_truth_region,
    fill_truth_swag,
    label_path,
    randomize_boxes,
    read_boxes,
)


def _write_labels(tmp_path, replacements, text):
    image = tmp_path / "images" / "sample.jpg"
    target = label_path(str(image), replacements)
    from pathlib import Path

    Path(target).parent.mkdir(parents=True, exist_ok=True)
    Path(target).write_text(text)
    return str(image)


def test_distance_from_edge_centre_is_one_and_edge_smaller():
    assert distance_from_edge(5, 10) == 1.0
    assert distance_from_edge(0, 10) < distance_from_edge(5, 10)
    for x in range(10):
        assert 0 < distance_from_edge(x, 10) <= 1.0


def test_label_path_detection_replacements():
    assert label_path("data/images/a.jpg", DETECTION_REPLACEMENTS) == "data/labels/a.txt"
    assert label_path("voc/JPEGImages/b.png", REGION_REPLACEMENTS) == "voc/labels/b.txt"


def test_label_path_replaces_first_occurrence_only():
    assert label_path("images/images.jpg", [("images", "labels")]) == "labels/images.jpg"


def test_read_boxes_parses_records(tmp_path):
    path = tmp_path / "boxes.txt"
    path.write_text("0 0.5 0.5 0.2 0.4\n3 0.25 0.75 0.1 0.1\n")
    boxes = read_boxes(path)
    assert [b.id for b in boxes] == [0, 3]
    first = boxes[0]
    assert first.x == pytest.approx(0.5)
    assert first.left == pytest.approx(first.x - first.w / 2)
    assert first.right == pytest.approx(first.x + first.w / 2)
    assert first.top == pytest.approx(first.y - first.h / 2)
    assert first.bottom == pytest.approx(first.y + first.h / 2)


def test_read_boxes_stops_at_bad_record(tmp_path):
    path = tmp_path / "boxes.txt"
    path.write_text("1 0.5 0.5 0.2 0.2\nbad 0.1 0.1 0.1 0.1\n2 0.5 0.5 0.2 0.2\n")
    assert [b.id for b in read_boxes(path)] == [1]


def test_read_boxes_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_boxes(tmp_path / "absent.txt")


def test_randomize_boxes_is_permutation():
    boxes = [BoxLabel.from_center(i, 0.5, 0.5, 0.1, 0.1) for i in range(8)]
    result = randomize_boxes(boxes, np.random.default_rng(1))
    assert result is boxes
    assert sorted(b.id for b in result) == list(range(8))


def test_correct_boxes_identity_keeps_box():
    box = BoxLabel.from_center(0, 0.4, 0.6, 0.2, 0.3)
    correct_boxes([box], 0, 0, 1, 1, False)
    assert box.x == pytest.approx(0.4)
    assert box.y == pytest.approx(0.6)
    assert box.w == pytest.approx(0.2)
    assert box.h == pytest.approx(0.3)


def test_correct_boxes_flip_mirrors():
    box = BoxLabel.from_center(0, 0.3, 0.5, 0.2, 0.2)
    correct_boxes([box], 0, 0, 1, 1, True)
    assert box.x == pytest.approx(1 - 0.3)
    assert box.w == pytest.approx(0.2)


def test_correct_boxes_clamps_to_unit():
    box = BoxLabel.from_center(0, 0.9, 0.9, 0.6, 0.6)
    correct_boxes([box], 0, 0, 1, 1, False)
    assert 0 <= box.left <= box.right <= 1
    assert 0 <= box.top <= box.bottom <= 1


def test_correct_boxes_marks_zero_centre_missing():
    box = BoxLabel.from_center(0, 0.0, 0.0, 0.2, 0.2)
    correct_boxes([box], 0, 0, 1, 1, False)
    assert (box.x, box.y, box.w, box.h) == (999999, 999999, 999999, 999999)


def test_fill_truth_detection_single_box(tmp_path):
    image = _write_labels(tmp_path, DETECTION_REPLACEMENTS, "2 0.5 0.5 0.2 0.4\n")
    truth = fill_truth_detection(image, 4, 5, False, 0, 0, 1, 1, np.random.default_rng(0))
    assert truth.shape == (20,)
    assert truth[:5] == pytest.approx([0.5, 0.5, 0.2, 0.4, 2])
    assert not truth[5:].any()


def test_fill_truth_detection_limits_boxes(tmp_path):
    text = "".join(f"{i} 0.5 0.5 0.2 0.2\n" for i in range(6))
    image = _write_labels(tmp_path, DETECTION_REPLACEMENTS, text)
    truth = fill_truth_detection(image, 3, 10, False, 0, 0, 1, 1, np.random.default_rng(0))
    assert truth.shape == (15,)
    ids = sorted(truth.reshape(3, 5)[:, 4].tolist())
    assert len(set(ids)) == 3
    assert set(ids) <= set(range(6))


def test_fill_truth_region_single_box(tmp_path):
    image = _write_labels(tmp_path, REGION_REPLACEMENTS, "1 0.5 0.5 0.2 0.4\n")
    classes = 3
    truth = fill_truth_region(image, classes, 2, False, 0, 0, 1, 1, np.random.default_rng(0))
    stride = 5 + classes
    assert truth.shape == (2 * 2 * stride,)
    cell = truth.reshape(4, stride)[3]
    assert cell[0] == 1
    assert cell[1 + 1] == 1
    assert cell[4:] == pytest.approx([0.0, 0.0, 0.2, 0.4])
    assert truth.reshape(4, stride)[:3].sum() == 0


def test_fill_truth_region_skips_tiny_boxes(tmp_path):
    image = _write_labels(tmp_path, REGION_REPLACEMENTS, "1 0.5 0.5 0.001 0.4\n")
    truth = fill_truth_region(image, 2, 3, False, 0, 0, 1, 1, np.random.default_rng(0))
    assert truth.sum() == 0


def test_fill_truth_swag_single_box(tmp_path):
    image = _write_labels(tmp_path, SWAG_REPLACEMENTS, "2 0.5 0.5 0.2 0.4\n")
    classes = 4
    truth = fill_truth_swag(image, classes, False, 0, 0, 1, 1, np.random.default_rng(0))
    assert truth.shape == ((4 + classes) * 30,)
    assert truth[:4] == pytest.approx([0.5, 0.5, 0.2, 0.4])
    assert truth[4 + 2] == 1
    assert truth[4:8].sum() == 1


def test_fill_truth_captcha_letters_and_padding():
    truth = fill_truth_captcha("captchas/ab1.png", 5).reshape(5, NUMCHARS)
    assert truth.sum() == 5
    assert truth[0].argmax() == 10
    assert truth[1].argmax() == 11
    assert truth[2].argmax() == 1
    assert truth[3].argmax() == NUMCHARS - 1
    assert truth[4].argmax() == NUMCHARS - 1


def test_fill_truth_captcha_rejects_unknown_character():
    with pytest.raises(ValueError):
        fill_truth_captcha("captchas/a#b.png", 4)