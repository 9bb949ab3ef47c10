import numpy as np
import pytest

from dimnet.detection import Box
from dimnet.detector_eval import best_iou, count_proposals, parse_gpu_list


def test_parse_gpu_list_several():
    assert parse_gpu_list("0,1,2") == [0, 1, 2]


def test_parse_gpu_list_single():
    assert parse_gpu_list("3") == [3]


def test_parse_gpu_list_empty_entries_are_zero():
    assert parse_gpu_list("1,,2") == [1, 0, 2]
    assert parse_gpu_list("1,") == [1, 0]


def test_parse_gpu_list_length_matches_commas():
    text = "4,5,6,7"
    assert len(parse_gpu_list(text)) == text.count(",") + 1


def test_parse_gpu_list_none_raises():
    with pytest.raises(ValueError):
        parse_gpu_list(None)


def test_count_proposals():
    probs = np.array([[0.5, 0.0], [0.001, 0.3], [0.2, 0.0]], dtype=np.float32)
    assert count_proposals(probs, 0.1) == 2
    assert count_proposals(probs, 0.9) == 0


def test_count_proposals_empty():
    assert count_proposals(np.zeros((0, 2)), 0.1) == 0


def test_best_iou_identical_box():
    truth = Box(0.5, 0.5, 0.2, 0.2)
    boxes = [Box(0.1, 0.1, 0.1, 0.1), Box(0.5, 0.5, 0.2, 0.2)]
    probs = np.array([[0.9], [0.9]], dtype=np.float32)
    assert best_iou(boxes, probs, truth, 0.5) == pytest.approx(1.0)


def test_best_iou_ignores_low_scores():
    truth = Box(0.5, 0.5, 0.2, 0.2)
    boxes = [Box(0.5, 0.5, 0.2, 0.2)]
    probs = np.array([[0.01]], dtype=np.float32)
    assert best_iou(boxes, probs, truth, 0.5) == 0.0


def test_best_iou_is_bounded():
    truth = Box(0.5, 0.5, 0.4, 0.4)
    boxes = [Box(0.6, 0.55, 0.3, 0.5), Box(0.45, 0.5, 0.5, 0.2)]
    probs = np.array([[1.0], [1.0]], dtype=np.float32)
    value = best_iou(boxes, probs, truth, 0.0)
    assert 0.0 < value <= 1.0
    assert value == pytest.approx(max(b.iou(truth) for b in boxes))


def test_best_iou_too_few_rows():
    with pytest.raises(ValueError):
        best_iou([Box(0, 0, 1, 1), Box(0, 0, 1, 1)], np.array([[1.0]]), Box(0, 0, 1, 1), 0.0)