import math

import pytest

from rocviz.errors import ShapeError
from rocviz.svl.canonical import to_canonical_curve


def test_coerces_numeric_strings_and_keeps_name():
    c = to_canonical_curve({"fpr": ["0", " 0.5 ", 1], "tpr": [0, "0.7", "1"], "name": "  model A "})
    assert c.type == "ROC"
    assert c.fpr == [0.0, 0.5, 1.0]
    assert c.tpr == [0.0, 0.7, 1.0]
    assert c.name == "model A"


def test_rejects_decreasing_fpr():
    with pytest.raises(ShapeError, match="ascending"):
        to_canonical_curve({"fpr": [0, 0.5, 0.3], "tpr": [0, 0.5, 0.6]}, id_hint="m")


@pytest.mark.parametrize("raw, needle", [
    ({"fpr": [], "tpr": []}, "at least one value"),
    ({"fpr": [0, 1.2], "tpr": [0, 1]}, "within"),
    ({"fpr": [0, 1], "tpr": [0, -0.1]}, "within"),
    ({"fpr": [0, 1], "tpr": [0]}, "mismatched"),
    ({"fpr": [0, None], "tpr": [0, 1]}, "missing value at index 1"),
    ({"fpr": [0, " "], "tpr": [0, 1]}, "missing value at index 1"),
    ({"fpr": [0, "abc"], "tpr": [0, 1]}, "invalid numeric value"),
    ({"fpr": [0, float("inf")], "tpr": [0, 1]}, "non-finite"),
    ({"fpr": [0, 1], "tpr": [0, 1], "type": "PR"}, 'must be "ROC"'),
])
def test_shape_errors(raw, needle):
    with pytest.raises(ShapeError, match=needle):
        to_canonical_curve(raw, id_hint="m")


def test_error_names_field_path():
    with pytest.raises(ShapeError) as e:
        to_canonical_curve({"fpr": [0, 0.2, "x"], "tpr": [0, 0.2, 1]}, id_hint="modelB")
    assert "modelB.fpr" in str(e.value)
    assert "index 2" in str(e.value)


def test_rejects_non_object():
    with pytest.raises(ShapeError):
        to_canonical_curve([0, 1])


def test_threshold_keeps_null_and_infinities():
    c = to_canonical_curve({
        "fpr": [0, 0.5, 1], "tpr": [0, 0.8, 1],
        "threshold": [float("inf"), "0.4", None],
    })
    assert c.threshold[0] == math.inf
    assert c.threshold[1] == 0.4
    assert c.threshold[2] is None


def test_threshold_length_must_match():
    with pytest.raises(ShapeError, match="threshold length"):
        to_canonical_curve({"fpr": [0, 1], "tpr": [0, 1], "threshold": [1]})


def test_bands_are_normalized_and_sorted():
    c = to_canonical_curve({
        "fpr": [0, 1], "tpr": [0, 1],
        "bands": [
            {"confidence_level": "0.95", "lower": [0, 0.9], "upper": [0.1, 1]},
            None,
            {"credible_level": 0.5, "lower": [0, 0.95], "upper": [0.05, 1]},
        ],
    })
    assert [b.level for b in c.bands] == [0.5, 0.95]


def test_band_length_mismatch_fails():
    with pytest.raises(ShapeError, match=r"bands\[0\]"):
        to_canonical_curve({"fpr": [0, 1], "tpr": [0, 1],
                            "bands": [{"level": 0.9, "lower": [0], "upper": [0, 1]}]})


def test_duplicate_band_levels_fail():
    with pytest.raises(ShapeError, match="duplicate level"):
        to_canonical_curve({"fpr": [0, 1], "tpr": [0, 1], "bands": [
            {"level": 0.9, "lower": [0, 1], "upper": [0, 1]},
            {"level": "0.90", "lower": [0, 1], "upper": [0, 1]},
        ]})


def test_metadata_is_shallow_copied():
    meta = {"model": "xgb", "nested": {"k": 1}}
    c = to_canonical_curve({"fpr": [0, 1], "tpr": [0, 1], "metadata": meta})
    assert c.metadata == meta
    assert c.metadata is not meta
    assert c.metadata["nested"] is meta["nested"]
