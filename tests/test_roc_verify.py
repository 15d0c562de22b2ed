import copy

from rocviz.svl.canonical import to_canonical_curve
from rocviz.svl.roc_verify import ENDPOINT_NOTE, validate_collection, validate_curve


def test_small_fpr_decrease_is_repaired():
    curve = {"fpr": [0, 0.2, 0.1, 0.5], "tpr": [0, 0.3, 0.3, 0.6]}
    before = copy.deepcopy(curve)
    report, fixed = validate_curve(curve, "m")
    assert report.ok and report.fixed and not report.fatal
    assert len(report.warnings) == 1
    assert fixed["fpr"] == [0, 0.2, 0.2, 0.5]
    assert fixed["tpr"] == [0, 0.3, 0.3, 0.6]
    assert curve == before


def test_length_mismatch_is_fatal_and_untouched():
    curve = {"fpr": [0, 0.5, 1], "tpr": [0, 1]}
    before = copy.deepcopy(curve)
    report, out = validate_curve(curve, "m")
    assert report.fatal and not report.ok
    assert "length mismatch" in report.errors[0]
    assert out is curve
    assert curve == before


def test_structural_failures():
    assert validate_curve(None)[0].fatal
    assert validate_curve({"fpr": "0,1", "tpr": [0, 1]})[0].fatal
    assert validate_curve({"fpr": [], "tpr": []})[0].fatal
    report, _ = validate_curve({"fpr": [0, float("nan")], "tpr": [0, 1]})
    assert report.fatal
    assert report.errors == ["Non-numeric value at index 1."]


def test_large_drop_is_fatal():
    report, _ = validate_curve({"fpr": [0, 0.9, 0.1, 1], "tpr": [0, 0.5, 0.6, 1]})
    assert report.fatal
    assert "fpr decreases at index 2" in report.errors[0]
    report, _ = validate_curve({"fpr": [0, 0.9, 0.1, 1], "tpr": [0, 0.5, 0.6, 1]}, max_drop=0.9)
    assert report.ok and report.fixed


def test_duplicates_removed_and_thresholds_follow():
    curve = {"fpr": [0, 0.5, 0.5, 1], "tpr": [0, 0.6, 0.6, 1], "threshold": [None, 0.7, 0.6, 0.1]}
    report, fixed = validate_curve(curve, "m")
    assert report.fixed
    assert report.warnings == ["Duplicate point at index 2 removed."]
    assert fixed["fpr"] == [0, 0.5, 1]
    assert fixed["threshold"] == [None, 0.7, 0.1]


def test_tpr_clamped_up():
    report, fixed = validate_curve({"fpr": [0, 0.3, 0.6, 1], "tpr": [0, 0.5, 0.45, 1]})
    assert report.warnings == ["Adjusted tpr at index 2 to maintain monotonicity."]
    assert fixed["tpr"] == [0, 0.5, 0.5, 1]


def test_endpoint_note_is_not_a_warning():
    report, out = validate_curve({"fpr": [0.1, 0.5], "tpr": [0.2, 0.9]})
    assert report.ok and not report.fixed
    assert report.warnings == []
    assert report.notes == [ENDPOINT_NOTE]


def test_canonical_curve_repair_returns_copy_with_aligned_bands():
    curve = to_canonical_curve({
        "fpr": [0, 0.5, 0.5, 1], "tpr": [0, 0.6, 0.6, 1],
        "bands": [{"level": 0.9, "lower": [0, 0.4, 0.41, 1], "upper": [0, 0.8, 0.81, 1]}],
    })
    report, fixed = validate_curve(curve, "m")
    assert report.fixed
    assert fixed is not curve
    assert fixed.fpr == [0, 0.5, 1]
    assert fixed.bands[0].lower == [0, 0.4, 1]
    assert len(curve.fpr) == 4


def test_collection_reports_by_id():
    reports, repaired = validate_collection({
        "good": {"fpr": [0, 1], "tpr": [0, 1]},
        "bad": {"fpr": [0, 1], "tpr": [0]},
    })
    assert reports["good"].ok and reports["good"].curve_id == "good"
    assert reports["bad"].fatal
    assert set(repaired) == {"good", "bad"}
    assert reports["good"].model_dump(by_alias=True)["curveId"] == "good"
    assert validate_collection(None) == ({}, {})
