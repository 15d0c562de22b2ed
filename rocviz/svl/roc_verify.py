# rocviz/svl/roc_verify.py
"""
Validation and repair of curves that are already in hand.

Ingestion (canonical.py) is strict: a decreasing fpr is rejected. Here the
policy is lenient: small decreases and duplicate points are repaired and
reported. Only structural damage, or a drop larger than `max_drop` on
either axis, is fatal.

validate_curve() never mutates its argument. It returns (report, curve)
where `curve` is a repaired copy when report.fixed is set, and the input
object itself otherwise.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from rocviz.config import DEFAULT_MAX_DROP
from rocviz.svl.guards import is_sequence, to_finite
from rocviz.svl.roc_spec import RocCurve, ValidationReport

log = logging.getLogger(__name__)

DUPLICATE_EPS = 1e-9
ENDPOINT_EPS = 1e-9

ENDPOINT_NOTE = (
    "This ROC curve does not include (0,0) or (1,1). This is normal for heavy-tailed "
    "distributions with asymptotic CDF tails. No correction needed."
)


def _as_fields(curve: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(curve, RocCurve):
        return {"fpr": curve.fpr, "tpr": curve.tpr, "threshold": curve.threshold,
                "bands": curve.bands, "name": curve.name}
    if isinstance(curve, Mapping):
        return curve
    return None


def _numbers(values: Any) -> Optional[List[Optional[float]]]:
    if not is_sequence(values):
        return None
    return [to_finite(v) for v in values]


def _take(values: Any, kept: List[int]) -> List[Any]:
    return [values[i] for i in kept]


def _rebuild(curve: Any, fpr, tpr, threshold, kept: List[int], n: int) -> Any:
    """Copy `curve` with repaired arrays; band entries follow their points."""
    if isinstance(curve, RocCurve):
        bands = None
        if curve.bands is not None:
            bands = [b.model_copy(update={"lower": _take(b.lower, kept), "upper": _take(b.upper, kept)})
                     for b in curve.bands]
        return curve.model_copy(update={"fpr": fpr, "tpr": tpr, "threshold": threshold, "bands": bands})

    out = dict(curve)
    out["fpr"], out["tpr"] = fpr, tpr
    if threshold is not None:
        out["threshold"] = threshold
    if is_sequence(curve.get("bands")):
        bands = []
        for band in curve["bands"]:
            if isinstance(band, Mapping) and len(band.get("lower") or []) == n and len(band.get("upper") or []) == n:
                band = dict(band, lower=_take(band["lower"], kept), upper=_take(band["upper"], kept))
            bands.append(band)
        out["bands"] = bands
    return out


def validate_curve(curve: Any, curve_id: Optional[str] = None,
                   max_drop: float = DEFAULT_MAX_DROP) -> Tuple[ValidationReport, Any]:
    fields = _as_fields(curve)
    name = fields.get("name") if fields is not None else None
    report = ValidationReport(curve_id=str(curve_id or name or "curve"))

    if fields is None:
        return report.fail("Curve is missing or not an object."), curve
    fpr = _numbers(fields.get("fpr"))
    tpr = _numbers(fields.get("tpr"))
    if fpr is None or tpr is None:
        return report.fail("Curve must include numeric fpr and tpr arrays."), curve
    if len(fpr) != len(tpr):
        return report.fail(f"fpr/tpr length mismatch ({len(fpr)} vs {len(tpr)})."), curve
    if not fpr:
        return report.fail("Curve must contain at least one point."), curve

    for i in range(len(fpr)):
        if fpr[i] is None or tpr[i] is None:
            return report.fail(f"Non-numeric value at index {i}."), curve
        if i == 0:
            continue
        if fpr[i - 1] - fpr[i] > max_drop:
            return report.fail(f"fpr decreases at index {i} ({fpr[i - 1]} -> {fpr[i]}), "
                               f"more than the repairable limit {max_drop}."), curve
        if tpr[i - 1] - tpr[i] > max_drop:
            return report.fail(f"tpr decreases at index {i} ({tpr[i - 1]} -> {tpr[i]}), "
                               f"more than the repairable limit {max_drop}."), curve

    raw_thr = fields.get("threshold")
    thresholds = list(raw_thr) if is_sequence(raw_thr) else None

    out_fpr: List[float] = []
    out_tpr: List[float] = []
    out_thr: List[Optional[float]] = []
    kept: List[int] = []
    for i, (x, y) in enumerate(zip(fpr, tpr)):
        thr = thresholds[i] if thresholds is not None and i < len(thresholds) else None
        if kept:
            last_x, last_y = out_fpr[-1], out_tpr[-1]
            # duplicates are judged on the raw point, before any clamping
            if abs(x - last_x) < DUPLICATE_EPS and abs(y - last_y) < DUPLICATE_EPS:
                report.repaired(f"Duplicate point at index {i} removed.")
                continue
            if x < last_x:
                x = last_x
                report.repaired(f"Adjusted fpr at index {i} to maintain monotonicity.")
            if y < last_y:
                y = last_y
                report.repaired(f"Adjusted tpr at index {i} to maintain monotonicity.")
        out_fpr.append(x)
        out_tpr.append(y)
        out_thr.append(thr)
        kept.append(i)

    points = list(zip(out_fpr, out_tpr))
    has_zero = any(abs(x) < ENDPOINT_EPS and abs(y) < ENDPOINT_EPS for x, y in points)
    has_one = any(abs(x - 1) < ENDPOINT_EPS and abs(y - 1) < ENDPOINT_EPS for x, y in points)
    if not (has_zero and has_one):
        report.notes.append(ENDPOINT_NOTE)

    if report.fixed:
        log.info("repaired curve %s: %d change(s)", report.curve_id, len(report.warnings))
        curve = _rebuild(curve, out_fpr, out_tpr, out_thr if thresholds is not None else None,
                         kept, len(fpr))
    report.ok = not report.fatal
    return report, curve


def validate_collection(curves: Any, max_drop: float = DEFAULT_MAX_DROP
                        ) -> Tuple[Dict[str, ValidationReport], Dict[str, Any]]:
    reports: Dict[str, ValidationReport] = {}
    repaired: Dict[str, Any] = {}
    if not isinstance(curves, Mapping):
        return reports, repaired
    for curve_id, curve in curves.items():
        report, fixed_curve = validate_curve(curve, str(curve_id), max_drop=max_drop)
        if report.fatal:
            log.warning("curve %s failed validation: %s", curve_id, "; ".join(report.errors))
        reports[str(curve_id)] = report
        repaired[str(curve_id)] = fixed_curve
    return reports, repaired
