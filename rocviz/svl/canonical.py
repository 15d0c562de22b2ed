# rocviz/svl/canonical.py
from __future__ import annotations

import logging
import math
from typing import Any, List, Mapping, Optional

from rocviz.errors import ShapeError
from rocviz.svl.guards import (
    assert_sorted_ascending,
    assert_within_range,
    band_sort_key,
    coerce_number_array,
    format_band_label,
    is_sequence,
    parse_float_text,
    to_finite,
)
from rocviz.svl.roc_spec import ConfidenceBand, RocCurve

log = logging.getLogger(__name__)

LEVEL_KEYS = ("level", "confidence_level", "credible_level")


def _level(band: Mapping[str, Any], context: str):
    raw = next((band[k] for k in LEVEL_KEYS if band.get(k) is not None), None)
    if raw is None:
        raise ShapeError(f"{context}.level is required.")
    num = to_finite(raw)
    if num is not None:
        return num
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    raise ShapeError(f"{context}.level must be a numeric value or a label.")


def _normalize_band(band: Any, idx: int, length: int, context: str) -> ConfidenceBand:
    where = f"{context}.bands[{idx}]"
    if not isinstance(band, Mapping):
        raise ShapeError(f"{where} must be an object.")
    level = _level(band, where)
    lower = coerce_number_array(band.get("lower"), f"{where}.lower")
    upper = coerce_number_array(band.get("upper"), f"{where}.upper")
    if len(lower) != length or len(upper) != length:
        raise ShapeError(f"{where} arrays must match fpr/tpr length.")
    return ConfidenceBand(level=level, lower=lower, upper=upper)


def _thresholds(values: Any, length: int, context: str) -> List[Optional[float]]:
    if not is_sequence(values):
        raise ShapeError(f"{context}.threshold must be an array.")
    if len(values) != length:
        raise ShapeError(f"{context}.threshold length must match fpr/tpr length.")
    out: List[Optional[float]] = []
    for i, v in enumerate(values):
        if v is None or (isinstance(v, str) and not v.strip()):
            out.append(None)
            continue
        if isinstance(v, bool):
            raise ShapeError(f"{context}.threshold has invalid numeric value at index {i}.")
        try:
            num = parse_float_text(v.strip()) if isinstance(v, str) else float(v)
        except (TypeError, ValueError):
            raise ShapeError(f"{context}.threshold has invalid numeric value at index {i}.")
        if math.isnan(num):
            raise ShapeError(f"{context}.threshold has invalid numeric value at index {i}.")
        out.append(num)
    return out


def to_canonical_curve(raw: Any, id_hint: Optional[str] = None) -> RocCurve:
    """Turn one curve-like mapping into a RocCurve, or raise ShapeError.

    fpr must already be ascending and inside [0, 1]; nothing is repaired
    here (that is the validator's job).
    """
    if isinstance(raw, RocCurve):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        raise ShapeError("ROC curve must be an object.")
    context = id_hint or raw.get("curve_id") or raw.get("name") or "curve"
    context = str(context)

    kind = raw.get("type", "ROC")
    if kind is None:
        kind = "ROC"
    if kind != "ROC":
        raise ShapeError(f'{context}.type must be "ROC".')

    fpr = coerce_number_array(raw.get("fpr"), f"{context}.fpr")
    assert_sorted_ascending(fpr, f"{context}.fpr")
    assert_within_range(fpr, f"{context}.fpr", 0.0, 1.0)

    tpr = coerce_number_array(raw.get("tpr"), f"{context}.tpr")
    if len(tpr) != len(fpr):
        raise ShapeError(f"{context} has mismatched fpr/tpr lengths ({len(fpr)} vs {len(tpr)}).")
    assert_within_range(tpr, f"{context}.tpr", 0.0, 1.0)

    fields = {"fpr": fpr, "tpr": tpr}

    name = raw.get("name")
    if isinstance(name, str) and name.strip():
        fields["name"] = name.strip()

    if raw.get("threshold") is not None:
        fields["threshold"] = _thresholds(raw["threshold"], len(fpr), context)

    bands_raw = raw.get("bands")
    if bands_raw is not None and not is_sequence(bands_raw):
        raise ShapeError(f"{context}.bands must be an array.")
    if bands_raw is not None and len(bands_raw):
        bands = [
            _normalize_band(b, i, len(fpr), context)
            for i, b in enumerate(bands_raw)
            if b is not None
        ]
        bands.sort(key=lambda b: band_sort_key(b.level))
        seen = set()
        for b in bands:
            label = format_band_label(b.level)
            if label in seen:
                raise ShapeError(f"{context}.bands has duplicate level {label!r}.")
            seen.add(label)
        if bands:
            fields["bands"] = bands

    metadata = raw.get("metadata")
    if isinstance(metadata, Mapping):
        fields["metadata"] = dict(metadata)

    curve = RocCurve(**fields)
    log.debug("canonicalized %s (%d points)", context, len(fpr))
    return curve
