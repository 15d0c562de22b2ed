# rocviz/metrics/empirical.py
"""
Empirical ROC from labeled scores, the monotone envelope of an arbitrary
point cloud, and trapezoidal AUC.

Points are plain dicts {"fpr", "tpr", "threshold"} so they can go straight
out as JSON (after the +/-inf sentinels are handled by the caller).
"""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from rocviz.svl.canonical import to_canonical_curve
from rocviz.svl.guards import to_finite
from rocviz.svl.roc_spec import RocCurve

Point = Dict[str, Any]


def _sample(item: Any):
    if isinstance(item, Mapping):
        return item.get("score"), item.get("label")
    if isinstance(item, (list, tuple)) and len(item) == 2:
        return item[0], item[1]
    return None, None


def _label(value: Any) -> Optional[int]:
    # 0/1 only; True/False and 0.0/1.0 count, anything else is dropped
    if isinstance(value, (bool, np.bool_)):
        return int(value)
    if isinstance(value, (int, float, np.integer, np.floating)) and value in (0, 1):
        return int(value)
    return None


def compute_empirical_roc(samples: Iterable[Any]) -> List[Point]:
    """Step-function ROC from (score, label) samples.

    Tied scores are taken as one group, so a tie yields a single diagonal
    step rather than a staircase whose shape depends on input order.
    Returns [] when there are no usable samples or only one class.
    """
    scores: List[float] = []
    labels: List[int] = []
    for item in samples or []:
        raw_score, raw_label = _sample(item)
        score, label = to_finite(raw_score), _label(raw_label)
        if score is None or label is None:
            continue
        scores.append(score)
        labels.append(label)
    if not scores:
        return []

    s = np.asarray(scores, dtype=np.float64)
    y = np.asarray(labels, dtype=np.int64)
    order = np.argsort(-s, kind="mergesort")
    s, y = s[order], y[order]

    total_pos = int(y.sum())
    total_neg = len(y) - total_pos
    if total_pos == 0 or total_neg == 0:
        return []

    tp = np.cumsum(y)
    fp = np.cumsum(1 - y)
    # last index of each run of equal scores
    ends = np.flatnonzero(np.r_[s[1:] != s[:-1], True])

    points: List[Point] = [{"fpr": 0.0, "tpr": 0.0, "threshold": math.inf}]
    for i in ends:
        points.append({
            "fpr": float(fp[i]) / total_neg,
            "tpr": float(tp[i]) / total_pos,
            "threshold": float(s[i]),
        })
    points.append({"fpr": 1.0, "tpr": 1.0, "threshold": -math.inf})
    points.sort(key=lambda p: (p["fpr"], p["tpr"]))
    return points


def ensure_monotone_roc(points: Iterable[Any]) -> List[Point]:
    clean: List[Point] = []
    for p in points or []:
        if not isinstance(p, Mapping):
            continue
        x, y = to_finite(p.get("fpr")), to_finite(p.get("tpr"))
        if x is None or y is None:
            continue
        clean.append({"fpr": x, "tpr": y, "threshold": p.get("threshold")})
    clean.sort(key=lambda p: p["fpr"])

    merged: List[Point] = []
    for p in clean:
        if merged and merged[-1]["fpr"] == p["fpr"]:
            if p["tpr"] > merged[-1]["tpr"]:
                merged[-1]["tpr"] = p["tpr"]
                merged[-1]["threshold"] = p["threshold"]
            continue
        merged.append(dict(p))

    for i in range(1, len(merged)):
        if merged[i]["tpr"] < merged[i - 1]["tpr"]:
            merged[i]["tpr"] = merged[i - 1]["tpr"]
    return merged


def compute_auc(points: Sequence[Any]) -> float:
    if points is None or len(points) < 2:
        return 0.0
    area = 0.0
    for prev, curr in zip(points[:-1], points[1:]):
        try:
            x0, y0 = float(prev["fpr"]), float(prev["tpr"])
            x1, y1 = float(curr["fpr"]), float(curr["tpr"])
        except (KeyError, TypeError, ValueError):
            continue
        if not all(math.isfinite(v) for v in (x0, y0, x1, y1)):
            continue
        dx = x1 - x0
        if math.isfinite(dx):
            area += dx * (y1 + y0) / 2.0
    return area


def points_to_curve(points: Sequence[Mapping[str, Any]], name: Optional[str] = None) -> RocCurve:
    """Canonical curve from a point list (e.g. compute_empirical_roc output)."""
    raw: Dict[str, Any] = {
        "fpr": [p["fpr"] for p in points],
        "tpr": [p["tpr"] for p in points],
    }
    if any(p.get("threshold") is not None for p in points):
        raw["threshold"] = [p.get("threshold") for p in points]
    if name:
        raw["name"] = name
    return to_canonical_curve(raw, id_hint=name)
