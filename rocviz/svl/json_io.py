# rocviz/svl/json_io.py
"""
JSON side of ingestion and export.

normalize_roc_json() accepts any decoded JSON document and returns a
{curve_id: RocCurve} collection. Curves are discovered by an explicit,
ordered list of shape matchers:

  single  -- the root object is itself a curve
  curves  -- the root object has a "curves" array of curves
  map     -- the root object's other keys each map to a curve
  array   -- the root is an array of curves

All applicable matchers run unless the caller narrows them with `shapes`.
"""
from __future__ import annotations

import json
import logging
import math
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

from rocviz.errors import ShapeError
from rocviz.svl.canonical import to_canonical_curve
from rocviz.svl.roc_spec import RocCurve

log = logging.getLogger(__name__)

Found = Tuple[Any, str]


def looks_like_curve(candidate: Any) -> bool:
    return isinstance(candidate, Mapping) and ("fpr" in candidate or "tpr" in candidate)


def _hint(curve: Mapping[str, Any], fallback: str) -> str:
    for key in ("curve_id", "name"):
        value = curve.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return fallback


def _match_single(raw: Any, default_name: Optional[str]) -> Iterator[Found]:
    if looks_like_curve(raw):
        yield raw, _hint(raw, default_name or "curve")


def _match_curves(raw: Any, default_name: Optional[str]) -> Iterator[Found]:
    if isinstance(raw, Mapping) and isinstance(raw.get("curves"), list):
        for i, curve in enumerate(raw["curves"]):
            if looks_like_curve(curve):
                yield curve, _hint(curve, f"curves_{i + 1}")


def _match_map(raw: Any, default_name: Optional[str]) -> Iterator[Found]:
    if isinstance(raw, Mapping):
        for key, curve in raw.items():
            if key != "curves" and looks_like_curve(curve):
                yield curve, str(key)


def _match_array(raw: Any, default_name: Optional[str]) -> Iterator[Found]:
    if isinstance(raw, list):
        for i, curve in enumerate(raw):
            if looks_like_curve(curve):
                yield curve, _hint(curve, f"curve_{i + 1}")


SHAPE_MATCHERS: List[Tuple[str, Callable[[Any, Optional[str]], Iterator[Found]]]] = [
    ("single", _match_single),
    ("curves", _match_curves),
    ("map", _match_map),
    ("array", _match_array),
]


class _IdReserver:
    """Hands out unique curve ids for one normalize call."""

    def __init__(self, default_name: Optional[str] = None):
        self.used: Set[str] = set()
        self.default_name = default_name
        self._counter = 1

    def reserve(self, curve: Mapping[str, Any], key_hint: Optional[str]) -> str:
        candidates = (curve.get("curve_id"), curve.get("id"), curve.get("name"), key_hint, self.default_name)
        for cand in candidates:
            if not isinstance(cand, str):
                continue
            cand = cand.strip()
            if cand and cand not in self.used:
                self.used.add(cand)
                return cand
        while f"curve_{self._counter}" in self.used:
            self._counter += 1
        cand = f"curve_{self._counter}"
        self.used.add(cand)
        return cand


def normalize_roc_json(raw: Any, default_curve_name: Optional[str] = None,
                       shapes: Optional[Iterable[str]] = None) -> Dict[str, RocCurve]:
    if raw is None:
        raise ShapeError("ROC JSON content is empty.")
    if not isinstance(raw, (Mapping, list)):
        raise ShapeError("ROC JSON root must be an object or an array.")

    default_name = default_curve_name.strip() if isinstance(default_curve_name, str) else None
    default_name = default_name or None
    allowed = None if shapes is None else set(shapes)
    if allowed is not None:
        unknown = allowed - {name for name, _ in SHAPE_MATCHERS}
        if unknown:
            raise ValueError(f"unknown JSON shape(s): {sorted(unknown)}")

    ids = _IdReserver(default_name)
    out: Dict[str, RocCurve] = {}
    for shape, matcher in SHAPE_MATCHERS:
        if allowed is not None and shape not in allowed:
            continue
        for curve, hint in matcher(raw, default_name):
            curve_id = ids.reserve(curve, hint)
            canonical = to_canonical_curve(curve, id_hint=curve_id)
            if canonical.name is None:
                canonical.name = curve_id
            out[curve_id] = canonical

    if not out:
        raise ShapeError("No ROC curves were found in the provided ROC JSON.")
    log.info("normalized %d ROC curve(s) from JSON", len(out))
    return out


def parse_roc_json_text(text: str, default_curve_name: Optional[str] = None,
                        shapes: Optional[Iterable[str]] = None) -> Dict[str, RocCurve]:
    if not isinstance(text, str):
        raise ShapeError("ROC JSON text must be a string.")
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ShapeError(f"Invalid ROC JSON: {e}")
    return normalize_roc_json(raw, default_curve_name=default_curve_name, shapes=shapes)


def json_safe(value: Any) -> Any:
    # JSON has no Infinity; open-ended thresholds go out as null
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, list):
        return [json_safe(v) for v in value]
    if isinstance(value, dict):
        return {k: json_safe(v) for k, v in value.items()}
    return value


def roc_to_json(curves: Mapping[str, Any]) -> str:
    """Serialize a curve collection as 2-space indented JSON text."""
    if not isinstance(curves, Mapping) or not curves:
        raise ShapeError("ROC JSON export requires at least one curve.")
    return json.dumps(curves_to_payload(curves), indent=2, ensure_ascii=False)


def curves_to_payload(curves: Mapping[str, Any]) -> Dict[str, Any]:
    """{curve_id: plain JSON dict}, re-canonicalized and safe for json.dumps."""
    payload: Dict[str, Any] = {}
    for curve_id, curve in curves.items():
        canonical = to_canonical_curve(curve, id_hint=str(curve_id))
        if canonical.name is None:
            canonical.name = str(curve_id)
        payload[str(curve_id)] = json_safe(canonical.to_dict())
    return payload
