# rocviz/svl/csv_parse.py
"""
Long-format ROC CSV:

    curve_id,fpr,tpr[,threshold][,lower_<L>,upper_<L>,...]

one row per curve point, rows grouped by curve_id in file order. Blank
lines and lines starting with '#' are skipped before the header is read.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rocviz.errors import ShapeError
from rocviz.svl.canonical import to_canonical_curve
from rocviz.svl.csv_tokens import split_csv_line
from rocviz.svl.guards import (
    band_sort_key,
    format_band_label,
    parse_optional_number,
    parse_required_number,
    to_finite,
)
from rocviz.svl.roc_spec import RocCurve

log = logging.getLogger(__name__)

_BAND_COL = re.compile(r"^(lower|upper)_(.+)$", re.I)
_LINE_SPLIT = re.compile(r"\r?\n")

# empty threshold cell; distinct from an explicit "null" (= None)
_MISSING = object()


@dataclass
class _BandColumns:
    key: str
    raw_label: str
    level: Any
    lower_idx: Optional[int] = None
    upper_idx: Optional[int] = None


@dataclass
class _Group:
    curve_id: str
    fpr: List[float] = field(default_factory=list)
    tpr: List[float] = field(default_factory=list)
    threshold: List[Any] = field(default_factory=list)
    lower: Dict[str, List[Optional[float]]] = field(default_factory=dict)
    upper: Dict[str, List[Optional[float]]] = field(default_factory=dict)


def _cell(row: List[str], idx: Optional[int]) -> Optional[str]:
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def _threshold_cell(value: Optional[str], label: str, row: int) -> Any:
    if value is None or not value.strip():
        return _MISSING
    if value.strip().lower() == "null":
        return None
    return parse_optional_number(value, label, row, allow_infinite=True)


def _band_columns(header: List[str]) -> List[_BandColumns]:
    columns: Dict[str, _BandColumns] = {}
    for idx, name in enumerate(header):
        m = _BAND_COL.match(name)
        if not m:
            continue
        token = m.group(2).strip()
        if not token:
            raise ShapeError("Band columns must specify a level, e.g. lower_0.95.")
        key = format_band_label(token)
        if key not in columns:
            num = to_finite(token)
            columns[key] = _BandColumns(key=key, raw_label=token, level=token if num is None else num)
        if m.group(1).lower() == "lower":
            columns[key].lower_idx = idx
        else:
            columns[key].upper_idx = idx
    for col in columns.values():
        if col.lower_idx is None or col.upper_idx is None:
            raise ShapeError(f'Band level "{col.raw_label}" must include both lower_ and upper_ columns.')
    return list(columns.values())


def _curve_fields(group: _Group, has_threshold: bool, bands: List[_BandColumns]) -> Dict[str, Any]:
    base: Dict[str, Any] = {"type": "ROC", "name": group.curve_id, "fpr": group.fpr, "tpr": group.tpr}

    if has_threshold:
        present = [t is not _MISSING for t in group.threshold]
        if any(present) and not all(present):
            raise ShapeError(f"{group.curve_id}.threshold column must contain a value for every row.")
        if any(present):
            base["threshold"] = list(group.threshold)

    out_bands = []
    for col in bands:
        lower, upper = group.lower[col.key], group.upper[col.key]
        has_lower = any(v is not None for v in lower)
        has_upper = any(v is not None for v in upper)
        if has_lower != has_upper:
            raise ShapeError(f'{group.curve_id} band level "{col.raw_label}" must include both lower and upper values.')
        if not has_lower:
            continue
        if any(v is None for v in lower) or any(v is None for v in upper):
            raise ShapeError(f'{group.curve_id} band level "{col.raw_label}" has missing values.')
        out_bands.append({"level": col.level, "lower": lower, "upper": upper})
    if out_bands:
        out_bands.sort(key=lambda b: band_sort_key(b["level"]))
        base["bands"] = out_bands
    return base


def parse_roc_csv_text(text: str) -> Dict[str, RocCurve]:
    if not isinstance(text, str) or not text.strip():
        raise ShapeError("ROC CSV text must be a non-empty string.")

    lines = [ln for ln in _LINE_SPLIT.split(text) if ln.strip() and not ln.strip().startswith("#")]
    if not lines:
        raise ShapeError("ROC CSV text does not contain any data rows.")

    header = [c.strip() for c in split_csv_line(lines[0].lstrip("\ufeff"), row=1)]
    index: Dict[str, int] = {}
    for idx, name in enumerate(header):
        if name:
            index[name.lower()] = idx
    if not all(k in index for k in ("curve_id", "fpr", "tpr")):
        raise ShapeError("ROC CSV must include curve_id, fpr, and tpr columns.")
    id_idx, fpr_idx, tpr_idx = index["curve_id"], index["fpr"], index["tpr"]
    thr_idx = index.get("threshold")
    bands = _band_columns(header)

    data = lines[1:]
    if not data:
        raise ShapeError("ROC CSV must include at least one data row.")

    groups: Dict[str, _Group] = {}
    for i, line in enumerate(data):
        row_no = i + 2
        row = split_csv_line(line, row=row_no)
        curve_id = (_cell(row, id_idx) or "").strip()
        if not curve_id:
            raise ShapeError(f"curve_id is required on row {row_no}.")
        group = groups.get(curve_id)
        if group is None:
            group = groups[curve_id] = _Group(curve_id=curve_id)
            for col in bands:
                group.lower[col.key] = []
                group.upper[col.key] = []

        group.fpr.append(parse_required_number(_cell(row, fpr_idx), f"{curve_id}.fpr", row_no))
        group.tpr.append(parse_required_number(_cell(row, tpr_idx), f"{curve_id}.tpr", row_no))
        if thr_idx is not None:
            group.threshold.append(_threshold_cell(_cell(row, thr_idx), f"{curve_id}.threshold", row_no))
        for col in bands:
            group.lower[col.key].append(
                parse_optional_number(_cell(row, col.lower_idx), f"{curve_id}.lower_{col.key}", row_no))
            group.upper[col.key].append(
                parse_optional_number(_cell(row, col.upper_idx), f"{curve_id}.upper_{col.key}", row_no))

    curves: Dict[str, RocCurve] = {}
    for curve_id, group in groups.items():
        if not group.fpr:
            continue
        fields = _curve_fields(group, thr_idx is not None, bands)
        curves[curve_id] = to_canonical_curve(fields, id_hint=curve_id)

    if not curves:
        raise ShapeError("ROC CSV did not contain any complete curves.")
    log.info("parsed %d ROC curve(s) from %d CSV rows", len(curves), len(data))
    return curves
