# rocviz/svl/csv_export.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from rocviz.errors import ShapeError
from rocviz.svl.canonical import to_canonical_curve
from rocviz.svl.csv_tokens import join_csv_row
from rocviz.svl.guards import band_sort_key, format_band_label, format_number
from rocviz.svl.roc_spec import ConfidenceBand

log = logging.getLogger(__name__)


def _threshold_text(value: Optional[float]) -> str:
    # "null" keeps explicit no-threshold points apart from empty cells
    return "null" if value is None else format_number(value)


def roc_to_csv(curves: Mapping[str, Any]) -> str:
    """Inverse of parse_roc_csv_text: one row per point, curves sorted by id."""
    if not isinstance(curves, Mapping):
        raise ShapeError("ROC CSV export requires a map of curves.")
    if not curves:
        raise ShapeError("ROC CSV export requires at least one curve.")

    entries: List[tuple] = []
    seen = set()
    for key in sorted(curves, key=str):
        curve = curves[key]
        if curve is None:
            raise ShapeError(f'Curve "{key}" is missing or invalid.')
        # the parser splits records on line breaks and trims ids
        curve_id = str(key).strip()
        if not curve_id or "\n" in curve_id or "\r" in curve_id:
            raise ShapeError(f"Curve id {str(key)!r} cannot be written to CSV.")
        if curve_id in seen:
            raise ShapeError(f'Curve id "{curve_id}" appears more than once after trimming.')
        seen.add(curve_id)
        entries.append((curve_id, to_canonical_curve(curve, id_hint=curve_id)))
    entries.sort(key=lambda e: e[0])

    with_threshold = any(c.threshold is not None for _, c in entries)
    levels: Dict[str, Any] = {}
    for _, c in entries:
        for band in c.bands or []:
            levels.setdefault(format_band_label(band.level), band.level)
    band_keys = sorted(levels, key=lambda k: band_sort_key(levels[k]))

    header = ["curve_id", "fpr", "tpr"]
    if with_threshold:
        header.append("threshold")
    for key in band_keys:
        header += [f"lower_{key}", f"upper_{key}"]

    rows = [join_csv_row(header)]
    for curve_id, c in entries:
        by_key: Dict[str, ConfidenceBand] = {format_band_label(b.level): b for b in c.bands or []}
        for i in range(len(c.fpr)):
            row = [curve_id, format_number(c.fpr[i]), format_number(c.tpr[i])]
            if with_threshold:
                row.append("" if c.threshold is None else _threshold_text(c.threshold[i]))
            for key in band_keys:
                band = by_key.get(key)
                if band is None:
                    row += ["", ""]
                else:
                    row += [format_number(band.lower[i]), format_number(band.upper[i])]
            rows.append(join_csv_row(row))

    log.debug("exported %d curve(s) as %d CSV rows", len(entries), len(rows) - 1)
    return "\n".join(rows)
