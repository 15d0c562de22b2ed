# rocviz/svl/guards.py
"""
Numeric coercion and shape guards shared by the parsers, the exporters and
the validator. Everything here raises ShapeError (never a business-rule
error) or, for the lenient helpers, returns None.
"""
from __future__ import annotations

import math
import numbers
import re
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from rocviz.errors import ShapeError

_WS = re.compile(r"\s+")


def parse_float_text(text: str) -> float:
    """float() for cell text, without the "1_000" digit grouping float() allows."""
    if "_" in text:
        raise ValueError(f"invalid numeric text: {text!r}")
    return float(text)


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, np.ndarray))


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, (bool, np.bool_))


def to_finite(value: Any) -> Optional[float]:
    """Lenient coercion: a finite float, or None when that is not possible."""
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        num = parse_float_text(value) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def coerce_number(value: Any, label: str, idx: int) -> float:
    if value is None:
        raise ShapeError(f"{label} has missing value at index {idx}.")
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            raise ShapeError(f"{label} has missing value at index {idx}.")
        try:
            num = parse_float_text(trimmed)
        except ValueError:
            raise ShapeError(f"{label} has invalid numeric value at index {idx}.")
    elif _is_number(value):
        num = float(value)
    else:
        raise ShapeError(f"{label} has invalid numeric value at index {idx}.")
    if not math.isfinite(num):
        raise ShapeError(f"{label} has non-finite value at index {idx}.")
    return num


def coerce_number_array(values: Any, label: str, allow_empty: bool = False) -> List[float]:
    if not is_sequence(values):
        raise ShapeError(f"{label} must be an array.")
    if not allow_empty and len(values) == 0:
        raise ShapeError(f"{label} must contain at least one value.")
    return [coerce_number(v, label, i) for i, v in enumerate(values)]


def assert_sorted_ascending(values: Sequence[float], label: str) -> None:
    for i in range(1, len(values)):
        if values[i] < values[i - 1]:
            raise ShapeError(
                f"{label} must be sorted in ascending order (index {i}: {values[i - 1]} -> {values[i]})."
            )


def assert_within_range(values: Sequence[float], label: str,
                        lo: float = -math.inf, hi: float = math.inf) -> None:
    for i, v in enumerate(values):
        if v < lo or v > hi:
            raise ShapeError(f"{label} must be within [{format_number(lo)}, {format_number(hi)}] "
                             f"(invalid value at index {i}).")


# ---------- CSV cells ----------

def parse_optional_number(value: Any, label: str, row: int,
                          allow_infinite: bool = False) -> Optional[float]:
    if value is None:
        return None
    trimmed = value.strip() if isinstance(value, str) else str(value).strip()
    if not trimmed:
        return None
    try:
        num = parse_float_text(trimmed)
    except ValueError:
        raise ShapeError(f"{label} must be numeric on row {row}.")
    if math.isnan(num) or (math.isinf(num) and not allow_infinite):
        raise ShapeError(f"{label} must be numeric on row {row}.")
    return num


def parse_required_number(value: Any, label: str, row: int) -> float:
    num = parse_optional_number(value, label, row)
    if num is None:
        raise ShapeError(f"{label} is required on row {row}.")
    return num


# ---------- text forms ----------

def format_number(value: Any) -> str:
    """Shortest text that parses back to the same float ('1' rather than '1.0')."""
    if value is None or not _is_number(value):
        return ""
    num = float(value)
    if math.isinf(num):
        return "inf" if num > 0 else "-inf"
    if math.isnan(num):
        return ""
    if num.is_integer() and abs(num) < 1e16:
        return str(int(num))
    return repr(num)


def format_band_label(level: Any) -> str:
    if level is None:
        return ""
    if _is_number(level) and math.isfinite(float(level)):
        return format_number(level)
    return _WS.sub("_", str(level).strip())


def band_sort_key(level: Any) -> Tuple[int, float, str]:
    """Numeric levels ascending, string labels after them, ties by label."""
    label = format_band_label(level)
    num = to_finite(level)
    if num is None:
        return (1, 0.0, label)
    return (0, num, label)
