# rocviz/svl/ingest.py
from __future__ import annotations

from pathlib import PurePath
from typing import Dict, Optional, Tuple

from rocviz.svl.csv_parse import parse_roc_csv_text
from rocviz.svl.json_io import parse_roc_json_text
from rocviz.svl.roc_spec import RocCurve


def parse_roc_text(text: str, source_name: Optional[str] = None) -> Tuple[Dict[str, RocCurve], str]:
    """Parse an uploaded file's text; returns (curves, "csv" | "json").

    A ".csv" name selects the CSV parser, anything else is read as JSON.
    The file stem becomes the default curve name for unnamed JSON curves.
    """
    stem = None
    suffix = ""
    if source_name:
        # uploads from Windows browsers may carry a backslash path
        path = PurePath(str(source_name).replace("\\", "/"))
        stem = path.stem or None
        suffix = path.suffix.lower()
    if suffix == ".csv":
        return parse_roc_csv_text(text), "csv"
    return parse_roc_json_text(text, default_curve_name=stem), "json"
