# rocviz/server/roc_routes.py
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from fastapi import APIRouter, Body, HTTPException, Query
from fastapi.responses import JSONResponse, Response

from rocviz.config import get_settings
from rocviz.errors import ShapeError
from rocviz.metrics.empirical import compute_auc, compute_empirical_roc, points_to_curve
from rocviz.server.logging_utils import log_roc_run
from rocviz.svl.csv_export import roc_to_csv
from rocviz.svl.ingest import parse_roc_text
from rocviz.svl.json_io import curves_to_payload, json_safe, normalize_roc_json, roc_to_json
from rocviz.svl.roc_spec import RocCurve
from rocviz.svl.roc_verify import validate_collection

log = logging.getLogger(__name__)

router = APIRouter(prefix="/roc", tags=["roc"])


def _record(source: str, curves: Mapping[str, Any], decision: str) -> None:
    path = get_settings().run_log_path
    if not path:
        return
    n_points = sum(len(c.fpr) for c in curves.values() if isinstance(c, RocCurve))
    log_roc_run(path, source, len(curves), n_points, decision)


def _curves_arg(payload: Optional[dict]) -> Dict[str, Any]:
    curves = (payload or {}).get("curves")
    if not isinstance(curves, dict) or not curves:
        raise HTTPException(400, "payload must include a non-empty 'curves' object")
    return curves


@router.post("/import/json")
def import_json(raw: Any = Body(...), default_curve_name: Optional[str] = Query(None)):
    try:
        curves = normalize_roc_json(raw, default_curve_name=default_curve_name)
    except ShapeError as e:
        log.info("rejected JSON import: %s", e)
        _record("json", {}, "rejected")
        raise HTTPException(400, f"bad ROC json: {e}")
    _record("json", curves, "accepted")
    return {"ok": True, "curves": curves_to_payload(curves)}


@router.post("/import/text")
def import_text(payload: dict = Body(...)):
    text = payload.get("text")
    if not isinstance(text, str):
        raise HTTPException(400, "payload must include 'text'")
    source_name = payload.get("source_name")
    try:
        curves, kind = parse_roc_text(text, source_name)
    except ShapeError as e:
        log.info("rejected upload %s: %s", source_name, e)
        _record(source_name or "text", {}, "rejected")
        raise HTTPException(400, f"bad ROC file: {e}")
    _record(source_name or kind, curves, "accepted")
    return {"ok": True, "source_type": kind, "curves": curves_to_payload(curves)}


@router.post("/validate")
def validate(payload: dict = Body(...)):
    curves = _curves_arg(payload)
    max_drop = payload.get("max_drop", get_settings().max_drop)
    try:
        max_drop = float(max_drop)
    except (TypeError, ValueError):
        raise HTTPException(400, "max_drop must be a number")
    reports, repaired = validate_collection(curves, max_drop=max_drop)
    return {
        "ok": all(r.ok for r in reports.values()),
        "reports": {k: r.model_dump(by_alias=True) for k, r in reports.items()},
        "curves": {k: json_safe(c.to_dict() if isinstance(c, RocCurve) else c) for k, c in repaired.items()},
    }


@router.post("/empirical")
def empirical(payload: dict = Body(...)):
    samples = payload.get("samples")
    if not isinstance(samples, list):
        raise HTTPException(400, "payload must include a 'samples' list")
    name = str(payload.get("name") or "empirical")
    points = compute_empirical_roc(samples)
    if not points:
        return JSONResponse(
            {"ok": False, "errors": ["need finite scores with both 0 and 1 labels"]},
            status_code=400,
        )
    curve = points_to_curve(points, name=name)
    _record("empirical", {name: curve}, "derived")
    return {
        "ok": True,
        "auc": compute_auc(points),
        "points": json_safe(points),
        "curve": json_safe(curve.to_dict()),
    }


@router.post("/export/csv")
def export_csv(payload: dict = Body(...)):
    try:
        text = roc_to_csv(_curves_arg(payload))
    except ShapeError as e:
        raise HTTPException(400, f"cannot export: {e}")
    return Response(text, media_type="text/csv")


@router.post("/export/json")
def export_json(payload: dict = Body(...)):
    filename = str(payload.get("filename") or "roc_curves.json").replace('"', "").replace("\n", "")
    try:
        text = roc_to_json(_curves_arg(payload))
    except ShapeError as e:
        raise HTTPException(400, f"cannot export: {e}")
    return Response(
        text,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
