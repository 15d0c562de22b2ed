import csv
import json

import pytest
from fastapi.testclient import TestClient

from rocviz.config import get_settings
from rocviz.server.app import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    monkeypatch.delenv("ROCVIZ_RUN_LOG", raising=False)
    monkeypatch.delenv("ROCVIZ_MAX_DROP", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_health():
    assert client.get("/").json()["ok"] is True


def test_import_json_map():
    r = client.post("/roc/import/json", json={"a": {"fpr": [0, 1], "tpr": [0, 1]}})
    assert r.status_code == 200
    assert r.json()["curves"]["a"]["name"] == "a"


def test_import_json_rejects_bad_curve():
    r = client.post("/roc/import/json", json=[{"fpr": [0, 0.7, 0.2], "tpr": [0, 0.5, 1]}])
    assert r.status_code == 400
    assert "curve_1.fpr" in r.json()["detail"]


def test_import_text_dispatches_on_extension():
    text = "curve_id,fpr,tpr,threshold\nm,0,0,inf\nm,1,1,-inf\n"
    r = client.post("/roc/import/text", json={"text": text, "source_name": "C:\\runs\\scores.CSV"})
    body = r.json()
    assert body["source_type"] == "csv"
    assert body["curves"]["m"]["threshold"] == [None, None]

    r = client.post("/roc/import/text", json={"text": '{"fpr": [0, 1], "tpr": [0, 1]}',
                                              "source_name": "uploads/model_x.json"})
    assert list(r.json()["curves"]) == ["model_x"]


def test_validate_repairs_and_reports():
    r = client.post("/roc/validate", json={"curves": {
        "m": {"fpr": [0, 0.2, 0.1, 0.5], "tpr": [0, 0.3, 0.3, 0.6]},
        "broken": {"fpr": [0, 1, 1], "tpr": [0, 1]},
    }})
    body = r.json()
    assert body["ok"] is False
    assert body["reports"]["m"]["fixed"] is True
    assert body["reports"]["m"]["curveId"] == "m"
    assert body["curves"]["m"]["fpr"] == [0, 0.2, 0.2, 0.5]
    assert body["reports"]["broken"]["fatal"] is True


def test_validate_uses_configured_max_drop(monkeypatch):
    monkeypatch.setenv("ROCVIZ_MAX_DROP", "0.05")
    get_settings.cache_clear()
    r = client.post("/roc/validate", json={"curves": {"m": {"fpr": [0, 0.2, 0.1, 0.5], "tpr": [0, 0.3, 0.3, 0.6]}}})
    assert r.json()["reports"]["m"]["fatal"] is True


def test_empirical_route():
    samples = [{"score": 3, "label": 1}, {"score": 2, "label": 0},
               {"score": 2, "label": 1}, {"score": 1, "label": 0}]
    body = client.post("/roc/empirical", json={"samples": samples, "name": "toy"}).json()
    assert body["auc"] == pytest.approx(0.875)
    assert body["curve"]["name"] == "toy"
    assert body["points"][0]["threshold"] is None

    r = client.post("/roc/empirical", json={"samples": [{"score": 1, "label": 1}]})
    assert r.status_code == 400
    assert r.json()["ok"] is False


def test_exports():
    curves = {"b": {"fpr": [0, 1], "tpr": [0, 1]}, "a": {"fpr": [0, 1], "tpr": [0, 1]}}
    r = client.post("/roc/export/csv", json={"curves": curves})
    assert r.status_code == 200
    assert r.text.split("\n")[1].startswith("a,")

    r = client.post("/roc/export/json", json={"curves": curves, "filename": "out.json"})
    assert "out.json" in r.headers["content-disposition"]
    assert set(json.loads(r.text)) == {"a", "b"}

    assert client.post("/roc/export/csv", json={"curves": {}}).status_code == 400


def test_run_log_written(monkeypatch, tmp_path):
    path = tmp_path / "logs" / "runs.csv"
    monkeypatch.setenv("ROCVIZ_RUN_LOG", str(path))
    get_settings.cache_clear()
    client.post("/roc/import/json", json={"a": {"fpr": [0, 0.5, 1], "tpr": [0, 0.5, 1]}})
    client.post("/roc/import/json", json={"nothing": 1})
    with open(path, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["timestamp", "source", "n_curves", "n_points", "decision"]
    assert rows[1][1:] == ["json", "1", "3", "accepted"]
    assert rows[2][-1] == "rejected"


def test_import_text_oversized_csv_field_is_a_bad_request():
    text = "curve_id,fpr,tpr\n" + "x" * 200000 + ",0,0\n"
    r = client.post("/roc/import/text", json={"text": text, "source_name": "big.csv"})
    assert r.status_code == 400
    assert "row 2" in r.json()["detail"]
