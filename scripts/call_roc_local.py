# scripts/call_roc_local.py
import sys, pathlib, json
from dotenv import load_dotenv, find_dotenv

# Ensure project root is on sys.path (run from anywhere)
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))

load_dotenv(find_dotenv())

from fastapi.testclient import TestClient
from rocviz.server.app import app

client = TestClient(app)

samples = [
    {"score": s, "label": y}
    for s, y in zip([0.1, 0.3, 0.9, 0.8, 0.7, 0.2, 0.65, 0.4, 0.55, 0.05],
                    [0, 0, 1, 1, 1, 0, 1, 0, 1, 0])
]

r = client.post("/roc/empirical", json={"samples": samples, "name": "demo"})
print("empirical:", r.status_code, "auc =", r.json().get("auc"))

curves = {"demo": r.json()["curve"]}
r = client.post("/roc/export/csv", json={"curves": curves})
print(r.text)

r = client.post("/roc/import/text", json={"text": r.text, "source_name": "demo.csv"})
print("re-import:", r.status_code)
print(json.dumps(r.json(), indent=2)[:1200])
