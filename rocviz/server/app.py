# rocviz/server/app.py: FastAPI app factory

from fastapi import FastAPI

from rocviz.config import get_settings
from rocviz.server.logging_utils import configure_logging
from rocviz.server.roc_routes import router as roc_router

configure_logging(get_settings().log_level)

app = FastAPI(title="rocviz", description="ROC curve import, validation and export")

app.include_router(roc_router)          # /roc/import/*, /roc/validate, /roc/empirical, /roc/export/*


@app.get("/")
def root():
    return {"ok": True, "msg": "rocviz running"}
