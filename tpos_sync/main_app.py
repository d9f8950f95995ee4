#=================================================================
# tpos_sync/main_app.py
# FastAPI application entry-point.
#=================================================================

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from tpos_sync.routes import router as api_router
from tpos_sync.catalog.attribute_loader import load_attribute_catalog
from tpos_sync.db import init_db, get_sessionmaker
from tpos_sync.logging_filters import install_log_filters
from tpos_sync.store import SqlCatalogStore
from tpos_sync.config import settings

# --- FastAPI instance ---
app = FastAPI(
    title="TPOS Variant Sync",
    description="Generates product variants locally and synchronizes them to TPOS.",
)

# --- Logging setup (console, INFO level) ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s | %(message)s"
)
logger = logging.getLogger("uvicorn.error")
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
install_log_filters()

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------- Include routers ----------------
app.include_router(api_router)           # /api/*

# --- Root endpoint ---
@app.get("/")
async def home():
    return {"status": "running", "service": "TPOS Variant Sync"}

# --- Global error handler (keeps full stack trace in logs) ---
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Sync failed: {str(exc)}"},
    )

@app.on_event("startup")
async def _startup():
    await init_db()
    # Optional seed of the attribute catalog from a spreadsheet export
    path = settings.ATTRIBUTE_CATALOG_PATH
    if path:
        try:
            values = load_attribute_catalog(path)
        except (FileNotFoundError, ValueError) as e:
            logger.warning("[CATALOG] skipped import of %s: %s", path, e)
            return
        await SqlCatalogStore(get_sessionmaker()).import_attribute_values(values)

#if __name__ == "__main__":
#    import uvicorn
#
#    uvicorn.run(app, host="0.0.0.0", port=8000)
