#=======================================================================================
# tpos_sync/routes.py
# Admin API for variant generation and TPOS sync.
#
# All endpoints live under /api/* and require HTTP Basic (admin).
# IMPORTANT: In main_app.py, include with NO extra prefix to avoid /api/api duplication.
#=======================================================================================

import logging
import secrets
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from tpos_sync.catalog.sync_models import (
    VariantPreviewRequest,
    VariantReplayRequest,
    VariantSyncRequest,
)
from tpos_sync.config import settings
from tpos_sync.db import get_sessionmaker
from tpos_sync.errors import (
    MissingCredential,
    PreconditionFailed,
    RemoteAuthError,
    RemoteServerError,
    RemoteValidationError,
)
from tpos_sync.logging_filters import mask_token
from tpos_sync.store import CatalogStore, SqlCatalogStore
from tpos_sync.sync.components.attributes import format_descriptor, resolve_descriptor_report
from tpos_sync.sync.components.combinations import generate_variant_candidates
from tpos_sync.sync.components.locks import KeyedLocks
from tpos_sync.sync.variant_sync import SyncResult, VariantSyncPipeline

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api", tags=["Variant Sync API"])

# ---------------------------
# HTTP Basic
# ---------------------------
security = HTTPBasic()

def verify_admin(credentials: HTTPBasicCredentials = Depends(security)):
    ok_user = secrets.compare_digest(credentials.username or "", settings.ADMIN_USER or "")
    ok_pass = secrets.compare_digest(credentials.password or "", settings.ADMIN_PASS or "")
    if not (ok_user and ok_pass):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Basic"},
        )

# ---------------------------
# Dependencies
# ---------------------------
# one lock table per process: at most one run per TPOS template at a time
_template_locks = KeyedLocks()

def get_store() -> CatalogStore:
    return SqlCatalogStore(get_sessionmaker())

def get_pipeline(store: CatalogStore = Depends(get_store)) -> VariantSyncPipeline:
    return VariantSyncPipeline(store, locks=_template_locks)

# ---------------------------
# Helpers
# ---------------------------
_ERROR_STATUS = (
    (PreconditionFailed, status.HTTP_409_CONFLICT),
    (MissingCredential, status.HTTP_424_FAILED_DEPENDENCY),
    (RemoteValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (RemoteAuthError, status.HTTP_502_BAD_GATEWAY),
    (RemoteServerError, status.HTTP_502_BAD_GATEWAY),
)

def _status_for(result: SyncResult) -> int:
    if result.ok:
        return status.HTTP_200_OK
    for cls, code in _ERROR_STATUS:
        if isinstance(result.error, cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR

def _result_response(result: SyncResult, extra: Dict[str, Any] | None = None) -> JSONResponse:
    body = result.to_dict()
    if extra:
        body.update(extra)
    return JSONResponse(status_code=_status_for(result), content=body)

# ---------------------------
# Endpoints
# ---------------------------
@router.post("/variants/preview", dependencies=[Depends(verify_admin)])
async def api_variants_preview(req: VariantPreviewRequest, store: CatalogStore = Depends(get_store)):
    """Descriptor → attribute lines → candidates. Local only, nothing is sent to TPOS."""
    product = await store.get_product(req.product_code)
    if product is None:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"ok": False, "error": PreconditionFailed(f"Product {req.product_code} not found").to_dict()},
        )
    text = req.descriptor or product.variant
    report = await resolve_descriptor_report(text, store)
    candidates = generate_variant_candidates(report.lines, product.product_code)
    return {
        "ok": True,
        "product_code": product.product_code,
        "descriptor": format_descriptor(report.lines),
        "lines": [
            {
                "attribute": line.attribute.name,
                "attribute_id": line.attribute.remote_id,
                "values": [v.name for v in line.values],
            }
            for line in report.lines
        ],
        "variant_count": len(candidates),
        "candidates": [
            {"code": c.code, "name": c.name, "has_collision": c.has_collision}
            for c in candidates
        ],
        "dropped": [{"token": t, "kind": k} for t, k in report.dropped],
    }

@router.post("/variants/sync", dependencies=[Depends(verify_admin)])
async def api_variants_sync(
    req: VariantSyncRequest,
    store: CatalogStore = Depends(get_store),
    pipeline: VariantSyncPipeline = Depends(get_pipeline),
):
    result = await pipeline.sync_generated(req.product_code, req.descriptor or None, image=req.image)
    extra = None
    if result.ok and result.saved_response:
        saved = await store.save_variant_response(req.product_code, result.saved_response)
        extra = {"saved": saved}
    return _result_response(result, extra)

@router.post("/variants/replay", dependencies=[Depends(verify_admin)])
async def api_variants_replay(req: VariantReplayRequest, pipeline: VariantSyncPipeline = Depends(get_pipeline)):
    result = await pipeline.replay_saved(req.product_code)
    return _result_response(result)

@router.get("/credentials/{token_type}", dependencies=[Depends(verify_admin)])
async def api_credential_status(token_type: str, store: CatalogStore = Depends(get_store)):
    cred = await store.latest_credential(token_type)
    if cred is None or not cred.token:
        return {"token_type": token_type, "present": False, "token": None, "created_at": None}
    return {
        "token_type": token_type,
        "present": True,
        "token": mask_token(cred.token),
        "created_at": cred.created_at.isoformat() if cred.created_at else None,
    }
