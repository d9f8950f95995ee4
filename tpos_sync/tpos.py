#===========================================================================
# tpos_sync/tpos.py
# TPOS API interface module.
# Product template fetch / lookup / UpdateV2 plus response classification.
#===========================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from tpos_sync.config import settings
from tpos_sync.errors import (
    RemoteAuthError,
    RemoteServerError,
    RemoteValidationError,
)
from tpos_sync.logging_filters import summarize_body

logger = logging.getLogger("uvicorn.error")

TEMPLATE_PATH = "/odata/ProductTemplate"
UPDATE_PATH = "/odata/ProductTemplate/ODataService.UpdateV2"
VIEW_PATH = "/odata/ProductTemplate/OdataService.GetViewV2"

# Everything UpdateV2 expects back in a whole-document update
TEMPLATE_EXPAND = (
    "UOM,UOMCateg,Categ,UOMPO,POSCateg,Taxes,SupplierTaxes,Product_Teams,Images,"
    "UOMView,Distributor,Importer,Producer,OriginCountry,"
    "ProductVariants($expand=UOM,Categ,UOMPO,POSCateg,AttributeValues)"
)


# --- Helpers ---------------------------------------------------------------

def _remote_message(resp: httpx.Response) -> Optional[str]:
    """error.message from an OData error body, else a short body preview."""
    try:
        body = resp.json()
    except ValueError:
        return summarize_body(resp.text) or None
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
        if body.get("message"):
            return str(body["message"])
    return None


def classify_response(resp: httpx.Response, action: str) -> None:
    """
    2xx → return. Otherwise raise:
      401/403 → RemoteAuthError
      other 4xx → RemoteValidationError (remote message verbatim when present)
      5xx → RemoteServerError
      3xx → RemoteServerError (redirects are not followed; TPOS answers
            API calls directly, so a redirect is a login page or a proxy)
    """
    code = resp.status_code
    if 200 <= code < 300:
        return
    remote = _remote_message(resp)
    message = f"TPOS {action} failed ({code})" + (f": {remote}" if remote else "")
    logger.warning("[TPOS] %s", message)
    if code in (401, 403):
        raise RemoteAuthError(message, status_code=code, remote_message=remote)
    if 400 <= code < 500:
        raise RemoteValidationError(message, status_code=code, remote_message=remote)
    if 300 <= code < 400:
        location = resp.headers.get("location")
        raise RemoteServerError(
            message + (f" (redirect to {location})" if location else ""),
            status_code=code,
            remote_message=remote,
        )
    raise RemoteServerError(message, status_code=code, remote_message=remote)


# --- Client ----------------------------------------------------------------

class TposClient:
    """
    Thin async client. One httpx.AsyncClient per call; pass `transport`
    (e.g. httpx.MockTransport) to keep tests off the network.
    """

    def __init__(
        self,
        token: str,
        base_url: str | None = None,
        lang: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self.base_url = (base_url or settings.TPOS_BASE_URL).rstrip("/")
        self.lang = lang or settings.TPOS_LANG
        self.timeout = timeout or settings.TPOS_TIMEOUT
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "x-tpos-lang": self.lang,
        }

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                verify=settings.TPOS_VERIFY_SSL,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, url, headers=self._headers(), params=params, json=json)
        except httpx.HTTPError as e:
            logger.error("[TPOS] %s %s transport error: %s", method, url, e)
            raise RemoteServerError(f"TPOS {action} failed: {e}") from e
        classify_response(resp, action)
        return resp

    async def get_product_template(self, template_id: int) -> Dict[str, Any]:
        """Full ProductTemplate document (authoritative copy for the merge)."""
        resp = await self._request(
            "GET",
            f"{TEMPLATE_PATH}({int(template_id)})",
            "fetch template",
            params={"$expand": TEMPLATE_EXPAND},
        )
        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteServerError(f"TPOS fetch template returned non-JSON body: {summarize_body(resp.text)}") from e
        if not isinstance(data, dict):
            raise RemoteServerError("TPOS fetch template returned an unexpected payload")
        return data

    async def find_template_id(self, default_code: str) -> Optional[int]:
        """Active template Id for a DefaultCode, or None."""
        resp = await self._request(
            "GET",
            VIEW_PATH,
            "lookup template",
            params={"Active": "true", "DefaultCode": default_code},
        )
        try:
            body = resp.json()
        except ValueError as e:
            raise RemoteServerError(f"TPOS lookup template returned non-JSON body: {summarize_body(resp.text)}") from e
        rows = (body.get("value") or []) if isinstance(body, dict) else None
        if not isinstance(rows, list):
            raise RemoteServerError("TPOS lookup template returned an unexpected payload")
        for row in rows:
            if isinstance(row, dict) and row.get("Id"):
                return int(row["Id"])
        return None

    async def update_product_template(self, document: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """POST the whole document to UpdateV2. Returns the echoed document, or None on 204/empty."""
        resp = await self._request("POST", UPDATE_PATH, "update template", json=document)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            data = resp.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None
