# tpos_sync/sync/variant_sync.py
# =======================================================
# Local → TPOS variant synchronization
# - full generation: descriptor → lines → candidates → documents
# - replay: previously saved {attributeLines, previewVariants}
# Both converge on: credential → fetch template → merge → strip
# @odata.* metadata → UpdateV2 → classify.
# No retries here; the caller decides whether to run again.
# =======================================================
from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from tpos_sync.catalog.sync_models import SavedVariantResponse
from tpos_sync.config import settings
from tpos_sync.credentials import resolve_credential
from tpos_sync.errors import PreconditionFailed, SyncError
from tpos_sync.store import CatalogStore
from tpos_sync.sync.components.attributes import format_descriptor, resolve_descriptor_report
from tpos_sync.sync.components.combinations import compare_variants, generate_variant_candidates
from tpos_sync.sync.components.locks import KeyedLocks
from tpos_sync.sync.components.metadata import find_metadata_keys, strip_metadata
from tpos_sync.sync.components.payload import assemble_variant_documents, attribute_line_payload
from tpos_sync.tpos import TposClient

logger = logging.getLogger("uvicorn.error")

# (template_id, fetched remote document) -> (AttributeLines payload, ProductVariants payload)
BuildFn = Callable[[int, Dict[str, Any]], Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]]


class SyncState(str, Enum):
    IDLE = "idle"
    RESOLVING_CREDENTIAL = "resolving_credential"
    FETCHING_REMOTE_TEMPLATE = "fetching_remote_template"
    MERGING = "merging"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class SyncResult:
    product_code: str
    mode: str                                  # "generate" | "replay"
    state: SyncState = SyncState.IDLE
    states: List[SyncState] = field(default_factory=lambda: [SyncState.IDLE])
    error: Optional[SyncError] = None
    template_id: Optional[int] = None
    descriptor: Optional[str] = None           # normalised "(S | M) (Đen)" form
    variant_codes: List[str] = field(default_factory=list)
    remote_variants: List[Dict[str, Any]] = field(default_factory=list)
    verification: Optional[Dict[str, List[Dict[str, Any]]]] = None
    # what the caller should persist for future replays
    saved_response: Optional[Dict[str, Any]] = None
    dropped: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state == SyncState.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "mode": self.mode,
            "product_code": self.product_code,
            "state": self.state.value,
            "states": [s.value for s in self.states],
            "template_id": self.template_id,
            "descriptor": self.descriptor,
            "variant_count": len(self.variant_codes),
            "variant_codes": self.variant_codes,
            "remote_variants": self.remote_variants,
            "verification": self.verification,
            "dropped": [{"token": t, "kind": k} for t, k in self.dropped],
            "error": self.error.to_dict() if self.error else None,
        }


def merge_remote_document(
    remote: Dict[str, Any],
    attribute_lines: List[Dict[str, Any]],
    variants: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Whole-document update body: the fetched template with only ProductVariants and
    AttributeLines replaced and Version reset to 0. Every other field stays as TPOS sent it.
    """
    merged = dict(remote)
    merged["ProductVariants"] = variants
    merged["AttributeLines"] = attribute_lines
    merged["Version"] = 0
    return merged


class VariantSyncPipeline:
    def __init__(
        self,
        store: CatalogStore,
        client_factory: Callable[[str], TposClient] = TposClient,
        token_type: str | None = None,
        locks: KeyedLocks | None = None,
    ):
        self.store = store
        self.client_factory = client_factory
        self.token_type = token_type or settings.TPOS_TOKEN_TYPE
        self.locks = locks

    # ---- state bookkeeping ----

    def _enter(self, result: SyncResult, state: SyncState) -> None:
        result.state = state
        result.states.append(state)
        logger.debug("[SYNC] %s (%s): %s", result.product_code, result.mode, state.value)

    def _fail(self, result: SyncResult, error: SyncError) -> None:
        result.error = error
        self._enter(result, SyncState.FAILED)
        logger.warning("[SYNC] %s (%s) failed: %s", result.product_code, result.mode, error.message)

    # ---- entry points ----

    async def sync_generated(
        self,
        product_code: str,
        descriptor: str | None = None,
        image: str | None = None,
    ) -> SyncResult:
        """
        Full generation path. `descriptor` defaults to the product's stored variant text.
        """
        result = SyncResult(product_code=product_code, mode="generate")
        try:
            product = await self.store.get_product(product_code)
            if product is None:
                raise PreconditionFailed(f"Product {product_code} not found")

            text = descriptor if descriptor is not None else product.variant
            report = await resolve_descriptor_report(text, self.store)
            result.dropped = report.dropped
            result.descriptor = format_descriptor(report.lines)
            candidates = generate_variant_candidates(report.lines, product.product_code)
            if not candidates:
                raise PreconditionFailed(f"Descriptor {text!r} resolved to no variants")
            logger.info("[SYNC] %s: %d lines, %d variants", product_code, len(report.lines), len(candidates))

            def build(template_id: int, remote: Dict[str, Any]):
                lines = [attribute_line_payload(line, template_id) for line in report.lines]
                variants = assemble_variant_documents(
                    candidates, product, template_id, base_template=remote, image=image
                )
                return lines, variants

            await self._run(result, product.tpos_product_id, build, lookup_code=product.product_code)
        except SyncError as e:
            self._fail(result, e)
        return result

    async def replay_saved(self, product_code: str) -> SyncResult:
        """
        Replay path: resubmit the saved {attributeLines, previewVariants}. Needs both the
        saved blob and the TPOS template id; checked before any network call.
        """
        result = SyncResult(product_code=product_code, mode="replay")
        try:
            product = await self.store.get_product(product_code)
            if product is None:
                raise PreconditionFailed(f"Product {product_code} not found")
            if not product.saved_response:
                raise PreconditionFailed(f"Product {product_code} has no saved variant response")
            if product.tpos_product_id is None:
                raise PreconditionFailed(f"Product {product_code} has no TPOS template id")
            try:
                saved = SavedVariantResponse(**product.saved_response)
            except (TypeError, ValidationError) as e:
                raise PreconditionFailed(f"Saved variant response of {product_code} is malformed: {e}") from e

            def build(template_id: int, remote: Dict[str, Any]):
                return saved.attributeLines, saved.previewVariants

            await self._run(result, product.tpos_product_id, build)
        except SyncError as e:
            self._fail(result, e)
        return result

    # ---- shared tail ----

    async def _run(
        self,
        result: SyncResult,
        template_id: Optional[int],
        build: BuildFn,
        lookup_code: str | None = None,
    ) -> None:
        self._enter(result, SyncState.RESOLVING_CREDENTIAL)
        credential = await resolve_credential(self.store, self.token_type)
        client = self.client_factory(credential.token)

        self._enter(result, SyncState.FETCHING_REMOTE_TEMPLATE)
        if template_id is None and lookup_code:
            template_id = await client.find_template_id(lookup_code)
            if template_id is not None:
                logger.info("[SYNC] %s: found TPOS template %s by DefaultCode", result.product_code, template_id)
        if template_id is None:
            raise PreconditionFailed(f"Product {result.product_code} has no TPOS template")
        result.template_id = template_id

        guard = self.locks.acquire(template_id) if self.locks else nullcontext()
        async with guard:
            remote = await client.get_product_template(template_id)

            self._enter(result, SyncState.MERGING)
            attribute_lines, variants = build(template_id, remote)
            merged = merge_remote_document(remote, attribute_lines, variants)
            meta_keys = find_metadata_keys(merged)
            cleaned = strip_metadata(merged)
            if meta_keys:
                logger.debug("[SYNC] %s: stripped %d metadata keys", result.product_code, len(meta_keys))

            self._enter(result, SyncState.SUBMITTING)
            response = await client.update_product_template(cleaned)

        result.variant_codes = [v.get("DefaultCode") for v in variants]
        # exactly what TPOS accepted, so a replay resubmits the same body
        result.saved_response = {
            "attributeLines": cleaned["AttributeLines"],
            "previewVariants": cleaned["ProductVariants"],
        }
        remote_variants = (response or {}).get("ProductVariants")
        if isinstance(remote_variants, list):
            result.remote_variants = [
                {"Id": v.get("Id"), "DefaultCode": v.get("DefaultCode"), "Name": v.get("Name")}
                for v in remote_variants if isinstance(v, dict)
            ]
            result.verification = compare_variants(variants, remote_variants)
        self._enter(result, SyncState.SUCCEEDED)
        logger.info("[SYNC] %s: %d variants submitted to template %s",
                    result.product_code, len(variants), template_id)
