# tpos_sync/credentials.py
# Latest valid access token per integration. No caching: every sync run asks the
# store again, so tokens rotated externally take effect on the next run.
from __future__ import annotations

import logging

from tpos_sync.catalog.variant_models import Credential
from tpos_sync.errors import MissingCredential
from tpos_sync.logging_filters import mask_token
from tpos_sync.store import CatalogStore

logger = logging.getLogger("uvicorn.error")


async def resolve_credential(store: CatalogStore, token_type: str) -> Credential:
    """
    Newest non-null token of `token_type`.
    Raises MissingCredential when the store has none.
    """
    cred = await store.latest_credential(token_type)
    if cred is None or not cred.token:
        raise MissingCredential(f"No {token_type} token found. Add credentials first.")
    logger.debug("[AUTH] using %s token %s (created %s)", token_type, mask_token(cred.token), cred.created_at)
    return cred


async def get_active_token(store: CatalogStore, token_type: str) -> str | None:
    cred = await store.latest_credential(token_type)
    return cred.token if cred and cred.token else None
