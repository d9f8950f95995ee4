"""Error taxonomy of the variant sync engine.

Local resolution problems never raise: unmatched descriptor tokens and values
without a TPOS mapping are dropped (see ``MISSING_MAPPING``/``UNMATCHED``).
Everything that stops a pipeline run is a ``SyncError`` subclass; the pipeline
catches them and hands them back inside a ``SyncResult``.
"""

from typing import Any, Dict, Optional

# Kinds used for silently dropped descriptor tokens
MISSING_MAPPING = "missing_mapping"
UNMATCHED = "unmatched"


class SyncError(Exception):
    """Base class for every caller-visible sync failure."""

    kind = "sync_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        remote_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.remote_message = remote_message

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.status_code is not None:
            out["status_code"] = self.status_code
        if self.remote_message is not None:
            out["remote_message"] = self.remote_message
        return out


class PreconditionFailed(SyncError):
    """Local data is not ready for a sync (no product, no saved payload, no remote id)."""

    kind = "precondition_failed"


class MissingCredential(SyncError):
    """No usable token row for the requested token type."""

    kind = "missing_credential"


class RemoteError(SyncError):
    kind = "remote_error"


class RemoteAuthError(RemoteError):
    """TPOS answered 401/403."""

    kind = "remote_auth_error"


class RemoteValidationError(RemoteError):
    """TPOS rejected the document (any other 4xx, including stale Version)."""

    kind = "remote_validation_error"


class RemoteServerError(RemoteError):
    """TPOS answered 5xx, or the request never got an answer."""

    kind = "remote_server_error"
