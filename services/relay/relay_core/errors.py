from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    bad_request = "bad_request"
    unauthenticated = "unauthenticated"
    misconfigured = "misconfigured"
    upstream_format = "upstream_format"
    upstream_unavailable = "upstream_unavailable"
    server_error = "server_error"


class RelayError(Exception):
    def __init__(
        self,
        kind: ErrorKind,
        detail: str,
        *,
        raw: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail)
        self.kind = kind
        self.detail = detail
        self.raw = raw
        self.extra = dict(extra or {})
