from __future__ import annotations

import abc
import re
from typing import Any, Optional

from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from starlette.concurrency import run_in_threadpool

from libs.core import logging as core_logging

from .errors import ErrorKind, RelayError
from .models import IdentityClaims

LOGGER = core_logging.get_logger("relay")

_BEARER_PATTERN = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)


def bearer_token(header_value: Optional[str]) -> Optional[str]:
    if not isinstance(header_value, str):
        return None
    match = _BEARER_PATTERN.match(header_value.strip())
    if match is None:
        return None
    token = match.group(1).strip()
    return token or None


class IdentityVerifier(abc.ABC):
    @abc.abstractmethod
    def verify(self, token: str) -> IdentityClaims:
        """Returns the caller's claims or raises an unauthenticated RelayError."""


class GoogleIdentityVerifier(IdentityVerifier):
    """Checks Google-issued ID tokens against the configured OAuth client id."""

    def __init__(self, client_id: str, transport_request: Any = None) -> None:
        self.client_id = client_id
        self._transport_request = transport_request

    def _request(self) -> Any:
        if self._transport_request is None:
            self._transport_request = google_requests.Request()
        return self._transport_request

    def verify(self, token: str) -> IdentityClaims:
        if not self.client_id:
            raise RelayError(ErrorKind.misconfigured, "Missing GOOGLE_CLIENT_ID on server")
        try:
            payload = id_token.verify_oauth2_token(token, self._request(), audience=self.client_id)
        except google_exceptions.TransportError:
            # Cert fetch failures are ours, not the caller's.
            raise
        except (ValueError, google_exceptions.GoogleAuthError) as exc:
            LOGGER.info("identity_rejected", reason=str(exc))
            raise RelayError(ErrorKind.unauthenticated, "Invalid identity token") from exc
        return IdentityClaims.model_validate(payload or {})


async def authenticate(authorization: Optional[str], verifier: IdentityVerifier) -> IdentityClaims:
    token = bearer_token(authorization)
    if token is None:
        raise RelayError(ErrorKind.unauthenticated, "Missing Authorization Bearer token")
    # verify_oauth2_token fetches signing certs with a blocking HTTP call.
    return await run_in_threadpool(verifier.verify, token)
