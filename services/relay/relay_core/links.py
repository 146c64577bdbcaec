from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
from urllib.parse import urlencode, urlparse

import httpx

from libs.core import logging as core_logging

from . import metrics

LOGGER = core_logging.get_logger("relay")

DEFAULT_PROBE_TIMEOUT_S = 2.5
LINK_FALLBACK_CONFIDENCE_CAP = 0.35
SEARCH_FALLBACK_BASE = "https://www.google.com/search"

_BARE_DOMAIN = re.compile(
    r"^(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,}(?::\d{1,5})?(?:[/?#]\S*)?$",
    re.IGNORECASE,
)
# Servers that refuse HEAD usually answer one of these.
_HEAD_REJECTED = {403, 405}


class LinkStatus(str, Enum):
    reachable = "reachable"
    unreachable = "unreachable"
    indeterminate = "indeterminate"


@dataclass(frozen=True)
class LivenessVerdict:
    status: LinkStatus
    url: str
    final_url: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def reachable(self) -> bool:
        return self.status == LinkStatus.reachable


def normalize_candidate_url(candidate: Any) -> Optional[str]:
    if not isinstance(candidate, str):
        return None
    url = candidate.strip()
    if not url:
        return None
    if "://" in url:
        try:
            parsed = urlparse(url)
        except ValueError:
            return None
        if parsed.scheme.lower() in {"http", "https"} and parsed.netloc:
            return url
        return None
    if _BARE_DOMAIN.match(url):
        return f"https://{url}"
    return None


def search_fallback_url(subscription_name: str) -> str:
    query = f"{subscription_name} cancel subscription".strip()
    return f"{SEARCH_FALLBACK_BASE}?{urlencode({'q': query})}"


def apply_link_verdict(
    verdict: LivenessVerdict, subscription_name: str, confidence: float
) -> tuple[str, float]:
    """Keep a live link as-is; otherwise swap in the search link and cap confidence."""
    if verdict.reachable:
        return verdict.url, confidence
    return search_fallback_url(subscription_name), min(confidence, LINK_FALLBACK_CONFIDENCE_CAP)


class LinkLivenessChecker:
    def __init__(
        self,
        timeout_s: float = DEFAULT_PROBE_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout_s = timeout_s
        self._transport = transport

    async def check(self, candidate_url: Any) -> LivenessVerdict:
        url = normalize_candidate_url(candidate_url)
        if url is None:
            verdict = LivenessVerdict(
                status=LinkStatus.unreachable,
                url=candidate_url.strip() if isinstance(candidate_url, str) else "",
            )
            return self._record(verdict)
        async with httpx.AsyncClient(
            transport=self._transport,
            follow_redirects=True,
            timeout=self.timeout_s,
            headers={"User-Agent": "subrelay-link-probe/1.0"},
        ) as client:
            try:
                response = await self._probe(client, "HEAD", url)
                if response.status_code in _HEAD_REJECTED:
                    response = await self._probe(client, "GET", url)
            except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError, ValueError) as exc:
                LOGGER.info("link_probe_error", url=url, error=type(exc).__name__)
                return self._record(LivenessVerdict(status=LinkStatus.indeterminate, url=url))
        status = (
            LinkStatus.reachable if 200 <= response.status_code < 400 else LinkStatus.unreachable
        )
        verdict = LivenessVerdict(
            status=status,
            url=url,
            final_url=str(response.url),
            status_code=response.status_code,
        )
        return self._record(verdict)

    async def _probe(self, client: httpx.AsyncClient, method: str, url: str) -> httpx.Response:
        async def _send() -> httpx.Response:
            # Streaming keeps the GET fallback from downloading the page body.
            async with client.stream(method, url) as response:
                return response

        return await asyncio.wait_for(_send(), timeout=self.timeout_s)

    @staticmethod
    def _record(verdict: LivenessVerdict) -> LivenessVerdict:
        metrics.link_probes_total.labels(status=verdict.status.value).inc()
        LOGGER.info(
            "link_probe",
            url=verdict.url,
            status=verdict.status.value,
            status_code=verdict.status_code,
        )
        return verdict
