from __future__ import annotations

import asyncio

import httpx

from relay_core.links import (
    LINK_FALLBACK_CONFIDENCE_CAP,
    LinkLivenessChecker,
    LinkStatus,
    LivenessVerdict,
    apply_link_verdict,
    normalize_candidate_url,
    search_fallback_url,
)


def _checker(handler) -> LinkLivenessChecker:  # type: ignore[no-untyped-def]
    return LinkLivenessChecker(timeout_s=0.5, transport=httpx.MockTransport(handler))


def test_empty_url_is_unreachable_without_network() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(200)

    verdict = asyncio.run(_checker(handler).check(""))
    assert verdict.status == LinkStatus.unreachable
    assert not verdict.reachable
    assert calls == []
    assert asyncio.run(_checker(handler).check(None)).status == LinkStatus.unreachable
    assert calls == []


def test_bare_domain_gets_https_scheme() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    verdict = asyncio.run(_checker(handler).check("netflix.com/cancelplan"))
    assert verdict.reachable
    assert verdict.url == "https://netflix.com/cancelplan"
    assert seen[0].method == "HEAD"
    assert str(seen[0].url) == "https://netflix.com/cancelplan"


def test_normalize_candidate_url_rejects_non_http() -> None:
    assert normalize_candidate_url("ftp://example.com/file") is None
    assert normalize_candidate_url("not a link") is None
    assert normalize_candidate_url("https://example.com") == "https://example.com"
    assert normalize_candidate_url(42) is None


def test_gone_status_is_unreachable() -> None:
    verdict = asyncio.run(_checker(lambda request: httpx.Response(410)).check("https://example.com/x"))
    assert verdict.status == LinkStatus.unreachable
    assert verdict.status_code == 410


def test_head_rejection_retries_with_get() -> None:
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        if request.method == "HEAD":
            return httpx.Response(405)
        return httpx.Response(200, text="<html></html>")

    verdict = asyncio.run(_checker(handler).check("https://example.com/account"))
    assert methods == ["HEAD", "GET"]
    assert verdict.reachable
    assert verdict.status_code == 200


def test_redirects_are_followed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.com/new"})
        return httpx.Response(200)

    verdict = asyncio.run(_checker(handler).check("https://example.com/old"))
    assert verdict.reachable
    assert verdict.status_code == 200
    assert verdict.final_url == "https://example.com/new"


def test_network_error_is_indeterminate() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    verdict = asyncio.run(_checker(handler).check("https://example.com"))
    assert verdict.status == LinkStatus.indeterminate
    assert not verdict.reachable


def test_apply_link_verdict_caps_confidence_on_fallback() -> None:
    dead = LivenessVerdict(status=LinkStatus.unreachable, url="https://dead.example", status_code=410)
    url, confidence = apply_link_verdict(dead, "Netflix", 0.9)
    assert url == search_fallback_url("Netflix")
    assert url == "https://www.google.com/search?q=Netflix+cancel+subscription"
    assert confidence == LINK_FALLBACK_CONFIDENCE_CAP

    live = LivenessVerdict(status=LinkStatus.reachable, url="https://live.example", status_code=200)
    assert apply_link_verdict(live, "Netflix", 0.9) == ("https://live.example", 0.9)


def test_unparseable_url_is_unreachable() -> None:
    assert normalize_candidate_url("https://[::1") is None
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(200)

    verdict = asyncio.run(_checker(handler).check("https://[::1/cancel"))
    assert verdict.status == LinkStatus.unreachable
    assert calls == []


def test_host_encoding_error_is_indeterminate() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise UnicodeError("label empty or too long")

    verdict = asyncio.run(_checker(handler).check("https://example.com/cancel"))
    assert verdict.status == LinkStatus.indeterminate
    assert verdict.url == "https://example.com/cancel"
