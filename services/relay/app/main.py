from __future__ import annotations

import time
from typing import Optional

from fastapi import Body, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import make_asgi_app
from starlette.exceptions import HTTPException as StarletteHTTPException

from libs.core import logging as core_logging
from relay_core import ErrorKind, RelayError, RelayService, load_settings
from relay_core.models import (
    CancelAssist,
    CancelAssistRequest,
    CancelContact,
    CancelEmailDraft,
    ClassifyRequest,
    DeleteAck,
    DraftCancelEmailRequest,
    HealthStatus,
    PriceSuggestion,
    SubscriptionClassification,
    SubscriptionLookupRequest,
)

core_logging.configure_logging("relay")
LOGGER = core_logging.get_logger("relay")

SETTINGS = load_settings()

app = FastAPI(title="Subscription Relay")
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.mount("/metrics", make_asgi_app())
app.state.relay = RelayService(SETTINGS)

_STATUS_BY_KIND = {
    ErrorKind.bad_request: 400,
    ErrorKind.unauthenticated: 401,
    ErrorKind.misconfigured: 500,
    ErrorKind.upstream_format: 502,
    ErrorKind.upstream_unavailable: 502,
    ErrorKind.server_error: 500,
}
# Kinds whose detail stays in the logs.
_GENERIC_MESSAGES = {
    ErrorKind.misconfigured: "Server misconfigured",
    ErrorKind.upstream_unavailable: "Upstream completion failed",
    ErrorKind.server_error: "Server error",
}


def _relay(request: Request) -> RelayService:
    return request.app.state.relay


@app.middleware("http")
async def _log_requests(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001
        LOGGER.exception("unhandled_error", method=request.method, path=request.url.path)
        response = JSONResponse(status_code=500, content={"error": "Server error"})
    core_logging.log_event(
        LOGGER,
        "http_request",
        {
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": int((time.perf_counter() - started) * 1000),
        },
    )
    return response


@app.exception_handler(RelayError)
async def _relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    status_code = _STATUS_BY_KIND.get(exc.kind, 500)
    generic = _GENERIC_MESSAGES.get(exc.kind)
    if generic is not None:
        LOGGER.error("relay_error", kind=exc.kind.value, detail=exc.detail, path=request.url.path)
        return JSONResponse(status_code=status_code, content={"error": generic})
    content = {"error": exc.detail, **exc.extra}
    if exc.raw:
        content["raw"] = exc.raw
    LOGGER.info("relay_rejected", kind=exc.kind.value, detail=exc.detail, path=request.url.path)
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(StarletteHTTPException)
async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = "Not found"
    elif exc.status_code == 405:
        message = "Method not allowed"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message})


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "ok"


@app.get("/healthz", response_model=HealthStatus)
async def healthz() -> HealthStatus:
    return HealthStatus(ok=True)


@app.post("/v1/classifySubscription", response_model=SubscriptionClassification)
async def classify_subscription(
    request: Request,
    body: Optional[ClassifyRequest] = Body(default=None),
    authorization: Optional[str] = Header(default=None),
) -> SubscriptionClassification:
    return await _relay(request).classify_subscription(authorization, body)


@app.post("/v1/deleteMyData", response_model=DeleteAck)
async def delete_my_data(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> DeleteAck:
    return await _relay(request).delete_my_data(authorization)


@app.post("/api/price-suggest", response_model=PriceSuggestion)
async def price_suggest(
    request: Request,
    body: Optional[SubscriptionLookupRequest] = Body(default=None),
) -> PriceSuggestion:
    return await _relay(request).price_suggest(body)


@app.post("/api/cancel-contact", response_model=CancelContact)
async def cancel_contact(
    request: Request,
    body: Optional[SubscriptionLookupRequest] = Body(default=None),
) -> CancelContact:
    return await _relay(request).cancel_contact(body)


@app.post("/api/draft-cancel-email", response_model=CancelEmailDraft)
async def draft_cancel_email(
    request: Request,
    body: Optional[DraftCancelEmailRequest] = Body(default=None),
) -> CancelEmailDraft:
    return await _relay(request).draft_cancel_email(body)


@app.post("/api/cancel-assist", response_model=CancelAssist)
async def cancel_assist(
    request: Request,
    body: Optional[CancelAssistRequest] = Body(default=None),
) -> CancelAssist:
    return await _relay(request).cancel_assist(body)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=SETTINGS.port)
