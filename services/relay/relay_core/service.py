from __future__ import annotations

from typing import Any, Optional

from starlette.concurrency import run_in_threadpool

from libs.core import llm_provider, logging as core_logging, prompts

from . import metrics
from .cache import TTLCache, price_cache_key
from .coercion import normalize_country_code
from .config import Settings
from .errors import ErrorKind, RelayError
from .extraction import ModelJson, parse_model_json
from .identity import GoogleIdentityVerifier, IdentityVerifier, authenticate
from .links import LinkLivenessChecker
from .models import (
    CancelAssist,
    CancelAssistRequest,
    CancelContact,
    CancelEmailDraft,
    ClassifyRequest,
    DeleteAck,
    DraftCancelEmailRequest,
    PriceSuggestion,
    SubscriptionClassification,
    SubscriptionLookupRequest,
)
from .normalizer import (
    assist_from_parts,
    classification_from_payload,
    contact_fields_from_payload,
    draft_from_payload,
    fallback_contact,
    fallback_draft,
    finalize_contact,
    price_from_payload,
    require_payload,
)

LOGGER = core_logging.get_logger("relay")

EXCERPT_MAX_LEN = 800
NAME_MAX_LEN = 200
FREE_TEXT_MAX_LEN = 500
CLASSIFY_REQUIRED_FIELDS = ["subject", "from", "excerpt"]


def _text(value: Any, max_len: int | None = None) -> str:
    # Objects, lists and booleans count as missing rather than being stringified.
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return ""
    text = str(value).strip()
    return text[:max_len] if max_len is not None else text


def _optional_text(value: Any, max_len: int = FREE_TEXT_MAX_LEN) -> Optional[str]:
    text = _text(value, max_len)
    return text or None


class RelayService:
    """Runs each endpoint's prompt -> completion -> normalization pipeline."""

    def __init__(
        self,
        settings: Settings,
        *,
        provider: Optional[llm_provider.LLMProvider] = None,
        verifier: Optional[IdentityVerifier] = None,
        link_checker: Optional[LinkLivenessChecker] = None,
        price_cache: Optional[TTLCache[PriceSuggestion]] = None,
    ) -> None:
        self.settings = settings
        self._provider = provider
        self.verifier = verifier or GoogleIdentityVerifier(settings.google_client_id)
        self.link_checker = link_checker or LinkLivenessChecker(settings.link_probe_timeout_s)
        self.price_cache: TTLCache[PriceSuggestion] = price_cache or TTLCache(
            ttl_s=settings.price_cache_ttl_s,
            max_entries=settings.price_cache_max_entries,
        )

    def completion_provider(self) -> llm_provider.LLMProvider:
        if self._provider is None:
            try:
                self._provider = llm_provider.resolve_provider(
                    self.settings.llm_provider,
                    api_key=self.settings.openai_api_key,
                    model=self.settings.openai_model,
                    base_url=self.settings.openai_base_url,
                    temperature=self.settings.openai_temperature,
                    max_output_tokens=self.settings.openai_max_output_tokens,
                    timeout_s=self.settings.openai_timeout_s,
                    max_retries=self.settings.openai_max_retries,
                )
            except ValueError as exc:
                raise RelayError(ErrorKind.misconfigured, str(exc)) from exc
        return self._provider

    async def _complete(self, endpoint: str, prompt: str) -> ModelJson:
        provider = self.completion_provider()
        try:
            response = await run_in_threadpool(provider.generate, prompt)
        except llm_provider.LLMProviderError as exc:
            metrics.completions_total.labels(endpoint=endpoint, outcome="error").inc()
            LOGGER.warning("completion_failed", endpoint=endpoint, error=exc.detail)
            raise RelayError(ErrorKind.upstream_unavailable, exc.detail) from exc
        parsed = parse_model_json(response.content)
        if parsed.ok:
            metrics.completions_total.labels(endpoint=endpoint, outcome="ok").inc()
        else:
            metrics.completions_total.labels(endpoint=endpoint, outcome="unparseable").inc()
            LOGGER.warning(
                "model_output_unparseable",
                endpoint=endpoint,
                failure=parsed.failure.value if parsed.failure else None,
                preview=parsed.preview,
            )
        return parsed

    async def _complete_or_none(self, endpoint: str, prompt: str) -> Optional[dict]:
        """Like _complete, but any failure yields None so the caller can fall back."""
        try:
            parsed = await self._complete(endpoint, prompt)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("completion_fallback", endpoint=endpoint, error=str(exc))
            parsed = None
        if parsed is None or parsed.payload is None:
            metrics.fallbacks_total.labels(endpoint=endpoint).inc()
            return None
        return parsed.payload

    async def classify_subscription(
        self, authorization: Optional[str], request: Optional[ClassifyRequest]
    ) -> SubscriptionClassification:
        claims = await authenticate(authorization, self.verifier)
        request = request or ClassifyRequest()
        subject = _text(request.subject)
        sender = _text(request.sender)
        excerpt = _text(request.excerpt)
        if not subject or not sender or not excerpt:
            raise RelayError(
                ErrorKind.bad_request,
                "Missing required fields",
                extra={"required": list(CLASSIFY_REQUIRED_FIELDS)},
            )
        prompt = prompts.classify_subscription_prompt(subject, sender, excerpt[:EXCERPT_MAX_LEN])
        parsed = await self._complete("classify_subscription", prompt)
        return classification_from_payload(require_payload(parsed), claims.email)

    async def delete_my_data(self, authorization: Optional[str]) -> DeleteAck:
        claims = await authenticate(authorization, self.verifier)
        # Nothing is stored per user, so there is nothing to remove.
        LOGGER.info("delete_my_data_acknowledged", subject=claims.sub)
        return DeleteAck(ok=True, deleted=True)

    async def price_suggest(self, request: Optional[SubscriptionLookupRequest]) -> PriceSuggestion:
        request = request or SubscriptionLookupRequest()
        name = _text(request.subscription_name, NAME_MAX_LEN)
        if not name:
            raise RelayError(ErrorKind.bad_request, "Missing subscriptionName")
        country_code = normalize_country_code(request.country_code)
        key = price_cache_key(name, country_code)
        cached = self.price_cache.get(key)
        if cached is not None:
            metrics.price_cache_total.labels(result="hit").inc()
            LOGGER.info("price_cache_hit", key=key)
            return cached.model_copy(update={"cache_hit": True})
        metrics.price_cache_total.labels(result="miss").inc()
        LOGGER.info("price_cache_miss", key=key)
        parsed = await self._complete("price_suggest", prompts.price_suggest_prompt(name, country_code))
        result = price_from_payload(require_payload(parsed), name, country_code)
        self.price_cache.put(key, result)
        return result

    async def cancel_contact(self, request: Optional[SubscriptionLookupRequest]) -> CancelContact:
        request = request or SubscriptionLookupRequest()
        name = _text(request.subscription_name, NAME_MAX_LEN)
        country_code = normalize_country_code(request.country_code)
        if not name:
            metrics.fallbacks_total.labels(endpoint="cancel_contact").inc()
            return fallback_contact(name)
        payload = await self._complete_or_none(
            "cancel_contact", prompts.cancel_contact_prompt(name, country_code)
        )
        if payload is None:
            return fallback_contact(name)
        fields = contact_fields_from_payload(payload)
        verdict = await self.link_checker.check(fields.candidate_url)
        return finalize_contact(fields, verdict, name)

    async def draft_cancel_email(self, request: Optional[DraftCancelEmailRequest]) -> CancelEmailDraft:
        request = request or DraftCancelEmailRequest()
        name = _text(request.subscription_name, NAME_MAX_LEN)
        user_name = _optional_text(request.user_name, NAME_MAX_LEN)
        account_email = _optional_text(request.account_email, NAME_MAX_LEN)
        reason = _optional_text(request.reason)
        fallback = fallback_draft(name, user_name, account_email, reason)
        if not name:
            metrics.fallbacks_total.labels(endpoint="draft_cancel_email").inc()
            return fallback
        payload = await self._complete_or_none(
            "draft_cancel_email",
            prompts.draft_cancel_email_prompt(name, user_name, account_email, reason),
        )
        if payload is None:
            return fallback
        return draft_from_payload(payload, fallback)

    async def cancel_assist(self, request: Optional[CancelAssistRequest]) -> CancelAssist:
        request = request or CancelAssistRequest()
        name = _text(request.subscription_name, NAME_MAX_LEN)
        if not name:
            raise RelayError(ErrorKind.bad_request, "Missing subscriptionName")
        country_code = normalize_country_code(request.country_code)
        user_name = _optional_text(request.user_name, NAME_MAX_LEN)
        account_email = _optional_text(request.account_email, NAME_MAX_LEN)
        parsed = await self._complete(
            "cancel_assist",
            prompts.cancel_assist_prompt(name, country_code, user_name, account_email),
        )
        payload = require_payload(parsed)
        fields = contact_fields_from_payload(payload)
        verdict = await self.link_checker.check(fields.candidate_url)
        contact = finalize_contact(fields, verdict, name)
        draft = draft_from_payload(
            payload,
            fallback_draft(name, user_name, account_email),
            subject_key="draft_subject",
            body_key="draft_body",
        )
        return assist_from_parts(name, country_code, contact, draft)
