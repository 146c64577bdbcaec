from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


@dataclass
class LLMResponse:
    content: str


class LLMProviderError(Exception):
    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class LLMProvider:
    model: str = ""

    def generate(self, prompt: str) -> LLMResponse:  # pragma: no cover - interface
        raise NotImplementedError


class MockLLMProvider(LLMProvider):
    """Returns a canned reply; used for local runs without a credential."""

    model = "mock"

    def __init__(self, content: str = "Mock response") -> None:
        self.content = content

    def generate(self, prompt: str) -> LLMResponse:
        return LLMResponse(content=self.content)


class OpenAIProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com",
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        timeout_s: float = 30.0,
        max_retries: int = 0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout_s = timeout_s
        self.max_retries = max(0, max_retries)

    def _payload(self, prompt: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"model": self.model, "input": prompt}
        if self.temperature is not None and _model_supports_temperature(self.model):
            payload["temperature"] = self.temperature
        if self.max_output_tokens is not None:
            payload["max_output_tokens"] = self.max_output_tokens
        return payload

    def generate(self, prompt: str) -> LLMResponse:
        payload = self._payload(prompt)
        dropped_temperature = False
        attempt = 0
        while attempt <= self.max_retries:
            request = Request(
                f"{self.base_url}/v1/responses",
                data=json.dumps(payload).encode("utf-8"),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                method="POST",
            )
            try:
                with urlopen(request, timeout=self.timeout_s) as response:
                    body = response.read().decode("utf-8")
            except HTTPError as exc:
                detail = exc.read().decode("utf-8", errors="replace") if exc.fp else str(exc)
                if (
                    "temperature" in payload
                    and not dropped_temperature
                    and _is_unsupported_temperature_error(detail)
                ):
                    payload.pop("temperature", None)
                    dropped_temperature = True
                    continue
                if exc.code in _RETRYABLE_STATUS and attempt < self.max_retries:
                    time.sleep(min(2**attempt, 8))
                    attempt += 1
                    continue
                raise LLMProviderError(f"OpenAI API error: {detail}", status_code=exc.code) from exc
            except (URLError, TimeoutError) as exc:
                if attempt < self.max_retries:
                    time.sleep(min(2**attempt, 8))
                    attempt += 1
                    continue
                raise LLMProviderError(f"OpenAI API connection error: {exc}") from exc
            try:
                data = json.loads(body)
            except json.JSONDecodeError as exc:
                raise LLMProviderError("OpenAI API returned a non-JSON body") from exc
            # An empty reply is still a reply; callers decide how to treat it.
            return LLMResponse(content=_extract_output_text(data))
        raise LLMProviderError("OpenAI API request failed after retries")


def resolve_provider(
    provider_name: str,
    *,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    temperature: Optional[float] = None,
    max_output_tokens: Optional[int] = None,
    timeout_s: Optional[float] = None,
    max_retries: Optional[int] = None,
) -> LLMProvider:
    name = (provider_name or "openai").strip().lower()
    if name == "mock":
        return MockLLMProvider()
    if name != "openai":
        raise ValueError(f"Unsupported LLM_PROVIDER: {provider_name}")
    if not api_key:
        raise ValueError("OPENAI_API_KEY is required when LLM_PROVIDER=openai")
    if not model:
        raise ValueError("OPENAI_MODEL is required when LLM_PROVIDER=openai")
    return OpenAIProvider(
        api_key=api_key,
        model=model,
        base_url=base_url or "https://api.openai.com",
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        timeout_s=timeout_s or 30.0,
        max_retries=max_retries or 0,
    )


def _extract_output_text(response: Dict[str, Any]) -> str:
    direct = response.get("output_text")
    if isinstance(direct, str) and direct:
        return direct.strip()
    parts: list[str] = []
    for item in response.get("output", []) or []:
        if not isinstance(item, dict) or item.get("type") != "message":
            continue
        for content in item.get("content", []) or []:
            if isinstance(content, dict) and content.get("type") == "output_text":
                parts.append(str(content.get("text", "")))
    return "".join(parts).strip()


def _model_supports_temperature(model: str) -> bool:
    normalized = (model or "").strip().lower()
    # GPT-5 family rejects temperature on the Responses API.
    return not normalized.startswith("gpt-5")


def _is_unsupported_temperature_error(detail: str) -> bool:
    lowered = (detail or "").lower()
    return "unsupported parameter" in lowered and "temperature" in lowered
