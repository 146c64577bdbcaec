from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .coercion import safe_truncate

PREVIEW_LENGTH = 400


class ExtractionFailure(str, Enum):
    no_json_found = "no_json_found"
    invalid_json = "invalid_json"


@dataclass(frozen=True)
class ModelJson:
    """Outcome of reading one model reply: either a payload or a failure with a bounded preview."""

    payload: Optional[Dict[str, Any]] = None
    failure: Optional[ExtractionFailure] = None
    preview: str = ""

    @property
    def ok(self) -> bool:
        return self.payload is not None

    @property
    def message(self) -> str:
        if self.failure == ExtractionFailure.no_json_found:
            return "AI did not return JSON"
        if self.failure == ExtractionFailure.invalid_json:
            return "AI returned invalid JSON"
        return ""


def extract_json(text: str) -> str:
    """Return the text between the first "{" and the last "}", or "" if there is none.

    This is a textual heuristic: braces inside surrounding prose will widen the
    candidate and make it fail to decode.
    """
    if not text:
        return ""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return ""
    return text[start : end + 1]


def decode_json_object(candidate: str) -> ModelJson:
    try:
        payload = json.loads(candidate)
    except (ValueError, RecursionError):
        # ValueError also covers oversized integer literals, not only syntax errors.
        payload = None
    if not isinstance(payload, dict):
        return ModelJson(
            failure=ExtractionFailure.invalid_json,
            preview=safe_truncate(candidate, PREVIEW_LENGTH),
        )
    return ModelJson(payload=payload)


def parse_model_json(text: str | None) -> ModelJson:
    raw = text if isinstance(text, str) else ""
    candidate = extract_json(raw)
    if not candidate:
        return ModelJson(
            failure=ExtractionFailure.no_json_found,
            preview=safe_truncate(raw, PREVIEW_LENGTH),
        )
    return decode_json_object(candidate)
