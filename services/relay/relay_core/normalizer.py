from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .coercion import (
    clamp_confidence,
    normalize_billing_period,
    safe_truncate,
    to_nullable_boolean,
    to_nullable_number,
    to_nullable_string,
)
from .errors import ErrorKind, RelayError
from .extraction import ModelJson
from .links import LivenessVerdict, apply_link_verdict, search_fallback_url
from .models import (
    CancelAssist,
    CancelContact,
    CancelEmailDraft,
    PriceSuggestion,
    SubscriptionClassification,
)

NOTES_MAX_LEN = 300
DRAFT_SUBJECT_MAX_LEN = 200
DRAFT_BODY_MAX_LEN = 4000
FALLBACK_CONFIDENCE = 0.1
FALLBACK_CONTACT_NOTES = (
    "Automatic lookup was unavailable. Check the provider's help center or account "
    "settings for cancellation steps."
)


def require_payload(parsed: ModelJson) -> Dict[str, Any]:
    if parsed.payload is None:
        raise RelayError(ErrorKind.upstream_format, parsed.message, raw=parsed.preview)
    return parsed.payload


def _non_negative(value: Any) -> Optional[float]:
    number = to_nullable_number(value)
    if number is None or number < 0:
        return None
    return number


def _notes(value: Any) -> Optional[str]:
    text = to_nullable_string(value, trim=True)
    return safe_truncate(text, NOTES_MAX_LEN) if text else None


def _contact_email(value: Any) -> Optional[str]:
    text = to_nullable_string(value, trim=True)
    if text is None or "@" not in text or any(ch.isspace() for ch in text):
        return None
    return text


def classification_from_payload(
    payload: Dict[str, Any], caller_email: Optional[str]
) -> SubscriptionClassification:
    model_email = to_nullable_string(payload.get("billing_email"), trim=True)
    billing_email = model_email or caller_email or None
    if not payload.get("is_subscription"):
        return SubscriptionClassification(is_subscription=False, billing_email=billing_email)
    return SubscriptionClassification(
        is_subscription=True,
        subscription_name=to_nullable_string(payload.get("subscription_name")),
        merchant_name=to_nullable_string(payload.get("merchant_name")),
        price=to_nullable_number(payload.get("price")),
        currency=to_nullable_string(payload.get("currency")),
        billing_period=normalize_billing_period(payload.get("billing_period")),
        billing_email=billing_email,
        is_apple_subscription=to_nullable_boolean(payload.get("is_apple_subscription")),
    )


def price_from_payload(
    payload: Dict[str, Any], subscription_name: str, country_code: str
) -> PriceSuggestion:
    currency = to_nullable_string(payload.get("currency"), trim=True)
    return PriceSuggestion(
        subscription_name=subscription_name,
        country_code=country_code,
        currency=currency.upper()[:3] if currency else None,
        monthly=_non_negative(payload.get("monthly")),
        yearly=_non_negative(payload.get("yearly")),
        confidence=clamp_confidence(payload.get("confidence")),
        notes=_notes(payload.get("notes")),
    )


@dataclass(frozen=True)
class ContactFields:
    """Contact lookup before its link has been probed."""

    email: Optional[str]
    candidate_url: Optional[str]
    confidence: float
    notes: Optional[str]


def contact_fields_from_payload(payload: Dict[str, Any]) -> ContactFields:
    candidate = payload.get("cancel_url")
    if candidate is None:
        candidate = payload.get("cancelURL")
    return ContactFields(
        email=_contact_email(payload.get("email")),
        candidate_url=to_nullable_string(candidate, trim=True),
        confidence=clamp_confidence(payload.get("confidence")),
        notes=_notes(payload.get("notes")),
    )


def finalize_contact(
    fields: ContactFields, verdict: LivenessVerdict, subscription_name: str
) -> CancelContact:
    url, confidence = apply_link_verdict(verdict, subscription_name, fields.confidence)
    return CancelContact(email=fields.email, cancel_url=url, confidence=confidence, notes=fields.notes)


def fallback_contact(subscription_name: str) -> CancelContact:
    return CancelContact(
        email=None,
        cancel_url=search_fallback_url(subscription_name),
        confidence=FALLBACK_CONFIDENCE,
        notes=FALLBACK_CONTACT_NOTES,
    )


def fallback_draft(
    subscription_name: str,
    user_name: Optional[str] = None,
    account_email: Optional[str] = None,
    reason: Optional[str] = None,
) -> CancelEmailDraft:
    account_clause = f" associated with the account {account_email}" if account_email else ""
    service = f"{subscription_name} " if subscription_name else ""
    lines = [
        f"Hello {service}Support,",
        "",
        f"Please cancel my {service}subscription{account_clause}, effective immediately.",
    ]
    if reason:
        lines.append(f"Reason for cancelling: {reason}")
    lines.extend(
        [
            "Please confirm in writing once the cancellation has been processed and that "
            "no further charges will be made.",
            "",
            "Thank you,",
        ]
    )
    if user_name:
        lines.append(user_name)
    return CancelEmailDraft(
        subject=f"Cancellation request: {service}subscription",
        body="\n".join(lines),
    )


def draft_from_payload(
    payload: Dict[str, Any],
    fallback: CancelEmailDraft,
    *,
    subject_key: str = "subject",
    body_key: str = "body",
) -> CancelEmailDraft:
    subject = to_nullable_string(payload.get(subject_key), trim=True)
    body = to_nullable_string(payload.get(body_key), trim=True)
    return CancelEmailDraft(
        subject=safe_truncate(subject, DRAFT_SUBJECT_MAX_LEN) if subject else fallback.subject,
        body=safe_truncate(body, DRAFT_BODY_MAX_LEN) if body else fallback.body,
    )


def assist_from_parts(
    subscription_name: str,
    country_code: str,
    contact: CancelContact,
    draft: CancelEmailDraft,
) -> CancelAssist:
    return CancelAssist(
        subscription_name=subscription_name,
        country_code=country_code,
        email=contact.email,
        cancel_url=contact.cancel_url,
        confidence=contact.confidence,
        notes=contact.notes,
        draft=draft,
    )
