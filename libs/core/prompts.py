from __future__ import annotations

import json
from typing import Any

_JSON_ONLY = "Return ONLY a single JSON object (no markdown, no extra text)."


def _quoted(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def classify_subscription_prompt(subject: str, sender: str, excerpt: str) -> str:
    return (
        "You are extracting subscription details from an email.\n"
        f"{_JSON_ONLY}\n"
        "\n"
        "Email fields:\n"
        f"- subject: {_quoted(subject)}\n"
        f"- from: {_quoted(sender)}\n"
        f"- excerpt: {_quoted(excerpt)}\n"
        "\n"
        "Decide if this email indicates an active paid subscription or recurring billing.\n"
        "\n"
        "Return JSON with exactly these keys:\n"
        "{\n"
        '  "is_subscription": boolean,\n'
        '  "subscription_name": string|null,\n'
        '  "merchant_name": string|null,\n'
        '  "price": number|null,\n'
        '  "currency": string|null,\n'
        '  "billing_period": string|null,\n'
        '  "billing_email": string|null,\n'
        '  "is_apple_subscription": boolean|null\n'
        "}\n"
        "\n"
        "Rules:\n"
        "- If NOT a subscription, set is_subscription=false and all others null.\n"
        '- currency should be like "USD", "CAD", "EUR" when possible.\n'
        '- billing_period should be like "monthly", "yearly", "weekly", "quarterly" if you can infer it.\n'
        "- is_apple_subscription true if it clearly looks like Apple/App Store billing, "
        "else false if clearly not, else null if unknown.\n"
        "- price should be the recurring amount, not a one-time purchase."
    )


def price_suggest_prompt(subscription_name: str, country_code: str) -> str:
    return (
        "You estimate the current list price of a consumer subscription.\n"
        f"{_JSON_ONLY}\n"
        f"Subscription: {_quoted(subscription_name)}\n"
        f"Country (ISO 3166-1 alpha-2): {_quoted(country_code)}\n"
        "\n"
        "Return JSON with exactly these keys:\n"
        "{\n"
        '  "currency": string|null,\n'
        '  "monthly": number|null,\n'
        '  "yearly": number|null,\n'
        '  "confidence": number,\n'
        '  "notes": string|null\n'
        "}\n"
        "\n"
        "Rules:\n"
        "- Use the most common paid tier in that country.\n"
        "- currency is the ISO 4217 code used in that country.\n"
        "- confidence is between 0 and 1; use a low value when unsure.\n"
        "- Use null instead of guessing a price you do not know."
    )


def cancel_contact_prompt(subscription_name: str, country_code: str) -> str:
    return (
        "You help a user find how to cancel a subscription.\n"
        f"{_JSON_ONLY}\n"
        f"Subscription: {_quoted(subscription_name)}\n"
        f"Country (ISO 3166-1 alpha-2): {_quoted(country_code)}\n"
        "\n"
        "Return JSON with exactly these keys:\n"
        "{\n"
        '  "email": string|null,\n'
        '  "cancel_url": string|null,\n'
        '  "confidence": number,\n'
        '  "notes": string|null\n'
        "}\n"
        "\n"
        "Rules:\n"
        "- email is the provider's support or cancellation address, null if unknown.\n"
        "- cancel_url is the official page where the subscription is cancelled or managed.\n"
        "- notes is one or two short sentences with the cancellation steps.\n"
        "- confidence is between 0 and 1."
    )


def draft_cancel_email_prompt(
    subscription_name: str,
    user_name: str | None,
    account_email: str | None,
    reason: str | None,
) -> str:
    return (
        "You write short, polite subscription cancellation emails.\n"
        f"{_JSON_ONLY}\n"
        f"Subscription: {_quoted(subscription_name)}\n"
        f"Customer name: {_quoted(user_name)}\n"
        f"Account email: {_quoted(account_email)}\n"
        f"Reason: {_quoted(reason)}\n"
        "\n"
        "Return JSON with exactly these keys:\n"
        "{\n"
        '  "subject": string,\n'
        '  "body": string\n'
        "}\n"
        "\n"
        "Rules:\n"
        "- Ask for cancellation effective immediately and written confirmation.\n"
        "- Mention the account email when given; never invent account numbers.\n"
        "- Sign with the customer name when given."
    )


def cancel_assist_prompt(
    subscription_name: str,
    country_code: str,
    user_name: str | None,
    account_email: str | None,
) -> str:
    return (
        "You help a user cancel a subscription: find the contact details and draft the email.\n"
        f"{_JSON_ONLY}\n"
        f"Subscription: {_quoted(subscription_name)}\n"
        f"Country (ISO 3166-1 alpha-2): {_quoted(country_code)}\n"
        f"Customer name: {_quoted(user_name)}\n"
        f"Account email: {_quoted(account_email)}\n"
        "\n"
        "Return JSON with exactly these keys:\n"
        "{\n"
        '  "email": string|null,\n'
        '  "cancel_url": string|null,\n'
        '  "confidence": number,\n'
        '  "notes": string|null,\n'
        '  "draft_subject": string,\n'
        '  "draft_body": string\n'
        "}\n"
        "\n"
        "Rules:\n"
        "- email and cancel_url follow the provider's official cancellation channel; null if unknown.\n"
        "- The draft asks for immediate cancellation and written confirmation.\n"
        "- confidence is between 0 and 1."
    )
