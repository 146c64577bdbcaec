from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .coercion import DEFAULT_CONFIDENCE


class ClassifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject: Any = None
    sender: Any = Field(default=None, alias="from")
    excerpt: Any = None


class SubscriptionLookupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subscription_name: Any = Field(default=None, alias="subscriptionName")
    country_code: Any = Field(default=None, alias="countryCode")


class DraftCancelEmailRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subscription_name: Any = Field(default=None, alias="subscriptionName")
    user_name: Any = Field(default=None, alias="userName")
    account_email: Any = Field(default=None, alias="accountEmail")
    reason: Any = None


class CancelAssistRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subscription_name: Any = Field(default=None, alias="subscriptionName")
    country_code: Any = Field(default=None, alias="countryCode")
    user_name: Any = Field(default=None, alias="userName")
    account_email: Any = Field(default=None, alias="accountEmail")


class IdentityClaims(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: Optional[str] = None
    sub: Optional[str] = None


class SubscriptionClassification(BaseModel):
    is_subscription: bool = False
    subscription_name: Optional[str] = None
    merchant_name: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    billing_period: Optional[str] = None
    billing_email: Optional[str] = None
    is_apple_subscription: Optional[bool] = None


class PriceSuggestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subscription_name: str = Field(alias="subscriptionName")
    country_code: str = Field(alias="countryCode")
    currency: Optional[str] = None
    monthly: Optional[float] = None
    yearly: Optional[float] = None
    confidence: float = DEFAULT_CONFIDENCE
    notes: Optional[str] = None
    cache_hit: bool = Field(default=False, alias="cacheHit")


class CancelContact(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    cancel_url: str = Field(alias="cancelURL")
    confidence: float = DEFAULT_CONFIDENCE
    notes: Optional[str] = None


class CancelEmailDraft(BaseModel):
    subject: str
    body: str


class CancelAssist(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subscription_name: str = Field(alias="subscriptionName")
    country_code: str = Field(alias="countryCode")
    email: Optional[str] = None
    cancel_url: str = Field(alias="cancelURL")
    confidence: float = DEFAULT_CONFIDENCE
    notes: Optional[str] = None
    draft: CancelEmailDraft


class DeleteAck(BaseModel):
    ok: bool = True
    deleted: bool = True


class HealthStatus(BaseModel):
    ok: bool = True
