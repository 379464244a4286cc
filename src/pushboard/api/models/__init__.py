"""Shared Pydantic response/request models for the Dashboard API.

Provides the generic ``ApiResponse`` wrapper, the error envelope, and
re-exports the domain models used by the routers.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Base response wrappers
# ---------------------------------------------------------------------------


class ApiMeta(BaseModel):
    """Extensible metadata bag attached to every API response."""

    model_config = {"extra": "allow"}


class ApiResponse[T](BaseModel):
    """Generic API response wrapper.

    Enveloped responses follow ``{"data": T, "meta": {...}}``.
    """

    data: T
    meta: ApiMeta = Field(default_factory=ApiMeta)


class ErrorDetail(BaseModel):
    """Structured error payload."""

    code: str
    message: str
    details: dict | None = None


class ErrorResponse(BaseModel):
    """Standard error response envelope."""

    error: ErrorDetail


class ActionResult(BaseModel):
    """Acknowledgement returned by state-changing endpoints."""

    success: bool = True


from pushboard.api.models.analytics import (  # noqa: E402
    AnalyticsData,
    DailyBucketModel,
    DateRangeModel,
    EngagementModel,
    EngagementSlice,
    SummaryModel,
)
from pushboard.api.models.notification import Notification, WebhookPayload  # noqa: E402
from pushboard.api.models.subscription import PushConfig, Subscription  # noqa: E402

__all__ = [
    "ActionResult",
    "AnalyticsData",
    "ApiMeta",
    "ApiResponse",
    "DailyBucketModel",
    "DateRangeModel",
    "EngagementModel",
    "EngagementSlice",
    "ErrorDetail",
    "ErrorResponse",
    "Notification",
    "PushConfig",
    "Subscription",
    "SummaryModel",
    "WebhookPayload",
]
