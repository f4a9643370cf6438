"""Pydantic schemas for API requests/responses."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Errors
# ============================================================================


class ProblemDetail(BaseModel):
    """RFC 9457 Problem Details for HTTP API errors.

    RFC 9457: detail can be either a string or a structured object (dict).
    """

    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str | dict[str, Any] = Field(..., description="Human-readable explanation or structured error details")
    instance: Optional[str] = Field(None, description="URI reference identifying the specific occurrence")


# ============================================================================
# POST /webhooks/{topic}
# ============================================================================


class WebhookAck(BaseModel):
    """Acknowledgement returned for every verified push, processed or not."""

    status: str = "ok"


# ============================================================================
# POST /ingest/{kind}, POST /ingest/events
# ============================================================================


class ShopRequest(BaseModel):
    """Request body naming a connected store."""

    shop: str = Field(..., min_length=1, description="Store domain, e.g. example.myshopify.com")


class IngestResponse(BaseModel):
    kind: str
    shop: str
    pages: int
    records: int
    written: int


class IngestEventRequest(BaseModel):
    """Custom client event appended to the event log."""

    model_config = ConfigDict(populate_by_name=True)

    shop: str = Field(..., min_length=1)
    event_type: str = Field(..., alias="eventType", min_length=1)
    payload: Any = None


class IngestEventResponse(BaseModel):
    event_id: int
    event_type: str


# ============================================================================
# Webhook (de)registration
# ============================================================================


class WebhookRegistrationResponse(BaseModel):
    shop: str
    topics: dict[str, str] = Field(..., description="topic -> registered | failed")


class WebhookRemovalResponse(BaseModel):
    shop: str
    removed: dict[str, int] = Field(..., description="topic -> subscriptions deleted")


# ============================================================================
# Dashboard
# ============================================================================


class StoreSummary(BaseModel):
    id: str
    shop_domain: str
    display_name: Optional[str] = None


class StoreListResponse(BaseModel):
    stores: list[StoreSummary]


class ShopResponse(BaseModel):
    shop: str


class ConnectStoreResponse(BaseModel):
    shop: str
    tenant_id: str


class TopCustomer(BaseModel):
    name: str
    spend: float


class OrdersOnDate(BaseModel):
    date: str
    orders: int


class RevenueOnDate(BaseModel):
    date: str
    revenue: float


class MetricsResponse(BaseModel):
    """Dashboard rollups. Field names match the dashboard client contract."""

    model_config = ConfigDict(populate_by_name=True)

    customers: int
    orders: int
    revenue: float
    aov: float
    repeat_rate: float = Field(..., alias="repeatRate")
    top_customers: list[TopCustomer] = Field(..., alias="topCustomers")
    orders_by_date: list[OrdersOnDate] = Field(..., alias="ordersByDate")
    trends: list[RevenueOnDate]


# ============================================================================
# Health
# ============================================================================


class HealthResponse(BaseModel):
    status: str
    version: str
    services: dict[str, str]


# ============================================================================
# OAuth
# ============================================================================


class OAuthCallbackResponse(BaseModel):
    shop: str
    tenant_id: str
    webhooks: dict[str, str] = Field(default_factory=dict, description="Per-topic registration status")
    message: str
