"""
Pydantic Schemas for Request/Response Validation

Request models are deliberately permissive: every field is optional so
that missing or blank values reach the services, which report them as
400 ValidationErrors with a readable message. Numbers sent where text
is expected (room numbers, phones, PINs) are accepted as text.

Response models reuse the persisted document models, so the wire
format matches the stored camelCase layout.

Version: 1.0.0
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from hostel_orders.models import MenuItem, Order, Student


def _number_to_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# AUTH REQUESTS
# =============================================================================

class StudentEmailLoginRequest(RequestModel):
    name: Optional[str] = Field(None, examples=["Amit"])
    email: Optional[str] = Field(None, examples=["amit@example.com"])


class StudentGoogleLoginRequest(StudentEmailLoginRequest):
    google_id: Optional[str] = Field(None, examples=["109876543210"])

    @field_validator("google_id", mode="before")
    @classmethod
    def coerce_google_id(cls, v: Any) -> Any:
        return _number_to_text(v)


class AdminLoginRequest(RequestModel):
    pin: Optional[str] = Field(None, examples=["1234"])

    @field_validator("pin", mode="before")
    @classmethod
    def coerce_pin(cls, v: Any) -> Any:
        return _number_to_text(v)


# =============================================================================
# ORDER REQUESTS
# =============================================================================

class OrderLineRequest(RequestModel):
    """One requested line. Quantity is checked by the ledger."""
    item_id: Optional[str] = Field(None, examples=["m1"])
    quantity: Any = Field(None, examples=[2])


class OrderCreate(RequestModel):
    """Request schema for placing an order."""

    customer_name: Optional[str] = Field(None, examples=["Amit"])
    room_number: Optional[str] = Field(None, examples=["B-204"])
    phone: Optional[str] = Field(None, examples=["9876543210"])
    payment_method: Optional[str] = Field(None, examples=["cash", "upi"])
    notes: Optional[str] = Field(None, examples=["Less spicy"])
    items: Optional[List[OrderLineRequest]] = None

    @field_validator("customer_name", "room_number", "phone", "notes", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _number_to_text(v)


class StatusUpdateRequest(RequestModel):
    status: Optional[str] = Field(None, examples=["accepted"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: datetime
    storage: str
    export_broker: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    message: str


class StudentLoginResponse(BaseModel):
    token: str
    student: Student


class AdminInfo(BaseModel):
    id: str


class AdminLoginResponse(BaseModel):
    token: str
    admin: AdminInfo


class MenuResponse(BaseModel):
    items: List[MenuItem]


class OrderListResponse(BaseModel):
    orders: List[Order]


class OrderMessageResponse(BaseModel):
    """Response after placing, updating or clearing an order."""
    message: str
    order: Order
