"""Pydantic schemas for request and response models.

Pydantic models validate and serialise data that crosses the boundary
of the API.  Request schemas enforce the field rules of the incoming
payloads (required fields, minimum values, email format); response
schemas are built from the ORM rows with ``from_attributes`` and never
include ``password_hash``.

Pydantic schemas are kept separate from the SQLAlchemy models
so that the API can expose a different shape from what is stored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .enums import ReceiptStatus


def _sanitize(v):
    from receipt_keeper.utils.sanitization import sanitize_string
    return sanitize_string(v) if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Users and auth


class UserCreate(BaseModel):
    """Registration request."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    full_name: str = Field(min_length=1, max_length=255)

    @field_validator("full_name", mode="before")
    def sanitize_full_name(cls, v):
        return _sanitize(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)

    @field_validator("full_name", mode="before")
    def sanitize_full_name(cls, v):
        return _sanitize(v)


class UserRead(BaseModel):
    """User as exposed by the API (no password hash)."""

    id: int
    uuid: UUID
    email: str
    full_name: str
    created_at: datetime
    created_at_unix: int

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    token: str
    user: UserRead


# ---------------------------------------------------------------------------
# Receipts and items


class ItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    unit_price: int = Field(ge=0)
    quantity: int = Field(ge=1)
    price: int = Field(ge=0)
    total: int = Field(ge=0)

    @field_validator("name", mode="before")
    def sanitize_name(cls, v):
        return _sanitize(v)


class ItemRead(BaseModel):
    id: int
    uuid: UUID
    receipt_id: int
    name: str
    unit_price: int
    quantity: int
    price: int
    total: int
    created_at: datetime
    created_at_unix: int

    model_config = ConfigDict(from_attributes=True)


class ReceiptCreate(BaseModel):
    """Receipt creation payload.

    ``store_name`` and ``address`` are stored only when non-empty and
    ``phone`` only when present.  ``date`` accepts an ISO-8601 date or
    datetime string.
    """

    store_name: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = None
    phone: Optional[int] = Field(default=None, ge=0)
    date: Optional[str] = None
    total_items: int = Field(default=0, ge=0)
    total_spending: float = Field(default=0.0, ge=0)
    total_discount: float = Field(default=0.0, ge=0)
    items: List[ItemCreate] = Field(default_factory=list)

    @field_validator("store_name", "address", mode="before")
    def sanitize_fields(cls, v):
        return _sanitize(v)


class ReceiptUpdate(BaseModel):
    """Receipt update payload.

    Omitted fields keep their stored value; fields sent as ``null`` (or an
    empty string for text fields) are cleared.  Use ``model_fields_set``
    to tell the two apart.
    """

    store_name: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = None
    phone: Optional[int] = Field(default=None, ge=0)
    date: Optional[str] = None
    total_items: Optional[int] = Field(default=None, ge=0)
    total_spending: Optional[float] = Field(default=None, ge=0)
    total_discount: Optional[float] = Field(default=None, ge=0)

    @field_validator("store_name", "address", mode="before")
    def sanitize_fields(cls, v):
        return _sanitize(v)


class ReceiptRead(BaseModel):
    id: int
    uuid: UUID
    user_id: int
    store_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[int] = None
    date: Optional[datetime] = None
    image_url: str
    original_filename: str
    file_size: int
    upload_date: datetime
    status: ReceiptStatus
    total_items: int
    total_spending: float
    total_discount: float
    created_at: datetime
    updated_at: datetime
    created_at_unix: int
    updated_at_unix: int

    model_config = ConfigDict(from_attributes=True)


class ReceiptWithItemsRead(ReceiptRead):
    items: List[ItemRead] = Field(default_factory=list)


class ReceiptStatsRead(BaseModel):
    total_receipts: int = 0
    total_spending: float = 0.0
    total_discount: float = 0.0
    average_spending: float = 0.0
    net_spending: float = 0.0

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Response envelope


class APIResponse(BaseModel):
    """Uniform wrapper for every JSON response."""

    success: bool
    message: Optional[str] = None
    data: Optional[Any] = None
    error: Optional[str] = None


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total_items: int
    total_pages: int


class PaginatedResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: List[Any] = Field(default_factory=list)
    pagination: PaginationMeta
