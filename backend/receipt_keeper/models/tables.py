"""SQLAlchemy ORM models for the receipt API.

These models define the relational schema: users own receipts, receipts
own line items, and sessions record issued access tokens.  Every table
carries a surrogate integer key plus a unique UUID for external
reference, and timestamps are kept both as datetimes and as redundant
Unix-epoch integers.

Items reference their receipt with ``ON DELETE CASCADE`` so that a hard
receipt delete removes its items at the store.  If you change these
models add an Alembic revision under ``alembic/versions`` or call the
``init_db`` helper during development to recreate the tables.
"""

from __future__ import annotations

import datetime as dt
import time
from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from receipt_keeper.core.database import Base
from .enums import ReceiptStatus


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def unix_now() -> int:
    return int(time.time())


class User(Base):
    """User account; ``password_hash`` never leaves the service layer."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid4)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at_unix = Column(BigInteger, default=unix_now, nullable=False)
    updated_at_unix = Column(BigInteger, default=unix_now, nullable=False)

    receipts = relationship("Receipt", back_populates="owner")
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)


class UserSession(Base):
    """Server-side record of an issued access token."""

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid4)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at_unix = Column(BigInteger, default=unix_now, nullable=False)

    user = relationship("User", back_populates="sessions")

    def is_expired(self, now: dt.datetime | None = None) -> bool:
        expires_at = self.expires_at
        # SQLite hands back naive datetimes; they are stored as UTC
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=dt.timezone.utc)
        return (now or utcnow()) > expires_at


class Receipt(Base):
    """Uploaded receipt with caller-supplied totals."""

    __tablename__ = "receipts"
    __table_args__ = (Index("ix_receipts_user_upload_date", "user_id", "upload_date"),)

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid4)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    store_name = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(BigInteger, nullable=True)
    date = Column(DateTime(timezone=True), nullable=True)
    image_url = Column(String(1024), nullable=False)
    original_filename = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    upload_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    status = Column(
        Enum(
            ReceiptStatus,
            name="receipt_status",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=ReceiptStatus.PENDING,
        nullable=False,
    )
    total_items = Column(Integer, nullable=False, default=0)
    total_spending = Column(Float, nullable=False, default=0.0)
    total_discount = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at_unix = Column(BigInteger, default=unix_now, nullable=False)
    updated_at_unix = Column(BigInteger, default=unix_now, nullable=False)

    owner = relationship("User", back_populates="receipts")
    items = relationship(
        "Item",
        back_populates="receipt",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Item.id",
    )


class Item(Base):
    """Line item belonging to exactly one receipt."""

    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid4)
    receipt_id = Column(Integer, ForeignKey("receipts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    unit_price = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at_unix = Column(BigInteger, default=unix_now, nullable=False)

    receipt = relationship("Receipt", back_populates="items")
