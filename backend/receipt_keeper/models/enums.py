"""Enumeration types used throughout the receipt API.

Enumerations constrain the values that can be stored in the database or
passed through the API.  When modifying these enums update the
corresponding Alembic revision so that new values are accepted by the
``receipt_status`` column.
"""

from enum import Enum


class ReceiptStatus(str, Enum):
    """Processing states for a receipt.

    ``DELETED`` marks a soft-deleted receipt and is only set when the
    service runs with ``RECEIPT_DELETE_MODE=soft``.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    DELETED = "deleted"
