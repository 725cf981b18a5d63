"""Core infrastructure: configuration, database, security and error types.

Exports configuration settings to simplify import paths inside tests
(e.g. `from receipt_keeper.core import settings`).
"""

from .config import settings  # noqa: F401
