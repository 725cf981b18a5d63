"""Top-level package for the Receipt Keeper API.

This package contains the FastAPI backend for a receipt-management
service: users register and log in, upload receipts with their line
items and query aggregate spending statistics.  It is organised in
layers so that individual pieces can be swapped independently:

* ``models`` – SQLAlchemy tables, enums and Pydantic schemas
* ``repositories`` – data access, one repository per entity
* ``services`` – authentication, receipt orchestration and storage
* ``api`` – routers, dependencies and exception handlers

To run the API locally you can execute:

```bash
uvicorn receipt_keeper.api.main:app --reload
```

Configuration is read from environment variables or a ``.env`` file at
the project root (see ``receipt_keeper.core.config``).
"""

__all__: list[str] = []
