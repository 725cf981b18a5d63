import pytest
from pydantic import ValidationError

from receipt_keeper.core.config import Settings
from receipt_keeper.core.database import SQLITE_FALLBACK_URL, resolve_database_url


def test_delete_mode_and_storage_backend_are_normalised():
    cfg = Settings(RECEIPT_DELETE_MODE=" SOFT ", STORAGE_BACKEND="FileSystem")
    assert cfg.RECEIPT_DELETE_MODE == "soft"
    assert cfg.STORAGE_BACKEND == "filesystem"


@pytest.mark.parametrize("field,value", [("RECEIPT_DELETE_MODE", "archive"), ("STORAGE_BACKEND", "s3")])
def test_unknown_choices_are_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})


def test_settings_are_frozen():
    cfg = Settings()
    with pytest.raises(ValidationError):
        cfg.JWT_SECRET = "changed"


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgresql://u:p@db:5432/receipts", "postgresql+psycopg://u:p@db:5432/receipts"),
        ("postgres://u:p@db/receipts", "postgresql+psycopg://u:p@db/receipts"),
        ("sqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
    ],
)
def test_resolve_database_url_normalises_driver(url, expected):
    assert resolve_database_url(Settings(DATABASE_URL=url)) == expected


def test_resolve_database_url_fallback():
    assert resolve_database_url(Settings(DATABASE_URL=None, DB_DEV_FALLBACK_SQLITE=True, ENVIRONMENT="development")) == SQLITE_FALLBACK_URL
    with pytest.raises(RuntimeError):
        resolve_database_url(Settings(DATABASE_URL=None, DB_DEV_FALLBACK_SQLITE=False))
