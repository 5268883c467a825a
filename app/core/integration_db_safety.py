from __future__ import annotations

import re
from dataclasses import dataclass

from sqlalchemy.engine import make_url

TEST_DB_NAME_RE = re.compile(r"test", re.IGNORECASE)
DB_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
ALLOWED_LOCAL_HOSTS = frozenset(
    {
        "localhost",
        "127.0.0.1",
        "::1",
        "postgres",
        "merchant_games_postgres",
    }
)


@dataclass(frozen=True, slots=True)
class IntegrationDbTarget:
    database_name: str
    host: str
    port: int
    username: str | None
    password: str | None
    reason: str = "ok"

    @property
    def is_safe(self) -> bool:
        return self.reason == "ok"


def _unsafe_reason(*, backend: str, db_name: str, host: str) -> str | None:
    if backend != "postgresql":
        return "Integration tests support only PostgreSQL test databases."
    if not db_name:
        return "Database name is empty."
    if TEST_DB_NAME_RE.search(db_name) is None:
        return "Database name must clearly indicate a test database (contain 'test')."
    if DB_IDENTIFIER_RE.fullmatch(db_name) is None:
        return "Database name must be a plain [A-Za-z0-9_] identifier."
    if host not in ALLOWED_LOCAL_HOSTS:
        return "Host is not in allowed local integration-test hosts."
    return None


def assess_integration_db_safety(database_url: str) -> IntegrationDbTarget:
    """Resolves DATABASE_URL and decides whether destructive test fixtures may touch it."""
    parsed = make_url(database_url)
    db_name = (parsed.database or "").strip()
    host = (parsed.host or "").strip().lower()
    reason = _unsafe_reason(backend=parsed.get_backend_name(), db_name=db_name, host=host)
    return IntegrationDbTarget(
        database_name=db_name,
        host=host,
        port=int(parsed.port or 5432),
        username=parsed.username,
        password=parsed.password,
        reason=reason or "ok",
    )


def assert_safe_integration_db(database_url: str) -> IntegrationDbTarget:
    target = assess_integration_db_safety(database_url)
    if target.is_safe:
        return target

    raise RuntimeError(
        "Refusing to run integration tests with destructive TRUNCATE.\n"
        f"Reason: {target.reason}\n"
        f"Resolved DB: name='{target.database_name}' host='{target.host}'\n"
        "Required: use a dedicated local PostgreSQL test DB, e.g. 'merchant_games_test'."
    )
