from __future__ import annotations

import re
from dataclasses import dataclass

from sqlalchemy.engine import make_url

TEST_DB_NAME_RE = re.compile(r"test", re.IGNORECASE)
ALLOWED_LOCAL_HOSTS = {
    "localhost",
    "127.0.0.1",
    "::1",
    "postgres",
    "paddock_postgres",
}


@dataclass(frozen=True, slots=True)
class IntegrationDbSafetyResult:
    is_safe: bool
    reason: str
    database_name: str
    host: str


def assess_integration_db_safety(database_url: str) -> IntegrationDbSafetyResult:
    parsed = make_url(database_url)
    db_name = (parsed.database or "").strip()
    host = (parsed.host or "").strip().lower()

    def _result(is_safe: bool, reason: str) -> IntegrationDbSafetyResult:
        return IntegrationDbSafetyResult(
            is_safe=is_safe,
            reason=reason,
            database_name=db_name,
            host=host,
        )

    if parsed.get_backend_name() != "postgresql":
        return _result(False, "Integration tests support only PostgreSQL test databases.")
    if not db_name:
        return _result(False, "Database name is empty.")
    if TEST_DB_NAME_RE.search(db_name) is None:
        return _result(
            False,
            "Database name must clearly indicate a test database (contain 'test').",
        )
    if host not in ALLOWED_LOCAL_HOSTS:
        return _result(False, "Host is not in allowed local integration-test hosts.")
    return _result(True, "ok")


def describe_unsafe_integration_db(result: IntegrationDbSafetyResult) -> str:
    return (
        "Refusing to run integration tests with destructive TRUNCATE. "
        f"Reason: {result.reason} "
        f"Resolved DB: name='{result.database_name}' host='{result.host}'. "
        "Required: a dedicated local PostgreSQL test DB, e.g. 'paddock_test'."
    )


def assert_safe_integration_db(database_url: str) -> None:
    result = assess_integration_db_safety(database_url)
    if result.is_safe:
        return
    raise RuntimeError(describe_unsafe_integration_db(result))
