from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import make_url

LOCAL_DB_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "postgres", "coupon_drop_postgres"})


@dataclass(frozen=True, slots=True)
class TestDatabaseCheck:
    database_name: str
    host: str
    problem: str | None = None

    @property
    def is_safe(self) -> bool:
        return self.problem is None


def inspect_test_database_url(database_url: str) -> TestDatabaseCheck:
    """Decide whether a URL points at a throwaway local PostgreSQL database.

    Integration tests truncate every table, so anything that is not clearly a
    local ``*test*`` database is refused.
    """
    parsed = make_url(database_url)
    database_name = (parsed.database or "").strip()
    host = (parsed.host or "").strip().lower()

    problem: str | None = None
    if parsed.get_backend_name() != "postgresql":
        problem = "only PostgreSQL is supported"
    elif not database_name:
        problem = "database name is empty"
    elif "test" not in database_name.lower():
        problem = "database name must contain 'test'"
    elif host not in LOCAL_DB_HOSTS:
        problem = f"host '{host}' is not a local test host"

    return TestDatabaseCheck(database_name=database_name, host=host, problem=problem)


def assert_safe_test_database(database_url: str) -> None:
    check = inspect_test_database_url(database_url)
    if check.is_safe:
        return
    raise RuntimeError(
        f"Refusing to truncate database '{check.database_name}' on '{check.host}': "
        f"{check.problem}. Point DATABASE_URL at e.g. 'coupon_drop_test'."
    )
