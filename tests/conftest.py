"""
Shared fixtures: test settings, a scripted stand-in for a psycopg2
connection, and sample domain objects.
"""

import os
from types import SimpleNamespace

os.environ.setdefault("TESTING", "1")

import pytest  # noqa: E402
from psycopg2 import errors  # noqa: E402

from config import Settings  # noqa: E402
from security.passwords import PasswordHasher  # noqa: E402


class FakeCursor:
    """Cursor that replays the results queued on its connection, one per execute()."""

    def __init__(self, conn):
        self.conn = conn
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, query, params=None):
        self.conn.executed.append((query, params))
        if not self.conn.results:
            raise AssertionError(f"Unexpected query: {query}")
        result = self.conn.results.pop(0)
        if isinstance(result, Exception):
            raise result
        self._rows = list(result)

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows


class FakeConnection:
    def __init__(self):
        self.results = []
        self.executed = []
        self.commits = 0
        self.rollbacks = 0
        self.released = 0

    def queue(self, *results):
        """Queue one result per expected execute(): a list of rows or an exception."""
        self.results.extend(results)

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


@pytest.fixture
def settings():
    return Settings(
        database_url=os.getenv("TEST_DATABASE_URL", "postgresql://localhost/sharebnb_test"),
        bcrypt_work_factor=4,
        secret_key="test-secret-key-for-the-sharebnb-suite",
        token_ttl_minutes=60,
        s3_bucket=None,
    )


@pytest.fixture
def hasher():
    return PasswordHasher(work_factor=4)


@pytest.fixture
def fake_db(monkeypatch):
    """Route every repository connection to one scripted FakeConnection."""
    import repositories.listing_repo as listing_repo
    import repositories.user_repo as user_repo

    conn = FakeConnection()

    def get_connection():
        return conn

    def release_connection(c):
        c.released += 1

    for module in (user_repo, listing_repo):
        monkeypatch.setattr(module, "get_connection", get_connection)
        monkeypatch.setattr(module, "release_connection", release_connection)
    return conn


@pytest.fixture
def fk_violation():
    """Build a ForeignKeyViolation that reports the given constraint name."""

    def build(constraint_name):
        class NamedViolation(errors.ForeignKeyViolation):
            @property
            def diag(self):
                return SimpleNamespace(constraint_name=constraint_name)

        return NamedViolation(f"violates foreign key constraint {constraint_name}")

    return build
