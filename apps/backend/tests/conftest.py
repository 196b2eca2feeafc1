"""Pytest configuration for the collector test suite."""

import os
import tempfile
from contextlib import contextmanager

import pytest

# Point the app at a throwaway sqlite file before anything imports app.db.
_DB_DIR = tempfile.mkdtemp(prefix="pixel-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "pixel.db")
os.environ.setdefault("LOG_LEVEL", "warning")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import event as sa_event  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402

import main  # noqa: E402
from app.core.dedupe import Deduplicator  # noqa: E402
from app.db import Base, SessionLocal, engine  # noqa: E402
from app.request_context import RequestContext  # noqa: E402


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fresh():
    """Open a new session for assertions, so nothing is read from a stale identity map."""
    sessions = []

    def _open():
        s = SessionLocal()
        sessions.append(s)
        return s

    yield _open
    for s in sessions:
        s.close()


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dedupe(clock):
    return Deduplicator(window_seconds=60, clock=clock)


@pytest.fixture
def ctx():
    return RequestContext(
        ip="203.0.113.7",
        headers={"user-agent": "pytest-agent/1.0", "x-request-id": "req-1"},
        user_agent="pytest-agent/1.0",
        request_id="req-1",
    )


@pytest.fixture
def client(db, dedupe):
    main.app.state.deduplicator = dedupe
    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def inject_fault():
    """Make INSERTs into ``table`` fail, optionally only when ``marker`` is in the params."""

    @contextmanager
    def _inject(table: str, marker: str | None = None):
        prefix = f"INSERT INTO {table.upper()} "

        def _boom(conn, cursor, statement, parameters, context, executemany):
            if not statement.lstrip().upper().startswith(prefix):
                return
            if marker is None or marker in str(parameters):
                raise OperationalError(statement, parameters, Exception("injected fault"))

        sa_event.listen(engine, "before_cursor_execute", _boom)
        try:
            yield
        finally:
            sa_event.remove(engine, "before_cursor_execute", _boom)

    return _inject
