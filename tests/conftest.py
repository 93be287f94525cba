"""
Pytest fixtures for the policy engine test suite.

Provides:
- Structured logging setup and a JSON log capture fixture
- Deterministic clock
- In-memory SQLite database sessions for the decision-trace store

Event factories live in tests/factories.py.
"""

import json
import logging
from collections.abc import Generator
from datetime import datetime, timezone
from io import StringIO

import pytest
from sqlalchemy.orm import Session

from policy_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from policy_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from policy_kernel.domain.clock import DeterministicClock
from policy_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

TEST_DATABASE_URL = "sqlite:///:memory:"

FIXED_TIME = datetime(2024, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture policy_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            evaluate(PolicyStatus.ACTIVE, [])
            logs = captured_logs()
            assert any(r["message"] == "POLICY_ENGINE_TRACE" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("policy_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock(FIXED_TIME)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite engine with all tables created."""
    engine = init_engine_from_url(TEST_DATABASE_URL)
    create_tables()
    register_immutability_listeners()
    yield engine
    unregister_immutability_listeners()
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing; rolled back at teardown."""
    sess = get_session()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()

