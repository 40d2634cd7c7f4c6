"""
Pytest configuration for ContractDesk.

Provides fixtures for:
- Building contract records in unit tests
- Database connection management
- Test data seeding for integration tests
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator

import psycopg
import pytest

from contractdesk.config import Settings
from contractdesk.domain.models import ContractRecord
from contractdesk.infrastructure.db_factory import build_dsn

ContractFactory = Callable[..., ContractRecord]


@pytest.fixture
def make_contract() -> ContractFactory:
    """
    Factory for contract records with sequential ids.

    Every descriptive field defaults to None so tests only spell out what
    they care about.
    """
    counter = {"next": 1}

    def _make(**fields: Any) -> ContractRecord:
        if "id" not in fields:
            fields["id"] = f"CT-{counter['next']:04d}"
            counter["next"] += 1
        return ContractRecord(**fields)

    return _make


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "contractdesk"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return build_dsn(test_settings)


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the contracts table exists, creating it from db/init.sql if needed.
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_contracts_table(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the contracts table before and after each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.contracts;")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.contracts;")
    db_connection.commit()


@pytest.fixture(scope="function")
def seeded_contracts(
    db_connection: psycopg.Connection,
    clean_contracts_table,
    test_dsn: str,
) -> int:
    """
    Seed 60 synthetic contracts.

    Returns the number of rows seeded.
    """
    rows_to_seed = 60

    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "contracts.csv"

        from scripts.generate_data import _copy_into_db, _write_csv, generate_contract_rows

        _write_csv(csv_path, generate_contract_rows(rows_to_seed, seed=42))
        _copy_into_db(test_dsn, csv_path, truncate=False)

    with db_connection.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM public.contracts;")
        count = cur.fetchone()[0]

    return count
