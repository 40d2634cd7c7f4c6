"""
Contract repository: read access to the `contracts` table.

Queries are composed with `psycopg.sql` and parameterised; rows come back as
dicts and are validated into `ContractRecord`. Any database failure is raised
as `DataStoreError` so callers handle a single error type.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import date, timedelta
from typing import Any, Callable, List, Optional, Tuple

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from contractdesk.config import get_settings
from contractdesk.domain.models import DEFAULT_VALUE_RANGE, ContractFilter, ContractRecord
from contractdesk.errors import DataStoreError
from contractdesk.infrastructure.db_factory import PoolManager, apply_statement_timeout
from contractdesk.utils.logging import get_logger
from contractdesk.utils.text import normalize_for_comparison

log = get_logger(__name__)

TABLE = sql.Identifier("public", "contracts")

ConnectionFactory = Callable[[], AbstractContextManager[psycopg.Connection]]


def _ilike(column: str, needle: str) -> Tuple[sql.Composable, str]:
    return (
        sql.SQL("{} ILIKE %s").format(sql.Identifier(column)),
        f"%{normalize_for_comparison(needle)}%",
    )


def _due_date_clause(
    flt: ContractFilter, today: date
) -> Tuple[Optional[sql.Composable], List[Any]]:
    """Translate a due-date preset into a WHERE fragment and its parameters."""
    column = sql.Identifier("due_date")
    between = sql.SQL("{} BETWEEN %s AND %s").format(column)
    preset = flt.due_date
    if preset == "overdue":
        return sql.SQL("{} < %s").format(column), [today]
    if preset == "next7days":
        return between, [today, today + timedelta(days=7)]
    if preset == "next30days":
        return between, [today, today + timedelta(days=30)]
    if preset == "30-60":
        return between, [today + timedelta(days=30), today + timedelta(days=60)]
    if preset == "60-90":
        return between, [today + timedelta(days=60), today + timedelta(days=90)]
    if preset == "custom" and flt.custom_start and flt.custom_end:
        return between, [flt.custom_start, flt.custom_end]
    return None, []


def build_filter_query(
    flt: ContractFilter, today: Optional[date] = None
) -> Tuple[sql.Composed, List[Any]]:
    """
    Build the SELECT for a filtered listing.

    Returns the composed statement and its positional parameters. Text filters
    match case-insensitively on the accent-free form of the user's input.
    """
    today = today or date.today()
    clauses: List[sql.Composable] = []
    params: List[Any] = []

    if flt.flow_types:
        clauses.append(sql.SQL("{} = ANY(%s)").format(sql.Identifier("flow_type")))
        params.append(list(flt.flow_types))

    for column, needle in (
        ("supplier", flt.supplier_name),
        ("id", flt.contract_number),
        ("region", flt.region),
    ):
        if needle.strip():
            clause, param = _ilike(column, needle)
            clauses.append(clause)
            params.append(param)

    if tuple(flt.contract_value) != DEFAULT_VALUE_RANGE:
        clauses.append(sql.SQL("{} BETWEEN %s AND %s").format(sql.Identifier("contract_value")))
        params.extend(flt.contract_value)

    states = [s for s in flt.states if s.strip()]
    if states:
        state_clauses = []
        for state in states:
            clause, param = _ilike("state", state)
            state_clauses.append(clause)
            params.append(param)
        clauses.append(sql.SQL("({})").format(sql.SQL(" OR ").join(state_clauses)))

    due_clause, due_params = _due_date_clause(flt, today)
    if due_clause is not None:
        clauses.append(due_clause)
        params.extend(due_params)

    query = sql.SQL("SELECT * FROM {}").format(TABLE)
    if clauses:
        query = query + sql.SQL(" WHERE ") + sql.SQL(" AND ").join(clauses)
    query = query + sql.SQL(" ORDER BY {} LIMIT %s").format(sql.Identifier("id"))
    params.append(flt.limit)
    return query, params


class ContractRepository:
    """
    Read-only access to contracts.

    Parameters
    ----------
    connection_factory : callable, optional
        Returns a context manager yielding a psycopg connection. Defaults to
        the shared pool.
    statement_timeout_ms : int, optional
        Per-statement timeout; defaults to settings.
    """

    def __init__(
        self,
        connection_factory: Optional[ConnectionFactory] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._connection_factory = connection_factory or PoolManager().connection
        self._timeout_ms = (
            statement_timeout_ms
            if statement_timeout_ms is not None
            else get_settings().db_statement_timeout_ms
        )

    def _query(self, query: sql.Composable, params: List[Any]) -> List[ContractRecord]:
        try:
            with self._connection_factory() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    apply_statement_timeout(cur, self._timeout_ms)
                    cur.execute(query, params)
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            log.error("Contracts query failed", extra={"error": str(exc)})
            raise DataStoreError(f"Failed to query contracts: {exc}") from exc
        return [ContractRecord.model_validate(row) for row in rows]

    def fetch_all(self) -> List[ContractRecord]:
        """Full scan of the contracts table, ordered by id."""
        query = sql.SQL("SELECT * FROM {} ORDER BY {}").format(TABLE, sql.Identifier("id"))
        contracts = self._query(query, [])
        log.info("Fetched contracts", extra={"rows": len(contracts)})
        return contracts

    def fetch_filtered(
        self, flt: ContractFilter, today: Optional[date] = None
    ) -> List[ContractRecord]:
        query, params = build_filter_query(flt, today)
        contracts = self._query(query, params)
        log.info("Filtered contracts", extra={"rows": len(contracts), "limit": flt.limit})
        return contracts


__all__ = ["ContractRepository", "build_filter_query"]
