from __future__ import annotations

from contextlib import contextmanager
from datetime import date, timedelta

import psycopg
import pytest

from contractdesk.domain.models import ContractFilter
from contractdesk.errors import DataStoreError
from contractdesk.infrastructure.repository import ContractRepository, build_filter_query

TODAY = date(2025, 3, 1)
DEFAULT_LIMIT = 10


class FakeCursor:
    def __init__(self, rows, fail_with=None):
        self.rows = rows
        self.fail_with = fail_with
        self.executed = []

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def execute(self, query, params=None):
        if self.fail_with is not None:
            raise self.fail_with
        self.executed.append((query, params))

    def fetchall(self):
        return self.rows


class FakeConnection:
    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor
        self.row_factory = None

    def cursor(self, row_factory=None):
        self.row_factory = row_factory
        return self._cursor


def _repository(cursor: FakeCursor, timeout_ms: int = 0) -> ContractRepository:
    @contextmanager
    def factory():
        yield FakeConnection(cursor)

    return ContractRepository(connection_factory=factory, statement_timeout_ms=timeout_ms)


class TestBuildFilterQuery:
    def test_default_filter_only_limits(self):
        _, params = build_filter_query(ContractFilter(), TODAY)
        assert params == [DEFAULT_LIMIT]

    def test_text_filters_use_accent_free_patterns(self):
        flt = ContractFilter(
            flow_types=["RE", "FI"],
            supplier_name="  Açme Serviços ",
            contract_number="CT-2024",
            region="Sudeste",
            limit=25,
        )

        _, params = build_filter_query(flt, TODAY)

        assert params == [["RE", "FI"], "%acme servicos%", "%ct-2024%", "%sudeste%", 25]

    def test_blank_text_filters_are_ignored(self):
        _, params = build_filter_query(ContractFilter(supplier_name="   ", states=["", " "]), TODAY)
        assert params == [DEFAULT_LIMIT]

    def test_value_range_only_when_not_default(self):
        _, params = build_filter_query(ContractFilter(contract_value=(1_000, 50_000)), TODAY)
        assert params == [1_000, 50_000, DEFAULT_LIMIT]

    def test_states_are_matched_individually(self):
        _, params = build_filter_query(ContractFilter(states=["SP", "São Paulo"]), TODAY)
        assert params == ["%sp%", "%sao paulo%", DEFAULT_LIMIT]

    @pytest.mark.parametrize(
        ("preset", "expected"),
        [
            ("overdue", [TODAY]),
            ("next7days", [TODAY, TODAY + timedelta(days=7)]),
            ("next30days", [TODAY, TODAY + timedelta(days=30)]),
            ("30-60", [TODAY + timedelta(days=30), TODAY + timedelta(days=60)]),
            ("60-90", [TODAY + timedelta(days=60), TODAY + timedelta(days=90)]),
        ],
    )
    def test_due_date_presets(self, preset, expected):
        _, params = build_filter_query(ContractFilter(due_date=preset), TODAY)
        assert params == expected + [DEFAULT_LIMIT]

    def test_custom_due_date_range(self):
        flt = ContractFilter(due_date="custom", custom_start="2025-01-01", custom_end="2025-02-01")
        _, params = build_filter_query(flt, TODAY)
        assert params == [date(2025, 1, 1), date(2025, 2, 1), DEFAULT_LIMIT]

    def test_custom_preset_without_bounds_is_ignored(self):
        _, params = build_filter_query(ContractFilter(due_date="custom"), TODAY)
        assert params == [DEFAULT_LIMIT]


class TestContractFilterValidation:
    def test_inverted_value_range_is_rejected(self):
        with pytest.raises(ValueError):
            ContractFilter(contract_value=(10, 5))

    def test_inverted_custom_range_is_rejected(self):
        with pytest.raises(ValueError):
            ContractFilter(due_date="custom", custom_start="2025-02-01", custom_end="2025-01-01")

    def test_unknown_preset_is_rejected(self):
        with pytest.raises(ValueError):
            ContractFilter(due_date="tomorrow")


class TestContractRepository:
    def test_fetch_all_maps_rows_to_records(self):
        cursor = FakeCursor(
            [
                {
                    "id": 17,
                    "supplier": "Acme",
                    "flow_type": "RE",
                    "contract_value": 1500.5,
                    "due_date": "2025-04-01T00:00:00Z",
                    "region": None,
                },
            ]
        )

        contracts = _repository(cursor).fetch_all()

        assert len(contracts) == 1
        contract = contracts[0]
        assert contract.id == "17"
        assert contract.flow_type == "RE"
        assert contract.due_date == date(2025, 4, 1)
        assert contract.region is None
        assert len(cursor.executed) == 1

    def test_statement_timeout_is_applied_first(self):
        cursor = FakeCursor([])
        _repository(cursor, timeout_ms=5_000).fetch_filtered(ContractFilter(), TODAY)
        assert len(cursor.executed) == 2
        assert cursor.executed[1][1] == [DEFAULT_LIMIT]

    def test_database_errors_become_data_store_errors(self):
        cursor = FakeCursor([], fail_with=psycopg.OperationalError("server closed the connection"))
        with pytest.raises(DataStoreError, match="server closed"):
            _repository(cursor).fetch_all()
