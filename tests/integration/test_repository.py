"""
Integration tests for the contract repository and sampling.

These tests run against a real PostgreSQL instance seeded with synthetic
contracts and verify that:
1. Full scans and filtered listings return valid records
2. Filters are applied by the database
3. Sampling over the stored contracts covers every category

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os
from datetime import date

import psycopg
import pytest

from contractdesk.domain.models import ContractFilter
from contractdesk.errors import NoContractsError
from contractdesk.infrastructure.repository import ContractRepository
from contractdesk.pipeline import sample_contracts
from contractdesk.sampling.categories import dimension_value

SAMPLE_SIZE = 12

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


@pytest.fixture
def repository(test_dsn: str) -> ContractRepository:
    return ContractRepository(
        connection_factory=lambda: psycopg.connect(test_dsn), statement_timeout_ms=5_000
    )


class TestFetch:
    def test_fetch_all_returns_every_row(self, seeded_contracts: int, repository):
        contracts = repository.fetch_all()

        assert len(contracts) == seeded_contracts
        assert [c.id for c in contracts] == sorted(c.id for c in contracts)

    def test_fetch_filtered_by_flow_type(self, seeded_contracts: int, repository):
        flt = ContractFilter(flow_types=["RE"], limit=seeded_contracts)

        contracts = repository.fetch_filtered(flt)

        assert contracts
        assert all(c.flow_type == "RE" for c in contracts)

    def test_fetch_filtered_respects_limit(self, seeded_contracts: int, repository):
        assert len(repository.fetch_filtered(ContractFilter(limit=5))) == 5

    def test_overdue_preset(self, seeded_contracts: int, repository):
        today = date.today()
        flt = ContractFilter(due_date="overdue", limit=seeded_contracts)

        contracts = repository.fetch_filtered(flt, today)

        assert all(c.due_date is not None and c.due_date < today for c in contracts)

    def test_supplier_match_is_case_insensitive(self, seeded_contracts: int, repository):
        everything = repository.fetch_all()
        supplier = next(c.supplier for c in everything if c.supplier)
        flt = ContractFilter(supplier_name=supplier.upper(), limit=seeded_contracts)

        contracts = repository.fetch_filtered(flt)

        assert contracts
        assert all(c.supplier == supplier for c in contracts)


class TestSampling:
    def test_sample_covers_categories(self, seeded_contracts: int, repository):
        population = repository.fetch_all()

        sample = sample_contracts(repository, SAMPLE_SIZE)

        assert len(sample) == SAMPLE_SIZE
        assert len({c.id for c in sample}) == SAMPLE_SIZE
        region_values = {dimension_value(c, "region") for c in population}
        sampled_regions = {dimension_value(c, "region") for c in sample}
        assert region_values <= sampled_regions

    def test_empty_table_raises(self, clean_contracts_table, repository):
        with pytest.raises(NoContractsError):
            sample_contracts(repository, SAMPLE_SIZE)
