from __future__ import annotations

from datetime import date

import pytest

from contractdesk.domain.models import ContractRecord
from contractdesk.sampling.categories import SENTINEL, dimension_value
from contractdesk.sampling.sampler import (
    RepresentativeSampler,
    diversity_score,
    most_representative,
    representative_score,
    select_representative_sample,
)
from scripts.generate_data import COLUMNS, generate_contract_rows

POPULATION_SIZE = 200
MAX_DIVERSITY_SCORE = 10 + 10 + 8 + 6 + 15


def _population(size: int = POPULATION_SIZE) -> list[ContractRecord]:
    rows = generate_contract_rows(size, seed=7, today=date(2025, 1, 1))
    return [
        ContractRecord.model_validate(
            {column: (value if value != "" else None) for column, value in zip(COLUMNS, row)}
        )
        for row in rows
    ]


def _ids(contracts: list[ContractRecord]) -> list[str]:
    return [c.id for c in contracts]


class TestEdgeCases:
    def test_empty_input_returns_empty(self):
        assert RepresentativeSampler().select([], 5) == []

    def test_zero_target_returns_empty(self, make_contract):
        contracts = [make_contract(region="South") for _ in range(3)]
        assert RepresentativeSampler().select(contracts, 0) == []

    def test_negative_target_returns_empty(self, make_contract):
        contracts = [make_contract(region="South") for _ in range(3)]
        assert RepresentativeSampler().select(contracts, -1) == []

    def test_target_covering_population_returns_input_in_order(self, make_contract):
        contracts = [make_contract(region=r) for r in ("North", "South", "East")]
        assert _ids(RepresentativeSampler().select(contracts, 3)) == _ids(contracts)
        assert _ids(RepresentativeSampler().select(contracts, 10)) == _ids(contracts)

    def test_output_holds_the_input_records(self, make_contract):
        contracts = [make_contract(region=r) for r in ("North", "South", "East", "West")]
        selected = RepresentativeSampler().select(contracts, 2)
        assert all(any(s is c for c in contracts) for s in selected)


class TestProperties:
    @pytest.mark.parametrize("target", [0, 1, 5, 17, 50, 199, 200, 250])
    def test_size_is_min_of_target_and_population(self, target):
        population = _population()
        selected = RepresentativeSampler().select(population, target)
        assert len(selected) == min(target, len(population))

    @pytest.mark.parametrize("target", [1, 10, 60, 150])
    def test_no_duplicates(self, target):
        selected = RepresentativeSampler().select(_population(), target)
        assert len(set(_ids(selected))) == len(selected)

    def test_every_region_is_covered_when_budget_allows(self):
        population = _population()
        regions = {dimension_value(c, "region") for c in population}
        selected = RepresentativeSampler().select(population, len(regions))
        assert {dimension_value(c, "region") for c in selected} == regions

    def test_main_dimensions_are_covered_when_budget_allows(self):
        population = _population()
        selected = RepresentativeSampler().select(population, 30)
        for dimension in ("region", "flow_type", "status", "responsible_area"):
            expected = {dimension_value(c, dimension) for c in population}
            assert {dimension_value(c, dimension) for c in selected} == expected

    def test_selecting_a_sample_again_returns_it(self):
        sample = RepresentativeSampler().select(_population(), 12)
        assert _ids(RepresentativeSampler().select(sample, len(sample))) == _ids(sample)

    def test_selection_is_deterministic(self):
        population = _population()
        first = RepresentativeSampler().select(population, 25)
        second = RepresentativeSampler().select(list(population), 25)
        assert _ids(first) == _ids(second)

    def test_input_is_not_modified(self):
        population = _population(50)
        snapshot = [c.model_dump() for c in population]
        order = _ids(population)
        RepresentativeSampler().select(population, 10)
        assert _ids(population) == order
        assert [c.model_dump() for c in population] == snapshot

    def test_functional_shortcut_matches_sampler(self):
        population = _population(80)
        assert _ids(select_representative_sample(population, 9)) == _ids(
            RepresentativeSampler().select(population, 9)
        )


class TestCoveragePhase:
    def test_two_regions_yield_one_contract_each(self, make_contract):
        contracts = [make_contract(region="South") for _ in range(5)]
        contracts += [make_contract(region="North") for _ in range(5)]

        selected = RepresentativeSampler().select(contracts, 2)

        assert sorted(c.region for c in selected) == ["North", "South"]

    def test_picks_most_representative_contract_of_category(self, make_contract):
        bare = make_contract(region="South")
        rich = make_contract(
            region="South",
            contract_value=50_000,
            due_date="2025-06-30",
            responsible_area="Legal",
            supplier="Acme",
        )
        other = make_contract(region="North")

        selected = RepresentativeSampler().select([bare, rich, other], 2)

        assert _ids(selected) == [rich.id, other.id]

    def test_missing_regions_form_one_sentinel_category(self, make_contract):
        contracts = [
            make_contract(region=None),
            make_contract(region=""),
            make_contract(region="   "),
            make_contract(region="South"),
        ]
        selected = RepresentativeSampler().select(contracts, 2)
        assert {dimension_value(c, "region") for c in selected} == {SENTINEL, "South"}

    def test_regions_are_visited_in_first_seen_order(self, make_contract):
        contracts = [
            make_contract(region="East"),
            make_contract(region="West"),
            make_contract(region="East"),
            make_contract(region="North"),
        ]
        selected = RepresentativeSampler().select(contracts, 3)
        assert [c.region for c in selected] == ["East", "West", "North"]


class TestDiversityPhase:
    def test_fill_prefers_least_represented_categories(self, make_contract):
        def contract(region: str, **extra) -> ContractRecord:
            return make_contract(
                region=region, flow_type="RE", status="pending", responsible_area="Legal", **extra
            )

        r1 = contract("North", contract_value=50_000)
        r2 = contract("South")
        r3, r4, r5, r6 = (contract("North") for _ in range(4))
        r7 = contract("South")

        selected = RepresentativeSampler().select([r1, r2, r3, r4, r5, r6, r7], 6)

        # Coverage picks r1..r5; r7 shares its region with one pick, r6 with four.
        assert _ids(selected) == [r1.id, r2.id, r3.id, r4.id, r5.id, r7.id]

    def test_fill_ties_keep_input_order(self, make_contract):
        contracts = [make_contract(region="North", flow_type="RE") for _ in range(8)]
        selected = RepresentativeSampler().select(contracts, 6)
        assert _ids(selected) == _ids(contracts[:6])


class TestScores:
    def test_representative_score_full_marks(self, make_contract):
        contract = make_contract(
            contract_value=50_000,
            due_date="2025-06-30",
            responsible_area="Legal",
            supplier="Acme",
        )
        assert representative_score(contract) == 5

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, 0), (0, 0), (5_000, 1), (10_000, 1), (10_001, 2), (999_999, 2), (1_000_000, 1)],
    )
    def test_representative_score_value_points(self, make_contract, value, expected):
        assert representative_score(make_contract(contract_value=value)) == expected

    def test_sentinel_text_earns_no_points(self, make_contract):
        contract = make_contract(responsible_area=SENTINEL, supplier=SENTINEL)
        assert representative_score(contract) == 0

    def test_most_representative_first_wins_ties(self, make_contract):
        a, b = make_contract(supplier="Acme"), make_contract(supplier="Beta")
        assert most_representative([a, b], set()) is a

    def test_most_representative_skips_excluded(self, make_contract):
        a, b = make_contract(supplier="Acme"), make_contract()
        assert most_representative([a, b], {a.id}) is b
        assert most_representative([a], {a.id}) is None

    def test_diversity_score_against_empty_selection(self, make_contract):
        assert diversity_score(make_contract(region="North"), []) == MAX_DIVERSITY_SCORE

    def test_diversity_score_for_identical_contract(self, make_contract):
        fields = dict(region="North", flow_type="RE", status="paid", responsible_area="Legal")
        selected = [make_contract(**fields)]
        # 9 + 9 + 7 + 5, and the combination is already present.
        assert diversity_score(make_contract(**fields), selected) == 30

    def test_diversity_score_never_drops_below_one_per_dimension(self, make_contract):
        fields = dict(region="North", flow_type="RE", status="paid", responsible_area="Legal")
        selected = [make_contract(**fields) for _ in range(20)]
        assert diversity_score(make_contract(**fields), selected) == 4

    def test_novel_combination_bonus(self, make_contract):
        selected = [
            make_contract(region="North", flow_type="RE", status="paid"),
            make_contract(region="South", flow_type="FI", status="paid"),
        ]
        novel = make_contract(region="North", flow_type="FI", status="paid")
        repeat = make_contract(region="North", flow_type="RE", status="paid")
        assert diversity_score(novel, selected) - diversity_score(repeat, selected) == 15
