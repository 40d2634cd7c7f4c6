"""
Representative sampling of contracts.

`RepresentativeSampler.select` picks a subset of contracts that spreads
across the descriptive dimensions of the population instead of drawing at
random. It is a two-phase greedy heuristic:

1. Coverage: for region, flow type, status and responsible area (in that
   order), take the most representative not-yet-selected contract of every
   category, until the target size is reached.
2. Diversity fill: score the remaining contracts against the selection made
   in phase 1 and take the highest scores.

The result is deterministic: there is no randomness, and ties keep input
order. The input collection and its records are never modified.

The weights below are tuned heuristics, not a model. Changing them changes
which contracts users see, so treat any change as a behaviour change.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set, Tuple

from contractdesk.domain.models import ContractRecord
from contractdesk.sampling.categories import (
    SENTINEL,
    DiversityAnalysis,
    analyze_diversity,
    dimension_value,
)
from contractdesk.utils.logging import get_logger

log = get_logger(__name__)

# Representative score: contract values inside this open interval count as
# "moderate" and score higher than extreme ones.
MODERATE_VALUE_MIN = 10_000
MODERATE_VALUE_MAX = 1_000_000
MODERATE_VALUE_POINTS = 2
NONZERO_VALUE_POINTS = 1
DUE_DATE_POINTS = 1
AREA_POINTS = 1
SUPPLIER_POINTS = 1

# Diversity score: full weight when no selected contract shares the category,
# otherwise max(1, weight - sharing_count).
REGION_WEIGHT = 10
FLOW_TYPE_WEIGHT = 10
STATUS_WEIGHT = 8
AREA_WEIGHT = 6
# Flat bonus when no selected contract shares (region, flow type, status).
NOVEL_COMBINATION_BONUS = 15

_WEIGHTED_DIMENSIONS: Tuple[Tuple[str, int], ...] = (
    ("region", REGION_WEIGHT),
    ("flow_type", FLOW_TYPE_WEIGHT),
    ("status", STATUS_WEIGHT),
    ("responsible_area", AREA_WEIGHT),
)


def representative_score(contract: ContractRecord) -> int:
    """How well a single contract stands for its category."""
    score = 0
    value = contract.contract_value or 0
    if MODERATE_VALUE_MIN < value < MODERATE_VALUE_MAX:
        score += MODERATE_VALUE_POINTS
    elif value > 0:
        score += NONZERO_VALUE_POINTS
    if contract.due_date is not None:
        score += DUE_DATE_POINTS
    if dimension_value(contract, "responsible_area") != SENTINEL:
        score += AREA_POINTS
    if dimension_value(contract, "supplier") != SENTINEL:
        score += SUPPLIER_POINTS
    return score


def most_representative(
    contracts: Sequence[ContractRecord], exclude_ids: Set[str]
) -> Optional[ContractRecord]:
    """Best-scoring contract not in `exclude_ids`; the first one wins ties."""
    best: Optional[ContractRecord] = None
    best_score = -1
    for contract in contracts:
        if contract.id in exclude_ids:
            continue
        score = representative_score(contract)
        if score > best_score:
            best, best_score = contract, score
    return best


def _combination(contract: ContractRecord) -> Tuple[str, str, str]:
    return (
        dimension_value(contract, "region"),
        dimension_value(contract, "flow_type"),
        dimension_value(contract, "status"),
    )


class _SelectionProfile:
    """Category counts of the selected contracts, for diversity scoring."""

    def __init__(self, selected: Sequence[ContractRecord]) -> None:
        self.counts: Dict[str, Dict[str, int]] = {name: {} for name, _ in _WEIGHTED_DIMENSIONS}
        self.combinations: Set[Tuple[str, str, str]] = set()
        for contract in selected:
            for name, _ in _WEIGHTED_DIMENSIONS:
                category = dimension_value(contract, name)
                self.counts[name][category] = self.counts[name].get(category, 0) + 1
            self.combinations.add(_combination(contract))

    def sharing(self, dimension: str, contract: ContractRecord) -> int:
        return self.counts[dimension].get(dimension_value(contract, dimension), 0)


def diversity_score(contract: ContractRecord, selected: Sequence[ContractRecord]) -> int:
    """Reward for adding `contract` to `selected`; higher means less alike."""
    return _diversity_score(contract, _SelectionProfile(selected))


def _diversity_score(contract: ContractRecord, profile: _SelectionProfile) -> int:
    score = 0
    for name, weight in _WEIGHTED_DIMENSIONS:
        shared = profile.sharing(name, contract)
        score += weight if shared == 0 else max(1, weight - shared)
    if _combination(contract) not in profile.combinations:
        score += NOVEL_COMBINATION_BONUS
    return score


class RepresentativeSampler:
    """
    Select a category-diverse subset of contracts.

    Example
    -------
        sampler = RepresentativeSampler()
        sample = sampler.select(contracts, target_size=20)
    """

    def select(
        self, all_contracts: Sequence[ContractRecord], target_size: int
    ) -> List[ContractRecord]:
        """
        Return at most `target_size` distinct contracts from `all_contracts`.

        When the target covers the whole input, every record is returned in
        input order. Otherwise exactly `target_size` records are returned.
        """
        contracts = list(all_contracts)
        if target_size <= 0 or not contracts:
            return []
        if target_size >= len(contracts):
            return contracts

        analysis = analyze_diversity(contracts)
        selected, selected_ids = self._cover_categories(analysis, target_size)
        covered = len(selected)
        selected.extend(self._fill_by_diversity(contracts, selected, selected_ids, target_size))

        log.debug(
            "Representative sample selected",
            extra={
                "population": len(contracts),
                "target_size": target_size,
                "coverage_picks": covered,
                "diversity_picks": len(selected) - covered,
            },
        )
        return selected

    @staticmethod
    def _cover_categories(
        analysis: DiversityAnalysis, target_size: int
    ) -> Tuple[List[ContractRecord], Set[str]]:
        selected: List[ContractRecord] = []
        selected_ids: Set[str] = set()
        for groups in analysis.main_categories():
            for members in groups.values():
                if len(selected) >= target_size:
                    break
                representative = most_representative(members, selected_ids)
                if representative is not None:
                    selected.append(representative)
                    selected_ids.add(representative.id)
        return selected, selected_ids

    @staticmethod
    def _fill_by_diversity(
        contracts: List[ContractRecord],
        selected: List[ContractRecord],
        selected_ids: Set[str],
        target_size: int,
    ) -> List[ContractRecord]:
        remaining = target_size - len(selected)
        if remaining <= 0:
            return []
        profile = _SelectionProfile(selected)
        candidates = [c for c in contracts if c.id not in selected_ids]
        # sorted() is stable, so equal scores keep input order.
        ranked = sorted(candidates, key=lambda c: _diversity_score(c, profile), reverse=True)
        return ranked[:remaining]


def select_representative_sample(
    all_contracts: Sequence[ContractRecord], target_size: int
) -> List[ContractRecord]:
    """Functional shortcut for `RepresentativeSampler().select`."""
    return RepresentativeSampler().select(all_contracts, target_size)


__all__ = [
    "AREA_WEIGHT",
    "FLOW_TYPE_WEIGHT",
    "NOVEL_COMBINATION_BONUS",
    "REGION_WEIGHT",
    "STATUS_WEIGHT",
    "RepresentativeSampler",
    "diversity_score",
    "most_representative",
    "representative_score",
    "select_representative_sample",
]
