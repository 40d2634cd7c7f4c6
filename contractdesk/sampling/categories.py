"""
Category helpers shared by the sampler and the dashboard breakdowns.

Missing categorical values are folded into the `SENTINEL` category so that
grouping never operates on None. Value and due-date bands are fixed literal
bands, not computed from the data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional

from contractdesk.domain.models import ContractRecord

SENTINEL = "Not Informed"

# Upper bounds (inclusive) of the contract value bands.
VALUE_BANDS: List[tuple[float, str]] = [
    (10_000, "0-10k"),
    (50_000, "10k-50k"),
    (100_000, "50k-100k"),
    (500_000, "100k-500k"),
    (1_000_000, "500k-1M"),
    (5_000_000, "1M-5M"),
]
VALUE_BAND_TOP = "5M+"

NO_DUE_DATE = "No Date"
OVERDUE = "Overdue"
# Upper bounds (inclusive, in days from today) of the due-date bands.
DUE_DATE_BANDS: List[tuple[int, str]] = [
    (30, "Next 30 days"),
    (90, "Next 90 days"),
    (180, "Next 6 months"),
    (365, "Next 12 months"),
]
DUE_DATE_BAND_TOP = "More than 1 year"

# The four dimensions Phase 1 of the sampler guarantees coverage for, in order.
MAIN_DIMENSIONS = ("region", "flow_type", "status", "responsible_area")


def category_of(value: Optional[str]) -> str:
    """Return the category for a raw field value, using the sentinel for blanks."""
    if value is None:
        return SENTINEL
    text = str(value).strip()
    return text if text else SENTINEL


def dimension_value(contract: ContractRecord, dimension: str) -> str:
    return category_of(getattr(contract, dimension))


def value_range(value: Optional[float]) -> str:
    amount = value or 0
    for upper, label in VALUE_BANDS:
        if amount <= upper:
            return label
    return VALUE_BAND_TOP


def days_until(due: date, today: date) -> int:
    return (due - today).days


def due_date_range(due: Optional[date], today: Optional[date] = None) -> str:
    if due is None:
        return NO_DUE_DATE
    days = days_until(due, today or date.today())
    if days < 0:
        return OVERDUE
    for upper, label in DUE_DATE_BANDS:
        if days <= upper:
            return label
    return DUE_DATE_BAND_TOP


def group_by(
    contracts: Iterable[ContractRecord], key: Callable[[ContractRecord], str]
) -> Dict[str, List[ContractRecord]]:
    """Group contracts by `key(contract)`, keeping first-seen key order."""
    groups: Dict[str, List[ContractRecord]] = {}
    for contract in contracts:
        groups.setdefault(key(contract), []).append(contract)
    return groups


@dataclass
class DiversityAnalysis:
    """Contracts grouped by each of the eight descriptive dimensions."""

    regions: Dict[str, List[ContractRecord]] = field(default_factory=dict)
    flow_types: Dict[str, List[ContractRecord]] = field(default_factory=dict)
    statuses: Dict[str, List[ContractRecord]] = field(default_factory=dict)
    areas: Dict[str, List[ContractRecord]] = field(default_factory=dict)
    value_ranges: Dict[str, List[ContractRecord]] = field(default_factory=dict)
    due_date_ranges: Dict[str, List[ContractRecord]] = field(default_factory=dict)
    risk_levels: Dict[str, List[ContractRecord]] = field(default_factory=dict)
    suppliers: Dict[str, List[ContractRecord]] = field(default_factory=dict)

    def main_categories(self) -> List[Dict[str, List[ContractRecord]]]:
        """Groupings Phase 1 walks through, in MAIN_DIMENSIONS order."""
        return [self.regions, self.flow_types, self.statuses, self.areas]

    def category_counts(self) -> Dict[str, Dict[str, int]]:
        return {
            name: {category: len(members) for category, members in groups.items()}
            for name, groups in vars(self).items()
        }


def analyze_diversity(
    contracts: List[ContractRecord], today: Optional[date] = None
) -> DiversityAnalysis:
    today = today or date.today()
    return DiversityAnalysis(
        regions=group_by(contracts, lambda c: dimension_value(c, "region")),
        flow_types=group_by(contracts, lambda c: dimension_value(c, "flow_type")),
        statuses=group_by(contracts, lambda c: dimension_value(c, "status")),
        areas=group_by(contracts, lambda c: dimension_value(c, "responsible_area")),
        value_ranges=group_by(contracts, lambda c: value_range(c.contract_value)),
        due_date_ranges=group_by(contracts, lambda c: due_date_range(c.due_date, today)),
        risk_levels=group_by(contracts, lambda c: dimension_value(c, "risk_level")),
        suppliers=group_by(contracts, lambda c: dimension_value(c, "supplier")),
    )


__all__ = [
    "DUE_DATE_BANDS",
    "DiversityAnalysis",
    "MAIN_DIMENSIONS",
    "NO_DUE_DATE",
    "OVERDUE",
    "SENTINEL",
    "VALUE_BANDS",
    "analyze_diversity",
    "category_of",
    "days_until",
    "dimension_value",
    "due_date_range",
    "group_by",
    "value_range",
]
