"""
Dashboard breakdowns over contract records and analysis results.

All functions return plain `{label: count}` dicts. Distributions over fixed
bands list every band in band order, including empty ones; `count_by` keeps
first-seen order.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, Optional

from contractdesk.domain.analysis import AnalysisResult, BatchAnalysisResult
from contractdesk.domain.models import ContractRecord
from contractdesk.sampling.categories import (
    DUE_DATE_BAND_TOP,
    DUE_DATE_BANDS,
    NO_DUE_DATE,
    OVERDUE,
    VALUE_BAND_TOP,
    VALUE_BANDS,
    category_of,
    days_until,
    due_date_range,
    value_range,
)

PAYMENT_OVERDUE = "Overdue"
PAYMENT_DUE_SOON = "Due soon"
PAYMENT_ON_TIME = "On time"
DUE_SOON_DAYS = 30

RISK_LABELS = {"high": "High risk", "medium": "Medium risk", "low": "Low risk"}


def count_by(contracts: Iterable[ContractRecord], field: str) -> Dict[str, int]:
    """Count contracts per category of `field` (blanks count as the sentinel)."""
    counts: Dict[str, int] = {}
    for contract in contracts:
        key = category_of(getattr(contract, field))
        counts[key] = counts.get(key, 0) + 1
    return counts


def value_band_distribution(
    contracts: Iterable[ContractRecord], field: str = "contract_value"
) -> Dict[str, int]:
    counts = {label: 0 for _, label in VALUE_BANDS}
    counts[VALUE_BAND_TOP] = 0
    for contract in contracts:
        counts[value_range(getattr(contract, field))] += 1
    return counts


def due_date_distribution(
    contracts: Iterable[ContractRecord], today: Optional[date] = None
) -> Dict[str, int]:
    today = today or date.today()
    counts = {OVERDUE: 0, **{label: 0 for _, label in DUE_DATE_BANDS}, DUE_DATE_BAND_TOP: 0}
    counts[NO_DUE_DATE] = 0
    for contract in contracts:
        counts[due_date_range(contract.due_date, today)] += 1
    return counts


def risk_distribution(
    analyses: BatchAnalysisResult | Iterable[AnalysisResult],
) -> Dict[str, int]:
    """
    Count analyses by their most severe risk list.

    An analysis is high risk when it lists any high risk, otherwise medium
    when it lists any medium risk, otherwise low. Failed analyses are skipped.
    """
    results = analyses.results if isinstance(analyses, BatchAnalysisResult) else analyses
    counts = {label: 0 for label in RISK_LABELS.values()}
    for result in results:
        if not result.ok:
            continue
        counts[RISK_LABELS[result.analysis.risk_analysis.level]] += 1
    return counts


def payment_status(contract: ContractRecord, today: Optional[date] = None) -> str:
    if contract.due_date is None:
        return PAYMENT_ON_TIME
    days = days_until(contract.due_date, today or date.today())
    if days < 0:
        return PAYMENT_OVERDUE
    if days <= DUE_SOON_DAYS:
        return PAYMENT_DUE_SOON
    return PAYMENT_ON_TIME


def payment_status_distribution(
    contracts: Iterable[ContractRecord], today: Optional[date] = None
) -> Dict[str, int]:
    today = today or date.today()
    counts = {PAYMENT_ON_TIME: 0, PAYMENT_DUE_SOON: 0, PAYMENT_OVERDUE: 0}
    for contract in contracts:
        counts[payment_status(contract, today)] += 1
    return counts


__all__ = [
    "count_by",
    "due_date_distribution",
    "payment_status",
    "payment_status_distribution",
    "risk_distribution",
    "value_band_distribution",
]
