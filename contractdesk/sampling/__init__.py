"""
Sampling package for ContractDesk.

Exports the representative sampler and the categorisation helpers it shares
with the dashboard breakdowns. Everything here is pure, in-memory code.
"""

from contractdesk.sampling.categories import (
    SENTINEL,
    DiversityAnalysis,
    analyze_diversity,
    category_of,
    due_date_range,
    value_range,
)
from contractdesk.sampling.sampler import (
    RepresentativeSampler,
    diversity_score,
    representative_score,
    select_representative_sample,
)

__all__ = [
    "SENTINEL",
    "DiversityAnalysis",
    "RepresentativeSampler",
    "analyze_diversity",
    "category_of",
    "diversity_score",
    "due_date_range",
    "representative_score",
    "select_representative_sample",
    "value_range",
]
