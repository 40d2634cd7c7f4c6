"""
ContractDesk - contract management backend.

This package provides the pieces behind a contract-management dashboard:

- Filtered contract listings from Postgres
- A representative sampler that covers every category of contract
- Dashboard breakdowns by value, due date, risk and payment status
- AI contract analysis of PDF documents through the Gemini API
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
from contractdesk.config import Settings, get_settings
from contractdesk.domain.models import ContractFilter, ContractRecord
from contractdesk.pipeline import ContractAnalysisService, sample_contracts
from contractdesk.sampling.sampler import RepresentativeSampler, select_representative_sample
from contractdesk.utils.logging import configure_logging, get_logger
from contractdesk.utils.profiler import ProfileStats, profile_block

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "ContractFilter",
    "ContractRecord",
    # Sampling
    "RepresentativeSampler",
    "select_representative_sample",
    # Analysis
    "ContractAnalysisService",
    "sample_contracts",
    # Logging
    "configure_logging",
    "get_logger",
    # Profiling
    "ProfileStats",
    "profile_block",
]
