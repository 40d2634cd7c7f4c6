"""
Domain package for ContractDesk.

Exports the contract record, filter and analysis models used across the
repository, sampler, pipeline and CLI. Keep this package focused on data
definitions and validation concerns.
"""

from contractdesk.domain.analysis import (
    AnalysisResult,
    BatchAnalysisResult,
    ChunkAnalysis,
    ContractAnalysis,
    ExtractedFields,
    ParseError,
    ParseResult,
)
from contractdesk.domain.models import (
    ContractFile,
    ContractFilter,
    ContractRecord,
    StorageFile,
)

__all__ = [
    "AnalysisResult",
    "BatchAnalysisResult",
    "ChunkAnalysis",
    "ContractAnalysis",
    "ContractFile",
    "ContractFilter",
    "ContractRecord",
    "ExtractedFields",
    "ParseError",
    "ParseResult",
    "StorageFile",
]
