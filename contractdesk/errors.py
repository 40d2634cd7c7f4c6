"""
Exception hierarchy for ContractDesk.

The sampler and categorisation code never raise; everything here belongs to
the collaborators around them (database, storage, LLM, PDF parsing).
"""

from __future__ import annotations


class ContractDeskError(Exception):
    """Base class for all ContractDesk errors."""


class DataStoreError(ContractDeskError):
    """The contracts database could not be queried."""


class NoContractsError(ContractDeskError):
    """The data store returned no contracts to work with."""


class StorageError(ContractDeskError):
    """A storage bucket operation failed."""


class PdfExtractionError(ContractDeskError):
    """The document is not a readable PDF."""


class LLMError(ContractDeskError):
    """The LLM request failed permanently or returned an unusable payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientLLMError(LLMError):
    """Rate-limit, overload or network failure; safe to retry."""


__all__ = [
    "ContractDeskError",
    "DataStoreError",
    "LLMError",
    "NoContractsError",
    "PdfExtractionError",
    "StorageError",
    "TransientLLMError",
]
