"""
Domain models for ContractDesk.

`ContractRecord` mirrors a row of the `contracts` table (see `db/init.sql`).
Every descriptive column is nullable in practice, so every field except the
identifier is optional. The camelCase aliases let records built by the
dashboard front end (`flowType`, `dueDate`, ...) validate unchanged.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

DueDatePreset = Literal["overdue", "next7days", "next30days", "30-60", "60-90", "custom"]

DEFAULT_VALUE_RANGE: Tuple[float, float] = (0.0, 10_000_000.0)


class ContractRecord(BaseModel):
    """
    Representation of a single row in the `contracts` table.
    """

    id: str = Field(..., description="Contract number; unique per record.")
    supplier: Optional[str] = Field(None, description="Supplier / contracted party.")
    flow_type: Optional[str] = Field(None, alias="flowType")
    contract_value: Optional[float] = Field(None, alias="contractValue")
    payment_value: Optional[float] = Field(None, alias="paymentValue")
    region: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    signed_date: Optional[date] = Field(None, alias="signedDate")
    due_date: Optional[date] = Field(None, alias="dueDate")
    payment_date: Optional[date] = Field(None, alias="paymentDate")
    responsible_area: Optional[str] = Field(None, alias="responsibleArea")
    status: Optional[str] = None
    priority: Optional[str] = None
    risk_level: Optional[str] = Field(None, alias="riskLevel")
    owner: Optional[str] = None
    document_url: Optional[str] = Field(None, alias="documentUrl")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("signed_date", "due_date", "payment_date", mode="before")
    @classmethod
    def _date_only(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            # Timestamps such as "2025-03-15T00:00:00Z" keep their date part.
            return value[:10]
        return value


class ContractFilter(BaseModel):
    """
    Filter parameters for the contract listing.

    Empty strings and empty lists mean "no constraint". The value range only
    constrains the query when it differs from `DEFAULT_VALUE_RANGE`.
    """

    flow_types: List[str] = Field(default_factory=list)
    contract_value: Tuple[float, float] = DEFAULT_VALUE_RANGE
    supplier_name: str = ""
    contract_number: str = ""
    region: str = ""
    states: List[str] = Field(default_factory=list)
    due_date: Optional[DueDatePreset] = None
    custom_start: Optional[date] = None
    custom_end: Optional[date] = None
    limit: int = Field(10, ge=1)

    @model_validator(mode="after")
    def _check_ranges(self) -> "ContractFilter":
        low, high = self.contract_value
        if low > high:
            raise ValueError("contract_value minimum must not exceed maximum")
        if self.custom_start and self.custom_end and self.custom_start > self.custom_end:
            raise ValueError("custom_start must not be after custom_end")
        return self


class StorageFile(BaseModel):
    """An object listed in a storage bucket."""

    name: str
    bucket: str
    path: str
    id: Optional[str] = None
    url: Optional[str] = None
    content_type: str = "application/octet-stream"
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ContractFile(BaseModel):
    """A contract document queued for analysis."""

    contract_id: str
    file_name: str
    file_path: str
    bucket_name: Optional[str] = None


__all__ = [
    "DEFAULT_VALUE_RANGE",
    "ContractFile",
    "ContractFilter",
    "ContractRecord",
    "DueDatePreset",
    "StorageFile",
]
