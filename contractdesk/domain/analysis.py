"""
Analysis result models.

The LLM answers in camelCase JSON (`keyTerms`, `riskAnalysis`, ...); the
models accept those keys through aliases and expose snake_case attributes.
Missing or null keys fall back to defaults so a partially filled answer still
parses.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator

NOT_SPECIFIED = "Not specified"
SUMMARY_UNAVAILABLE = "Summary not available"

_MODEL_CONFIG = {"populate_by_name": True, "extra": "ignore"}


class _AnswerModel(BaseModel):
    """Base for models parsed from LLM answers; a null field takes its default."""

    model_config = _MODEL_CONFIG

    @model_validator(mode="before")
    @classmethod
    def _nulls_take_defaults(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class KeyTerms(_AnswerModel):
    parties: List[str] = Field(default_factory=list)
    value: str = NOT_SPECIFIED
    start_date: str = Field(NOT_SPECIFIED, alias="startDate")
    end_date: str = Field(NOT_SPECIFIED, alias="endDate")
    duration: str = NOT_SPECIFIED

    @field_validator("value", "start_date", "end_date", "duration", mode="before")
    @classmethod
    def _text_or_default(cls, value: Any) -> Any:
        if value is None or value == "":
            return NOT_SPECIFIED
        if isinstance(value, (int, float)):
            return str(value)
        return value


class RiskAnalysis(_AnswerModel):
    high_risk: List[str] = Field(default_factory=list, alias="highRisk")
    medium_risk: List[str] = Field(default_factory=list, alias="mediumRisk")
    low_risk: List[str] = Field(default_factory=list, alias="lowRisk")

    @property
    def level(self) -> Literal["high", "medium", "low"]:
        if self.high_risk:
            return "high"
        if self.medium_risk:
            return "medium"
        return "low"


class Clauses(_AnswerModel):
    payment: List[str] = Field(default_factory=list)
    termination: List[str] = Field(default_factory=list)
    liability: List[str] = Field(default_factory=list)
    other: List[str] = Field(default_factory=list)


class ContractAnalysis(_AnswerModel):
    """Structured analysis of a whole contract."""

    summary: str = SUMMARY_UNAVAILABLE
    key_terms: KeyTerms = Field(default_factory=KeyTerms, alias="keyTerms")
    risk_analysis: RiskAnalysis = Field(default_factory=RiskAnalysis, alias="riskAnalysis")
    clauses: Clauses = Field(default_factory=Clauses)
    recommendations: List[str] = Field(default_factory=list)
    score: int = Field(0, ge=0, le=100)

    @field_validator("summary", mode="before")
    @classmethod
    def _summary_or_default(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return SUMMARY_UNAVAILABLE
        return value

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> Any:
        if value is None or value == "":
            return 0
        try:
            return max(0, min(100, round(float(value))))
        except (TypeError, ValueError):
            return 0

    @classmethod
    def fallback(cls, message: str) -> "ContractAnalysis":
        """Degraded record used when an analysis cannot be produced or parsed."""
        failed = "Analysis failed"
        return cls(
            summary=f"Analysis error: {message}",
            key_terms=KeyTerms(
                value=failed, start_date=failed, end_date=failed, duration=failed
            ),
            risk_analysis=RiskAnalysis(
                high_risk=[f"Analysis could not be completed: {message}"]
            ),
            recommendations=["Review the document and run the analysis again"],
            score=0,
        )


class ChunkRisks(_AnswerModel):
    high: List[str] = Field(default_factory=list)
    medium: List[str] = Field(default_factory=list)
    low: List[str] = Field(default_factory=list)


class ChunkAnalysis(_AnswerModel):
    """Answer to the per-section prompt."""

    section: str = ""
    key_points: List[str] = Field(default_factory=list, alias="keyPoints")
    risks: ChunkRisks = Field(default_factory=ChunkRisks)
    values: List[str] = Field(default_factory=list)
    dates: List[str] = Field(default_factory=list)
    parties: List[str] = Field(default_factory=list)
    incomplete: bool = False
    notes: str = ""


class ExtractedFields(BaseModel):
    """Database-ready fields extracted from a contract's text."""

    supplier: str = ""
    contracting_party: str = ""
    flow_type: str = ""
    contract_value: float = 0.0
    payment_value: float = 0.0
    installments: int = 0
    state: str = ""
    city: str = ""
    due_date: str = ""
    installment_due_dates: List[str] = Field(default_factory=list)
    responsible_area: str = ""
    fine: float = 0.0

    model_config = _MODEL_CONFIG

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            location = data.get("location")
            if isinstance(location, dict):
                data = {**data, "state": location.get("state"), "city": location.get("city")}
            return {key: value for key, value in data.items() if value is not None}
        return data


class AnalysisResult(BaseModel):
    contract_id: str
    file_name: str
    analysis: ContractAnalysis
    processing_time_seconds: float = 0.0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchAnalysisResult(BaseModel):
    results: List[AnalysisResult] = Field(default_factory=list)
    total_processing_time_seconds: float = 0.0
    success_count: int = 0
    error_count: int = 0
    summary: str = ""


T = TypeVar("T")


@dataclass(frozen=True)
class ParseError:
    message: str
    raw_text: str = ""


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """
    Either a parsed value or a `ParseError`, never both.

    Callers decide what a failure means: the analysis pipeline substitutes
    `ContractAnalysis.fallback`, field extraction turns it into an error.
    """

    value: Optional[T] = None
    error: Optional[ParseError] = None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, message: str, raw_text: str = "") -> "ParseResult[T]":
        return cls(error=ParseError(message=message, raw_text=raw_text))

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        return self.value if self.value is not None else default


def to_payload(model: BaseModel) -> Dict[str, Any]:
    """Serialise a model for JSON output, using the external (camelCase) keys."""
    return model.model_dump(mode="json", by_alias=True)


__all__ = [
    "AnalysisResult",
    "BatchAnalysisResult",
    "ChunkAnalysis",
    "Clauses",
    "ContractAnalysis",
    "ExtractedFields",
    "KeyTerms",
    "NOT_SPECIFIED",
    "ParseError",
    "ParseResult",
    "RiskAnalysis",
    "to_payload",
]
