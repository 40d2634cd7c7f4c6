"""
Parsing of JSON answers embedded in free-form LLM text.

Models often wrap the JSON in a ```json fence or surround it with prose.
`extract_json_text` finds the object; the `parse_*` functions validate it
into a model and report failure through `ParseResult` instead of raising.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from contractdesk.domain.analysis import (
    ChunkAnalysis,
    ContractAnalysis,
    ExtractedFields,
    ParseResult,
)
from contractdesk.utils.logging import get_logger

log = get_logger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_OUTER_OBJECT = re.compile(r"\{[\s\S]*\}")

M = TypeVar("M", bound=BaseModel)


def extract_json_text(text: str) -> Optional[str]:
    """Return the JSON object text inside `text`, or None when there is none."""
    if not text or not text.strip():
        return None
    fenced = _FENCED_JSON.search(text)
    if fenced and fenced.group(1).lstrip().startswith("{"):
        return fenced.group(1)
    match = _OUTER_OBJECT.search(text)
    return match.group(0) if match else None


def load_json_object(text: str) -> ParseResult[Dict[str, Any]]:
    candidate = extract_json_text(text)
    if candidate is None:
        return ParseResult.failure("No JSON object found in response", raw_text=text)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        return ParseResult.failure(f"Invalid JSON in response: {exc.msg}", raw_text=text)
    if not isinstance(data, dict):
        return ParseResult.failure("Response JSON is not an object", raw_text=text)
    return ParseResult.success(data)


def _parse_model(text: str, model: Type[M]) -> ParseResult[M]:
    loaded = load_json_object(text)
    if not loaded.ok:
        log.warning(
            "Could not parse LLM response",
            extra={"model": model.__name__, "error": loaded.error.message},
        )
        return ParseResult(error=loaded.error)
    try:
        return ParseResult.success(model.model_validate(loaded.value))
    except ValidationError as exc:
        log.warning(
            "LLM response did not match the expected shape",
            extra={"model": model.__name__, "errors": exc.error_count()},
        )
        return ParseResult.failure(
            f"Unexpected response shape: {exc.error_count()} error(s)", raw_text=text
        )


def parse_analysis(text: str) -> ParseResult[ContractAnalysis]:
    return _parse_model(text, ContractAnalysis)


def parse_chunk_analysis(text: str) -> ParseResult[ChunkAnalysis]:
    return _parse_model(text, ChunkAnalysis)


def parse_extracted_fields(text: str) -> ParseResult[ExtractedFields]:
    return _parse_model(text, ExtractedFields)


__all__ = [
    "extract_json_text",
    "load_json_object",
    "parse_analysis",
    "parse_chunk_analysis",
    "parse_extracted_fields",
]
