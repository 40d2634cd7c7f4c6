"""
Preprocessing of text extracted from PDF contracts.

Cleans extraction noise (page numbers, running headers, control characters)
and splits the result into chunks that fit the LLM context next to the
prompt. Token counts are estimated at four characters per token.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from contractdesk.utils.logging import get_logger

log = get_logger(__name__)

MAX_CHUNK_TOKENS = 1800
MIN_CHUNK_TOKENS = 200
CHARS_PER_TOKEN = 4

_HEADER_FOOTER_PATTERNS = [
    re.compile(r"p[áa]gina \d+ de \d+", re.IGNORECASE),
    re.compile(r"page \d+ of \d+", re.IGNORECASE),
    re.compile(r"^[ \t]*\d+[ \t]*/[ \t]*\d+[ \t]*$", re.MULTILINE),
    # Running headers only; confidentiality clauses are longer than this.
    re.compile(r"^[^\n]{0,40}confiden(?:tial|cial)[^\n]{0,40}$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^[^\n]{0,40}proprietary[^\n]{0,40}$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^[^\n]{0,40}copyright[^\n]{0,40}$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^[ \t]*\d+[ \t]*$", re.MULTILINE),
]
_CONTROL_CHARS = re.compile(r"[^\x20-\x7E\n\t\u00A0-\uFFFF]")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


@dataclass
class TextChunk:
    id: str
    content: str
    tokens: int
    start_index: int
    end_index: int
    contract_id: Optional[str] = None


@dataclass
class ProcessedText:
    original_text: str
    cleaned_text: str
    chunks: List[TextChunk] = field(default_factory=list)

    @property
    def metadata(self) -> dict:
        total = len(self.chunks)
        return {
            "original_length": len(self.original_text),
            "cleaned_length": len(self.cleaned_text),
            "total_chunks": total,
            "average_chunk_tokens": (
                round(sum(c.tokens for c in self.chunks) / total) if total else 0
            ),
            "estimated_tokens": estimate_tokens(self.cleaned_text),
        }


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def clean_extracted_text(raw_text: str) -> str:
    """
    Remove PDF extraction noise while keeping paragraph breaks.

    Lines are trimmed, runs of blank lines collapse to a single blank line
    (the paragraph separator used by `create_text_chunks`).
    """
    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+", " ", text)
    for pattern in _HEADER_FOOTER_PATTERNS:
        text = pattern.sub("", text)
    text = _CONTROL_CHARS.sub("", text)

    lines = [line.strip() for line in text.split("\n")]
    text = "\n".join(lines)
    text = re.sub(r"\n{3,}", "\n\n", text).strip()

    log.debug("Text cleaned", extra={"raw_chars": len(raw_text), "clean_chars": len(text)})
    return text


def _split_oversized(paragraph: str, max_tokens: int) -> Iterator[str]:
    """Yield pieces of a paragraph that exceeds `max_tokens`, sentence first."""
    max_chars = max_tokens * CHARS_PER_TOKEN
    current = ""
    for sentence in _SENTENCE_END.split(paragraph):
        sentence = sentence.strip()
        if not sentence:
            continue
        # A single sentence beyond the limit is cut at word boundaries.
        while len(sentence) > max_chars:
            if current:
                yield current
                current = ""
            cut = sentence.rfind(" ", 0, max_chars)
            cut = cut if cut > 0 else max_chars
            yield sentence[:cut].strip()
            sentence = sentence[cut:].strip()
        candidate = f"{current} {sentence}" if current else sentence
        if current and estimate_tokens(candidate) > max_tokens:
            yield current
            current = sentence
        else:
            current = candidate
    if current:
        yield current


def create_text_chunks(
    text: str, max_tokens: int = MAX_CHUNK_TOKENS, contract_id: Optional[str] = None
) -> List[TextChunk]:
    """
    Pack paragraphs into chunks of at most `max_tokens` estimated tokens.

    Paragraphs are never merged past the limit; a paragraph that alone
    exceeds it is split by sentences.
    """
    if not text or not text.strip():
        return []

    pieces: List[tuple[str, str]] = []  # (content, separator used before it)
    for paragraph in text.split("\n\n"):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        if estimate_tokens(paragraph) > max_tokens:
            pieces.extend((part, " ") for part in _split_oversized(paragraph, max_tokens))
        else:
            pieces.append((paragraph, "\n\n"))

    chunks: List[TextChunk] = []
    cursor = 0

    def _emit(content: str) -> None:
        nonlocal cursor
        start = text.find(content[:50], cursor)
        start = start if start >= 0 else cursor
        chunks.append(
            TextChunk(
                id=f"chunk_{len(chunks)}",
                content=content,
                tokens=estimate_tokens(content),
                start_index=start,
                end_index=start + len(content),
                contract_id=contract_id,
            )
        )
        cursor = start + len(content)

    current = ""
    for piece, separator in pieces:
        candidate = f"{current}{separator}{piece}" if current else piece
        if current and estimate_tokens(candidate) > max_tokens:
            _emit(current)
            current = piece
        else:
            current = candidate
    if current:
        _emit(current)

    log.debug("Text chunked", extra={"chunks": len(chunks), "max_tokens": max_tokens})
    return chunks


def process_text(raw_text: str, contract_id: Optional[str] = None) -> ProcessedText:
    """Clean `raw_text` and split it into chunks."""
    cleaned = clean_extracted_text(raw_text)
    processed = ProcessedText(
        original_text=raw_text,
        cleaned_text=cleaned,
        chunks=create_text_chunks(cleaned, MAX_CHUNK_TOKENS, contract_id),
    )
    log.info("Text processed", extra={"contract_id": contract_id, **processed.metadata})
    return processed


def validate_chunks(chunks: List[TextChunk]) -> bool:
    """True when every chunk sits inside the [MIN, MAX] token window."""
    return all(MIN_CHUNK_TOKENS <= chunk.tokens <= MAX_CHUNK_TOKENS for chunk in chunks)


__all__ = [
    "MAX_CHUNK_TOKENS",
    "MIN_CHUNK_TOKENS",
    "ProcessedText",
    "TextChunk",
    "clean_extracted_text",
    "create_text_chunks",
    "estimate_tokens",
    "process_text",
    "validate_chunks",
]
