"""
AI package for ContractDesk.

Gemini client, prompt templates, JSON answer parsing, PDF text extraction
and text chunking used by the analysis pipeline.
"""

from contractdesk.ai.gemini import GeminiClient
from contractdesk.ai.parsing import (
    extract_json_text,
    parse_analysis,
    parse_chunk_analysis,
    parse_extracted_fields,
)
from contractdesk.ai.pdf_extraction import PdfExtractionResult, extract_text_from_pdf
from contractdesk.ai.text_preprocessing import ProcessedText, TextChunk, process_text

__all__ = [
    "GeminiClient",
    "PdfExtractionResult",
    "ProcessedText",
    "TextChunk",
    "extract_json_text",
    "extract_text_from_pdf",
    "parse_analysis",
    "parse_chunk_analysis",
    "parse_extracted_fields",
    "process_text",
]
