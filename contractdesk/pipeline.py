"""
Contract analysis pipeline.

Runs a contract document end to end: download from storage, PDF text
extraction, cleaning and chunking, LLM analysis (directly for short
documents, per chunk plus consolidation for long ones) and parsing of the
JSON answer.

Usage:
    from contractdesk.pipeline import ContractAnalysisService

    service = ContractAnalysisService(llm=GeminiClient(llm_config()), storage=storage)
    contract_file = ContractFile(contract_id="1", file_name="a.pdf", file_path="a.pdf")
    result = service.analyze_contract(contract_file)
    print(result.analysis.score)

`analyze_contract` never raises: failures are reported through
`AnalysisResult.error` together with `ContractAnalysis.fallback`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Literal, Optional, Protocol, Sequence

from contractdesk.ai.parsing import parse_analysis, parse_chunk_analysis, parse_extracted_fields
from contractdesk.ai.pdf_extraction import extract_text_from_pdf
from contractdesk.ai.prompts import (
    chunk_analysis_prompt,
    consolidation_prompt,
    contract_analysis_prompt,
    field_extraction_prompt,
)
from contractdesk.ai.text_preprocessing import TextChunk, process_text
from contractdesk.domain.analysis import (
    AnalysisResult,
    BatchAnalysisResult,
    ContractAnalysis,
    ExtractedFields,
)
from contractdesk.domain.models import ContractFile, ContractRecord
from contractdesk.errors import ContractDeskError, LLMError, NoContractsError
from contractdesk.sampling.sampler import RepresentativeSampler
from contractdesk.utils.logging import get_logger
from contractdesk.utils.profiler import profile_block

log = get_logger(__name__)

MIN_TEXT_LENGTH = 100
# Field extraction only needs the opening pages.
EXTRACTION_TEXT_LIMIT = 30_000

Stage = Literal[
    "downloading", "extracting", "preprocessing", "analyzing", "consolidating", "completed", "error"
]


class AnalysisFailed(ContractDeskError):
    """A pipeline step produced nothing usable."""


class TextGenerator(Protocol):
    def generate_content(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> str: ...


class DocumentSource(Protocol):
    def download(self, file_path: str, bucket: Optional[str] = None) -> bytes: ...


class ContractSource(Protocol):
    def fetch_all(self) -> List[ContractRecord]: ...


@dataclass(frozen=True)
class AnalysisProgress:
    stage: Stage
    progress: int
    message: str
    current_file: Optional[str] = None
    current_chunk: Optional[int] = None
    total_chunks: Optional[int] = None


ProgressCallback = Callable[[AnalysisProgress], None]


class ContractAnalysisService:
    """
    Orchestrates document analysis against an LLM and a document store.

    Parameters
    ----------
    llm : TextGenerator
        Anything with `generate_content(prompt) -> str` (normally `GeminiClient`).
    storage : DocumentSource, optional
        Anything with `download(path, bucket) -> bytes` (normally
        `StorageClient`). Only needed by `analyze_contract`/`analyze_many`.
    """

    def __init__(self, llm: TextGenerator, storage: Optional[DocumentSource] = None) -> None:
        self.llm = llm
        self.storage = storage

    # ------------------------------------------------------------------
    # Single contract
    # ------------------------------------------------------------------

    def analyze_contract(
        self, contract_file: ContractFile, on_progress: Optional[ProgressCallback] = None
    ) -> AnalysisResult:
        def notify(stage: Stage, progress: int, message: str, **extra) -> None:
            if on_progress is not None:
                on_progress(
                    AnalysisProgress(
                        stage=stage,
                        progress=progress,
                        message=message,
                        current_file=contract_file.file_name,
                        **extra,
                    )
                )

        log.info(
            "[ANALYSIS START] %s",
            contract_file.file_name,
            extra={"contract_id": contract_file.contract_id},
        )
        error: Optional[str] = None
        with profile_block(f"analyze:{contract_file.file_name}") as stats:
            try:
                if self.storage is None:
                    raise AnalysisFailed("No document storage configured")
                notify("downloading", 10, f"Downloading {contract_file.file_name}")
                data = self.storage.download(contract_file.file_path, contract_file.bucket_name)

                notify("extracting", 25, "Extracting PDF text")
                text = extract_text_from_pdf(data).text

                notify("preprocessing", 40, "Cleaning and splitting text")
                answer = self._analyze_text(text, contract_file.contract_id, notify)

                notify("consolidating", 90, "Finalising analysis")
                parsed = parse_analysis(answer)
                if not parsed.ok:
                    raise AnalysisFailed(f"Could not parse analysis: {parsed.error.message}")
                analysis = parsed.value
            except Exception as exc:  # noqa: BLE001 - every failure becomes a result record
                log.exception(
                    "[ANALYSIS FAILED] %s",
                    contract_file.file_name,
                    extra={"contract_id": contract_file.contract_id},
                )
                error = str(exc) or type(exc).__name__
                analysis = ContractAnalysis.fallback(error)

        if error is None:
            notify("completed", 100, "Analysis completed")
            log.info(
                "[ANALYSIS SUCCESS] %s",
                contract_file.file_name,
                extra={
                    "contract_id": contract_file.contract_id,
                    "score": analysis.score,
                    **stats.as_dict(),
                },
            )
        else:
            notify("error", 0, f"Error: {error}")

        return AnalysisResult(
            contract_id=contract_file.contract_id,
            file_name=contract_file.file_name,
            analysis=analysis,
            processing_time_seconds=round(stats.duration_seconds, 3),
            error=error,
        )

    def _analyze_text(self, text: str, contract_id: str, notify: Callable[..., None]) -> str:
        if len(text) < MIN_TEXT_LENGTH:
            raise AnalysisFailed("Extracted text is too short or empty")

        processed = process_text(text, contract_id)
        chunks = processed.chunks
        if not chunks:
            raise AnalysisFailed("No chunks were produced from the text")

        notify(
            "analyzing",
            50,
            f"Analysing content ({len(chunks)} sections)",
            total_chunks=len(chunks),
        )
        if len(chunks) == 1:
            answer = self.llm.generate_content(contract_analysis_prompt(chunks[0].content))
        else:
            answer = self._analyze_by_chunks(chunks, notify)
        if not answer or not answer.strip():
            raise AnalysisFailed("Analysis returned an empty answer")
        return answer

    def _analyze_by_chunks(self, chunks: Sequence[TextChunk], notify: Callable[..., None]) -> str:
        total = len(chunks)
        chunk_answers: List[str] = []
        for index, chunk in enumerate(chunks):
            notify(
                "analyzing",
                50 + int(index / total * 30),
                f"Analysing section {index + 1} of {total}",
                current_chunk=index + 1,
                total_chunks=total,
            )
            answer = self.llm.generate_content(chunk_analysis_prompt(chunk.content, index, total))
            if not answer or not answer.strip():
                log.warning("Empty chunk analysis", extra={"chunk": chunk.id})
                continue
            parsed = parse_chunk_analysis(answer)
            if parsed.ok:
                chunk_answers.append(parsed.value.model_dump_json(by_alias=True))
            else:
                # Consolidation still reads free text.
                log.warning("Chunk analysis kept as raw text", extra={"chunk": chunk.id})
                chunk_answers.append(answer)

        if not chunk_answers:
            raise AnalysisFailed("Every section analysis came back empty")
        notify("consolidating", 85, "Consolidating section analyses")
        return self.llm.generate_content(consolidation_prompt(chunk_answers))

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def analyze_many(
        self, contract_files: Iterable[ContractFile], on_progress: Optional[ProgressCallback] = None
    ) -> BatchAnalysisResult:
        files = list(contract_files)
        total = len(files)
        log.info("Batch analysis started", extra={"files": total})

        results: List[AnalysisResult] = []
        with profile_block("analyze:batch") as stats:
            for position, contract_file in enumerate(files):
                callback = None
                if on_progress is not None:
                    callback = _batch_progress(on_progress, position, total)
                results.append(self.analyze_contract(contract_file, on_progress=callback))

        success_count = sum(1 for r in results if r.ok)
        batch = BatchAnalysisResult(
            results=results,
            total_processing_time_seconds=round(stats.duration_seconds, 3),
            success_count=success_count,
            error_count=len(results) - success_count,
            summary=batch_summary(results),
        )
        log.info(
            "Batch analysis finished",
            extra={"successes": batch.success_count, "errors": batch.error_count},
        )
        return batch

    # ------------------------------------------------------------------
    # Field extraction
    # ------------------------------------------------------------------

    def extract_fields(self, text: str) -> ExtractedFields:
        """
        Extract database-ready contract fields from document text.

        Raises
        ------
        LLMError
            When the model fails or its answer cannot be parsed.
        """
        if not text or not text.strip():
            raise LLMError("No text to extract fields from")
        answer = self.llm.generate_content(
            field_extraction_prompt(text[:EXTRACTION_TEXT_LIMIT]), temperature=0.1
        )
        parsed = parse_extracted_fields(answer)
        if not parsed.ok:
            raise LLMError(f"Could not parse extracted fields: {parsed.error.message}")
        log.info("Contract fields extracted", extra={"supplier": parsed.value.supplier})
        return parsed.value


def _batch_progress(callback: ProgressCallback, position: int, total: int) -> ProgressCallback:
    def forward(progress: AnalysisProgress) -> None:
        overall = round(position / total * 100 + progress.progress / total)
        callback(
            AnalysisProgress(
                stage=progress.stage,
                progress=overall,
                message=f"[{position + 1}/{total}] {progress.message}",
                current_file=progress.current_file,
                current_chunk=progress.current_chunk,
                total_chunks=progress.total_chunks,
            )
        )

    return forward


def batch_summary(results: Sequence[AnalysisResult]) -> str:
    succeeded = [r for r in results if r.ok]
    failed = len(results) - len(succeeded)
    mean_score = sum(r.analysis.score for r in succeeded) / len(succeeded) if succeeded else 0
    return (
        f"Analysed {len(results)} contracts. "
        f"{len(succeeded)} succeeded, {failed} failed. "
        f"Mean score: {round(mean_score)}/100."
    )


def sample_contracts(repository: ContractSource, target_size: int) -> List[ContractRecord]:
    """
    Fetch every contract and return a representative sample of `target_size`.

    Raises
    ------
    NoContractsError
        When the data store holds no contracts.
    """
    contracts = repository.fetch_all()
    if not contracts:
        raise NoContractsError("No contracts available")
    sample = RepresentativeSampler().select(contracts, target_size)
    log.info(
        "Contracts sampled",
        extra={"population": len(contracts), "target_size": target_size, "selected": len(sample)},
    )
    return sample


__all__ = [
    "AnalysisProgress",
    "ContractAnalysisService",
    "batch_summary",
    "sample_contracts",
]
