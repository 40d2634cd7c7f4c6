from __future__ import annotations

import json
import sys
from datetime import date
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console

from contractdesk import analytics, reporter
from contractdesk.ai.gemini import GeminiClient
from contractdesk.ai.pdf_extraction import extract_text_from_pdf
from contractdesk.config import get_settings, llm_config, storage_config
from contractdesk.domain.analysis import to_payload
from contractdesk.domain.models import ContractFile, ContractFilter
from contractdesk.errors import (
    ContractDeskError,
    DataStoreError,
    LLMError,
    NoContractsError,
    PdfExtractionError,
    StorageError,
)
from contractdesk.infrastructure.repository import ContractRepository
from contractdesk.infrastructure.storage import StorageClient
from contractdesk.pipeline import (
    AnalysisProgress,
    ContractAnalysisService,
    sample_contracts,
)
from contractdesk.utils.logging import configure_logging

app = typer.Typer(help="ContractDesk contract management CLI.")
console = Console()


class LocalDocumentSource:
    """Serves documents from the local filesystem to the analysis pipeline."""

    def download(self, file_path: str, bucket: Optional[str] = None) -> bytes:
        try:
            return Path(file_path).read_bytes()
        except OSError as exc:
            raise StorageError(f"Cannot read {file_path}: {exc}") from exc


def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)


def _fail(message: str, code: int = 1) -> NoReturn:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(code=code)


def _print_progress(progress: AnalysisProgress) -> None:
    console.print(f"[dim]{progress.progress:>3}% {progress.stage}: {progress.message}[/dim]")


def _emit_json(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"storage={settings.storage_url} bucket={settings.storage_bucket} | "
        f"model={settings.gemini_model} key={'set' if settings.gemini_api_key else 'missing'} | "
        f"sample_size={settings.sample_size}"
    )


@app.command("list")
def list_contracts(
    flow_type: List[str] = typer.Option([], "--flow-type", "-f", help="Flow type (repeatable)."),
    supplier: str = typer.Option("", "--supplier", help="Supplier name contains."),
    number: str = typer.Option("", "--number", help="Contract number contains."),
    region: str = typer.Option("", "--region", help="Region contains."),
    state: List[str] = typer.Option([], "--state", help="State (repeatable, OR-ed)."),
    min_value: float = typer.Option(0.0, "--min-value"),
    max_value: float = typer.Option(10_000_000.0, "--max-value"),
    due: Optional[str] = typer.Option(
        None,
        "--due",
        help="Due date preset: overdue, next7days, next30days, 30-60, 60-90, custom.",
    ),
    due_from: Optional[str] = typer.Option(None, "--from", help="Custom range start (YYYY-MM-DD)."),
    due_to: Optional[str] = typer.Option(None, "--to", help="Custom range end (YYYY-MM-DD)."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Number of contracts."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """
    List contracts matching the given filters.
    """
    _setup()
    settings = get_settings()
    try:
        flt = ContractFilter(
            flow_types=flow_type,
            supplier_name=supplier,
            contract_number=number,
            region=region,
            states=state,
            contract_value=(min_value, max_value),
            due_date=due,
            custom_start=due_from,
            custom_end=due_to,
            limit=limit or settings.list_limit,
        )
    except ValueError as exc:
        _fail(f"Invalid filter: {exc}", code=2)

    try:
        contracts = ContractRepository().fetch_filtered(flt)
    except DataStoreError:
        _fail("No contracts available")

    if as_json:
        _emit_json([c.model_dump(mode="json") for c in contracts])
        return
    console.print(reporter.contracts_table(contracts))


@app.command()
def sample(
    size: Optional[int] = typer.Option(None, "--size", "-n", help="Sample size."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """
    Select a representative sample of contracts covering every category.
    """
    _setup()
    target = size if size is not None else get_settings().sample_size
    try:
        contracts = sample_contracts(ContractRepository(), target)
    except (DataStoreError, NoContractsError):
        _fail("No contracts available")

    if as_json:
        _emit_json([c.model_dump(mode="json") for c in contracts])
        return
    reporter.print_tables(
        [
            reporter.contracts_table(contracts, title="Representative sample"),
            reporter.coverage_table(contracts),
        ],
        console,
    )


@app.command()
def stats() -> None:
    """
    Show dashboard breakdowns for every contract.
    """
    _setup()
    try:
        contracts = ContractRepository().fetch_all()
    except DataStoreError:
        _fail("No contracts available")
    if not contracts:
        _fail("No contracts available")

    today = date.today()
    reporter.print_tables(
        [
            reporter.distribution_table("By flow type", analytics.count_by(contracts, "flow_type")),
            reporter.distribution_table("By region", analytics.count_by(contracts, "region")),
            reporter.distribution_table("By status", analytics.count_by(contracts, "status")),
            reporter.distribution_table(
                "By contract value", analytics.value_band_distribution(contracts)
            ),
            reporter.distribution_table(
                "By due date", analytics.due_date_distribution(contracts, today)
            ),
            reporter.distribution_table(
                "Payment status", analytics.payment_status_distribution(contracts, today)
            ),
        ],
        console,
    )


def _gemini_client() -> GeminiClient:
    try:
        return GeminiClient(llm_config())
    except LLMError as exc:
        _fail(str(exc))


def _report_analyses(
    files: List[ContractFile], service: ContractAnalysisService, as_json: bool
) -> None:
    progress = None if as_json else _print_progress
    if len(files) == 1:
        result = service.analyze_contract(files[0], on_progress=progress)
        if as_json:
            _emit_json(to_payload(result))
        else:
            console.print(reporter.analysis_table(result))
        if not result.ok:
            raise typer.Exit(code=1)
        return

    batch = service.analyze_many(files, on_progress=progress)
    if as_json:
        _emit_json(to_payload(batch))
    else:
        reporter.print_tables([reporter.batch_table(batch)], console)
        risks = analytics.risk_distribution(batch)
        console.print(reporter.distribution_table("Risk distribution", risks))
    if batch.success_count == 0:
        raise typer.Exit(code=1)


@app.command()
def analyze(
    paths: List[str] = typer.Argument(None, help="Document paths or public URLs in storage."),
    folder: Optional[str] = typer.Option(
        None, "--folder", help="Analyse every PDF listed under this storage folder."
    ),
    bucket: Optional[str] = typer.Option(None, "--bucket", help="Storage bucket."),
    contract_id: Optional[str] = typer.Option(
        None, "--contract-id", help="Contract id for a single document."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of tables."),
) -> None:
    """
    Analyse contract documents kept in object storage.
    """
    _setup()
    files: List[ContractFile] = []
    for path in paths or []:
        name = path.rsplit("/", 1)[-1]
        files.append(
            ContractFile(
                contract_id=contract_id if contract_id and len(paths) == 1 else Path(name).stem,
                file_name=name,
                file_path=path,
                bucket_name=bucket,
            )
        )

    with StorageClient(storage_config()) as storage, _gemini_client() as llm:
        if folder is not None:
            try:
                listed = storage.list_files(folder, bucket=bucket)
            except StorageError as exc:
                _fail(str(exc))
            files.extend(
                ContractFile(
                    contract_id=Path(f.name).stem,
                    file_name=f.name,
                    file_path=f.path,
                    bucket_name=f.bucket,
                )
                for f in listed
                if f.name.lower().endswith(".pdf")
            )
        if not files:
            _fail("No documents to analyse", code=2)

        _report_analyses(files, ContractAnalysisService(llm=llm, storage=storage), as_json)


@app.command("analyze-file")
def analyze_file(
    files: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Local PDF files."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of tables."),
) -> None:
    """
    Analyse local PDF contract files.
    """
    _setup()
    contract_files = [
        ContractFile(contract_id=path.stem, file_name=path.name, file_path=str(path))
        for path in files
    ]
    with _gemini_client() as llm:
        service = ContractAnalysisService(llm=llm, storage=LocalDocumentSource())
        _report_analyses(contract_files, service, as_json)


@app.command()
def extract(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local PDF file."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """
    Extract database-ready contract fields from a local PDF.
    """
    _setup()
    try:
        text = extract_text_from_pdf(file.read_bytes()).text
    except PdfExtractionError as exc:
        _fail(str(exc))
    with _gemini_client() as llm:
        try:
            fields = ContractAnalysisService(llm=llm).extract_fields(text)
        except LLMError as exc:
            _fail(str(exc))

    if as_json:
        _emit_json(fields.model_dump(mode="json"))
        return
    console.print(reporter.fields_table(fields))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
    except ContractDeskError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
