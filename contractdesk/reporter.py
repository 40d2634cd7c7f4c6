from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from contractdesk.domain.analysis import AnalysisResult, BatchAnalysisResult, ExtractedFields
from contractdesk.domain.models import ContractRecord
from contractdesk.sampling.categories import SENTINEL, analyze_diversity, category_of

RISK_STYLES = {"high": "bold red", "medium": "yellow", "low": "green"}


def _money(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return f"{value:,.2f}"


def _score_style(score: int) -> str:
    if score >= 70:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


def contracts_table(contracts: Sequence[ContractRecord], title: str = "Contracts") -> Table:
    table = Table(title=title, box=box.ROUNDED, caption=f"{len(contracts)} contract(s)")
    table.add_column("Contract", style="cyan", no_wrap=True)
    table.add_column("Supplier")
    table.add_column("Flow", style="blue")
    table.add_column("Region")
    table.add_column("Status")
    table.add_column("Area")
    table.add_column("Value", justify="right", style="magenta")
    table.add_column("Due date", justify="right")

    for contract in contracts:
        table.add_row(
            contract.id,
            category_of(contract.supplier),
            category_of(contract.flow_type),
            category_of(contract.region),
            category_of(contract.status),
            category_of(contract.responsible_area),
            _money(contract.contract_value),
            contract.due_date.isoformat() if contract.due_date else "-",
        )
    return table


def coverage_table(sample: Sequence[ContractRecord]) -> Table:
    """Categories covered by a sample for each main dimension."""
    analysis = analyze_diversity(list(sample))
    table = Table(title="Sample coverage", box=box.SIMPLE_HEAVY)
    table.add_column("Dimension", style="cyan")
    table.add_column("Categories", justify="right", style="magenta")
    table.add_column("Values")

    rows = {
        "Region": analysis.regions,
        "Flow type": analysis.flow_types,
        "Status": analysis.statuses,
        "Responsible area": analysis.areas,
        "Value range": analysis.value_ranges,
    }
    for name, groups in rows.items():
        labels = [label if label != SENTINEL else f"[dim]{label}[/dim]" for label in groups]
        table.add_row(name, str(len(groups)), ", ".join(labels))
    return table


def distribution_table(title: str, counts: Dict[str, int]) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("Category", style="cyan")
    table.add_column("Contracts", justify="right", style="magenta")
    for label, count in counts.items():
        table.add_row(label, str(count))
    return table


def analysis_table(result: AnalysisResult) -> Table:
    analysis = result.analysis
    title = f"Analysis: {result.file_name}"
    if result.error:
        title += " [red](failed)[/red]"
    table = Table(title=title, box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")

    level = analysis.risk_analysis.level
    table.add_row("Contract", result.contract_id)
    table.add_row("Summary", analysis.summary)
    style = _score_style(analysis.score)
    table.add_row("Score", f"[{style}]{analysis.score}/100[/{style}]")
    table.add_row("Risk", f"[{RISK_STYLES[level]}]{level}[/{RISK_STYLES[level]}]")
    table.add_row("Parties", ", ".join(analysis.key_terms.parties) or "-")
    table.add_row("Value", analysis.key_terms.value)
    table.add_row("Term", f"{analysis.key_terms.start_date} to {analysis.key_terms.end_date}")
    for label, items in (
        ("High risks", analysis.risk_analysis.high_risk),
        ("Medium risks", analysis.risk_analysis.medium_risk),
        ("Low risks", analysis.risk_analysis.low_risk),
        ("Recommendations", analysis.recommendations),
    ):
        if items:
            table.add_row(label, "\n".join(f"- {item}" for item in items))
    table.add_row("Time (s)", f"{result.processing_time_seconds:.1f}")
    return table


def batch_table(batch: BatchAnalysisResult) -> Table:
    table = Table(title="Batch analysis", box=box.ROUNDED, caption=batch.summary)
    table.add_column("Contract", style="cyan", no_wrap=True)
    table.add_column("File")
    table.add_column("Score", justify="right")
    table.add_column("Risk")
    table.add_column("Time (s)", justify="right", style="green")
    table.add_column("Error", style="red")

    # Best scores first; failures last.
    ordered = sorted(batch.results, key=lambda r: (r.ok, r.analysis.score), reverse=True)
    for result in ordered:
        level = result.analysis.risk_analysis.level
        table.add_row(
            result.contract_id,
            result.file_name,
            str(result.analysis.score) if result.ok else "-",
            level if result.ok else "-",
            f"{result.processing_time_seconds:.1f}",
            result.error or "",
        )
    return table


def fields_table(fields: ExtractedFields) -> Table:
    table = Table(title="Extracted fields", box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    for name, value in fields.model_dump().items():
        if isinstance(value, list):
            value = ", ".join(str(item) for item in value) or "-"
        elif isinstance(value, float):
            value = _money(value)
        table.add_row(name.replace("_", " ").capitalize(), str(value) if value != "" else "-")
    return table


def print_tables(tables: List[Table], console: Optional[Console] = None) -> None:
    console = console or Console()
    for table in tables:
        console.print(table)


__all__ = [
    "analysis_table",
    "batch_table",
    "contracts_table",
    "coverage_table",
    "distribution_table",
    "fields_table",
    "print_tables",
]
