"""
Synthetic contract generation and loading script for ContractDesk.

Generates deterministic pseudo-random contracts, writes them as CSV, and
loads them into `public.contracts` with Postgres COPY. A share of every
descriptive column is left blank so the sampler's "Not Informed" category
shows up in realistic data.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from datetime import date, timedelta
from pathlib import Path

import typer

from contractdesk.infrastructure.db_factory import build_dsn, connect

app = typer.Typer(help="Generate synthetic contracts and load into Postgres (CSV + COPY).")

COLUMNS = [
    "id",
    "supplier",
    "flow_type",
    "contract_value",
    "payment_value",
    "region",
    "state",
    "city",
    "signed_date",
    "due_date",
    "payment_date",
    "responsible_area",
    "status",
    "priority",
    "risk_level",
    "owner",
    "document_url",
]

FLOW_TYPES = ["RE", "Real State", "FI", "Proposta", "Engenharia", "RC"]
LOCATIONS = {
    "Sudeste": [("SP", "São Paulo"), ("RJ", "Rio de Janeiro"), ("MG", "Belo Horizonte")],
    "Sul": [("RS", "Porto Alegre"), ("PR", "Curitiba"), ("SC", "Florianópolis")],
    "Nordeste": [("BA", "Salvador"), ("PE", "Recife")],
    "Norte": [("AM", "Manaus")],
    "Centro-Oeste": [("GO", "Goiânia")],
}
STATUSES = ["paid", "pending", "overdue", "processing"]
AREAS = ["Jurídico", "Financeiro", "Engenharia", "Operações", "Compras"]
PRIORITIES = ["Alta", "Média", "Baixa"]
RISK_LEVELS = ["Alto", "Médio", "Baixo"]
SUPPLIERS = [
    "Tech Solutions Ltda",
    "Telecom Services SA",
    "Digital Networks Corp",
    "Fiber Optics Inc",
    "Cloud Services Ltd",
    "Security Systems Pro",
    "Construtora Horizonte",
    "Energia Verde SA",
]
OWNERS = ["Ana Souza", "Bruno Lima", "Carla Dias", "Diego Alves"]

BLANK_RATE = 0.08

COPY_SQL = (
    f"COPY public.contracts ({', '.join(COLUMNS)}) "
    "FROM STDIN WITH (FORMAT csv, HEADER TRUE)"
)


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _maybe(rng: random.Random, value: str) -> str:
    """Blank out `value` with probability BLANK_RATE (empty CSV field loads as NULL)."""
    return "" if rng.random() < BLANK_RATE else value


def _contract_value(rng: random.Random) -> float:
    # Log-uniform between 1k and 20M so every value band is populated.
    return round(10 ** rng.uniform(3, 7.3), 2)


def generate_contract_rows(rows: int, seed: int, today: date | None = None) -> list[list[str]]:
    rng = random.Random(seed)
    today = today or date.today()
    result: list[list[str]] = []
    for i in range(rows):
        region = rng.choice(list(LOCATIONS))
        state, city = rng.choice(LOCATIONS[region])
        value = _contract_value(rng)
        signed = today - timedelta(days=rng.randint(30, 900))
        due = today + timedelta(days=rng.randint(-180, 540))
        status = rng.choice(STATUSES)
        paid = status == "paid"
        number = f"CT-{signed.year}-{i + 1:05d}"
        result.append(
            [
                number,
                _maybe(rng, rng.choice(SUPPLIERS)),
                _maybe(rng, rng.choice(FLOW_TYPES)),
                _maybe(rng, f"{value:.2f}"),
                f"{value if paid else round(value * rng.uniform(0, 0.9), 2):.2f}",
                _maybe(rng, region),
                state,
                city,
                signed.isoformat(),
                _maybe(rng, due.isoformat()),
                (due - timedelta(days=rng.randint(0, 20))).isoformat() if paid else "",
                _maybe(rng, rng.choice(AREAS)),
                _maybe(rng, status),
                rng.choice(PRIORITIES),
                _maybe(rng, rng.choice(RISK_LEVELS)),
                rng.choice(OWNERS),
                f"contratos/{number}.pdf",
            ]
        )
    return result


def _write_csv(csv_path: Path, rows: list[list[str]]) -> None:
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(COLUMNS)
        writer.writerows(rows)


def _copy_into_db(dsn: str, csv_path: Path, truncate: bool) -> None:
    with connect(dsn) as conn:
        with conn.cursor() as cur:
            if truncate:
                cur.execute("TRUNCATE public.contracts")
            with cur.copy(COPY_SQL) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            conn.commit()


@app.command()
def main(
    rows: int = typer.Option(
        500,
        "--rows",
        "-r",
        help="Number of contracts to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    truncate: bool = typer.Option(
        False,
        "--truncate",
        help="Empty the contracts table before loading.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate synthetic contracts and optionally load them into Postgres using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="contractdesk_csv_"))
        csv_path = tmpdir / "contracts.csv"

    typer.echo(f"Generating {rows:,} contracts -> {csv_path} (seed={seed})")
    _write_csv(csv_path, generate_contract_rows(rows, seed))
    typer.echo(f"CSV generation completed in {time.perf_counter() - start:.2f}s")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    typer.echo("Loading CSV into Postgres via COPY...")
    _copy_into_db(_build_dsn(dsn), csv_path, truncate)
    typer.echo(f"Load completed in {time.perf_counter() - load_start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
