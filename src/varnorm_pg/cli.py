"""varnorm-pg: normalized variant import CLI."""

import asyncio
import logging
import os
from contextlib import ExitStack
from pathlib import Path
from typing import Annotated
from urllib.parse import urlparse, urlunparse

import asyncpg
import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import ConfigValidationError, ImportConfig, load_config, validate_config
from .importers import (
    ClinvarHeaderError,
    ClinvarImporter,
    ExacImporter,
    ImportStats,
    ThousandGenomesImporter,
)
from .models import VariantKey
from .normalizer import VariantNormalizer
from .reference import IndexedReference, ReferenceLookupError
from .session import DatabaseSession
from .sv import (
    AmbiguousCallerError,
    MaelstromCoverageReader,
    SvGenotypeExtractor,
    UnsupportedCallerError,
)
from .vcf_parser import Region, RegionParseError

PASSWORD_ENV_VAR = "VARNORM_PG_DB_PASSWORD"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def version_callback(value: bool) -> None:
    if value:
        print(__version__)
        raise typer.Exit()


app = typer.Typer(
    name="varnorm-pg",
    help="Import normalized population variants into PostgreSQL and extract SV genotypes",
)
console = Console()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", callback=version_callback, is_eager=True, help="Show version and exit"
        ),
    ] = None,
) -> None:
    pass


def setup_logging(verbose: bool, quiet: bool, log_level: str | None = None) -> None:
    """Configure logging based on verbosity flags."""
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    elif log_level:
        level = getattr(logging, log_level.upper())
    else:
        level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")
    logging.getLogger("varnorm_pg").setLevel(level)


def _add_log_file(log_file: Path) -> None:
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logging.getLogger("varnorm_pg").addHandler(file_handler)


def _with_password(url: str, password: str) -> str:
    parsed = urlparse(url)
    user_part = parsed.username or "postgres"
    netloc = f"{user_part}:{password}@{parsed.hostname}"
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse(
        (parsed.scheme, netloc, parsed.path, parsed.params, parsed.query, parsed.fragment)
    )


def _build_database_url(db_url: str | None = None) -> str | None:
    """Resolve the database URL.

    Priority (highest to lowest):
        1. The --db option
        2. POSTGRES_URL environment variable
        3. PG* environment variables

    A password in VARNORM_PG_DB_PASSWORD is added to URLs that carry none.
    """
    logger = logging.getLogger(__name__)
    password = os.environ.get(PASSWORD_ENV_VAR)

    url = db_url or os.environ.get("POSTGRES_URL")
    if url:
        if password and not urlparse(url).password:
            logger.info("Using database URL with password from %s", PASSWORD_ENV_VAR)
            return _with_password(url, password)
        return url

    host = os.environ.get("PGHOST")
    if not host:
        return None

    port = int(os.environ.get("PGPORT", "5432"))
    user = os.environ.get("PGUSER", "postgres")
    database = os.environ.get("PGDATABASE", "variants")
    password = password or os.environ.get("PGPASSWORD")
    if password:
        return f"postgresql://{user}:{password}@{host}:{port}/{database}"
    return f"postgresql://{user}@{host}:{port}/{database}"


def _print_stats(name: str, stats: ImportStats) -> None:
    console.print(
        f"[green]✓[/green] {name}: {stats.rows_written:,} rows from "
        f"{stats.records_read:,} records ({stats.alleles_skipped:,} alleles skipped)"
    )


async def _run_imports(
    db_url: str,
    reference: IndexedReference,
    config: ImportConfig,
    exac_path: Path | None,
    thousand_genomes_paths: list[Path],
    clinvar_paths: list[Path],
    region: Region | None,
    quiet: bool,
) -> None:
    normalizer = VariantNormalizer(reference)
    async with DatabaseSession(db_url) as session:
        if exac_path is not None:
            stats = await ExacImporter(session, normalizer, config).run([exac_path], region)
            if not quiet:
                _print_stats("ExAC", stats)

        if thousand_genomes_paths:
            importer = ThousandGenomesImporter(session, normalizer, config)
            stats = await importer.run(thousand_genomes_paths)
            if not quiet:
                _print_stats("1000 Genomes", stats)

        if clinvar_paths:
            importer = ClinvarImporter(session, config.max_allele_length)
            stats = await importer.run(clinvar_paths)
            if not quiet:
                _print_stats("ClinVar", stats)


@app.command("init-db")
def init_db(
    ref_path: Annotated[
        Path, typer.Option("--ref-path", help="Indexed reference FASTA (.fa with .fai)")
    ],
    db_url: Annotated[
        str | None,
        typer.Option("--db", "-d", help="PostgreSQL URL (omit to use environment variables)"),
    ] = None,
    exac_path: Annotated[
        Path | None, typer.Option("--exac-path", help="ExAC VCF to import")
    ] = None,
    thousand_genomes_paths: Annotated[
        list[Path] | None,
        typer.Option(
            "--thousand-genomes-path", help="1000 Genomes VCF to import (repeatable)"
        ),
    ] = None,
    clinvar_paths: Annotated[
        list[Path] | None,
        typer.Option("--clinvar-path", help="ClinVar TSV to import (repeatable)"),
    ] = None,
    region: Annotated[
        str | None,
        typer.Option("--region", help="Restrict the ExAC import to CHR:START-END"),
    ] = None,
    release: Annotated[
        str | None, typer.Option("--release", help="Genome release label, e.g. GRCh37")
    ] = None,
    config_file: Annotated[
        Path | None, typer.Option("--config", "-c", help="TOML configuration file")
    ] = None,
    log_file: Annotated[Path | None, typer.Option("--log", help="Write log to file")] = None,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
) -> None:
    """Recreate and populate the population frequency tables.

    Each configured source is imported in turn: its table is dropped and
    created, filled from the input files and then indexed.
    """
    try:
        if config_file:
            config = load_config(config_file, overrides={"release": release})
        else:
            overrides = {"release": release} if release else {}
            validate_config(overrides)
            config = ImportConfig(**overrides)
    except (FileNotFoundError, ConfigValidationError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    setup_logging(verbose, quiet, config.log_level)
    if log_file:
        _add_log_file(log_file)

    thousand_genomes_paths = thousand_genomes_paths or []
    clinvar_paths = clinvar_paths or []
    if exac_path is None and not thousand_genomes_paths and not clinvar_paths:
        console.print("[red]Error: Nothing to import, pass at least one source path[/red]")
        raise typer.Exit(1)

    for path in [ref_path, exac_path, *thousand_genomes_paths, *clinvar_paths]:
        if path is not None and not path.exists():
            console.print(f"[red]Error: File not found: {path}[/red]")
            raise typer.Exit(1)

    parsed_region = None
    if region:
        if exac_path is None:
            console.print("[yellow]Warning: --region only applies to the ExAC import[/yellow]")
        try:
            parsed_region = Region.parse(region)
        except RegionParseError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1) from None

    resolved_db_url = _build_database_url(db_url)
    if resolved_db_url is None:
        console.print("[red]Error: No database given, use --db or set POSTGRES_URL[/red]")
        raise typer.Exit(1)

    try:
        with IndexedReference(ref_path) as reference:
            asyncio.run(
                _run_imports(
                    resolved_db_url,
                    reference,
                    config,
                    exac_path,
                    thousand_genomes_paths,
                    clinvar_paths,
                    parsed_region,
                    quiet,
                )
            )
    except (ReferenceLookupError, ClinvarHeaderError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None
    except (OSError, asyncpg.PostgresError) as e:
        console.print(f"[red]Database error: {e}[/red]")
        raise typer.Exit(1) from None
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    if not quiet:
        console.print("[green]✓[/green] Database initialized")


def _parse_coverage_option(values: list[str]) -> dict[str, Path]:
    coverage = {}
    for value in values:
        sample, sep, path = value.partition("=")
        if not sample or not sep or not path:
            raise typer.BadParameter(f"Expected SAMPLE=PATH, got {value!r}")
        coverage[sample] = Path(path)
    return coverage


@app.command("extract-sv-genotypes")
def extract_sv_genotypes(
    vcf_path: Path = typer.Argument(..., help="Structural-variant VCF"),
    output: Annotated[Path, typer.Option("--output", "-o", help="Output TSV file")] = Path(
        "sv_genotypes.tsv"
    ),
    coverage: Annotated[
        list[str] | None,
        typer.Option("--coverage", help="Per-sample coverage VCF as SAMPLE=PATH (repeatable)"),
    ] = None,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
) -> None:
    """Detect the SV caller of a VCF and write uniform per-sample genotypes."""
    setup_logging(verbose, quiet)

    if not vcf_path.exists():
        console.print(f"[red]Error: VCF file not found: {vcf_path}[/red]")
        raise typer.Exit(1)

    coverage_paths = _parse_coverage_option(coverage or [])

    try:
        with ExitStack() as stack:
            coverage_sources = {
                sample: stack.enter_context(MaelstromCoverageReader(path))
                for sample, path in coverage_paths.items()
            }
            extractor = SvGenotypeExtractor(vcf_path, coverage_sources)
            count = extractor.write_tsv(output)
    except (UnsupportedCallerError, AmbiguousCallerError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    if not quiet:
        console.print(
            f"[green]✓[/green] {extractor.caller_support.sv_caller.name} "
            f"({extractor.caller_version}): wrote {count:,} calls to {output}"
        )


def _parse_variant(value: str) -> VariantKey:
    parts = value.split(":")
    if len(parts) != 4:
        raise typer.BadParameter(f"Expected CHROM:POS:REF:ALT, got {value!r}")
    chrom, pos, ref, alt = parts
    try:
        position = int(pos.replace(",", ""))
    except ValueError:
        raise typer.BadParameter(f"Invalid position in {value!r}") from None
    if position < 1:
        raise typer.BadParameter(f"Position must be 1-based, got {position}")
    return VariantKey(chrom, position - 1, ref, alt)


@app.command()
def normalize(
    variant: str = typer.Argument(..., help="Variant as CHROM:POS:REF:ALT (1-based POS)"),
    ref_path: Path = typer.Option(..., "--ref", help="Indexed reference FASTA"),
    insertion: bool = typer.Option(
        False, "--insertion", help="Keep the leftmost base as in the population tables"
    ),
) -> None:
    """Print the canonical form of a single variant."""
    key = _parse_variant(variant)

    try:
        with IndexedReference(ref_path) as reference:
            normalizer = VariantNormalizer(reference)
            if insertion:
                result = normalizer.normalize_insertion(key)
            else:
                result = normalizer.normalize_variant(key)
    except (ReferenceLookupError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    table = Table(show_header=True)
    table.add_column("")
    table.add_column("chrom")
    table.add_column("pos")
    table.add_column("ref")
    table.add_column("alt")
    for label, v in (("input", key), ("normalized", result)):
        table.add_row(label, v.chrom, str(v.pos + 1), v.ref or "-", v.alt or "-")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
