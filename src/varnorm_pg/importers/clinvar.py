"""ClinVar import from the MacArthur TSV files.

The TSV files are assumed to be normalized already, so rows are stored as they
are. A header that does not match ``EXPECTED_HEADER`` aborts the import before
any row is written.
"""

import csv
import gzip
import logging
from pathlib import Path
from typing import TextIO

from ..normalizer import is_normalized
from ..session import DatabaseSession
from .base import ImportStats
from .schema import ClinvarTableSchema

logger = logging.getLogger(__name__)

TABLE_NAME = "clinvar_var"

EXPECTED_HEADER = [
    "chrom",
    "pos",
    "ref",
    "alt",
    "start",
    "stop",
    "strand",
    "variation_type",
    "variation_id",
    "rcv",
    "scv",
    "allele_id",
    "symbol",
    "hgvs_c",
    "hgvs_p",
    "molecular_consequence",
    "clinical_significance",
    "clinical_significance_ordered",
    "pathogenic",
    "likely_pathogenic",
    "uncertain_significance",
    "likely_benign",
    "benign",
    "review_status",
    "review_status_ordered",
    "last_evaluated",
    "all_submitters",
    "submitters_ordered",
    "all_traits",
    "all_pmids",
    "inheritance_modes",
    "age_of_onset",
    "prevalence",
    "disease_mechanism",
    "origin",
    "xrefs",
    "dates_ordered",
]


class ClinvarHeaderError(Exception):
    """Raised when a ClinVar TSV header does not match the expected columns."""

    pass


def check_header(header: list[str]) -> None:
    """Raise ClinvarHeaderError unless ``header`` equals EXPECTED_HEADER."""
    if header != EXPECTED_HEADER:
        raise ClinvarHeaderError(
            f"Unexpected header records: {header}, expected: {EXPECTED_HEADER}"
        )


def _open_text(path: Path) -> TextIO:
    if path.suffix == ".gz":
        return gzip.open(path, "rt", encoding="utf-8")
    return open(path, encoding="utf-8")


def parse_row(row: dict[str, str]) -> tuple:
    """Convert a TSV row into a clinvar_var row with 1-based start and inclusive end."""
    return (
        row["chrom"],
        int(row["start"]),
        int(row["stop"]),
        row["ref"],
        row["alt"],
        row["variation_id"] or None,
        row["symbol"] or None,
        row["clinical_significance"] or None,
        row["review_status"] or None,
    )


class ClinvarImporter:
    """Import ClinVar TSV files into ``clinvar_var``."""

    name = "ClinVar"

    def __init__(self, session: DatabaseSession, max_allele_length: int = 500):
        self.session = session
        self.max_allele_length = max_allele_length
        self.schema = ClinvarTableSchema(TABLE_NAME, max_allele_length)

    async def recreate_table(self) -> None:
        logger.info("Re-creating table %s in database...", self.schema.table_name)
        conn = self.session.connection
        await self.schema.drop_table(conn)
        await self.schema.create_table(conn)

    async def create_indexes(self) -> None:
        logger.info("Creating indexes on %s...", self.schema.table_name)
        await self.schema.create_indexes(self.session.connection)

    async def import_tsv_file(self, tsv_path: Path, stats: ImportStats) -> None:
        logger.info("Importing TSV: %s", tsv_path)
        conn = self.session.connection
        not_parsimonious = 0

        with _open_text(tsv_path) as f:
            reader = csv.reader(f, delimiter="\t")
            header = next(reader, None)
            if header is None:
                raise ClinvarHeaderError(f"Empty ClinVar TSV file: {tsv_path}")
            check_header(header)

            for line_no, values in enumerate(reader, start=2):
                if not values:
                    continue
                stats.records_read += 1
                row = dict(zip(EXPECTED_HEADER, values, strict=False))

                ref, alt = row.get("ref", ""), row.get("alt", "")
                if max(len(ref), len(alt)) > self.max_allele_length:
                    logger.warning(
                        "Skipping variant at %s:%s length = %d",
                        row.get("chrom"),
                        row.get("pos"),
                        max(len(ref), len(alt)),
                    )
                    stats.alleles_skipped += 1
                    continue

                try:
                    db_row = parse_row(row)
                except (KeyError, ValueError) as e:
                    logger.warning("Skipping malformed line %d of %s: %s", line_no, tsv_path, e)
                    stats.alleles_skipped += 1
                    continue

                if not is_normalized(ref, alt):
                    not_parsimonious += 1

                await self.schema.insert_rows(conn, [db_row])
                stats.rows_written += 1

        if not_parsimonious:
            logger.warning(
                "%d rows of %s are not parsimonious and were stored as given",
                not_parsimonious,
                tsv_path,
            )

    async def populate(self, tsv_paths: list[Path]) -> ImportStats:
        stats = ImportStats()
        logger.info("Importing %s...", self.name)
        for tsv_path in tsv_paths:
            await self.import_tsv_file(Path(tsv_path), stats)
        logger.info("Done with importing %s: %d rows", self.name, stats.rows_written)
        return stats

    async def run(self, tsv_paths: list[Path]) -> ImportStats:
        await self.recreate_table()
        stats = await self.populate(tsv_paths)
        await self.create_indexes()
        return stats
