"""Shared driver for the population-frequency VCF imports."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from ..alleles import MultiAllelicExtractor
from ..config import ImportConfig
from ..models import PopulationRecord
from ..normalizer import VariantNormalizer
from ..session import DatabaseSession
from ..vcf_parser import Region, SourceRecord, VariantFileReader
from .schema import PopulationTableSchema

logger = logging.getLogger(__name__)


@dataclass
class ImportStats:
    """Counters collected during one import run."""

    records_read: int = 0
    rows_written: int = 0
    alleles_skipped: int = 0

    def as_dict(self) -> dict:
        return {
            "records_read": self.records_read,
            "rows_written": self.rows_written,
            "alleles_skipped": self.alleles_skipped,
        }


class PopulationImporter:
    """Import a population VCF into a freshly recreated table.

    Subclasses define the table schema and how one decomposed allele is turned
    into a ``PopulationRecord``. The table lifecycle is the explicit sequence
    ``recreate_table`` -> ``populate`` -> ``create_indexes``; ``run`` performs
    all three in order. Concurrent runs against the same table must be
    serialized by the caller.
    """

    name = "population"

    def __init__(
        self,
        session: DatabaseSession,
        normalizer: VariantNormalizer,
        config: ImportConfig | None = None,
    ):
        self.session = session
        self.normalizer = normalizer
        self.config = config or ImportConfig()
        self.extractor = MultiAllelicExtractor(normalizer, self.config.max_allele_length)
        self.schema = self.build_schema()

    def build_schema(self) -> PopulationTableSchema:
        raise NotImplementedError

    def build_record(
        self, record: SourceRecord, allele_index: int, variant
    ) -> PopulationRecord:
        raise NotImplementedError

    def build_records(self, record: SourceRecord) -> list[PopulationRecord]:
        """Decompose and normalize ``record`` into one PopulationRecord per usable allele."""
        return [
            self.build_record(record, allele.index, allele.variant)
            for allele in self.extractor.extract(record)
        ]

    async def recreate_table(self) -> None:
        """Drop and create the target table; it is empty afterwards."""
        logger.info("Re-creating table %s in database...", self.schema.table_name)
        conn = self.session.connection
        await self.schema.drop_table(conn)
        await self.schema.create_table(conn)

    async def create_indexes(self) -> None:
        logger.info("Creating indexes on %s...", self.schema.table_name)
        await self.schema.create_indexes(self.session.connection)

    async def import_records(
        self, records: Iterable[SourceRecord], stats: ImportStats
    ) -> None:
        """Normalize and persist records one at a time, in input order."""
        conn = self.session.connection
        prev_chrom = None
        for record in records:
            if record.chrom != prev_chrom:
                logger.info("Now on chrom %s", record.chrom)
                prev_chrom = record.chrom
            stats.records_read += 1

            population_records = self.build_records(record)
            stats.alleles_skipped += len(record.alts) - len(population_records)

            await self.schema.upsert_rows(conn, [r.to_row() for r in population_records])
            stats.rows_written += len(population_records)

    async def populate(
        self, vcf_paths: list[Path], region: Region | None = None
    ) -> ImportStats:
        stats = ImportStats()
        logger.info("Importing %s...", self.name)
        for vcf_path in vcf_paths:
            with VariantFileReader(vcf_path) as reader:
                await self.import_records(reader.records(region), stats)
        logger.info(
            "Done with importing %s: %d records, %d rows, %d alleles skipped",
            self.name,
            stats.records_read,
            stats.rows_written,
            stats.alleles_skipped,
        )
        return stats

    async def run(self, vcf_paths: list[Path], region: Region | None = None) -> ImportStats:
        await self.recreate_table()
        stats = await self.populate(vcf_paths, region)
        await self.create_indexes()
        return stats
