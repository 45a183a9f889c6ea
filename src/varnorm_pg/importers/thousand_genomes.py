"""1000 Genomes import, one VCF file per chromosome."""

from ..models import NormalizedVariant, PopulationRecord
from ..population import THOUSAND_GENOMES_ZYGOSITY_FIELDS, compute_popmax_af, zygosity_counts
from ..vcf_parser import SourceRecord
from .base import PopulationImporter
from .schema import PopulationTableSchema

TABLE_NAME = "thousand_genomes_var"


class ThousandGenomesImporter(PopulationImporter):
    """Import 1000 Genomes VCFs into ``thousand_genomes_var``."""

    name = "Thousand Genomes"

    def build_schema(self) -> PopulationTableSchema:
        return PopulationTableSchema(
            table_name=TABLE_NAME,
            prefix="thousand_genomes",
            af_column="thousand_genomes_af_popmax",
            max_allele_length=self.config.max_allele_length,
        )

    def build_record(
        self, record: SourceRecord, allele_index: int, variant: NormalizedVariant
    ) -> PopulationRecord:
        counts = zygosity_counts(
            record.info, allele_index, record.num_alleles, THOUSAND_GENOMES_ZYGOSITY_FIELDS
        )
        af = compute_popmax_af(
            record.info,
            self.config.thousand_genomes_populations,
            allele_index,
            record.num_alleles,
        )
        return PopulationRecord(
            release=self.config.release,
            variant=variant,
            het=counts.het,
            hom=counts.hom,
            hemi=counts.hemi,
            af=af,
        )
