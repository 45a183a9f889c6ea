"""ExAC import.

The data is normalized per allele while importing. Zygosity counts come from
the combined ``AC_Het``/``AC_Hom``/``AC_Hemi`` fields and the frequency is the
popmax over the configured ExAC subpopulations.
"""

from ..models import NormalizedVariant, PopulationRecord
from ..population import EXAC_ZYGOSITY_FIELDS, compute_popmax_af, zygosity_counts
from ..vcf_parser import SourceRecord
from .base import PopulationImporter
from .schema import PopulationTableSchema

TABLE_NAME = "exac_var"


class ExacImporter(PopulationImporter):
    """Import the ExAC sites VCF into ``exac_var``."""

    name = "ExAC"

    def build_schema(self) -> PopulationTableSchema:
        return PopulationTableSchema(
            table_name=TABLE_NAME,
            prefix="exac",
            af_column="exac_af_popmax",
            max_allele_length=self.config.max_allele_length,
        )

    def build_record(
        self, record: SourceRecord, allele_index: int, variant: NormalizedVariant
    ) -> PopulationRecord:
        counts = zygosity_counts(
            record.info, allele_index, record.num_alleles, EXAC_ZYGOSITY_FIELDS
        )
        af = compute_popmax_af(
            record.info, self.config.exac_populations, allele_index, record.num_alleles
        )
        return PopulationRecord(
            release=self.config.release,
            variant=variant,
            het=counts.het,
            hom=counts.hom,
            hemi=counts.hemi,
            af=af,
        )
