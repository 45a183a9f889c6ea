"""Uniform genotype model for structural-variant callers."""

from dataclasses import asdict, dataclass, field
from enum import Enum


class SvCaller(Enum):
    """Structural-variant callers whose VCF dialect is supported."""

    DRAGEN_CNV = "dragen_cnv"
    DELLY2 = "delly2"
    MANTA = "manta"


@dataclass
class SampleGenotype:
    """Genotype evidence of one sample for one SV allele.

    Fields a caller does not report stay None, so "not reported" is never
    confused with "reported as zero".
    """

    sample_name: str
    genotype: str = "./."
    filters: list[str] = field(default_factory=list)
    genotype_quality: float | None = None
    paired_end_coverage: int | None = None
    paired_end_variant_support: int | None = None
    split_read_coverage: int | None = None
    split_read_variant_support: int | None = None
    average_mapping_quality: float | None = None
    copy_number: int | None = None
    average_normalized_coverage: float | None = None
    point_count: int | None = None

    def to_dict(self) -> dict:
        """Field-by-field serialization, keeping unset fields as None."""
        return asdict(self)
