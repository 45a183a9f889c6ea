"""Caller dialect detection and genotype extraction for SV VCFs.

Every member of ``SvCaller`` has exactly one ``CallerSupport`` subclass. The
registry asks each of them whether a VCF header is theirs; exactly one must
answer yes. Zero or several matches abort the run instead of guessing.

Field mapping:
| Caller     | Paired-end (cov / alt) | Split-read (cov / alt) | Other               |
|------------|------------------------|------------------------|---------------------|
| Delly2     | DR+DV / DV             | RR+RV / RV             | CN, GQ, INFO/MAPQ   |
| Manta      | sum(PR) / PR[1]        | sum(SR) / SR[1]        | GQ                  |
| DRAGEN-CNV | - / sum(PE)            | -                      | BC, coverage        |
"""

import logging

from ..vcf_parser import VariantFileReader, VCFHeader
from .coverage import CoverageSource
from .models import SampleGenotype, SvCaller
from .record import SvRecord

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = "UNKNOWN"


class UnsupportedCallerError(Exception):
    """Raised when no supported caller matches a VCF header."""

    pass


class AmbiguousCallerError(Exception):
    """Raised when more than one caller claims a VCF header."""

    pass


class CallerSupport:
    """Dialect of one structural-variant caller."""

    sv_caller: SvCaller

    def is_compatible(self, header: VCFHeader) -> bool:
        raise NotImplementedError

    def get_version(self, reader: VariantFileReader) -> str:
        """Free-text caller version from the file, surfaced as-is."""
        raise NotImplementedError

    def build_sample_genotype(
        self, record: SvRecord, allele_index: int, sample_name: str
    ) -> SampleGenotype:
        raise NotImplementedError

    def _base_genotype(
        self, record: SvRecord, allele_index: int, sample_name: str
    ) -> SampleGenotype:
        return SampleGenotype(
            sample_name=sample_name,
            genotype=record.genotype(sample_name, allele_index),
            filters=record.filters(sample_name),
        )


class Delly2Support(CallerSupport):
    sv_caller = SvCaller.DELLY2

    VERSION_PREFIX = "EMBL.DELLYv"

    def is_compatible(self, header: VCFHeader) -> bool:
        return "SVMETHOD" in header.info_ids and {"DR", "DV", "RR", "RV"} <= header.format_ids

    def get_version(self, reader: VariantFileReader) -> str:
        record = reader.first_record()
        if record is None or not record.info.get("SVMETHOD"):
            return UNKNOWN_VERSION
        method = str(record.info["SVMETHOD"])
        return method.removeprefix(self.VERSION_PREFIX)

    def build_sample_genotype(
        self, record: SvRecord, allele_index: int, sample_name: str
    ) -> SampleGenotype:
        genotype = self._base_genotype(record, allele_index, sample_name)
        genotype.genotype_quality = record.format_float("GQ", sample_name)

        dr = record.format_int("DR", sample_name)
        dv = record.format_int("DV", sample_name)
        if dr is not None and dv is not None:
            genotype.paired_end_coverage = dr + dv
        genotype.paired_end_variant_support = dv

        rr = record.format_int("RR", sample_name)
        rv = record.format_int("RV", sample_name)
        if rr is not None and rv is not None:
            genotype.split_read_coverage = rr + rv
        genotype.split_read_variant_support = rv
        genotype.copy_number = record.format_int("CN", sample_name)

        mapq = record.info("MAPQ")
        genotype.average_mapping_quality = float(mapq) if mapq is not None else None
        return genotype


class MantaSupport(CallerSupport):
    sv_caller = SvCaller.MANTA

    SOURCE_PREFIX = "GenerateSVCandidates"

    def is_compatible(self, header: VCFHeader) -> bool:
        return any(v.startswith(self.SOURCE_PREFIX) for v in header.values("source"))

    def get_version(self, reader: VariantFileReader) -> str:
        for value in reader.header.values("source"):
            if value.startswith(self.SOURCE_PREFIX):
                version = value[len(self.SOURCE_PREFIX):].strip()
                return version or UNKNOWN_VERSION
        return UNKNOWN_VERSION

    def build_sample_genotype(
        self, record: SvRecord, allele_index: int, sample_name: str
    ) -> SampleGenotype:
        genotype = self._base_genotype(record, allele_index, sample_name)
        genotype.genotype_quality = record.format_float("GQ", sample_name)

        pr = record.format_ints("PR", sample_name)
        if pr is not None and len(pr) >= 2:
            genotype.paired_end_coverage = sum(pr)
            genotype.paired_end_variant_support = pr[1]

        sr = record.format_ints("SR", sample_name)
        if sr is not None and len(sr) >= 2:
            genotype.split_read_coverage = sum(sr)
            genotype.split_read_variant_support = sr[1]
        return genotype


class DragenCnvSupport(CallerSupport):
    """DRAGEN CNV calls; coverage comes from per-sample coverage files."""

    sv_caller = SvCaller.DRAGEN_CNV

    def __init__(self, coverage_sources: dict[str, CoverageSource] | None = None):
        self.coverage_sources = coverage_sources or {}

    @staticmethod
    def _dragen_command_lines(header: VCFHeader) -> list[dict[str, str]]:
        return [d for d in header.structured("DRAGENCommandLine") if d.get("ID") == "dragen"]

    def is_compatible(self, header: VCFHeader) -> bool:
        is_dragen = bool(self._dragen_command_lines(header)) or "DRAGEN_CNV" in header.values(
            "source"
        )
        return is_dragen and {"SM", "BC"} <= header.format_ids

    def get_version(self, reader: VariantFileReader) -> str:
        for line in self._dragen_command_lines(reader.header):
            if line.get("Version"):
                return line["Version"]
        return UNKNOWN_VERSION

    def build_sample_genotype(
        self, record: SvRecord, allele_index: int, sample_name: str
    ) -> SampleGenotype:
        genotype = self._base_genotype(record, allele_index, sample_name)

        pe = record.format_ints("PE", sample_name)
        if pe is not None:
            genotype.paired_end_variant_support = sum(pe)
        genotype.point_count = record.format_int("BC", sample_name)

        coverage = self.coverage_sources.get(sample_name)
        if coverage is None:
            logger.debug("No coverage source for sample %s", sample_name)
        else:
            summary = coverage.summarize(record.chrom, record.start, record.end)
            genotype.average_normalized_coverage = summary.average_normalized_coverage
            genotype.average_mapping_quality = summary.average_mapping_quality
        return genotype


CALLER_SUPPORT_CLASSES: dict[SvCaller, type[CallerSupport]] = {
    SvCaller.DRAGEN_CNV: DragenCnvSupport,
    SvCaller.DELLY2: Delly2Support,
    SvCaller.MANTA: MantaSupport,
}


def build_caller_supports(
    coverage_sources: dict[str, CoverageSource] | None = None,
) -> list[CallerSupport]:
    """One CallerSupport per SvCaller member, in enum order."""
    supports = []
    for caller in SvCaller:
        cls = CALLER_SUPPORT_CLASSES[caller]
        if cls is DragenCnvSupport:
            supports.append(DragenCnvSupport(coverage_sources))
        else:
            supports.append(cls())
    return supports


def select_caller_support(
    header: VCFHeader, supports: list[CallerSupport]
) -> CallerSupport:
    """Return the only CallerSupport compatible with ``header``.

    Raises:
        UnsupportedCallerError: If no caller matches.
        AmbiguousCallerError: If more than one caller matches.
    """
    matches = [support for support in supports if support.is_compatible(header)]
    if not matches:
        raise UnsupportedCallerError(
            "VCF header does not match any supported caller: "
            + ", ".join(s.sv_caller.name for s in supports)
        )
    if len(matches) > 1:
        raise AmbiguousCallerError(
            "VCF header matches more than one caller: "
            + ", ".join(s.sv_caller.name for s in matches)
        )
    return matches[0]
