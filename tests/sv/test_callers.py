"""Tests for SV caller detection and per-caller genotype extraction."""

import pytest

from conftest import FIXTURES_DIR
from varnorm_pg.sv.callers import (
    UNKNOWN_VERSION,
    AmbiguousCallerError,
    Delly2Support,
    DragenCnvSupport,
    MantaSupport,
    UnsupportedCallerError,
    build_caller_supports,
    select_caller_support,
)
from varnorm_pg.sv.coverage import CoverageSummary
from varnorm_pg.sv.models import SampleGenotype, SvCaller
from varnorm_pg.sv.record import SvRecord
from varnorm_pg.vcf_parser import VariantFileReader, VCFHeader

CALLERS_DIR = FIXTURES_DIR / "callers-sv"

CALLER_FIXTURES = {
    SvCaller.DRAGEN_CNV: CALLERS_DIR / "dragen-cnv.vcf",
    SvCaller.DELLY2: CALLERS_DIR / "delly2.vcf",
    SvCaller.MANTA: CALLERS_DIR / "manta.vcf",
}


@pytest.fixture
def first_sv_record():
    """Open a fixture VCF and return its first record; readers close at teardown."""
    readers = []

    def _open(path) -> SvRecord:
        reader = VariantFileReader(path)
        readers.append(reader)
        return SvRecord(next(iter(reader)), reader.samples)

    yield _open
    for reader in readers:
        reader.close()


def read_header(path) -> VCFHeader:
    with VariantFileReader(path) as reader:
        return reader.header


class FakeCoverage:
    def __init__(self, summary: CoverageSummary):
        self.summary = summary
        self.calls = []

    def summarize(self, chrom, start, end):
        self.calls.append((chrom, start, end))
        return self.summary


class TestRegistry:
    def test_one_support_per_caller(self):
        supports = build_caller_supports()
        assert [s.sv_caller for s in supports] == list(SvCaller)

    @pytest.mark.parametrize("caller,path", list(CALLER_FIXTURES.items()))
    def test_exactly_one_caller_matches(self, caller, path):
        header = read_header(path)
        matches = [s.sv_caller for s in build_caller_supports() if s.is_compatible(header)]
        assert matches == [caller]

    @pytest.mark.parametrize("caller,path", list(CALLER_FIXTURES.items()))
    def test_select(self, caller, path):
        support = select_caller_support(read_header(path), build_caller_supports())
        assert support.sv_caller is caller

    def test_no_match_raises(self):
        header = VCFHeader.from_string(
            "##fileformat=VCFv4.2\n"
            '##INFO=<ID=AC,Number=A,Type=Integer,Description="Allele count">\n'
            "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n"
        )
        with pytest.raises(UnsupportedCallerError):
            select_caller_support(header, build_caller_supports())

    def test_ambiguous_raises(self):
        """A Delly-shaped header that also claims to come from Manta is rejected."""
        delly_header = (CALLERS_DIR / "delly2.vcf").read_text().split("#CHROM")[0]
        header = VCFHeader.from_string(
            delly_header
            + "##source=GenerateSVCandidates 1.6.0\n"
            + "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tSAMPLE1\n"
        )
        with pytest.raises(AmbiguousCallerError, match="DELLY2"):
            select_caller_support(header, build_caller_supports())


class TestDelly2Support:
    def test_version(self):
        with VariantFileReader(CALLER_FIXTURES[SvCaller.DELLY2]) as reader:
            assert Delly2Support().get_version(reader) == "0.8.1"

    def test_build_sample_genotype(self, first_sv_record):
        record = first_sv_record(CALLER_FIXTURES[SvCaller.DELLY2])
        genotype = Delly2Support().build_sample_genotype(record, 1, "SAMPLE1")
        assert genotype == SampleGenotype(
            sample_name="SAMPLE1",
            genotype="0/1",
            filters=[],
            genotype_quality=50.0,
            paired_end_coverage=12,
            paired_end_variant_support=2,
            split_read_coverage=25,
            split_read_variant_support=5,
            average_mapping_quality=37.0,
            copy_number=1,
        )

    def test_sample_filter(self, first_sv_record):
        record = first_sv_record(CALLER_FIXTURES[SvCaller.DELLY2])
        genotype = Delly2Support().build_sample_genotype(record, 1, "SAMPLE2")
        assert genotype.genotype == "0/0"
        assert genotype.filters == ["LowQual"]

    def test_missing_values_stay_unset(self):
        with VariantFileReader(CALLER_FIXTURES[SvCaller.DELLY2]) as reader:
            variants = list(reader)
            record = SvRecord(variants[1], reader.samples)
            genotype = Delly2Support().build_sample_genotype(record, 1, "SAMPLE2")
        assert genotype.genotype == "./."
        assert genotype.genotype_quality is None
        assert genotype.paired_end_coverage is None
        assert genotype.paired_end_variant_support is None
        assert genotype.copy_number is None


class TestMantaSupport:
    def test_version(self):
        with VariantFileReader(CALLER_FIXTURES[SvCaller.MANTA]) as reader:
            assert MantaSupport().get_version(reader) == "1.6.0"

    def test_build_sample_genotype(self, first_sv_record):
        record = first_sv_record(CALLER_FIXTURES[SvCaller.MANTA])
        genotype = MantaSupport().build_sample_genotype(record, 1, "SAMPLE1")
        assert genotype == SampleGenotype(
            sample_name="SAMPLE1",
            genotype="0/1",
            filters=[],
            genotype_quality=80.0,
            paired_end_coverage=27,
            paired_end_variant_support=7,
            split_read_coverage=19,
            split_read_variant_support=4,
        )

    def test_second_sample(self, first_sv_record):
        record = first_sv_record(CALLER_FIXTURES[SvCaller.MANTA])
        genotype = MantaSupport().build_sample_genotype(record, 1, "SAMPLE2")
        assert genotype.genotype == "1/1"
        assert genotype.filters == ["MinGQ"]
        assert genotype.paired_end_coverage == 10
        assert genotype.split_read_variant_support == 12

    def test_unknown_sample(self, first_sv_record):
        record = first_sv_record(CALLER_FIXTURES[SvCaller.MANTA])
        with pytest.raises(KeyError):
            MantaSupport().build_sample_genotype(record, 1, "NOBODY")


class TestDragenCnvSupport:
    def test_version(self):
        with VariantFileReader(CALLER_FIXTURES[SvCaller.DRAGEN_CNV]) as reader:
            assert (
                DragenCnvSupport().get_version(reader) == "SW: 07.021.624.3.10.4, HW: 07.021.624"
            )

    def test_version_unknown_without_command_line(self):
        class Reader:
            header = VCFHeader.from_string("##source=DRAGEN_CNV\n")

        assert DragenCnvSupport().get_version(Reader()) == UNKNOWN_VERSION

    def test_build_sample_genotype_with_coverage(self, first_sv_record):
        coverage = FakeCoverage(CoverageSummary(0.321909, 40.0))
        support = DragenCnvSupport({"SAMPLE": coverage})
        record = first_sv_record(CALLER_FIXTURES[SvCaller.DRAGEN_CNV])

        genotype = support.build_sample_genotype(record, 1, "SAMPLE")

        assert genotype == SampleGenotype(
            sample_name="SAMPLE",
            genotype="0/1",
            filters=[],
            paired_end_variant_support=2,
            average_mapping_quality=40.0,
            average_normalized_coverage=0.321909,
            point_count=1,
        )
        assert coverage.calls == [("1", 10000, 10500)]

    def test_without_coverage_source(self, first_sv_record):
        record = first_sv_record(CALLER_FIXTURES[SvCaller.DRAGEN_CNV])
        genotype = DragenCnvSupport().build_sample_genotype(record, 1, "SAMPLE")
        assert genotype.average_normalized_coverage is None
        assert genotype.average_mapping_quality is None
        assert genotype.point_count == 1
        assert genotype.copy_number is None

    def test_record_filter_used_when_no_sample_filter(self):
        with VariantFileReader(CALLER_FIXTURES[SvCaller.DRAGEN_CNV]) as reader:
            variants = list(reader)
            record = SvRecord(variants[1], reader.samples)
            genotype = DragenCnvSupport().build_sample_genotype(record, 1, "SAMPLE")
        assert genotype.genotype == "./1"
        assert genotype.filters == ["cnvQual"]
        assert genotype.copy_number is None
        assert genotype.paired_end_variant_support == 2
