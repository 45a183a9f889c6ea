"""Tests for the pyfaidx-backed reference genome."""

import pytest

from conftest import write_fasta
from varnorm_pg.models import NormalizedVariant, VariantKey
from varnorm_pg.normalizer import VariantNormalizer
from varnorm_pg.reference import IndexedReference, ReferenceLookupError


class TestIndexedReference:
    def test_fetch_uses_zero_based_half_open(self, fasta_path):
        with IndexedReference(fasta_path) as reference:
            assert reference.fetch("chr1", 0, 7) == "GATTACA"
            assert reference.fetch("chr1", 14, 19) == "CCCCC"

    def test_fetch_across_line_breaks(self, fasta_path):
        with IndexedReference(fasta_path) as reference:
            assert reference.fetch("chr1", 18, 22) == "CTTT"

    def test_base_at(self, fasta_path):
        with IndexedReference(fasta_path) as reference:
            assert reference.base_at("chr2", 21) == "G"

    def test_contig_length(self, fasta_path):
        with IndexedReference(fasta_path) as reference:
            assert reference.contig_length("chr1") == 54
            assert reference.contig_length("chr2") == 32

    def test_lowercase_fasta_is_uppercased(self, tmp_path):
        path = write_fasta(tmp_path / "soft.fa", {"chr1": "acgtACGT"})
        with IndexedReference(path) as reference:
            assert reference.fetch("chr1", 0, 8) == "ACGTACGT"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ReferenceLookupError, match="not found"):
            IndexedReference(tmp_path / "missing.fa")

    def test_unknown_contig(self, fasta_path):
        with IndexedReference(fasta_path) as reference:
            with pytest.raises(ReferenceLookupError, match="chrZ"):
                reference.fetch("chrZ", 0, 1)

    @pytest.mark.parametrize("start,end", [(-1, 1), (50, 60), (5, 5)])
    def test_out_of_bounds(self, fasta_path, start, end):
        with IndexedReference(fasta_path) as reference:
            with pytest.raises(ReferenceLookupError):
                reference.fetch("chr1", start, end)


class TestNormalizerWithFasta:
    def test_homopolymer_insertion(self, fasta_path):
        with IndexedReference(fasta_path) as reference:
            normalizer = VariantNormalizer(reference)
            result = normalizer.normalize_insertion(VariantKey("chr2", 20, "T", "TT"))
        assert result == NormalizedVariant("chr2", 10, "G", "GT")

    def test_unknown_contig_is_fatal(self, fasta_path):
        with IndexedReference(fasta_path) as reference:
            normalizer = VariantNormalizer(reference)
            with pytest.raises(ReferenceLookupError):
                normalizer.normalize_insertion(VariantKey("chrZ", 20, "T", "TT"))
