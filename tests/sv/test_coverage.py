"""Tests for coverage summaries over CNV regions."""

import logging

import pytest

from conftest import FIXTURES_DIR
from varnorm_pg.sv import coverage as coverage_module
from varnorm_pg.sv.coverage import (
    CoverageSummary,
    CoverageWindow,
    MaelstromCoverageReader,
    summarize_windows,
)

COVERAGE_VCF = FIXTURES_DIR / "callers-sv" / "SAMPLE.cov.vcf"


class TestSummarizeWindows:
    def test_equal_windows(self):
        windows = [CoverageWindow(0, 100, 1.0, 30.0), CoverageWindow(100, 200, 3.0, 50.0)]
        assert summarize_windows(windows, 0, 200) == CoverageSummary(2.0, 40.0)

    def test_partial_overlap_weighted(self):
        windows = [CoverageWindow(0, 100, 1.0, 20.0), CoverageWindow(100, 200, 4.0, 60.0)]
        summary = summarize_windows(windows, 75, 200)
        assert summary.average_normalized_coverage == pytest.approx((25 * 1.0 + 100 * 4.0) / 125)
        assert summary.average_mapping_quality == pytest.approx((25 * 20.0 + 100 * 60.0) / 125)

    def test_non_overlapping_windows_ignored(self):
        windows = [CoverageWindow(0, 100, 9.0, 9.0), CoverageWindow(300, 400, 9.0, 9.0)]
        assert summarize_windows(windows, 100, 300) == CoverageSummary()

    def test_missing_values_excluded_per_field(self):
        windows = [CoverageWindow(0, 100, 2.0, None), CoverageWindow(100, 200, None, 30.0)]
        assert summarize_windows(windows, 0, 200) == CoverageSummary(2.0, 30.0)

    def test_empty(self):
        assert summarize_windows([], 0, 10) == CoverageSummary(None, None)


class TestMaelstromCoverageReader:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MaelstromCoverageReader(tmp_path / "missing.cov.vcf")

    def test_unindexed_file_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            with MaelstromCoverageReader(COVERAGE_VCF):
                pass
        assert "No index" in caplog.text

    def test_windows(self):
        with MaelstromCoverageReader(COVERAGE_VCF) as reader:
            windows = reader.windows("1", 10000, 10500)
        assert windows[:2] == [
            CoverageWindow(10000, 10250, pytest.approx(0.2), 40.0),
            CoverageWindow(10250, 10500, pytest.approx(0.4), 40.0),
        ]

    def test_summarize(self):
        with MaelstromCoverageReader(COVERAGE_VCF) as reader:
            summary = reader.summarize("1", 10000, 10500)
        assert summary.average_normalized_coverage == pytest.approx(0.3)
        assert summary.average_mapping_quality == pytest.approx(40.0)

    def test_missing_mapping_quality(self):
        with MaelstromCoverageReader(COVERAGE_VCF) as reader:
            summary = reader.summarize("1", 20000, 21000)
        assert summary.average_normalized_coverage == pytest.approx(1.5)
        assert summary.average_mapping_quality is None

    def test_other_contig(self):
        with MaelstromCoverageReader(COVERAGE_VCF) as reader:
            assert reader.summarize("2", 0, 1000) == CoverageSummary()

    def test_windows_only_overlapping(self):
        with MaelstromCoverageReader(COVERAGE_VCF) as reader:
            windows = reader.windows("1", 10400, 10600)
        assert [(w.start, w.end) for w in windows] == [(10250, 10500), (10500, 11000)]

    def test_unindexed_file_read_once(self, monkeypatch):
        built = []
        original_window = coverage_module._window

        def counting_window(variant):
            built.append(variant.start)
            return original_window(variant)

        monkeypatch.setattr(coverage_module, "_window", counting_window)
        with MaelstromCoverageReader(COVERAGE_VCF) as reader:
            first = reader.summarize("1", 10000, 10500)
            reader.summarize("1", 20000, 21000)
            reader.summarize("2", 0, 1000)
            assert reader.summarize("1", 10000, 10500) == first

        assert len(built) == 4
