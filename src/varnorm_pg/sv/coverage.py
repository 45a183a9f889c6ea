"""Per-sample coverage side-channel for CNV callers.

Coverage files are Maelstrom-style VCFs with one record per genomic window
(``INFO/END`` closes the window) and the FORMAT fields ``CV`` (normalized
coverage) and ``MQ`` (mean mapping quality).
"""

import logging
import math
import numbers
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from cyvcf2 import VCF

from ..vcf_parser import has_index
from .record import INT32_MISSING, INT32_VECTOR_END

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoverageWindow:
    """A window with 0-based, half-open coordinates."""

    start: int
    end: int
    normalized_coverage: float | None
    mapping_quality: float | None


@dataclass(frozen=True)
class CoverageSummary:
    average_normalized_coverage: float | None = None
    average_mapping_quality: float | None = None


class CoverageSource(Protocol):
    """Coverage lookup for one sample."""

    def summarize(self, chrom: str, start: int, end: int) -> CoverageSummary:
        """Summarize coverage over a 0-based, half-open region."""
        ...


def summarize_windows(windows: Iterable[CoverageWindow], start: int, end: int) -> CoverageSummary:
    """Length-weighted means of coverage and mapping quality over [start, end).

    Only the part of each window that overlaps the region is counted. Windows
    without a value do not contribute to that value's mean.
    """
    cov_sum = cov_len = 0.0
    mq_sum = mq_len = 0.0

    for window in windows:
        overlap = min(end, window.end) - max(start, window.start)
        if overlap <= 0:
            continue
        if window.normalized_coverage is not None:
            cov_sum += window.normalized_coverage * overlap
            cov_len += overlap
        if window.mapping_quality is not None:
            mq_sum += window.mapping_quality * overlap
            mq_len += overlap

    return CoverageSummary(
        average_normalized_coverage=cov_sum / cov_len if cov_len else None,
        average_mapping_quality=mq_sum / mq_len if mq_len else None,
    )


def _format_float(variant, field: str) -> float | None:
    if field not in variant.FORMAT:
        return None
    values = variant.format(field)
    if values is None:
        return None
    value = values[0][0]
    if isinstance(value, numbers.Integral):
        return None if value in (INT32_MISSING, INT32_VECTOR_END) else float(value)
    value = float(value)
    return None if math.isnan(value) else value


def _window(variant) -> CoverageWindow:
    return CoverageWindow(
        start=variant.start,
        end=variant.end,
        normalized_coverage=_format_float(variant, "CV"),
        mapping_quality=_format_float(variant, "MQ"),
    )


class MaelstromCoverageReader:
    """Coverage source backed by a per-sample coverage VCF.

    Uses the tabix/CSI index for region queries when one exists. Otherwise the
    file is scanned once and its windows are kept by contig for later lookups.
    """

    def __init__(self, vcf_path: Path | str):
        self.vcf_path = Path(vcf_path)
        if not self.vcf_path.exists():
            raise FileNotFoundError(f"Coverage file not found: {self.vcf_path}")
        self._vcf = VCF(str(self.vcf_path))
        self._indexed = has_index(self.vcf_path)
        self._windows_by_chrom: dict[str, list[CoverageWindow]] | None = None
        if not self._indexed:
            logger.warning("No index for %s, coverage lookups will scan the file", self.vcf_path)

    def close(self) -> None:
        if self._vcf is not None:
            self._vcf.close()
            self._vcf = None

    def __enter__(self) -> "MaelstromCoverageReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _load_windows(self) -> dict[str, list[CoverageWindow]]:
        if self._windows_by_chrom is None:
            windows_by_chrom: dict[str, list[CoverageWindow]] = {}
            for variant in self._vcf:
                windows_by_chrom.setdefault(variant.CHROM, []).append(_window(variant))
            self._windows_by_chrom = windows_by_chrom
        return self._windows_by_chrom

    def windows(self, chrom: str, start: int, end: int) -> list[CoverageWindow]:
        """Windows overlapping the 0-based, half-open region [start, end)."""
        if self._indexed:
            return [_window(v) for v in self._vcf(f"{chrom}:{start + 1}-{end}")]
        return [
            w for w in self._load_windows().get(chrom, []) if w.start < end and w.end > start
        ]

    def summarize(self, chrom: str, start: int, end: int) -> CoverageSummary:
        return summarize_windows(self.windows(chrom, start, end), start, end)
