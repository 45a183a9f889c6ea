"""Extract uniform sample genotypes from a structural-variant VCF."""

import csv
import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from ..vcf_parser import VariantFileReader
from .callers import CallerSupport, build_caller_supports, select_caller_support
from .coverage import CoverageSource
from .models import SampleGenotype
from .record import SvRecord

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = ["chrom", "start", "end", "sv_type", "caller", "genotype"]


@dataclass
class SvCall:
    """One ALT allele of an SV record with the genotypes of all samples."""

    chrom: str
    start: int
    end: int
    sv_type: str | None
    caller: str
    genotypes: list[SampleGenotype]

    def to_row(self) -> list:
        """Row with a 1-based start and the genotypes as a JSON object by sample."""
        genotypes = {
            g.sample_name: {k: v for k, v in g.to_dict().items() if k != "sample_name"}
            for g in self.genotypes
        }
        return [
            self.chrom,
            self.start + 1,
            self.end,
            self.sv_type or ".",
            self.caller,
            json.dumps(genotypes, sort_keys=True),
        ]


class SvGenotypeExtractor:
    """Detect the caller of an SV VCF and convert every record's genotypes."""

    def __init__(
        self,
        vcf_path: Path | str,
        coverage_sources: dict[str, CoverageSource] | None = None,
    ):
        self.vcf_path = Path(vcf_path)
        self.supports = build_caller_supports(coverage_sources)
        self.caller_support: CallerSupport | None = None
        self.caller_version: str | None = None

    def detect(self) -> CallerSupport:
        """Select the caller support for the file and read its version.

        Raises:
            UnsupportedCallerError: If no caller matches the header.
            AmbiguousCallerError: If more than one caller matches.
        """
        with VariantFileReader(self.vcf_path) as reader:
            self.caller_support = select_caller_support(reader.header, self.supports)
            self.caller_version = self.caller_support.get_version(reader)
        logger.info(
            "Detected caller %s, version %s",
            self.caller_support.sv_caller.name,
            self.caller_version,
        )
        return self.caller_support

    def iter_calls(self) -> Iterator[SvCall]:
        if self.caller_support is None:
            self.detect()

        with VariantFileReader(self.vcf_path) as reader:
            caller_name = self.caller_support.sv_caller.value
            for variant in reader:
                record = SvRecord(variant, reader.samples)
                for allele_index, _alt in enumerate(record.alts, start=1):
                    genotypes = [
                        self.caller_support.build_sample_genotype(record, allele_index, sample)
                        for sample in reader.samples
                    ]
                    yield SvCall(
                        chrom=record.chrom,
                        start=record.start,
                        end=record.end,
                        sv_type=record.sv_type,
                        caller=caller_name,
                        genotypes=genotypes,
                    )

    def write_tsv(self, output_path: Path | str) -> int:
        """Write one TSV row per SV allele; returns the number of rows."""
        if self.caller_support is None:
            self.detect()

        count = 0
        with open(output_path, "w", newline="") as f:
            writer = csv.writer(f, delimiter="\t", lineterminator="\n")
            writer.writerow(OUTPUT_COLUMNS)
            for call in self.iter_calls():
                writer.writerow(call.to_row())
                count += 1
        logger.info("Wrote %d SV calls to %s", count, output_path)
        return count
