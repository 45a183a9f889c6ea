"""VCF reading on top of cyvcf2.

Source records are exposed as plain ``SourceRecord`` values so that the allele
and population logic does not depend on cyvcf2 objects.
"""

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cyvcf2 import VCF

logger = logging.getLogger(__name__)

META_PATTERN = re.compile(r"^##([^=]+)=(.*)$")


class RegionParseError(ValueError):
    """Raised when a genomic region string is malformed."""

    pass


@dataclass(frozen=True)
class Region:
    """Genomic region with a 1-based, inclusive start and end."""

    chrom: str
    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.chrom}:{self.start}-{self.end}"

    @staticmethod
    def parse(text: str) -> "Region":
        """Parse a ``CHR:START-END`` region; thousands separators are allowed."""
        chrom, sep, span = text.partition(":")
        if not chrom or not sep:
            raise RegionParseError(f"Invalid region {text!r}, expected CHR:START-END")
        start_str, sep, end_str = span.replace(",", "").partition("-")
        try:
            start = int(start_str)
            end = int(end_str)
        except ValueError:
            raise RegionParseError(f"Invalid region {text!r}, expected CHR:START-END") from None
        if not sep or start < 1 or end < start:
            raise RegionParseError(f"Invalid region {text!r}, expected CHR:START-END")
        return Region(chrom, start, end)


@dataclass
class SourceRecord:
    """A VCF record reduced to what the population importers need."""

    chrom: str
    pos: int
    ref: str
    alts: list[str]
    info: dict[str, Any] = field(default_factory=dict)

    @property
    def num_alleles(self) -> int:
        return 1 + len(self.alts)

    @classmethod
    def from_variant(cls, variant) -> "SourceRecord":
        """Build from a cyvcf2 variant; INFO values stay scalar-or-tuple."""
        return cls(
            chrom=variant.CHROM,
            pos=variant.POS,
            ref=variant.REF,
            alts=[alt for alt in variant.ALT],
            info=dict(variant.INFO),
        )

    def __str__(self) -> str:
        return f"{self.chrom}:{self.pos} {self.ref}>{','.join(self.alts)}"


def parse_field_definition(field_string: str) -> dict[str, str]:
    """Parse a structured header value like 'ID=AC,Number=A,Description="..."'"""
    field_def = {}

    # Handle quoted values that may contain commas
    parts = []
    current_part = ""
    in_quotes = False

    for char in field_string:
        if char == '"':
            in_quotes = not in_quotes
            current_part += char
        elif char == "," and not in_quotes:
            parts.append(current_part)
            current_part = ""
        else:
            current_part += char

    if current_part:
        parts.append(current_part)

    for part in parts:
        if "=" in part:
            key, value = part.split("=", 1)
            if value.startswith('"') and value.endswith('"'):
                value = value[1:-1]
            field_def[key.strip()] = value

    return field_def


@dataclass
class VCFHeader:
    """Parsed view of the ``##`` meta lines of a VCF header."""

    meta_lines: list[tuple[str, str]] = field(default_factory=list)
    samples: list[str] = field(default_factory=list)

    @classmethod
    def from_string(cls, raw_header: str) -> "VCFHeader":
        meta_lines = []
        samples: list[str] = []
        for line in raw_header.splitlines():
            match = META_PATTERN.match(line)
            if match:
                meta_lines.append((match.group(1), match.group(2)))
            elif line.startswith("#CHROM"):
                samples = line.rstrip("\n").split("\t")[9:]
        return cls(meta_lines=meta_lines, samples=samples)

    def values(self, key: str) -> list[str]:
        """Unstructured values of all meta lines with the given key."""
        return [value for k, value in self.meta_lines if k == key]

    def structured(self, key: str) -> list[dict[str, str]]:
        """Structured ``<...>`` values of all meta lines with the given key."""
        result = []
        for value in self.values(key):
            if value.startswith("<") and value.endswith(">"):
                result.append(parse_field_definition(value[1:-1]))
        return result

    def ids(self, key: str) -> set[str]:
        return {d["ID"] for d in self.structured(key) if "ID" in d}

    @property
    def info_ids(self) -> set[str]:
        return self.ids("INFO")

    @property
    def format_ids(self) -> set[str]:
        return self.ids("FORMAT")


def has_index(vcf_path: Path) -> bool:
    """Check for a tabix or CSI index next to ``vcf_path``."""
    return any(
        Path(f"{vcf_path}{suffix}").exists() for suffix in (".tbi", ".csi")
    )


class VariantFileReader:
    """Ordered, restartable-per-open access to a VCF file."""

    def __init__(self, vcf_path: Path | str):
        self.vcf_path = Path(vcf_path)
        if not self.vcf_path.exists():
            raise FileNotFoundError(f"VCF file not found: {self.vcf_path}")
        self._vcf = VCF(str(self.vcf_path))
        self.header = VCFHeader.from_string(self._vcf.raw_header)
        self.samples: list[str] = list(self._vcf.samples)

    def close(self) -> None:
        if self._vcf is not None:
            self._vcf.close()
            self._vcf = None

    def __enter__(self) -> "VariantFileReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator:
        """Iterate the raw cyvcf2 variants of the whole file."""
        return iter(self._vcf)

    def query(self, region: Region) -> Iterator:
        """Indexed range query with a 1-based, inclusive region."""
        if not has_index(self.vcf_path):
            raise FileNotFoundError(f"No .tbi/.csi index found for {self.vcf_path}")
        return iter(self._vcf(str(region)))

    def records(self, region: Region | None = None) -> Iterator[SourceRecord]:
        variants = self.query(region) if region is not None else iter(self._vcf)
        for variant in variants:
            yield SourceRecord.from_variant(variant)

    def first_record(self) -> SourceRecord | None:
        """First record of the file, read through a fresh handle."""
        vcf = VCF(str(self.vcf_path))
        try:
            variant = next(iter(vcf), None)
            return SourceRecord.from_variant(variant) if variant is not None else None
        finally:
            vcf.close()
