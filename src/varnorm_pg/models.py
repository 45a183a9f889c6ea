"""Data models for canonical variants and population records."""

from dataclasses import dataclass


@dataclass(frozen=True)
class VariantKey:
    """A single genomic edit: contig, 0-based start, REF and ALT alleles."""

    chrom: str
    pos: int
    ref: str
    alt: str

    @property
    def end(self) -> int:
        """Half-open end coordinate."""
        return self.pos + len(self.ref)

    @property
    def variant_type(self) -> str:
        """Classify variant type based on REF and ALT alleles."""
        if len(self.ref) == 1 and len(self.alt) == 1:
            return "snp"
        elif len(self.ref) != len(self.alt):
            return "indel"
        else:
            return "mnp"


@dataclass(frozen=True)
class NormalizedVariant(VariantKey):
    """A VariantKey in canonical (left-shifted, trimmed) form."""

    @classmethod
    def from_key(cls, key: VariantKey) -> "NormalizedVariant":
        return cls(chrom=key.chrom, pos=key.pos, ref=key.ref, alt=key.alt)


@dataclass(frozen=True)
class ZygosityCounts:
    """Number of individuals seen het, hom or hemi for one allele."""

    het: int = 0
    hom: int = 0
    hemi: int = 0


@dataclass(frozen=True)
class PopulationRecord:
    """One decomposed allele of a population-frequency source record."""

    release: str
    variant: NormalizedVariant
    het: int
    hom: int
    hemi: int
    af: float

    def to_row(self) -> tuple:
        """Row for the population tables, with a 1-based start."""
        v = self.variant
        return (
            self.release,
            v.chrom,
            v.pos + 1,
            v.end,
            v.ref,
            v.alt,
            self.het,
            self.hom,
            self.hemi,
            self.af,
        )
