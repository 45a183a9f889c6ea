"""Variant normalization per vt algorithm (Tan et al., 2015).

Two variant descriptions of the same genomic edit must map to the same key so
that records from different sources can be joined on (chrom, start, ref, alt).
Normalization first shifts the variant as far left as the reference allows and
then trims redundant leading bases.
"""

from typing import Protocol

from .models import NormalizedVariant, VariantKey
from .reference import ReferenceLookupError


class ReferenceGenome(Protocol):
    """Protocol for reference genome access."""

    def fetch(self, chrom: str, start: int, end: int) -> str:
        """Fetch reference sequence for a region (0-based coordinates)."""
        ...


class VariantNormalizer:
    """Canonicalize variant keys against a borrowed reference genome."""

    def __init__(self, reference_genome: ReferenceGenome):
        self.reference_genome = reference_genome

    def normalize(self, desc: VariantKey, keep_leftmost_base: bool = False) -> NormalizedVariant:
        """Normalize ``desc``, optionally keeping one anchor base on the left."""
        shifted = self.shift_left(desc)
        return self.trim_bases_left(shifted, 1 if keep_leftmost_base else 0)

    def normalize_variant(self, desc: VariantKey) -> NormalizedVariant:
        """Fully canonical form, used for equality and indexing."""
        return self.normalize(desc, keep_leftmost_base=False)

    def normalize_insertion(self, desc: VariantKey) -> NormalizedVariant:
        """Canonical form that leaves the leftmost base so insertions have a REF base."""
        return self.normalize(desc, keep_leftmost_base=True)

    def shift_left(self, desc: VariantKey) -> VariantKey:
        """Move the variant left while REF and ALT share their last base.

        Raises:
            ValueError: If REF and ALT are identical, which describes no change.
        """
        start = desc.pos
        ref = desc.ref.upper()
        alt = desc.alt.upper()
        if ref == alt:
            raise ValueError(
                f"REF and ALT are identical at {desc.chrom}:{desc.pos + 1} ({desc.ref!r})"
            )

        any_change = True
        while any_change:
            any_change = False

            if ref and alt and ref[-1] == alt[-1]:
                ref = ref[:-1]
                alt = alt[:-1]
                any_change = True

            if not ref or not alt:
                extension = self._base_left_of(desc.chrom, start)
                ref = extension + ref
                alt = extension + alt
                start -= 1
                any_change = True

        return VariantKey(desc.chrom, start, ref, alt)

    @staticmethod
    def trim_bases_left(desc: VariantKey, min_size: int) -> NormalizedVariant:
        start = desc.pos
        ref = desc.ref
        alt = desc.alt

        while len(ref) > min_size and len(alt) > min_size and ref[0] == alt[0]:
            ref = ref[1:]
            alt = alt[1:]
            start += 1

        return NormalizedVariant(desc.chrom, start, ref, alt)

    def _base_left_of(self, chrom: str, start: int) -> str:
        if start <= 0:
            raise ReferenceLookupError(
                f"Cannot extend variant on {chrom} to the left of the contig start"
            )
        base = self.reference_genome.fetch(chrom, start - 1, start)
        if len(base) != 1:
            raise ReferenceLookupError(
                f"Reference returned {base!r} for {chrom}:{start - 1}, expected a single base"
            )
        return base.upper()


def is_normalized(ref: str, alt: str) -> bool:
    """
    Quick check if a biallelic variant is parsimonious in the anchored form.

    Uses necessary and sufficient conditions:
    1. Alleles end with different nucleotides
    2. Alleles start differently OR shortest has length 1

    Left-alignment cannot be checked without the reference.
    """
    if not ref or not alt:
        return False

    ref = ref.upper()
    alt = alt.upper()

    if ref[-1] == alt[-1]:
        return False

    if min(len(ref), len(alt)) == 1:
        return True

    return ref[0] != alt[0]
