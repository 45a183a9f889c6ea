"""Decomposition of multi-allelic records into normalized per-allele keys.

Population VCFs encode Number=A statistics as a bare scalar on biallelic
records and as a list on multi-allelic records. ``resolve_per_allele_stat`` is
the single place where that encoding is decoded.
"""

import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .models import NormalizedVariant, VariantKey
from .normalizer import VariantNormalizer
from .vcf_parser import SourceRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_ALLELE_LENGTH = 500

BASES_PATTERN = re.compile(r"^[ACGTN]+$", re.IGNORECASE)


def resolve_per_allele_stat(
    info: dict[str, Any],
    field: str,
    allele_index: int,
    num_alleles: int,
    default: Any = 0,
    cast: Callable[[Any], Any] = int,
) -> Any:
    """Return the value of ``field`` for the ``allele_index``-th ALT allele (1-based).

    Args:
        info: INFO attributes of the record, values scalar or list/tuple
        field: INFO key to look up
        allele_index: 1-based index of the alternate allele
        num_alleles: Number of alleles of the record including REF
        default: Value to return when the statistic is unavailable
        cast: Conversion applied to the selected value

    Returns:
        The converted value, or ``default`` when the field is missing, the list
        is too short or the value cannot be converted.
    """
    value = info.get(field)
    if value is None:
        return default

    if num_alleles == 2:
        if isinstance(value, list | tuple):
            value = value[0] if value else None
    else:
        values = list(value) if isinstance(value, list | tuple) else [value]
        if len(values) < allele_index:
            logger.warning(
                "Could not resolve %s for allele %d: expected %d values, got %d",
                field,
                allele_index,
                num_alleles - 1,
                len(values),
            )
            return default
        value = values[allele_index - 1]

    if value is None or (isinstance(value, float) and math.isnan(value)):
        return default
    try:
        return cast(value)
    except (TypeError, ValueError):
        logger.warning("Could not convert %s=%r for allele %d", field, value, allele_index)
        return default


@dataclass(frozen=True)
class DecomposedAllele:
    """A normalized alternate allele together with its 1-based index in the record."""

    index: int
    variant: NormalizedVariant


class MultiAllelicExtractor:
    """Split source records into one normalized key per alternate allele."""

    def __init__(
        self,
        normalizer: VariantNormalizer,
        max_allele_length: int = DEFAULT_MAX_ALLELE_LENGTH,
    ):
        self.normalizer = normalizer
        self.max_allele_length = max_allele_length

    def extract(self, record: SourceRecord) -> list[DecomposedAllele]:
        """Normalize each ALT allele of ``record``, skipping unusable ones.

        Keys are built with a 0-based start and normalized with
        ``normalize_insertion`` so that insertions keep their anchor base.
        """
        result = []
        for index, alt in enumerate(record.alts, start=1):
            if not alt or not BASES_PATTERN.match(alt) or not BASES_PATTERN.match(record.ref):
                logger.warning(
                    "Skipping non-sequence allele %r at %s:%d", alt, record.chrom, record.pos
                )
                continue
            if alt.upper() == record.ref.upper():
                logger.warning(
                    "Skipping allele identical to REF at %s:%d", record.chrom, record.pos
                )
                continue

            raw = VariantKey(record.chrom, record.pos - 1, record.ref, alt)
            variant = self.normalizer.normalize_insertion(raw)

            too_long = max(len(variant.ref), len(variant.alt))
            if too_long > self.max_allele_length:
                logger.warning(
                    "Skipping variant at %s:%d length = %d",
                    record.chrom,
                    record.pos,
                    too_long,
                )
                continue

            result.append(DecomposedAllele(index, variant))
        return result
