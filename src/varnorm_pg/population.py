"""Population frequency aggregation for ExAC- and 1000 Genomes-style records.

Both sources report per-subpopulation allele counts (``AC_<POP>``) and allele
numbers (``AN_<POP>``). The popmax is the largest ``AC/AN`` over the configured
subpopulations. Zygosity counts come from combined fields rather than from a
per-population maximum.
"""

import logging
from typing import Any

from .alleles import resolve_per_allele_stat
from .models import ZygosityCounts

logger = logging.getLogger(__name__)

EXAC_POPULATIONS = ["AFR", "AMR", "EAS", "FIN", "NFE", "OTH", "SAS"]

THOUSAND_GENOMES_POPULATIONS = ["AFR", "AMR", "ASN", "EUR"]

EXAC_ZYGOSITY_FIELDS = ("AC_Het", "AC_Hom", "AC_Hemi")

THOUSAND_GENOMES_ZYGOSITY_FIELDS = ("Het", "Hom", "Hemi")


def compute_popmax_af(
    info: dict[str, Any],
    populations: list[str],
    allele_index: int,
    num_alleles: int,
) -> float:
    """Compute the population maximum allele frequency for one ALT allele.

    Subpopulations with ``AN == 0`` carry no information and are skipped.
    Subpopulations with ``AN > 0`` but no allele count for this allele are
    skipped with a warning. If no subpopulation contributes the result is 0.0.

    Args:
        info: VCF INFO field dictionary
        populations: Subpopulation labels, e.g. ["AFR", "NFE"]
        allele_index: 1-based index of the ALT allele
        num_alleles: Number of alleles of the record including REF

    Returns:
        Maximum ``AC_<POP> / AN_<POP>`` over the populations
    """
    popmax: float | None = None

    for pop in populations:
        an = resolve_per_allele_stat(info, f"AN_{pop}", 1, 2, default=0)
        if an <= 0:
            continue

        ac = resolve_per_allele_stat(
            info, f"AC_{pop}", allele_index, num_alleles, default=None
        )
        if ac is None:
            logger.warning(
                "Could not update AF_POPMAX (%s) for allele %d", pop, allele_index
            )
            continue

        af = ac / an
        if popmax is None or af > popmax:
            popmax = af

    return popmax if popmax is not None else 0.0


def zygosity_counts(
    info: dict[str, Any],
    allele_index: int,
    num_alleles: int,
    fields: tuple[str, str, str] = EXAC_ZYGOSITY_FIELDS,
) -> ZygosityCounts:
    """Read het/hom/hemi counts for one ALT allele from combined INFO fields.

    ExAC uses ``AC_Het``/``AC_Hom``/``AC_Hemi``; 1000 Genomes uses
    ``Het``/``Hom``/``Hemi``. Missing values count as 0. No maximum over
    subpopulations is taken: per-population fields such as ``Hom_AFR`` are not
    consulted.
    """
    het_field, hom_field, hemi_field = fields
    return ZygosityCounts(
        het=resolve_per_allele_stat(info, het_field, allele_index, num_alleles),
        hom=resolve_per_allele_stat(info, hom_field, allele_index, num_alleles),
        hemi=resolve_per_allele_stat(info, hemi_field, allele_index, num_alleles),
    )
