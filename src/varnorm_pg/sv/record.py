"""Sample-aware access to the FORMAT and INFO fields of a cyvcf2 variant."""

import math
import numbers
from dataclasses import dataclass
from typing import Any

INT32_MISSING = -2147483648
INT32_VECTOR_END = -2147483647


def _int_or_none(value: Any) -> int | None:
    value = int(value)
    if value in (INT32_MISSING, INT32_VECTOR_END):
        return None
    return value


def _float_or_none(value: Any) -> float | None:
    value = float(value)
    if math.isnan(value):
        return None
    return value


@dataclass
class SvRecord:
    """A cyvcf2 variant together with the sample names of its file."""

    variant: Any
    samples: list[str]

    @property
    def chrom(self) -> str:
        return self.variant.CHROM

    @property
    def start(self) -> int:
        """0-based start."""
        return self.variant.start

    @property
    def end(self) -> int:
        """0-based, half-open end, taken from INFO/END for symbolic alleles."""
        return self.variant.end

    @property
    def alts(self) -> list[str]:
        return list(self.variant.ALT)

    @property
    def sv_type(self) -> str | None:
        sv_type = self.variant.INFO.get("SVTYPE")
        if sv_type is None and self.alts and self.alts[0].startswith("<"):
            return self.alts[0].strip("<>")
        return sv_type

    def sample_index(self, sample_name: str) -> int:
        try:
            return self.samples.index(sample_name)
        except ValueError:
            raise KeyError(f"Sample {sample_name} not found in VCF") from None

    def info(self, key: str) -> Any:
        return self.variant.INFO.get(key)

    def _format(self, field: str):
        if field not in self.variant.FORMAT:
            return None
        return self.variant.format(field)

    def format_ints(self, field: str, sample_name: str) -> list[int | None] | None:
        """All values of an integer FORMAT field for one sample."""
        array = self._format(field)
        if array is None:
            return None
        values = [_int_or_none(v) for v in array[self.sample_index(sample_name)]]
        values = [v for v in values if v is not None]
        return values or None

    def format_int(self, field: str, sample_name: str) -> int | None:
        values = self.format_ints(field, sample_name)
        return values[0] if values else None

    def format_float(self, field: str, sample_name: str) -> float | None:
        array = self._format(field)
        if array is None:
            return None
        value = array[self.sample_index(sample_name)][0]
        if isinstance(value, numbers.Integral):
            value = _int_or_none(value)
            return float(value) if value is not None else None
        return _float_or_none(value)

    def format_str(self, field: str, sample_name: str) -> str | None:
        array = self._format(field)
        if array is None:
            return None
        value = array[self.sample_index(sample_name)]
        if isinstance(value, bytes):
            value = value.decode()
        value = str(value)
        return None if value in ("", ".") else value

    def genotype(self, sample_name: str, allele_index: int) -> str:
        """Genotype string relative to one ALT allele.

        REF stays "0", the selected allele becomes "1" and any other allele,
        including missing calls, becomes ".".
        """
        gt_data = self.variant.genotypes[self.sample_index(sample_name)]
        *alleles, phased = gt_data
        if not alleles:
            return "./."

        def recode(allele: int) -> str:
            if allele == 0:
                return "0"
            if allele == allele_index:
                return "1"
            return "."

        sep = "|" if phased else "/"
        return sep.join(recode(a) for a in alleles)

    def filters(self, sample_name: str) -> list[str]:
        """Sample-level FT filters, falling back to the record FILTER column."""
        value = self.format_str("FT", sample_name)
        if value is None:
            value = self.variant.FILTER
        if not value:
            return []
        result = []
        for name in value.split(";"):
            if name and name not in (".", "PASS") and name not in result:
                result.append(name)
        return result
