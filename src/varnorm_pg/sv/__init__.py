"""Structural-variant caller support."""

from .callers import (
    AmbiguousCallerError,
    CallerSupport,
    Delly2Support,
    DragenCnvSupport,
    MantaSupport,
    UnsupportedCallerError,
    build_caller_supports,
    select_caller_support,
)
from .coverage import CoverageSource, CoverageSummary, MaelstromCoverageReader
from .extractor import SvCall, SvGenotypeExtractor
from .models import SampleGenotype, SvCaller
from .record import SvRecord

__all__ = [
    "AmbiguousCallerError",
    "CallerSupport",
    "CoverageSource",
    "CoverageSummary",
    "Delly2Support",
    "DragenCnvSupport",
    "MaelstromCoverageReader",
    "MantaSupport",
    "SampleGenotype",
    "SvCall",
    "SvCaller",
    "SvGenotypeExtractor",
    "SvRecord",
    "UnsupportedCallerError",
    "build_caller_supports",
    "select_caller_support",
]
