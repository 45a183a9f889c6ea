"""Importers that recreate and fill the annotation tables."""

from .base import ImportStats, PopulationImporter
from .clinvar import ClinvarHeaderError, ClinvarImporter
from .exac import ExacImporter
from .schema import ClinvarTableSchema, PopulationTableSchema
from .thousand_genomes import ThousandGenomesImporter

__all__ = [
    "ClinvarHeaderError",
    "ClinvarImporter",
    "ClinvarTableSchema",
    "ExacImporter",
    "ImportStats",
    "PopulationImporter",
    "PopulationTableSchema",
    "ThousandGenomesImporter",
]
