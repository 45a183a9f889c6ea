"""Random access into an indexed reference FASTA."""

import logging
from pathlib import Path

import pyfaidx

logger = logging.getLogger(__name__)


class ReferenceLookupError(Exception):
    """Raised when the reference cannot answer a lookup.

    A missing FASTA, an unknown contig or an out-of-range position all mean the
    reference does not match the input data, so the run must be aborted.
    """

    pass


class IndexedReference:
    """pyfaidx-backed reference genome with 0-based, half-open coordinates."""

    def __init__(self, fasta_path: Path | str):
        self.fasta_path = Path(fasta_path)
        if not self.fasta_path.exists():
            raise ReferenceLookupError(f"Reference FASTA not found: {self.fasta_path}")
        try:
            self._fasta = pyfaidx.Fasta(
                str(self.fasta_path), as_raw=True, sequence_always_upper=True
            )
        except pyfaidx.FastaIndexingError as e:
            raise ReferenceLookupError(f"Could not index FASTA file {self.fasta_path}: {e}") from e
        logger.debug("Opened reference %s", self.fasta_path)

    def close(self) -> None:
        if self._fasta is not None:
            self._fasta.close()
            self._fasta = None

    def __enter__(self) -> "IndexedReference":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def contig_length(self, chrom: str) -> int:
        try:
            return len(self._fasta[chrom])
        except KeyError:
            raise ReferenceLookupError(
                f"Contig {chrom} not found in reference {self.fasta_path}"
            ) from None

    def fetch(self, chrom: str, start: int, end: int) -> str:
        """Fetch reference sequence for a region (0-based coordinates)."""
        length = self.contig_length(chrom)
        if start < 0 or end > length or start >= end:
            raise ReferenceLookupError(
                f"Region {chrom}:{start}-{end} is outside of contig bounds (length {length})"
            )
        return self._fasta[chrom][start:end]

    def base_at(self, chrom: str, pos: int) -> str:
        """Return the single base at 0-based position ``pos``."""
        return self.fetch(chrom, pos, pos + 1)
