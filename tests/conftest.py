"""Pytest configuration and fixtures for varnorm-pg tests."""

from pathlib import Path

import pytest

try:
    from testcontainers.postgres import PostgresContainer

    HAS_TESTCONTAINERS = True
except ImportError:
    HAS_TESTCONTAINERS = False

FIXTURES_DIR = Path(__file__).parent / "fixtures"

REFERENCE_SEQUENCES = {
    "chr1": "GATTACAGATTACACCCCCTTTTTAGAGAGAGATCGATCGGGGGAAAAACCCCC",
    "chr2": "ACGTACGTACGTTTTTTTTTTGCATGCATGCA",
}


class DictReference:
    """In-memory reference genome keyed by contig name."""

    def __init__(self, sequences: dict[str, str]):
        self.sequences = sequences
        self.calls: list[tuple[str, int, int]] = []

    def fetch(self, chrom: str, start: int, end: int) -> str:
        """Fetch reference sequence for a region (0-based coordinates)."""
        self.calls.append((chrom, start, end))
        return self.sequences[chrom][start:end]


def write_fasta(path: Path, sequences: dict[str, str], width: int = 20) -> Path:
    lines = []
    for name, seq in sequences.items():
        lines.append(f">{name}")
        lines.extend(seq[i : i + width] for i in range(0, len(seq), width))
    path.write_text("\n".join(lines) + "\n")
    return path


VCF_HEADER = """##fileformat=VCFv4.2
##INFO=<ID=AC_AFR,Number=A,Type=Integer,Description="African allele count">
##INFO=<ID=AN_AFR,Number=1,Type=Integer,Description="African allele number">
##INFO=<ID=AC_NFE,Number=A,Type=Integer,Description="Non-Finnish European allele count">
##INFO=<ID=AN_NFE,Number=1,Type=Integer,Description="Non-Finnish European allele number">
##INFO=<ID=AC_Het,Number=A,Type=Integer,Description="Heterozygous counts">
##INFO=<ID=AC_Hom,Number=A,Type=Integer,Description="Homozygous counts">
##INFO=<ID=AC_Hemi,Number=A,Type=Integer,Description="Hemizygous counts">
##INFO=<ID=AC_EUR,Number=A,Type=Integer,Description="European allele count">
##INFO=<ID=AN_EUR,Number=1,Type=Integer,Description="European allele number">
##INFO=<ID=AC_ASN,Number=A,Type=Integer,Description="Asian allele count">
##INFO=<ID=AN_ASN,Number=1,Type=Integer,Description="Asian allele number">
##INFO=<ID=Het,Number=A,Type=Integer,Description="Heterozygous counts">
##INFO=<ID=Hom,Number=A,Type=Integer,Description="Homozygous counts">
##INFO=<ID=Hemi,Number=A,Type=Integer,Description="Hemizygous counts">
##contig=<ID=chr1,length=54>
##contig=<ID=chr2,length=32>
#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO
"""


def write_sites_vcf(path: Path, records: list[str]) -> Path:
    """Write a sites-only VCF; ``records`` are tab-separated data lines."""
    path.write_text(VCF_HEADER + "".join(r + "\n" for r in records))
    return path


def write_indexed_vcf(path: Path, records: list[str]) -> Path:
    """Write a bgzipped, tabix-indexed sites VCF; returns the ``.vcf.gz`` path."""
    pysam = pytest.importorskip("pysam")
    plain = write_sites_vcf(path, records)
    return Path(pysam.tabix_index(str(plain), preset="vcf", force=True))


@pytest.fixture
def dict_reference() -> DictReference:
    return DictReference(dict(REFERENCE_SEQUENCES))


@pytest.fixture
def fasta_path(tmp_path) -> Path:
    return write_fasta(tmp_path / "ref.fa", REFERENCE_SEQUENCES)


@pytest.fixture(scope="session")
def postgres_container():
    """Create a PostgreSQL container for integration tests."""
    if not HAS_TESTCONTAINERS:
        pytest.skip("testcontainers not installed")

    try:
        container = PostgresContainer("postgres:15")
        container.start()
    except Exception as e:
        pytest.skip(f"Docker not available: {e}")

    yield container
    container.stop()


@pytest.fixture
async def db_session(postgres_container):
    """Database session on an isolated connection to the test container."""
    import asyncpg

    from varnorm_pg.session import DatabaseSession

    url = postgres_container.get_connection_url()
    if url.startswith("postgresql+psycopg2://"):
        url = url.replace("postgresql+psycopg2://", "postgresql://")

    conn = await asyncpg.connect(url)
    yield DatabaseSession.from_connection(conn)
    await conn.close()
