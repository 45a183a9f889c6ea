"""PostgreSQL schema management for the population and ClinVar tables."""

from dataclasses import dataclass

import asyncpg


@dataclass(frozen=True)
class PopulationTableSchema:
    """Table layout shared by the ExAC and 1000 Genomes imports.

    Rows are keyed on (release, chrom, start, ref, alt); ``start`` is 1-based
    and ``end`` is the inclusive end coordinate.
    """

    table_name: str
    prefix: str
    af_column: str
    max_allele_length: int = 500

    @property
    def columns(self) -> list[str]:
        return [
            "release",
            "chrom",
            "start",
            "end",
            "ref",
            "alt",
            f"{self.prefix}_het",
            f"{self.prefix}_hom",
            f"{self.prefix}_hemi",
            self.af_column,
        ]

    async def drop_table(self, conn: asyncpg.Connection) -> None:
        await conn.execute(f"DROP TABLE IF EXISTS {self.table_name}")

    async def create_table(self, conn: asyncpg.Connection) -> None:
        """Create the table with its primary key; the upsert relies on it."""
        await conn.execute(f"""
            CREATE TABLE {self.table_name} (
                release VARCHAR(10) NOT NULL,
                chrom VARCHAR(20) NOT NULL,
                start INTEGER NOT NULL,
                "end" INTEGER NOT NULL,
                ref VARCHAR({self.max_allele_length}) NOT NULL,
                alt VARCHAR({self.max_allele_length}) NOT NULL,
                {self.prefix}_het INTEGER NOT NULL,
                {self.prefix}_hom INTEGER NOT NULL,
                {self.prefix}_hemi INTEGER NOT NULL,
                {self.af_column} DOUBLE PRECISION NOT NULL,
                PRIMARY KEY (release, chrom, start, ref, alt)
            )
        """)

    async def create_indexes(self, conn: asyncpg.Connection) -> None:
        await conn.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{self.table_name}_region
            ON {self.table_name} (release, chrom, start, "end")
        """)

    async def upsert_rows(self, conn: asyncpg.Connection, rows: list[tuple]) -> None:
        """Insert rows, replacing the values of rows with the same key."""
        if not rows:
            return
        quoted = ", ".join(f'"{c}"' if c == "end" else c for c in self.columns)
        placeholders = ", ".join(f"${i}" for i in range(1, len(self.columns) + 1))
        updates = ",\n                ".join(
            f'"{c}" = EXCLUDED."{c}"' if c == "end" else f"{c} = EXCLUDED.{c}"
            for c in self.columns
            if c not in ("release", "chrom", "start", "ref", "alt")
        )
        await conn.executemany(
            f"""
            INSERT INTO {self.table_name} ({quoted})
            VALUES ({placeholders})
            ON CONFLICT (release, chrom, start, ref, alt) DO UPDATE SET
                {updates}
            """,
            rows,
        )

    async def verify_schema_exists(self, conn: asyncpg.Connection) -> bool:
        exists = await conn.fetchval(
            """
            SELECT EXISTS (
                SELECT FROM information_schema.tables
                WHERE table_name = $1
            )
            """,
            self.table_name,
        )
        return exists

    async def get_row_count(self, conn: asyncpg.Connection) -> int:
        count = await conn.fetchval(f"SELECT COUNT(*) FROM {self.table_name}")
        return count


@dataclass(frozen=True)
class ClinvarTableSchema:
    """Table of ClinVar variants, taken as already normalized."""

    table_name: str = "clinvar_var"
    max_allele_length: int = 500

    columns = [
        "chrom",
        "start",
        "end",
        "ref",
        "alt",
        "variation_id",
        "symbol",
        "clinical_significance",
        "review_status",
    ]

    async def drop_table(self, conn: asyncpg.Connection) -> None:
        await conn.execute(f"DROP TABLE IF EXISTS {self.table_name}")

    async def create_table(self, conn: asyncpg.Connection) -> None:
        await conn.execute(f"""
            CREATE TABLE {self.table_name} (
                chrom VARCHAR(20) NOT NULL,
                start INTEGER NOT NULL,
                "end" INTEGER NOT NULL,
                ref VARCHAR({self.max_allele_length}) NOT NULL,
                alt VARCHAR({self.max_allele_length}) NOT NULL,
                variation_id TEXT,
                symbol TEXT,
                clinical_significance TEXT,
                review_status TEXT
            )
        """)

    async def create_indexes(self, conn: asyncpg.Connection) -> None:
        await conn.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{self.table_name}_variant
            ON {self.table_name} (chrom, start, ref, alt)
        """)
        await conn.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{self.table_name}_region
            ON {self.table_name} (chrom, start, "end")
        """)

    async def insert_rows(self, conn: asyncpg.Connection, rows: list[tuple]) -> None:
        if not rows:
            return
        await conn.executemany(
            f"""
            INSERT INTO {self.table_name}
                (chrom, start, "end", ref, alt, variation_id, symbol,
                 clinical_significance, review_status)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            """,
            rows,
        )

    async def get_row_count(self, conn: asyncpg.Connection) -> int:
        count = await conn.fetchval(f"SELECT COUNT(*) FROM {self.table_name}")
        return count
