"""varnorm-pg: canonical variant keys and population tables in PostgreSQL."""

__version__ = "0.1.0"
