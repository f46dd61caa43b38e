"""Persistencia local (DuckDB)."""
