"""Modulo de acesso ao PostgREST com os dados do TSE."""

from .api import PostgrestApi
from .client import PostgrestClient

__all__ = ["PostgrestApi", "PostgrestClient"]
