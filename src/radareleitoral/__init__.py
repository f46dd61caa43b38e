"""Radar Eleitoral: analise de bloco de corte sobre os dados do TSE."""

__version__ = "0.1.0"
