"""Agregacao, ranqueamento e analise de bloco de corte."""

from .agregacao import agregar, chave_por
from .bloco_corte import analisar_bloco_corte, resumir, tamanho_bloco
from .busca import agrupar_por_nome_urna
from .historico import selecionar_eleicoes
from .ranking import agregar_campo, is_eleito, ranquear

__all__ = [
    "agregar",
    "agregar_campo",
    "agrupar_por_nome_urna",
    "analisar_bloco_corte",
    "chave_por",
    "is_eleito",
    "ranquear",
    "resumir",
    "selecionar_eleicoes",
    "tamanho_bloco",
]
