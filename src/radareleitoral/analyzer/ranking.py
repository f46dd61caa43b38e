"""Ranqueamento do campo completo de candidatos de um pleito."""

from typing import Iterable, Optional

from ..models import CandidatoAgregado, CandidatoBloco, VotoZona
from ..slug import gerar_slug
from .agregacao import agregar, chave_por


# "NAO ELEITO" contem "ELEITO": a negacao e verificada antes
_NEGACOES = ("NÃO ELEITO", "NAO ELEITO")
_TERMOS_ELEITO = ("ELEITO", "MÉDIA", "MEDIA", "QP")


def is_eleito(situacao: Optional[str]) -> bool:
    """Classifica ds_sit_tot_turno (ELEITO, ELEITO POR QP, ELEITO POR MÉDIA...)."""
    if not situacao:
        return False
    upper = situacao.upper()
    if any(neg in upper for neg in _NEGACOES):
        return False
    return any(termo in upper for termo in _TERMOS_ELEITO)


def agregar_campo(votos: Iterable[VotoZona]) -> list[CandidatoAgregado]:
    """Soma as zonas de cada candidato do pleito (chave: sq_candidato)."""
    return [
        CandidatoAgregado(
            sq_candidato=g.primeiro.sq_candidato,
            nm_urna_candidato=g.primeiro.nm_urna_candidato or "",
            nm_candidato=g.primeiro.nm_candidato or "",
            sg_partido=g.primeiro.sg_partido or "",
            total_votos=g.total,
            ds_sit_tot_turno=g.primeiro.ds_sit_tot_turno or "",
        )
        for g in agregar(votos, chave_por("sq_candidato"))
    ]


def ranquear(candidatos: Iterable[CandidatoAgregado], sg_uf: str) -> list[CandidatoBloco]:
    """Ordena por votos (desc), empate por sq_candidato (asc), posicoes 1..N."""
    ordenados = sorted(candidatos, key=lambda c: (-c.total_votos, c.sq_candidato))
    return [
        CandidatoBloco(
            nm_urna_candidato=c.nm_urna_candidato,
            nm_candidato=c.nm_candidato,
            sg_partido=c.sg_partido,
            sg_uf=sg_uf,
            total_votos=c.total_votos,
            ds_sit_tot_turno=c.ds_sit_tot_turno,
            eleito=is_eleito(c.ds_sit_tot_turno),
            posicao=posicao,
            sq_candidato=c.sq_candidato,
            slug=gerar_slug(sg_uf, c.nm_candidato),
        )
        for posicao, c in enumerate(ordenados, start=1)
    ]
