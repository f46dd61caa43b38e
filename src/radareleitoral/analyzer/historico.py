"""Selecao das eleicoes mais representativas do historico de um candidato."""

import logging
from typing import Iterable

from ..config import CARGOS_ESTADUAIS, MAX_ELEICOES_ANALISE
from ..models import EleicaoSelecionada, VotoZona
from .agregacao import agregar

logger = logging.getLogger(__name__)


def is_cargo_estadual(ds_cargo: str) -> bool:
    upper = (ds_cargo or "").upper()
    return any(cargo in upper for cargo in CARGOS_ESTADUAIS)


def _chave_pleito(v: VotoZona) -> tuple:
    # Estadual: UF/ano/cargo/turno; municipal: municipio/ano/cargo/turno
    escopo = v.sg_uf if is_cargo_estadual(v.ds_cargo) else v.nm_municipio
    return (escopo, v.ano_eleicao, v.ds_cargo, v.nr_turno)


def agrupar_eleicoes(votos: Iterable[VotoZona]) -> list[EleicaoSelecionada]:
    """Soma os votos do candidato por pleito."""
    eleicoes = []
    for g in agregar(votos, _chave_pleito):
        v = g.primeiro
        estadual = is_cargo_estadual(v.ds_cargo)
        eleicoes.append(
            EleicaoSelecionada(
                # Para estadual, a UF faz o papel de municipio
                nm_municipio=v.sg_uf if estadual else v.nm_municipio,
                sg_uf=v.sg_uf,
                ano_eleicao=v.ano_eleicao,
                ds_cargo=v.ds_cargo,
                nr_turno=v.nr_turno,
                sg_partido=v.sg_partido or "",
                total_votos=g.total,
                ds_sit_tot_turno=v.ds_sit_tot_turno or "",
                is_estadual=estadual,
            )
        )
    return eleicoes


def selecionar_eleicoes(
    votos: Iterable[VotoZona], limite: int = MAX_ELEICOES_ANALISE
) -> list[EleicaoSelecionada]:
    """Uma eleicao por ano (a de maior votacao), das mais recentes para as antigas."""
    por_ano: dict[int, EleicaoSelecionada] = {}
    for eleicao in agrupar_eleicoes(votos):
        atual = por_ano.get(eleicao.ano_eleicao)
        if atual is None or eleicao.total_votos > atual.total_votos:
            por_ano[eleicao.ano_eleicao] = eleicao

    selecionadas = sorted(por_ano.values(), key=lambda e: e.ano_eleicao, reverse=True)[:limite]
    logger.debug(
        "Eleicoes selecionadas: %s",
        [(e.ano_eleicao, e.ds_cargo, e.nm_municipio) for e in selecionadas],
    )
    return selecionadas
