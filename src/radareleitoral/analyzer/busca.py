"""Sugestoes de busca: linhas por zona agrupadas por nome de urna."""

from typing import Iterable

from ..config import LIMITE_SUGESTOES
from ..models import VotoZona
from ..slug import gerar_slug
from .agregacao import agregar, chave_por

# Mesmo nome de urna no mesmo pleito soma as zonas
CHAVE_NOME_URNA = chave_por("nm_urna_candidato", "ano_eleicao", "ds_cargo", "sg_uf", "nr_turno")


def agrupar_por_nome_urna(votos: Iterable[VotoZona], limite: int = LIMITE_SUGESTOES) -> list[dict]:
    """Soma votos por (nome de urna, ano, cargo, UF, turno), mais votados primeiro.

    Empates mantem a ordem em que o grupo apareceu.
    """
    grupos = sorted(agregar(votos, CHAVE_NOME_URNA), key=lambda g: -g.total)
    sugestoes = []
    for g in grupos[:limite]:
        r = g.primeiro
        sugestoes.append({
            "nm_candidato": r.nm_candidato,
            "nm_urna_candidato": r.nm_urna_candidato,
            "sg_partido": r.sg_partido,
            "ds_cargo": r.ds_cargo,
            "ano_eleicao": r.ano_eleicao,
            "sg_uf": r.sg_uf,
            "nr_turno": r.nr_turno,
            "qt_votos_nominais": g.total,
            "ds_sit_tot_turno": r.ds_sit_tot_turno,
            "slug": gerar_slug(r.sg_uf, r.nm_candidato) if r.sg_uf and r.nm_candidato else None,
        })
    return sugestoes
