"""Perfil do candidato: eleicoes disputadas, ranking de municipios e estatisticas."""

from typing import Iterable, Sequence

from ..models import RegistroCandidato, VotoZona
from .agregacao import agregar, chave_por
from .ranking import is_eleito


def ranking_municipios(votos: Iterable[VotoZona]) -> list[dict]:
    """Votos do candidato por municipio, do mais para o menos votado."""
    entradas = [
        {"nm_municipio": g.primeiro.nm_municipio, "total_votos": g.total}
        for g in agregar(votos, chave_por("nm_municipio"))
    ]
    entradas.sort(key=lambda e: (-e["total_votos"], e["nm_municipio"] or ""))
    return entradas


def _unicos(valores: Iterable) -> list:
    return list(dict.fromkeys(v for v in valores if v is not None))


def montar_perfil(
    registros: Sequence[RegistroCandidato],
    sg_uf: str,
    municipios: Sequence[dict],
) -> dict:
    primeiro = registros[0]

    eleicoes = sorted(
        (
            {
                "ano_eleicao": r.ano_eleicao,
                "ds_cargo": r.ds_cargo,
                "sg_partido": r.sg_partido,
                "nr_turno": r.nr_turno,
                "ds_sit_tot_turno": r.ds_sit_tot_turno,
                "total_votos": r.total_votos or 0,
                "municipios_count": r.municipios_votados or 0,
            }
            for r in registros
        ),
        key=lambda e: e["ano_eleicao"] or 0,
        reverse=True,
    )

    total_votos = sum(e["total_votos"] for e in eleicoes)
    vitorias = sum(1 for e in eleicoes if is_eleito(e["ds_sit_tot_turno"]))

    ranking = [
        {
            **m,
            "percentual": (m["total_votos"] / total_votos) * 100 if total_votos > 0 else 0,
        }
        for m in municipios
    ]

    return {
        "nm_candidato": primeiro.nm_candidato,
        "nm_urna_candidato": primeiro.nm_urna_candidato,
        "sg_uf": sg_uf,
        "eleicoes": eleicoes,
        "municipiosRanking": ranking,
        "stats": {
            "total_votos": total_votos,
            "anos_ativo": _unicos(e["ano_eleicao"] for e in eleicoes),
            "partidos": _unicos(e["sg_partido"] for e in eleicoes),
            "cargos": _unicos(e["ds_cargo"] for e in eleicoes),
            "vitorias": vitorias,
            "derrotas": len(eleicoes) - vitorias,
        },
    }
