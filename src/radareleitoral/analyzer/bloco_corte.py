"""Analise de bloco de corte de um pleito.

1. Conta eleitos = numero de vagas
2. Bloco de corte = top max(ceil(vagas * 1.5), vagas + 5) candidatos
3. Concorrente interno = mesmo partido, mais votos, mais proximo
4. Concorrente externo = outro partido, mais votos, mais proximo
5. Pior eleito externo = eleito de outro partido com menor votacao
6. Score de oportunidade = votos do pior eleito - votos do candidato
"""

import logging
import math
from collections.abc import Collection, Sequence
from typing import Optional

from ..config import BLOCO_FATOR, BLOCO_FOLGA, LIMIAR_OPORTUNIDADE
from ..models import (
    AnaliseEleicao,
    CandidatoAnalisado,
    CandidatoBloco,
    ConcorrenteExterno,
    ConcorrenteInterno,
    EleicaoSelecionada,
    MetricasPleito,
    PartidoEficiencia,
    ResumoAnalise,
    TipoConcorrente,
)

logger = logging.getLogger(__name__)


def tamanho_bloco(vagas: int, fator: float = BLOCO_FATOR, folga: int = BLOCO_FOLGA) -> int:
    return max(math.ceil(vagas * fator), vagas + folga)


def _arredondar(valor: float) -> int:
    # Meio para cima; round() do Python arredonda para o par
    return int(math.floor(valor + 0.5))


def _concorrente_interno(
    c: CandidatoBloco, alvo: CandidatoBloco
) -> ConcorrenteInterno:
    return ConcorrenteInterno(
        nm_urna_candidato=c.nm_urna_candidato,
        sg_partido=c.sg_partido,
        sg_uf=c.sg_uf,
        slug=c.slug,
        total_votos=c.total_votos,
        diferenca_votos=c.total_votos - alvo.total_votos,
        posicao=c.posicao,
        eleito=c.eleito,
    )


def _concorrente_externo(
    c: CandidatoBloco, alvo: CandidatoBloco, tipo: TipoConcorrente
) -> ConcorrenteExterno:
    diferenca = c.total_votos - alvo.total_votos
    return ConcorrenteExterno(
        nm_urna_candidato=c.nm_urna_candidato,
        sg_partido=c.sg_partido,
        sg_uf=c.sg_uf,
        slug=c.slug,
        total_votos=c.total_votos,
        diferenca_votos=diferenca,
        posicao=c.posicao,
        tipo=tipo,
        score_oportunidade=diferenca,
    )


def eficiencia_partidos(bloco: Sequence[CandidatoBloco]) -> list[PartidoEficiencia]:
    """Candidatos, votos e eleitos por partido dentro do bloco de corte."""
    partidos: dict[str, dict] = {}
    for c in bloco:
        dados = partidos.setdefault(c.sg_partido, {"candidatos": 0, "votos": 0, "eleitos": 0})
        dados["candidatos"] += 1
        dados["votos"] += c.total_votos
        if c.eleito:
            dados["eleitos"] += 1

    resultado = [
        PartidoEficiencia(
            sg_partido=partido,
            candidatos_bloco=dados["candidatos"],
            total_votos=dados["votos"],
            eleitos=dados["eleitos"],
            media_votos=_arredondar(dados["votos"] / dados["candidatos"]),
            eficiencia=dados["eleitos"] / dados["candidatos"],
        )
        for partido, dados in partidos.items()
    ]
    resultado.sort(key=lambda p: p.eficiencia, reverse=True)
    return resultado


def analisar_bloco_corte(
    campo: Sequence[CandidatoBloco],
    eleicao: EleicaoSelecionada,
    sq_candidatos: Collection[int],
    partido: str,
) -> Optional[AnaliseEleicao]:
    """Analisa a posicao competitiva do candidato no campo ranqueado do pleito.

    Args:
        campo: candidatos do pleito ja ranqueados (posicao 1 = mais votado)
        eleicao: pleito analisado
        sq_candidatos: identificadores do candidato (pode ter varios por eleicao)
        partido: partido do candidato, usado para separar interno de externo

    Returns:
        None quando o pleito nao e analisavel (sem eleitos ou candidato ausente).
    """
    eleitos = [c for c in campo if c.eleito]
    vagas = len(eleitos)
    if vagas == 0:
        # Dados incompletos ou 1o turno de majoritaria com 2o turno
        logger.debug(
            "Pleito sem eleitos: %s %s %s", eleicao.nm_municipio, eleicao.ano_eleicao, eleicao.ds_cargo
        )
        return None

    tamanho = tamanho_bloco(vagas)
    bloco = list(campo[:tamanho])

    alvo = next((c for c in campo if c.sq_candidato in sq_candidatos), None)
    if alvo is None:
        logger.debug(
            "Candidato ausente do pleito %s %s %s",
            eleicao.nm_municipio, eleicao.ano_eleicao, eleicao.ds_cargo,
        )
        return None

    acima = [c for c in campo if c.total_votos > alvo.total_votos]
    mesmo_partido = [c for c in acima if c.sg_partido == partido]
    outros_partidos = [c for c in acima if c.sg_partido != partido]
    eleitos_externos = [c for c in eleitos if c.sg_partido != partido]

    interno = _concorrente_interno(mesmo_partido[-1], alvo) if mesmo_partido else None
    externo = (
        _concorrente_externo(outros_partidos[-1], alvo, TipoConcorrente.PROXIMO_ACIMA)
        if outros_partidos else None
    )
    pior_eleito = (
        _concorrente_externo(eleitos_externos[-1], alvo, TipoConcorrente.PIOR_ELEITO)
        if eleitos_externos else None
    )

    return AnaliseEleicao(
        ano_eleicao=eleicao.ano_eleicao,
        nm_municipio=eleicao.nm_municipio,
        sg_uf=eleicao.sg_uf,
        ds_cargo=eleicao.ds_cargo,
        nr_turno=eleicao.nr_turno,
        candidato=CandidatoAnalisado(
            nm_urna_candidato=alvo.nm_urna_candidato,
            sg_partido=alvo.sg_partido,
            total_votos=alvo.total_votos,
            posicao=alvo.posicao,
            eleito=alvo.eleito,
            no_bloco_corte=alvo.posicao <= tamanho,
        ),
        metricas=MetricasPleito(
            total_candidatos=len(campo),
            vagas=vagas,
            bloco_corte_tamanho=tamanho,
            votos_corte=eleitos[-1].total_votos,
            votos_ultimo_bloco=bloco[-1].total_votos,
        ),
        concorrente_interno=interno,
        concorrente_externo=externo,
        pior_eleito_externo=pior_eleito,
        partidos_eficiencia=eficiencia_partidos(bloco),
        bloco_corte=bloco,
    )


def resumir(
    analises: Sequence[AnaliseEleicao], limiar: int = LIMIAR_OPORTUNIDADE
) -> ResumoAnalise:
    oportunidades = sum(
        1 for a in analises
        if a.pior_eleito_externo is not None and a.pior_eleito_externo.score_oportunidade < limiar
    )
    return ResumoAnalise(
        total_eleicoes=len(analises),
        vezes_no_bloco=sum(1 for a in analises if a.candidato.no_bloco_corte),
        oportunidades_reais=oportunidades,
    )
