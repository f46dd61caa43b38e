"""Consultas tipadas ao PostgREST dos dados do TSE."""

import logging
from typing import Any, Iterable, Optional

from ..config import (
    LIMITE_LINHAS_BUSCA,
    RPC_BUSCA_FUZZY,
    RPC_BUSCA_SLUG,
    TABELA_VOTACAO,
    VIEW_VOTOS_CANDIDATO,
)
from ..errors import ErroFonteDados, ErroTransporte
from ..models import EleicaoSelecionada, RegistroCandidato, VotoZona
from ..slug import SlugCandidato, palavras_busca
from .client import PostgrestClient

logger = logging.getLogger(__name__)

COLUNAS_HISTORICO = (
    "nm_municipio", "sg_uf", "ano_eleicao", "ds_cargo", "nr_turno",
    "sg_partido", "qt_votos_nominais", "ds_sit_tot_turno",
)
COLUNAS_PLEITO = (
    "sq_candidato", "nm_urna_candidato", "nm_candidato", "sg_partido",
    "qt_votos_nominais", "ds_sit_tot_turno",
)
COLUNAS_MUNICIPIO = ("nm_municipio", "qt_votos_nominais")

# Campos sem os quais a linha nao serve para a analise
OBRIGATORIOS_HISTORICO = ("nm_municipio", "sg_uf", "ano_eleicao", "ds_cargo", "nr_turno")
OBRIGATORIOS_PLEITO = ("sq_candidato",)


def _parse_linhas(dados: Any, modelo, obrigatorios: tuple[str, ...] = ()) -> list:
    """Valida o payload inteiro; uma linha invalida rejeita a resposta."""
    if dados is None:
        return []
    if not isinstance(dados, list):
        raise ErroFonteDados(f"Payload inesperado: {type(dados).__name__}")
    return [modelo.from_row(row, obrigatorios=obrigatorios) for row in dados]


def _lista_in(valores: Iterable[int]) -> str:
    return "in.(" + ",".join(str(v) for v in valores) + ")"


class PostgrestApi:
    """Interface de consulta das tabelas e views eleitorais."""

    def __init__(self, client: PostgrestClient):
        self._client = client

    async def _buscar_registros(self, path: str, params: dict) -> list[RegistroCandidato]:
        """Uma estrategia de busca de candidato.

        Status HTTP de erro ou linhas invalidas contam como vazio; fonte
        inalcancavel (ErroTransporte) propaga.
        """
        try:
            dados = await self._client.fetch_json(path, params)
            return _parse_linhas(dados, RegistroCandidato)
        except ErroTransporte:
            raise
        except ErroFonteDados as e:
            logger.warning("Busca em %s falhou: %s", path, e)
            return []

    async def buscar_candidato(self, slug: SlugCandidato) -> list[RegistroCandidato]:
        """Resolve o candidato do slug, tentando estrategias em ordem."""
        uf = slug.uf
        nome = slug.nome_completo

        # 1: RPC com normalize_search (ignora acentos: "andre" acha "ANDRÉ")
        registros = await self._buscar_registros(
            RPC_BUSCA_SLUG, {"p_uf": uf, "p_nome_slug": nome}
        )
        if registros:
            return registros

        # 2: ILIKE no nome completo
        registros = await self._buscar_registros(
            VIEW_VOTOS_CANDIDATO,
            {"sg_uf": f"eq.{uf}", "nm_candidato": f"ilike.*{nome}*", "order": "ano_eleicao.desc"},
        )
        if registros:
            return registros

        # 3: nome de urna com palavras-chave
        palavras = palavras_busca(slug.nome_slug)
        if palavras:
            registros = await self._buscar_registros(
                VIEW_VOTOS_CANDIDATO,
                {
                    "sg_uf": f"eq.{uf}",
                    "nm_urna_candidato": f"ilike.*{' '.join(palavras)}*",
                    "order": "ano_eleicao.desc",
                },
            )
            if registros:
                return registros

        # 4: primeiro e ultimo nome
        partes = [p for p in nome.split(" ") if len(p) >= 3]
        if len(partes) >= 2:
            registros = await self._buscar_registros(
                VIEW_VOTOS_CANDIDATO,
                {
                    "sg_uf": f"eq.{uf}",
                    "nm_candidato": f"ilike.*{partes[0]}*{partes[-1]}*",
                    "order": "ano_eleicao.desc",
                },
            )
        return registros

    async def votacao_por_candidatos(self, sq_candidatos: list[int]) -> list[VotoZona]:
        """Todas as votacoes (zona a zona) dos identificadores, ano mais recente primeiro."""
        if not sq_candidatos:
            return []
        dados = await self._client.fetch_json(
            TABELA_VOTACAO,
            {
                "sq_candidato": _lista_in(sq_candidatos),
                "select": ",".join(COLUNAS_HISTORICO),
                "order": "ano_eleicao.desc",
            },
        )
        if dados is None:
            raise ErroFonteDados("Erro ao buscar votação do candidato")
        return _parse_linhas(dados, VotoZona, OBRIGATORIOS_HISTORICO)

    async def votacao_por_eleicao(self, eleicao: EleicaoSelecionada) -> list[VotoZona]:
        """Votacao de todos os candidatos de um pleito."""
        # Municipio filtrado junto com a UF: ha nomes repetidos entre estados
        params = {
            "sg_uf": f"eq.{eleicao.sg_uf}",
            "ano_eleicao": f"eq.{eleicao.ano_eleicao}",
            "ds_cargo": f"eq.{eleicao.ds_cargo}",
            "nr_turno": f"eq.{eleicao.nr_turno}",
            "select": ",".join(COLUNAS_PLEITO),
        }
        if not eleicao.is_estadual:
            params["nm_municipio"] = f"eq.{eleicao.nm_municipio}"

        dados = await self._client.fetch_json(TABELA_VOTACAO, params)
        return _parse_linhas(dados, VotoZona, OBRIGATORIOS_PLEITO)

    async def votacao_por_municipio(self, sq_candidatos: list[int]) -> list[VotoZona]:
        if not sq_candidatos:
            return []
        dados = await self._client.fetch_json(
            TABELA_VOTACAO,
            {
                "sq_candidato": _lista_in(sq_candidatos),
                "select": ",".join(COLUNAS_MUNICIPIO),
                "order": "qt_votos_nominais.desc",
            },
        )
        return _parse_linhas(dados, VotoZona, COLUNAS_MUNICIPIO)

    async def buscar_por_termo(
        self, termo: str, uf: Optional[str] = None, limite: int = LIMITE_LINHAS_BUSCA
    ) -> list[VotoZona]:
        """Linhas por zona dos candidatos cujo nome casa com o termo (busca fuzzy)."""
        params = {"p_termo": termo, "p_limite": str(limite)}
        if uf:
            params["p_uf"] = uf
        dados = await self._client.fetch_json(RPC_BUSCA_FUZZY, params)
        return _parse_linhas(dados, VotoZona)
