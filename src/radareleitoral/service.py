"""Orquestracao da analise eleitoral: busca, selecao, analise e cache."""

import asyncio
import logging
from typing import Optional

from .analyzer.bloco_corte import analisar_bloco_corte, resumir
from .analyzer.busca import agrupar_por_nome_urna
from .analyzer.historico import selecionar_eleicoes
from .analyzer.perfil import montar_perfil, ranking_municipios
from .analyzer.ranking import agregar_campo, ranquear
from .cache import CacheEleitoral
from .config import (
    CACHE_GRUPO_ANALISE,
    CACHE_GRUPO_CANDIDATO,
    CACHE_GRUPO_SUGESTOES,
    CACHE_MAX_AGE,
    CACHE_MAX_AGE_SUGESTOES,
    CACHE_VERSAO_ANALISE,
    CACHE_VERSAO_CANDIDATO,
    CACHE_VERSAO_SUGESTOES,
    DIAS_JANELA_TRENDING,
    ESTADOS,
    LIMIAR_OPORTUNIDADE,
    LIMITE_TRENDING,
    MAX_ELEICOES_ANALISE,
    TERMO_MINIMO,
    Settings,
)
from .database.duckdb_store import DuckDBStore
from .errors import CandidatoNaoEncontrado, ErroFonteDados, ParametroInvalido
from .models import (
    AnaliseEleicao,
    AnaliseResponse,
    EleicaoSelecionada,
    RegistroCandidato,
)
from .postgrest.api import PostgrestApi
from .slug import SlugCandidato, parse_slug

logger = logging.getLogger(__name__)


class AnaliseEleitoralService:
    """Executa a analise de bloco de corte e o perfil de um candidato."""

    def __init__(
        self,
        api: PostgrestApi,
        store: Optional[DuckDBStore] = None,
        settings: Optional[Settings] = None,
        max_eleicoes: int = MAX_ELEICOES_ANALISE,
        limiar_oportunidade: int = LIMIAR_OPORTUNIDADE,
    ):
        self._api = api
        self._store = store
        self._cache = CacheEleitoral(store) if store is not None else None
        self._settings = settings or Settings()
        self._max_eleicoes = max_eleicoes
        self._limiar = limiar_oportunidade

    @property
    def cache(self) -> Optional[CacheEleitoral]:
        return self._cache

    async def _resolver(self, slug: SlugCandidato) -> list[RegistroCandidato]:
        registros = await self._api.buscar_candidato(slug)
        if not registros:
            raise CandidatoNaoEncontrado("Candidato não encontrado")
        return registros

    async def _analisar_eleicao(
        self,
        eleicao: EleicaoSelecionada,
        sq_candidatos: list[int],
        partido: str,
        semaforo: asyncio.Semaphore,
    ) -> Optional[AnaliseEleicao]:
        """Analisa um pleito; qualquer falha de dados descarta so este pleito."""
        try:
            async with semaforo:
                votos = await self._api.votacao_por_eleicao(eleicao)
        except ErroFonteDados as e:
            logger.warning(
                "Pleito %s %s %s ignorado: %s",
                eleicao.nm_municipio, eleicao.ano_eleicao, eleicao.ds_cargo, e,
            )
            return None

        campo = ranquear(agregar_campo(votos), eleicao.sg_uf)
        if not campo:
            return None
        return analisar_bloco_corte(campo, eleicao, sq_candidatos, partido)

    async def analisar(self, slug: str) -> AnaliseResponse:
        """Analise de bloco de corte das ultimas eleicoes do candidato do slug."""
        candidato = parse_slug(slug)
        registros = await self._resolver(candidato)

        sq_candidatos = list(dict.fromkeys(r.sq_candidato for r in registros))
        partido = registros[0].sg_partido

        votos = await self._api.votacao_por_candidatos(sq_candidatos)
        eleicoes = selecionar_eleicoes(votos, self._max_eleicoes)
        logger.info(
            "Analisando %s: %d identificador(es), %d eleicao(oes)",
            slug, len(sq_candidatos), len(eleicoes),
        )

        semaforo = asyncio.Semaphore(self._settings.max_concurrent_requests)
        resultados = await asyncio.gather(
            *(self._analisar_eleicao(e, sq_candidatos, partido, semaforo) for e in eleicoes)
        )
        analises = [a for a in resultados if a is not None]
        return AnaliseResponse(analises=analises, resumo=resumir(analises, self._limiar))

    async def perfil(self, slug: str) -> dict:
        """Eleicoes, ranking de municipios e estatisticas do candidato."""
        candidato = parse_slug(slug)
        registros = await self._resolver(candidato)

        sq_candidatos = [r.sq_candidato for r in registros if r.sq_candidato]
        try:
            votos = await self._api.votacao_por_municipio(sq_candidatos)
        except ErroFonteDados as e:
            logger.error("Erro ao buscar ranking de municipios: %s", e)
            votos = []

        return montar_perfil(registros, candidato.uf, ranking_municipios(votos))

    def _termo_busca(self, termo: Optional[str], uf: Optional[str]) -> tuple[str, Optional[str]]:
        termo = (termo or "").strip()
        if len(termo) < TERMO_MINIMO:
            raise ParametroInvalido(f"Termo deve ter pelo menos {TERMO_MINIMO} caracteres")
        uf = uf.upper() if uf else None
        if uf is not None and uf not in ESTADOS:
            raise ParametroInvalido("UF inválida")
        return termo, uf

    async def buscar(self, termo: str, uf: Optional[str] = None) -> list[dict]:
        """Sugestoes de candidatos para o termo, somadas por nome de urna e pleito."""
        termo, uf = self._termo_busca(termo, uf)
        votos = await self._api.buscar_por_termo(termo, uf)
        return agrupar_por_nome_urna(votos)

    # ============================================================
    # Variantes cacheadas
    # ============================================================

    async def analisar_cacheado(self, slug: str) -> dict:
        async def _produzir():
            return (await self.analisar(slug)).para_dict()

        if self._cache is None:
            return await _produzir()
        parse_slug(slug)
        return await self._cache.obter(
            CACHE_GRUPO_ANALISE, f"{CACHE_VERSAO_ANALISE}:{slug}", _produzir, max_age=CACHE_MAX_AGE
        )

    async def perfil_cacheado(self, slug: str) -> dict:
        async def _produzir():
            return await self.perfil(slug)

        if self._cache is None:
            return await _produzir()
        parse_slug(slug)
        return await self._cache.obter(
            CACHE_GRUPO_CANDIDATO, f"{CACHE_VERSAO_CANDIDATO}:{slug}", _produzir, max_age=CACHE_MAX_AGE
        )

    async def buscar_cacheado(self, termo: str, uf: Optional[str] = None) -> list[dict]:
        termo, uf = self._termo_busca(termo, uf)

        async def _produzir():
            return await self.buscar(termo, uf)

        if self._cache is None:
            return await _produzir()
        chave = f"{CACHE_VERSAO_SUGESTOES}:{uf or 'all'}:{termo.lower()}"
        return await self._cache.obter(
            CACHE_GRUPO_SUGESTOES, chave, _produzir, max_age=CACHE_MAX_AGE_SUGESTOES
        )

    def invalidar_cache(self, slug: Optional[str] = None, todos: bool = False) -> list[str]:
        if self._cache is None:
            return []
        removidas = []
        if todos:
            for grupo in (CACHE_GRUPO_ANALISE, CACHE_GRUPO_CANDIDATO):
                removidas.extend(self._cache.invalidar(grupo))
        elif slug:
            removidas.extend(
                self._cache.invalidar(CACHE_GRUPO_ANALISE, f"{CACHE_VERSAO_ANALISE}:{slug}")
            )
            removidas.extend(
                self._cache.invalidar(CACHE_GRUPO_CANDIDATO, f"{CACHE_VERSAO_CANDIDATO}:{slug}")
            )
        else:
            raise ParametroInvalido("Forneça ?slug=... ou ?all=true")
        return removidas

    # ============================================================
    # Acessos
    # ============================================================

    def registrar_acesso(self, uf: str, slug: str, meta: dict) -> dict:
        """Registro de acesso best-effort: falhas nunca chegam ao chamador."""
        if self._store is None:
            return {"success": False, "error": "Erro ao registrar acesso"}
        try:
            count = self._store.registrar_acesso(uf, slug, meta)
            return {"success": True, "count": count}
        except Exception as e:
            logger.error("Erro ao rastrear acesso: %s", e)
            return {"success": False, "error": "Erro ao registrar acesso"}

    def trending(self, uf: str) -> list[dict]:
        uf = (uf or "").upper()
        if uf not in ESTADOS:
            raise ParametroInvalido("UF inválida")
        if self._store is None:
            return []
        try:
            return self._store.trending(uf, DIAS_JANELA_TRENDING, LIMITE_TRENDING)
        except Exception as e:
            logger.error("Erro ao buscar trending: %s", e)
            return []
