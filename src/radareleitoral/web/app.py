"""API HTTP do Radar Eleitoral (FastAPI)."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel

from ..config import Settings
from ..database.duckdb_store import DuckDBStore
from ..errors import CandidatoNaoEncontrado, ErroFonteDados, ParametroInvalido
from ..postgrest.api import PostgrestApi
from ..postgrest.client import PostgrestClient
from ..service import AnaliseEleitoralService

logger = logging.getLogger(__name__)


class AcessoCandidato(BaseModel):
    slug: str = ""
    uf: str = ""
    nome: str = ""
    nomeCompleto: str = ""
    partido: str = ""
    cargo: str = ""
    anoEleicao: int = 0
    situacao: str = ""
    totalVotos: int = 0


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, ParametroInvalido):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, CandidatoNaoEncontrado):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[AnaliseEleitoralService] = None,
) -> FastAPI:
    """Cria a aplicacao. Com ``service`` pronto, nenhum recurso externo e aberto."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Iniciando Radar Eleitoral (PostgREST: %s)", settings.postgrest_url)
        client = store = None
        if service is None:
            client = PostgrestClient(settings)
            store = DuckDBStore(settings.cache_path)
            app.state.service = AnaliseEleitoralService(PostgrestApi(client), store, settings)
        else:
            app.state.service = service
        try:
            yield
        finally:
            if app.state.service.cache is not None:
                await app.state.service.cache.aguardar_revalidacoes()
            if client is not None:
                await client.close()
            if store is not None:
                store.close()
            logger.info("Encerrando Radar Eleitoral")

    app = FastAPI(
        title="Radar Eleitoral",
        description="Analise de bloco de corte sobre os dados do TSE",
        lifespan=lifespan,
    )

    def get_service(request: Request) -> AnaliseEleitoralService:
        return request.app.state.service

    @app.get("/api/analise-eleitoral")
    async def analise_eleitoral(request: Request, slug: str = ""):
        """Analise de bloco de corte das ultimas eleicoes do candidato."""
        try:
            return await get_service(request).analisar_cacheado(slug)
        except (ParametroInvalido, CandidatoNaoEncontrado) as e:
            raise _http_error(e)
        except ErroFonteDados as e:
            logger.error("Erro na analise de %s: %s", slug, e)
            raise HTTPException(status_code=500, detail="Erro ao buscar votação do candidato")

    @app.get("/api/candidato")
    async def candidato(request: Request, slug: str = ""):
        """Perfil do candidato."""
        try:
            return await get_service(request).perfil_cacheado(slug)
        except (ParametroInvalido, CandidatoNaoEncontrado) as e:
            raise _http_error(e)
        except ErroFonteDados as e:
            logger.error("Erro no perfil de %s: %s", slug, e)
            raise HTTPException(status_code=500, detail="Erro ao buscar dados do candidato")

    @app.get("/api/search/suggestions")
    async def sugestoes(request: Request, termo: str = "", uf: Optional[str] = None):
        """Sugestoes de candidatos para busca (ate 15, mais votados primeiro)."""
        try:
            return await get_service(request).buscar_cacheado(termo, uf)
        except ParametroInvalido as e:
            raise _http_error(e)
        except ErroFonteDados as e:
            logger.error("Erro na busca por %r: %s", termo, e)
            raise HTTPException(status_code=500, detail="Erro ao buscar candidatos")

    @app.post("/api/cache/invalidate")
    async def invalidar_cache(
        request: Request, slug: Optional[str] = None, todos: str = Query("", alias="all")
    ):
        try:
            chaves = get_service(request).invalidar_cache(slug=slug, todos=todos == "true")
        except ParametroInvalido as e:
            raise _http_error(e)
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Erro ao invalidar cache: {e}")
        return {
            "success": True,
            "message": f"Cache invalidado: {len(chaves)} item(s)",
            "keys": chaves,
        }

    @app.post("/api/trending/track")
    async def registrar_acesso(request: Request, acesso: AcessoCandidato):
        if not acesso.slug or not acesso.uf or not acesso.nome:
            raise HTTPException(status_code=400, detail="Campos obrigatórios: slug, uf, nome")
        meta = acesso.model_dump(exclude={"slug", "uf"})
        return get_service(request).registrar_acesso(acesso.uf, acesso.slug, meta)

    @app.get("/api/trending/{uf}")
    async def trending(request: Request, uf: str):
        try:
            return get_service(request).trending(uf)
        except ParametroInvalido as e:
            raise _http_error(e)

    return app
