"""Interface de linha de comando do Radar Eleitoral."""

import asyncio
import json
import logging
from dataclasses import replace

import click

from .config import Settings
from .database.duckdb_store import DuckDBStore
from .errors import CandidatoNaoEncontrado, ErroFonteDados, ParametroInvalido
from .postgrest.api import PostgrestApi
from .postgrest.client import PostgrestClient
from .service import AnaliseEleitoralService


def setup_logging(verbose: bool = False, level: str = "INFO"):
    level = logging.DEBUG if verbose else getattr(logging, level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _executar(settings: Settings, operacao):
    """Roda uma operacao do servico com cliente e cache abertos."""

    async def _run():
        async with PostgrestClient(settings) as client:
            with DuckDBStore(settings.cache_path) as store:
                service = AnaliseEleitoralService(PostgrestApi(client), store, settings)
                resultado = await operacao(service)
                await service.cache.aguardar_revalidacoes()
                return resultado

    try:
        return asyncio.run(_run())
    except ParametroInvalido as e:
        raise click.BadParameter(str(e))
    except CandidatoNaoEncontrado as e:
        raise click.ClickException(str(e))
    except ErroFonteDados as e:
        raise click.ClickException(f"Erro na fonte de dados: {e}")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Modo verboso")
@click.option("--postgrest-url", default=None, help="URL base do PostgREST")
@click.pass_context
def main(ctx, verbose, postgrest_url):
    """Radar Eleitoral: analise de bloco de corte dos dados do TSE."""
    settings = Settings.from_env()
    setup_logging(verbose, settings.log_level)
    if postgrest_url:
        settings = replace(settings, postgrest_url=postgrest_url.rstrip("/"))
    ctx.obj = settings


# ============================================================
# Comandos de analise
# ============================================================

@main.command("analise")
@click.argument("slug")
@click.option("--sem-cache", is_flag=True, help="Ignora o cache")
@click.pass_obj
def analise(settings, slug, sem_cache):
    """Analise de bloco de corte. Ex: radar analise pe-george-bastos"""

    async def _op(service):
        if sem_cache:
            return (await service.analisar(slug)).para_dict()
        return await service.analisar_cacheado(slug)

    resultado = _executar(settings, _op)
    click.echo(json.dumps(resultado, indent=2, ensure_ascii=False))

    resumo = resultado["resumo"]
    click.echo(
        f"\n{resumo['total_eleicoes']} eleicao(oes) analisada(s), "
        f"{resumo['vezes_no_bloco']} no bloco de corte, "
        f"{resumo['oportunidades_reais']} oportunidade(s) real(is)",
        err=True,
    )


@main.command("candidato")
@click.argument("slug")
@click.pass_obj
def candidato(settings, slug):
    """Perfil do candidato (eleicoes, municipios, estatisticas)."""

    async def _op(service):
        return await service.perfil_cacheado(slug)

    click.echo(json.dumps(_executar(settings, _op), indent=2, ensure_ascii=False))


@main.command("busca")
@click.argument("termo")
@click.option("--uf", default=None, help="Restringe a busca a uma UF")
@click.pass_obj
def busca(settings, termo, uf):
    """Busca candidatos por nome. Ex: radar busca bastos --uf PE"""

    async def _op(service):
        return await service.buscar_cacheado(termo, uf)

    sugestoes = _executar(settings, _op)
    if not sugestoes:
        click.echo("Nenhum candidato encontrado.")
    for s in sugestoes:
        click.echo(
            f"{s['qt_votos_nominais']:>9}  {s['nm_urna_candidato']} ({s['sg_partido']}) "
            f"{s['ds_cargo']} {s['ano_eleicao']}/{s['sg_uf']} - {s['slug']}"
        )


@main.command("trending")
@click.argument("uf")
@click.pass_obj
def trending(settings, uf):
    """Candidatos mais acessados da UF nos ultimos 30 dias."""
    with DuckDBStore(settings.cache_path) as store:
        service = AnaliseEleitoralService(PostgrestApi(PostgrestClient(settings)), store, settings)
        try:
            itens = service.trending(uf)
        except ParametroInvalido as e:
            raise click.BadParameter(str(e))
    if not itens:
        click.echo("Nenhum acesso registrado.")
    for item in itens:
        click.echo(f"{item['acessos']:>5}  {item['nome']} ({item['partido']}) - {item['slug']}")


# ============================================================
# Comandos de cache
# ============================================================

@main.group()
def cache():
    """Comandos de cache."""
    pass


@cache.command("limpar")
@click.option("--slug", default=None, help="Slug do candidato")
@click.option("--all", "todos", is_flag=True, help="Limpa todo o cache")
@click.pass_obj
def cache_limpar(settings, slug, todos):
    """Invalida o cache de um candidato ou de todos."""
    with DuckDBStore(settings.cache_path) as store:
        service = AnaliseEleitoralService(PostgrestApi(PostgrestClient(settings)), store, settings)
        try:
            chaves = service.invalidar_cache(slug=slug, todos=todos)
        except ParametroInvalido:
            raise click.UsageError("Use --slug SLUG ou --all")
    click.echo(f"Cache invalidado: {len(chaves)} item(s)")
    for chave in chaves:
        click.echo(f"  {chave}")


# ============================================================
# Servidor HTTP
# ============================================================

@main.command("serve")
@click.option("--host", default="127.0.0.1", help="Endereco do servidor")
@click.option("--port", default=8000, help="Porta do servidor")
@click.pass_obj
def serve(settings, host, port):
    """Inicia a API HTTP (uvicorn)."""
    import uvicorn

    from .web.app import create_app

    click.echo(f"Iniciando API em http://{host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
