"""
Service-level tests: resolution, contest selection, fan-out and caching
over the in-memory FakeApi.
"""

import asyncio

import httpx
import pytest

from radareleitoral.config import Settings
from radareleitoral.database.duckdb_store import DuckDBStore
from radareleitoral.errors import (
    CandidatoNaoEncontrado,
    ErroFonteDados,
    ErroTransporte,
    ParametroInvalido,
    SlugInvalido,
)
from radareleitoral.models import VotoZona
from radareleitoral.postgrest.api import PostgrestApi
from radareleitoral.postgrest.client import PostgrestClient
from radareleitoral.service import AnaliseEleitoralService


SLUG = "pe-elisa-silva"


@pytest.mark.integration
class TestAnalisar:

    @pytest.fixture
    def resposta(self, fake_api_elisa):
        return asyncio.run(AnaliseEleitoralService(fake_api_elisa).analisar(SLUG))

    def test_analysable_contests_only(self, resposta):
        assert [(a.ano_eleicao, a.ds_cargo) for a in resposta.analises] == [
            (2024, "VEREADOR"),
            (2018, "DEPUTADO ESTADUAL"),
        ]

    def test_summary(self, resposta):
        resumo = resposta.resumo
        assert resumo.total_eleicoes == 2
        assert resumo.vezes_no_bloco == 2
        assert resumo.oportunidades_reais == 1

    def test_statewide_contest(self, resposta):
        dep = resposta.analises[1]

        assert dep.nm_municipio == "PE"
        assert dep.candidato.posicao == 2
        assert dep.candidato.eleito is True
        assert dep.metricas.vagas == 2
        assert dep.metricas.bloco_corte_tamanho == 7
        assert dep.concorrente_interno is None
        assert dep.concorrente_externo.nm_urna_candidato == "LUCAS"
        assert dep.concorrente_externo.diferenca_votos == 4000
        assert dep.pior_eleito_externo.score_oportunidade == 4000

    def test_block_entries_carry_contest_state(self, resposta):
        assert {c.sg_uf for c in resposta.analises[0].bloco_corte} == {"PE"}

    def test_queries_issued(self, fake_api_elisa, resposta):
        assert fake_api_elisa.chamadas[0] == ("buscar_candidato", "PE", "elisa-silva")
        assert fake_api_elisa.chamadas[1] == ("votacao_por_candidatos", (105, 205))
        pleitos = sorted(c[1] for c in fake_api_elisa.chamadas if c[0] == "votacao_por_eleicao")
        assert pleitos == [2018, 2020, 2022, 2024]

    def test_json_ready(self, resposta):
        d = resposta.para_dict()
        assert d["resumo"] == {"total_eleicoes": 2, "vezes_no_bloco": 2, "oportunidades_reais": 1}
        assert d["analises"][0]["pior_eleito_externo"]["tipo"] == "pior_eleito"


@pytest.mark.integration
class TestAnalisarErrors:

    def test_invalid_slug_rejected_before_any_query(self, nova_api):
        api = nova_api()

        with pytest.raises(SlugInvalido):
            asyncio.run(AnaliseEleitoralService(api).analisar("pe"))
        assert api.chamadas == []

    def test_unknown_candidate(self, nova_api):
        with pytest.raises(CandidatoNaoEncontrado, match="Candidato não encontrado"):
            asyncio.run(AnaliseEleitoralService(nova_api()).analisar(SLUG))

    def test_history_failure_propagates(self, fake_api_elisa):
        fake_api_elisa.falhas.add("historico")

        with pytest.raises(ErroFonteDados):
            asyncio.run(AnaliseEleitoralService(fake_api_elisa).analisar(SLUG))

    def test_unreachable_source_is_not_a_missing_candidate(self):
        def _recusar(request):
            raise httpx.ConnectError("connection refused")

        settings = Settings(postgrest_url="http://postgrest.test", max_retries=1)

        async def _run():
            async with PostgrestClient(settings, transport=httpx.MockTransport(_recusar)) as client:
                return await AnaliseEleitoralService(PostgrestApi(client)).analisar(SLUG)

        with pytest.raises(ErroTransporte):
            asyncio.run(_run())

    def test_unreachable_source_fails_profile(self, fake_api_elisa):
        fake_api_elisa.falhas.add("fonte")

        with pytest.raises(ErroFonteDados):
            asyncio.run(AnaliseEleitoralService(fake_api_elisa).perfil(SLUG))

    def test_no_history_gives_empty_analysis(self, registros_elisa, nova_api):
        service = AnaliseEleitoralService(nova_api(registros=registros_elisa))

        resposta = asyncio.run(service.analisar(SLUG))

        assert resposta.analises == []
        assert resposta.resumo.total_eleicoes == 0


@pytest.mark.integration
class TestAnalisarOptions:

    def test_duplicate_ids_deduplicated(self, fake_api_elisa, registros_elisa):
        fake_api_elisa.registros = registros_elisa + registros_elisa[:1]

        asyncio.run(AnaliseEleitoralService(fake_api_elisa).analisar(SLUG))

        assert fake_api_elisa.chamadas[1] == ("votacao_por_candidatos", (105, 205))

    def test_contest_limit(self, fake_api_elisa):
        service = AnaliseEleitoralService(fake_api_elisa, max_eleicoes=1)

        resposta = asyncio.run(service.analisar(SLUG))

        assert [a.ano_eleicao for a in resposta.analises] == [2024]

    def test_opportunity_threshold(self, fake_api_elisa):
        service = AnaliseEleitoralService(fake_api_elisa, limiar_oportunidade=5000)

        assert asyncio.run(service.analisar(SLUG)).resumo.oportunidades_reais == 2


@pytest.mark.integration
class TestPerfil:

    def test_profile(self, fake_api_elisa):
        fake_api_elisa.municipios = [
            VotoZona(300, nm_municipio="RECIFE"),
            VotoZona(100, nm_municipio="OLINDA"),
        ]

        perfil = asyncio.run(AnaliseEleitoralService(fake_api_elisa).perfil(SLUG))

        assert perfil["nm_urna_candidato"] == "ELISA"
        assert perfil["sg_uf"] == "PE"
        assert [m["nm_municipio"] for m in perfil["municipiosRanking"]] == ["RECIFE", "OLINDA"]
        assert perfil["stats"]["vitorias"] == 1

    def test_municipality_failure_keeps_profile(self, fake_api_elisa):
        fake_api_elisa.falhas.add("municipios")

        perfil = asyncio.run(AnaliseEleitoralService(fake_api_elisa).perfil(SLUG))

        assert perfil["municipiosRanking"] == []
        assert len(perfil["eleicoes"]) == 2

    def test_unknown_candidate(self, nova_api):
        with pytest.raises(CandidatoNaoEncontrado):
            asyncio.run(AnaliseEleitoralService(nova_api()).perfil(SLUG))


@pytest.mark.integration
class TestBuscar:

    def test_suggestions(self, fake_api_elisa):
        sugestoes = asyncio.run(AnaliseEleitoralService(fake_api_elisa).buscar("  elisa ", "pe"))

        assert [(s["nm_urna_candidato"], s["ano_eleicao"]) for s in sugestoes] == [
            ("ELISA", 2018),
            ("ELISA MARA", 2024),
            ("ELISA", 2024),
        ]
        assert fake_api_elisa.chamadas == [("buscar_por_termo", "elisa", "PE")]

    def test_without_state(self, fake_api_elisa):
        asyncio.run(AnaliseEleitoralService(fake_api_elisa).buscar("elisa"))

        assert fake_api_elisa.chamadas == [("buscar_por_termo", "elisa", None)]

    @pytest.mark.parametrize("termo", ["", "el", "  el  "])
    def test_short_term_rejected_before_any_query(self, nova_api, termo):
        api = nova_api()

        with pytest.raises(ParametroInvalido, match="pelo menos 3 caracteres"):
            asyncio.run(AnaliseEleitoralService(api).buscar(termo))
        assert api.chamadas == []

    def test_invalid_state(self, nova_api):
        with pytest.raises(ParametroInvalido, match="UF inválida"):
            asyncio.run(AnaliseEleitoralService(nova_api()).buscar("elisa", "XX"))

    def test_source_failure_propagates(self, fake_api_elisa):
        fake_api_elisa.falhas.add("fonte")

        with pytest.raises(ErroTransporte):
            asyncio.run(AnaliseEleitoralService(fake_api_elisa).buscar("elisa"))

    def test_cached_by_state_and_lowercased_term(self, fake_api_elisa, store):
        service = AnaliseEleitoralService(fake_api_elisa, store)

        async def _run():
            primeira = await service.buscar_cacheado("Elisa", "pe")
            segunda = await service.buscar_cacheado("elisa", "PE")
            return primeira, segunda

        primeira, segunda = asyncio.run(_run())

        assert primeira == segunda
        assert len(fake_api_elisa.chamadas) == 1
        assert store.cache_keys("suggestions") == ["v2:PE:elisa"]

    def test_cache_key_without_state(self, fake_api_elisa, store):
        asyncio.run(AnaliseEleitoralService(fake_api_elisa, store).buscar_cacheado("elisa"))

        assert store.cache_keys("suggestions") == ["v2:all:elisa"]


@pytest.mark.integration
class TestCacheado:

    def test_second_call_served_from_cache(self, fake_api_elisa, store):
        service = AnaliseEleitoralService(fake_api_elisa, store)

        async def _run():
            primeira = await service.analisar_cacheado(SLUG)
            chamadas = len(fake_api_elisa.chamadas)
            segunda = await service.analisar_cacheado(SLUG)
            return primeira, segunda, chamadas

        primeira, segunda, chamadas = asyncio.run(_run())

        assert primeira == segunda
        assert len(fake_api_elisa.chamadas) == chamadas
        assert store.cache_keys("analise-eleitoral") == [f"v4:{SLUG}"]

    def test_profile_cached_under_its_own_group(self, fake_api_elisa, store):
        service = AnaliseEleitoralService(fake_api_elisa, store)

        asyncio.run(service.perfil_cacheado(SLUG))

        assert store.cache_keys("candidato") == [f"v13:{SLUG}"]

    def test_errors_are_not_cached(self, store, nova_api):
        service = AnaliseEleitoralService(nova_api(), store)

        with pytest.raises(CandidatoNaoEncontrado):
            asyncio.run(service.analisar_cacheado(SLUG))
        assert store.cache_keys("analise-eleitoral") == []

    def test_invalid_slug_never_reaches_cache(self, store, nova_api):
        service = AnaliseEleitoralService(nova_api(), store)

        with pytest.raises(SlugInvalido):
            asyncio.run(service.analisar_cacheado(""))

    def test_without_store_no_caching(self, fake_api_elisa):
        service = AnaliseEleitoralService(fake_api_elisa)

        resultado = asyncio.run(service.analisar_cacheado(SLUG))

        assert resultado["resumo"]["total_eleicoes"] == 2
        assert service.cache is None

    def test_invalidate_slug(self, fake_api_elisa, store):
        service = AnaliseEleitoralService(fake_api_elisa, store)
        asyncio.run(service.analisar_cacheado(SLUG))

        assert service.invalidar_cache(slug=SLUG) == [f"analise-eleitoral:v4:{SLUG}"]
        assert service.invalidar_cache(slug=SLUG) == []

    def test_invalidate_all(self, fake_api_elisa, store):
        service = AnaliseEleitoralService(fake_api_elisa, store)
        asyncio.run(service.analisar_cacheado(SLUG))
        asyncio.run(service.perfil_cacheado(SLUG))

        assert sorted(service.invalidar_cache(todos=True)) == [
            f"analise-eleitoral:v4:{SLUG}",
            f"candidato:v13:{SLUG}",
        ]

    def test_invalidate_requires_target(self, store, nova_api):
        with pytest.raises(ParametroInvalido):
            AnaliseEleitoralService(nova_api(), store).invalidar_cache()


@pytest.mark.integration
class TestAcessos:

    META = {"nome": "ELISA", "cargo": "VEREADOR", "anoEleicao": 2024, "totalVotos": 600}

    def test_track_and_trending(self, store, nova_api):
        service = AnaliseEleitoralService(nova_api(), store)

        assert service.registrar_acesso("PE", SLUG, dict(self.META)) == {"success": True, "count": 1}
        assert service.registrar_acesso("PE", SLUG, dict(self.META)) == {"success": True, "count": 2}

        (item,) = service.trending("pe")
        assert item["slug"] == SLUG
        assert item["acessos"] == 2
        assert item["nomeCompleto"] == "ELISA"

    def test_invalid_state(self, store, nova_api):
        with pytest.raises(ParametroInvalido, match="UF inválida"):
            AnaliseEleitoralService(nova_api(), store).trending("XX")

    def test_tracking_failure_is_reported_not_raised(self, nova_api):
        fechado = DuckDBStore(":memory:")
        fechado.close()
        service = AnaliseEleitoralService(nova_api(), fechado)

        assert service.registrar_acesso("PE", SLUG, dict(self.META)) == {
            "success": False,
            "error": "Erro ao registrar acesso",
        }
        assert service.trending("PE") == []
