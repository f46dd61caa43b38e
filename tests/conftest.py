"""
Shared pytest configuration and fixtures for radar-eleitoral.

Provides zone-level vote rows for a reference contest and a fake
PostgREST query layer for service and HTTP tests.
"""

import pytest

from radareleitoral.database.duckdb_store import DuckDBStore
from radareleitoral.errors import ErroFonteDados, ErroTransporte
from radareleitoral.models import EleicaoSelecionada, RegistroCandidato, VotoZona

# (sq_candidato, nm_urna, partido, votos, situacao), already in vote order
CAMPO_DEZ = [
    (101, "ANA", "PA", 1000, "ELEITO POR QP"),
    (102, "BRUNO", "PB", 900, "ELEITO"),
    (103, "CARLA", "PC", 800, "ELEITO POR MÉDIA"),
    (104, "DIEGO", "PX", 700, "SUPLENTE"),
    (105, "ELISA", "PX", 600, "SUPLENTE"),
    (106, "FABIO", "PD", 500, "NÃO ELEITO"),
    (107, "GABI", "PE", 400, "SUPLENTE"),
    (108, "HUGO", "PF", 300, "NÃO ELEITO"),
    (109, "IARA", "PG", 200, "NÃO ELEITO"),
    (110, "JOAO", "PH", 100, "NÃO ELEITO"),
]


def linhas_pleito(candidatos):
    """Split each candidate into two zones, zone 1 listed in reverse order."""
    zona1 = [
        VotoZona(
            qt_votos_nominais=votos // 2,
            sq_candidato=sq,
            nm_candidato=f"{urna} SILVA",
            nm_urna_candidato=urna,
            sg_partido=partido,
            ds_sit_tot_turno=situacao,
        )
        for sq, urna, partido, votos, situacao in reversed(candidatos)
    ]
    zona2 = [
        VotoZona(
            qt_votos_nominais=votos - votos // 2,
            sq_candidato=sq,
            nm_candidato=f"{urna} SILVA",
            nm_urna_candidato=urna,
            sg_partido=partido,
            ds_sit_tot_turno=situacao,
        )
        for sq, urna, partido, votos, situacao in candidatos
    ]
    return zona1 + zona2


@pytest.fixture
def montar_pleito():
    return linhas_pleito


@pytest.fixture
def campo_dez():
    """Zone rows for a 10-candidate contest with 3 elected."""
    return linhas_pleito(CAMPO_DEZ)


@pytest.fixture
def eleicao_recife():
    return EleicaoSelecionada(
        nm_municipio="RECIFE",
        sg_uf="PE",
        ano_eleicao=2024,
        ds_cargo="VEREADOR",
        nr_turno=1,
        sg_partido="PX",
        total_votos=600,
        ds_sit_tot_turno="SUPLENTE",
        is_estadual=False,
    )


def _historico(ano, cargo, municipio, votos, uf="PE"):
    return VotoZona(
        qt_votos_nominais=votos,
        nm_municipio=municipio,
        sg_uf=uf,
        ano_eleicao=ano,
        ds_cargo=cargo,
        nr_turno=1,
        sg_partido="PX",
        ds_sit_tot_turno="SUPLENTE",
    )


@pytest.fixture
def historico_elisa():
    """Voting history across five years and two scopes."""
    return [
        _historico(2024, "VEREADOR", "RECIFE", 300),
        _historico(2024, "VEREADOR", "RECIFE", 300),
        _historico(2022, "DEPUTADO ESTADUAL", "RECIFE", 4000),
        _historico(2022, "DEPUTADO ESTADUAL", "CARUARU", 1000),
        _historico(2020, "VEREADOR", "RECIFE", 450),
        _historico(2020, "PREFEITO", "OLINDA", 10),
        _historico(2018, "DEPUTADO ESTADUAL", "RECIFE", 3000),
        _historico(2018, "DEPUTADO ESTADUAL", "PETROLINA", 2000),
        _historico(2016, "VEREADOR", "RECIFE", 200),
    ]


@pytest.fixture
def registros_elisa():
    return [
        RegistroCandidato(
            sq_candidato=105,
            nm_candidato="ELISA SILVA",
            nm_urna_candidato="ELISA",
            sg_partido="PX",
            ds_cargo="VEREADOR",
            ano_eleicao=2024,
            sg_uf="PE",
            nr_turno=1,
            ds_sit_tot_turno="SUPLENTE",
            total_votos=600,
            municipios_votados=1,
        ),
        RegistroCandidato(
            sq_candidato=205,
            nm_candidato="ELISA SILVA",
            nm_urna_candidato="ELISA",
            sg_partido="PX",
            ds_cargo="DEPUTADO ESTADUAL",
            ano_eleicao=2018,
            sg_uf="PE",
            nr_turno=1,
            ds_sit_tot_turno="ELEITO POR QP",
            total_votos=5000,
            municipios_votados=2,
        ),
    ]


class FakeApi:
    """In-memory stand-in for PostgrestApi."""

    def __init__(
        self, registros=None, historico=None, pleitos=None, municipios=None, busca=None, falhas=()
    ):
        self.registros = registros or []
        self.historico = historico or []
        self.pleitos = pleitos or {}
        self.municipios = municipios or []
        self.busca = busca or []
        self.falhas = set(falhas)
        self.chamadas = []

    async def buscar_candidato(self, slug):
        self.chamadas.append(("buscar_candidato", slug.uf, slug.nome_slug))
        if "fonte" in self.falhas:
            raise ErroTransporte("PostgREST indisponivel: connection refused")
        return list(self.registros)

    async def votacao_por_candidatos(self, sq_candidatos):
        self.chamadas.append(("votacao_por_candidatos", tuple(sq_candidatos)))
        if "historico" in self.falhas:
            raise ErroFonteDados("PostgREST fora do ar")
        return list(self.historico)

    async def votacao_por_eleicao(self, eleicao):
        self.chamadas.append(("votacao_por_eleicao", eleicao.ano_eleicao, eleicao.ds_cargo))
        if eleicao.ano_eleicao in self.falhas:
            raise ErroFonteDados("HTTP 500")
        return list(self.pleitos.get(eleicao.ano_eleicao, []))

    async def votacao_por_municipio(self, sq_candidatos):
        self.chamadas.append(("votacao_por_municipio", tuple(sq_candidatos)))
        if "municipios" in self.falhas:
            raise ErroFonteDados("HTTP 500")
        return list(self.municipios)

    async def buscar_por_termo(self, termo, uf=None):
        self.chamadas.append(("buscar_por_termo", termo, uf))
        if "fonte" in self.falhas:
            raise ErroTransporte("PostgREST indisponivel: connection refused")
        return list(self.busca)


def _zona_busca(urna, nome, ano, cargo, votos, turno=1, situacao="SUPLENTE"):
    return VotoZona(
        qt_votos_nominais=votos,
        nm_candidato=nome,
        nm_urna_candidato=urna,
        sg_partido="PX",
        nm_municipio="RECIFE",
        sg_uf="PE",
        ano_eleicao=ano,
        ds_cargo=cargo,
        nr_turno=turno,
        ds_sit_tot_turno=situacao,
    )


@pytest.fixture
def linhas_busca():
    """Zone rows answering a search for "elisa": two contests, split across zones."""
    return [
        _zona_busca("ELISA", "ELISA SILVA", 2024, "VEREADOR", 250),
        _zona_busca("ELISA", "ELISA SILVA", 2018, "DEPUTADO ESTADUAL", 3000, situacao="ELEITO POR QP"),
        _zona_busca("ELISA", "ELISA SILVA", 2024, "VEREADOR", 350),
        _zona_busca("ELISA MARA", "ELISA MARA COSTA", 2024, "VEREADOR", 700),
        _zona_busca("ELISA", "ELISA SILVA", 2018, "DEPUTADO ESTADUAL", 2000, situacao="ELEITO POR QP"),
    ]


@pytest.fixture
def nova_api():
    """Factory for FakeApi instances (empty by default)."""
    return FakeApi


@pytest.fixture
def fake_api_elisa(registros_elisa, historico_elisa, campo_dez, linhas_busca):
    """Fake source where 2024 is analysable, 2022 fails, 2020 has no elected."""
    campo_2020 = linhas_pleito([
        (105, "ELISA", "PX", 450, "SUPLENTE"),
        (301, "KLEBER", "PA", 900, "SUPLENTE"),
    ])
    campo_2018 = linhas_pleito([
        (201, "LUCAS", "PY", 9000, "ELEITO"),
        (205, "ELISA", "PX", 5000, "ELEITO POR QP"),
        (202, "MARIA", "PZ", 100, "NÃO ELEITO"),
    ])
    return FakeApi(
        registros=registros_elisa,
        historico=historico_elisa,
        pleitos={2024: campo_dez, 2020: campo_2020, 2018: campo_2018},
        busca=linhas_busca,
        falhas={2022},
    )


@pytest.fixture
def store():
    db = DuckDBStore(":memory:")
    yield db
    db.close()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (service, HTTP, CLI)"
    )
    config.addinivalue_line(
        "markers", "invariant: marks tests as mathematical invariant validation"
    )
