"""Configuracoes globais e constantes do sistema."""

import os
from dataclasses import dataclass
from pathlib import Path

# Diretorios
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
DB_DIR = DATA_DIR / "db"
DEFAULT_CACHE_PATH = DB_DIR / "cache.duckdb"

# PostgREST
POSTGREST_URL = "http://localhost:3000"
TABELA_VOTACAO = "votacao_candidato_munzona"
VIEW_VOTOS_CANDIDATO = "mv_votos_candidato"
RPC_BUSCA_SLUG = "rpc/buscar_candidato_por_slug"
RPC_BUSCA_FUZZY = "rpc/buscar_candidato_fuzzy"

# Limites de requisicao
MAX_RETRIES = 3
CONNECT_TIMEOUT = 10
READ_TIMEOUT = 30
MAX_CONCURRENT_REQUESTS = 4

# Cargos cuja disputa e estadual (demais sao municipais)
CARGOS_ESTADUAIS = (
    "DEPUTADO FEDERAL",
    "DEPUTADO ESTADUAL",
    "SENADOR",
    "GOVERNADOR",
    "PRESIDENTE",
)

# Bloco de corte: max(ceil(vagas * FATOR), vagas + FOLGA)
BLOCO_FATOR = 1.5
BLOCO_FOLGA = 5

# Eleicoes analisadas por candidato
MAX_ELEICOES_ANALISE = 4

# Score abaixo disso conta como oportunidade real (votos)
LIMIAR_OPORTUNIDADE = 500

# Busca por termo. A RPC devolve linhas por zona (PE tem ~209 zonas)
LIMITE_LINHAS_BUSCA = 500
LIMITE_SUGESTOES = 15
TERMO_MINIMO = 3

# Cache (resultados de eleicoes encerradas sao imutaveis)
CACHE_MAX_AGE = 60 * 60 * 24 * 365
CACHE_GRUPO_ANALISE = "analise-eleitoral"
CACHE_VERSAO_ANALISE = "v4"
CACHE_GRUPO_CANDIDATO = "candidato"
CACHE_VERSAO_CANDIDATO = "v13"
CACHE_GRUPO_SUGESTOES = "suggestions"
CACHE_VERSAO_SUGESTOES = "v2"
CACHE_MAX_AGE_SUGESTOES = 60 * 60 * 24 * 90

# Trending
DIAS_HISTORICO_ACESSOS = 365
DIAS_JANELA_TRENDING = 30
LIMITE_TRENDING = 3

# Todos os estados brasileiros
ESTADOS = [
    "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO", "MA",
    "MT", "MS", "MG", "PA", "PB", "PR", "PE", "PI", "RJ", "RN",
    "RS", "RO", "RR", "SC", "SP", "SE", "TO",
]


@dataclass(frozen=True)
class Settings:
    """Configuracao de execucao, passada explicitamente ao servico e a API."""
    postgrest_url: str = POSTGREST_URL
    cache_path: str = str(DEFAULT_CACHE_PATH)
    max_retries: int = MAX_RETRIES
    connect_timeout: float = CONNECT_TIMEOUT
    read_timeout: float = READ_TIMEOUT
    max_concurrent_requests: int = MAX_CONCURRENT_REQUESTS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            postgrest_url=env.get("RADAR_POSTGREST_URL", POSTGREST_URL).rstrip("/"),
            cache_path=env.get("RADAR_CACHE_PATH", str(DEFAULT_CACHE_PATH)),
            max_retries=int(env.get("RADAR_MAX_RETRIES", MAX_RETRIES)),
            connect_timeout=float(env.get("RADAR_CONNECT_TIMEOUT", CONNECT_TIMEOUT)),
            read_timeout=float(env.get("RADAR_READ_TIMEOUT", READ_TIMEOUT)),
            max_concurrent_requests=int(
                env.get("RADAR_MAX_CONCURRENT_REQUESTS", MAX_CONCURRENT_REQUESTS)
            ),
            log_level=env.get("RADAR_LOG_LEVEL", "INFO").upper(),
        )
