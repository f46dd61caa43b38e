"""Modelos de dados do dominio."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

from .errors import RegistroInvalido


class TipoConcorrente(Enum):
    PIOR_ELEITO = "pior_eleito"
    PROXIMO_ACIMA = "proximo_acima"
    PROXIMO_ABAIXO = "proximo_abaixo"


def _dict_factory(items) -> dict:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in items}


def _coagir(row: dict, campo: str, tipo: type, obrigatorio: bool):
    """Converte um campo cru da fonte para o tipo declarado ou rejeita a linha."""
    valor = row.get(campo)
    if valor is None:
        if obrigatorio:
            raise RegistroInvalido(f"Campo obrigatorio ausente: {campo}")
        return None

    if tipo is int:
        if isinstance(valor, bool) or (isinstance(valor, float) and not valor.is_integer()):
            raise RegistroInvalido(f"Campo {campo} nao inteiro: {valor!r}")
        try:
            return int(valor)
        except (TypeError, ValueError) as e:
            raise RegistroInvalido(f"Campo {campo} nao inteiro: {valor!r}") from e

    if not isinstance(valor, str):
        raise RegistroInvalido(f"Campo {campo} nao textual: {valor!r}")
    return valor


class _Registro:
    """Base para linhas da fonte com esquema estrito."""

    _TIPOS: dict[str, type] = {}
    _OBRIGATORIOS: tuple[str, ...] = ()

    @classmethod
    def from_row(cls, row: Any, obrigatorios: tuple[str, ...] = ()):
        if not isinstance(row, dict):
            raise RegistroInvalido(f"Linha nao e objeto: {row!r}")
        exigidos = set(cls._OBRIGATORIOS) | set(obrigatorios)
        valores = {
            campo: _coagir(row, campo, tipo, campo in exigidos)
            for campo, tipo in cls._TIPOS.items()
        }
        return cls(**valores)


@dataclass(frozen=True)
class VotoZona(_Registro):
    """Votacao de um candidato em uma zona/municipio (votacao_candidato_munzona)."""
    qt_votos_nominais: int
    sq_candidato: Optional[int] = None
    nm_candidato: Optional[str] = None
    nm_urna_candidato: Optional[str] = None
    sg_partido: Optional[str] = None
    nm_municipio: Optional[str] = None
    sg_uf: Optional[str] = None
    ano_eleicao: Optional[int] = None
    ds_cargo: Optional[str] = None
    nr_turno: Optional[int] = None
    ds_sit_tot_turno: Optional[str] = None

    _TIPOS = {
        "qt_votos_nominais": int,
        "sq_candidato": int,
        "nm_candidato": str,
        "nm_urna_candidato": str,
        "sg_partido": str,
        "nm_municipio": str,
        "sg_uf": str,
        "ano_eleicao": int,
        "ds_cargo": str,
        "nr_turno": int,
        "ds_sit_tot_turno": str,
    }
    _OBRIGATORIOS = ("qt_votos_nominais",)


@dataclass(frozen=True)
class RegistroCandidato(_Registro):
    """Linha da view mv_votos_candidato (ja agregada por candidato/eleicao)."""
    sq_candidato: int
    nm_candidato: str
    nm_urna_candidato: str
    sg_partido: str
    nm_partido: Optional[str] = None
    ds_cargo: Optional[str] = None
    ano_eleicao: Optional[int] = None
    sg_uf: Optional[str] = None
    nr_turno: Optional[int] = None
    ds_sit_tot_turno: Optional[str] = None
    total_votos: Optional[int] = None
    municipios_votados: Optional[int] = None
    zonas_contadas: Optional[int] = None

    _TIPOS = {
        "sq_candidato": int,
        "nm_candidato": str,
        "nm_urna_candidato": str,
        "sg_partido": str,
        "nm_partido": str,
        "ds_cargo": str,
        "ano_eleicao": int,
        "sg_uf": str,
        "nr_turno": int,
        "ds_sit_tot_turno": str,
        "total_votos": int,
        "municipios_votados": int,
        "zonas_contadas": int,
    }
    _OBRIGATORIOS = ("sq_candidato", "nm_candidato", "nm_urna_candidato", "sg_partido")


@dataclass
class CandidatoAgregado:
    """Total de votos de um candidato somado sobre todas as zonas de um pleito."""
    sq_candidato: int
    nm_urna_candidato: str
    nm_candidato: str
    sg_partido: str
    total_votos: int
    ds_sit_tot_turno: str


@dataclass
class CandidatoBloco:
    """Candidato ranqueado dentro do pleito."""
    nm_urna_candidato: str
    nm_candidato: str
    sg_partido: str
    sg_uf: str
    total_votos: int
    ds_sit_tot_turno: str
    eleito: bool
    posicao: int
    sq_candidato: int
    slug: str


@dataclass
class EleicaoSelecionada:
    """Pleito (UF ou municipio, ano, cargo, turno) em que o candidato concorreu.

    Para cargos estaduais ``nm_municipio`` carrega a UF.
    """
    nm_municipio: str
    sg_uf: str
    ano_eleicao: int
    ds_cargo: str
    nr_turno: int
    sg_partido: str
    total_votos: int
    ds_sit_tot_turno: str
    is_estadual: bool


@dataclass
class ConcorrenteInterno:
    nm_urna_candidato: str
    sg_partido: str
    sg_uf: str
    slug: str
    total_votos: int
    diferenca_votos: int
    posicao: int
    eleito: bool


@dataclass
class ConcorrenteExterno:
    nm_urna_candidato: str
    sg_partido: str
    sg_uf: str
    slug: str
    total_votos: int
    diferenca_votos: int
    posicao: int
    tipo: TipoConcorrente
    score_oportunidade: int


@dataclass
class PartidoEficiencia:
    sg_partido: str
    candidatos_bloco: int
    total_votos: int
    eleitos: int
    media_votos: int
    eficiencia: float  # eleitos / candidatos_bloco


@dataclass
class CandidatoAnalisado:
    nm_urna_candidato: str
    sg_partido: str
    total_votos: int
    posicao: int
    eleito: bool
    no_bloco_corte: bool


@dataclass
class MetricasPleito:
    total_candidatos: int
    vagas: int  # = total de eleitos
    bloco_corte_tamanho: int
    votos_corte: int  # menor votacao entre eleitos
    votos_ultimo_bloco: int  # menor votacao no bloco de corte


@dataclass
class AnaliseEleicao:
    """Resultado da analise de bloco de corte para um pleito."""
    ano_eleicao: int
    nm_municipio: str
    sg_uf: str
    ds_cargo: str
    nr_turno: int
    candidato: CandidatoAnalisado
    metricas: MetricasPleito
    concorrente_interno: Optional[ConcorrenteInterno]
    concorrente_externo: Optional[ConcorrenteExterno]
    pior_eleito_externo: Optional[ConcorrenteExterno]
    partidos_eficiencia: list[PartidoEficiencia] = field(default_factory=list)
    bloco_corte: list[CandidatoBloco] = field(default_factory=list)

    def para_dict(self) -> dict:
        return asdict(self, dict_factory=_dict_factory)


@dataclass
class ResumoAnalise:
    total_eleicoes: int
    vezes_no_bloco: int
    oportunidades_reais: int


@dataclass
class AnaliseResponse:
    analises: list[AnaliseEleicao]
    resumo: ResumoAnalise

    def para_dict(self) -> dict:
        return asdict(self, dict_factory=_dict_factory)
