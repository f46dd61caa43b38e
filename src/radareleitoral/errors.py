"""Excecoes do dominio."""


class RadarEleitoralError(Exception):
    """Erro base do Radar Eleitoral."""


class ParametroInvalido(RadarEleitoralError, ValueError):
    """Entrada do chamador rejeitada antes de qualquer consulta."""


class SlugInvalido(ParametroInvalido):
    """Slug ausente ou fora do formato uf-nome."""


class CandidatoNaoEncontrado(RadarEleitoralError):
    """Nenhuma estrategia de busca encontrou o candidato."""


class ErroFonteDados(RadarEleitoralError):
    """Falha ao consultar o PostgREST (transporte, status ou payload)."""


class RegistroInvalido(ErroFonteDados):
    """Linha retornada pela fonte nao respeita o esquema esperado."""


class ErroTransporte(ErroFonteDados):
    """PostgREST inalcancavel: conexao recusada ou tempo esgotado."""
