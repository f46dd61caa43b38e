"""Agregacao de votos por chave arbitraria.

Todas as somas do sistema (campo de candidatos de um pleito, historico do
candidato, ranking de municipios, agrupamento por nome de urna) passam por
``agregar``, que recebe a funcao de chave e a funcao de valor.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, Iterable, TypeVar

T = TypeVar("T")

# Campos ausentes entram na chave como este token, sem coalescer com outro valor
INDEFINIDO = "undefined"


@dataclass
class Grupo(Generic[T]):
    """Registros que compartilham uma chave, com o valor somado."""
    chave: Hashable
    primeiro: T
    total: int
    registros: int


def votos_nominais(registro: Any) -> int:
    return registro.qt_votos_nominais


def chave_por(*campos: str) -> Callable[[Any], tuple]:
    """Funcao de chave sobre atributos; None vira o token INDEFINIDO."""

    def _chave(registro: Any) -> tuple:
        valores = []
        for campo in campos:
            valor = getattr(registro, campo, None)
            valores.append(INDEFINIDO if valor is None else valor)
        return tuple(valores)

    return _chave


def agregar(
    registros: Iterable[T],
    chave: Callable[[T], Hashable],
    valor: Callable[[T], int] = votos_nominais,
) -> list[Grupo[T]]:
    """Agrupa registros por chave somando valor; saida na ordem do primeiro visto."""
    grupos: dict[Hashable, Grupo[T]] = {}
    for registro in registros:
        k = chave(registro)
        grupo = grupos.get(k)
        if grupo is None:
            grupos[k] = Grupo(chave=k, primeiro=registro, total=valor(registro), registros=1)
        else:
            grupo.total += valor(registro)
            grupo.registros += 1
    return list(grupos.values())
