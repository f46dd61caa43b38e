"""Geracao e leitura de slugs de candidatos (uf-nome)."""

import re
import unicodedata
from typing import NamedTuple

from .errors import SlugInvalido


class SlugCandidato(NamedTuple):
    uf: str
    nome_slug: str

    @property
    def nome_completo(self) -> str:
        """pe-nunes-rafael-mendes-coelho -> NUNES RAFAEL MENDES COELHO"""
        return self.nome_slug.upper().replace("-", " ")


def slugify(texto: str) -> str:
    """Remove acentos e caracteres especiais, espacos viram hifens."""
    texto = unicodedata.normalize("NFD", str(texto))
    texto = "".join(c for c in texto if not unicodedata.combining(c))
    texto = texto.lower().strip()
    texto = re.sub(r"\s+", "-", texto)
    texto = re.sub(r"[^\w-]+", "", texto, flags=re.ASCII)
    texto = re.sub(r"-{2,}", "-", texto)
    return texto.strip("-")


def gerar_slug(uf: str, nome: str) -> str:
    """Ex: gerar_slug('PE', 'GEORGE BASTOS') -> 'pe-george-bastos'"""
    return f"{slugify(uf)}-{slugify(nome)}"


def parse_slug(slug: str) -> SlugCandidato:
    """Separa UF e nome de um slug; levanta SlugInvalido se malformado."""
    if not slug:
        raise SlugInvalido("Parâmetro slug é obrigatório")

    partes = slug.split("-")
    if len(partes) < 2 or not partes[0] or not "-".join(partes[1:]).strip("-"):
        raise SlugInvalido("Formato de slug inválido")

    return SlugCandidato(uf=partes[0].upper(), nome_slug="-".join(partes[1:]))


def palavras_busca(nome_slug: str) -> list[str]:
    """Palavras distintivas (4+ letras) para busca por nome de urna.

    Pega a primeira (nome) e a penultima (sobrenome de urna comum).
    """
    distintivas = [p for p in nome_slug.split("-") if len(p) >= 4]
    if not distintivas:
        return []
    if len(distintivas) == 1:
        return [distintivas[0].upper()]
    return [distintivas[0].upper(), distintivas[-2].upper()]
