"""Camada de persistencia DuckDB para cache de respostas e acessos."""

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Optional, Union

import duckdb

from ..config import DEFAULT_CACHE_PATH, DIAS_HISTORICO_ACESSOS

logger = logging.getLogger(__name__)

SEGUNDOS_POR_DIA = 24 * 60 * 60


class DuckDBStore:
    """Armazenamento chave-valor (cache) e registro de acessos em DuckDB."""

    def __init__(self, db_path: Union[Path, str] = DEFAULT_CACHE_PATH, read_only: bool = False):
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db_path = db_path
        self._read_only = read_only
        self._lock = threading.Lock()
        self._conn = duckdb.connect(str(db_path), read_only=read_only)
        if not read_only:
            self._create_tables()

    def close(self):
        self._conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def _create_tables(self):
        """Cria schema do banco."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS cache (
                grupo VARCHAR,
                chave VARCHAR,
                valor VARCHAR,
                criado_em DOUBLE,
                PRIMARY KEY (grupo, chave)
            );

            CREATE TABLE IF NOT EXISTS acessos (
                uf VARCHAR,
                slug VARCHAR,
                ts DOUBLE
            );

            CREATE TABLE IF NOT EXISTS acessos_meta (
                uf VARCHAR,
                slug VARCHAR,
                nome VARCHAR,
                nome_completo VARCHAR,
                partido VARCHAR,
                cargo VARCHAR,
                ano_eleicao INTEGER,
                situacao VARCHAR,
                total_votos BIGINT,
                last_access DOUBLE,
                PRIMARY KEY (uf, slug)
            );
        """)

    # ============================================================
    # Cache
    # ============================================================

    def cache_get(self, grupo: str, chave: str) -> Optional[tuple[Any, float]]:
        """Retorna (valor, criado_em) ou None."""
        with self._lock:
            row = self._conn.execute(
                "SELECT valor, criado_em FROM cache WHERE grupo = ? AND chave = ?",
                [grupo, chave],
            ).fetchone()
        if row is None:
            return None
        return json.loads(row[0]), row[1]

    def cache_set(self, grupo: str, chave: str, valor: Any, criado_em: Optional[float] = None):
        criado_em = time.time() if criado_em is None else criado_em
        payload = json.dumps(valor, ensure_ascii=False)
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO cache VALUES (?, ?, ?, ?)",
                [grupo, chave, payload, criado_em],
            )

    def cache_keys(self, grupo: str) -> list[str]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT chave FROM cache WHERE grupo = ? ORDER BY chave", [grupo]
            ).fetchall()
        return [r[0] for r in rows]

    def cache_remove(self, grupo: str, chave: str) -> bool:
        with self._lock:
            existe = self._conn.execute(
                "SELECT COUNT(*) FROM cache WHERE grupo = ? AND chave = ?", [grupo, chave]
            ).fetchone()[0]
            if existe:
                self._conn.execute(
                    "DELETE FROM cache WHERE grupo = ? AND chave = ?", [grupo, chave]
                )
        return bool(existe)

    def cache_clear(self, grupo: str) -> list[str]:
        """Remove todas as chaves do grupo; retorna as removidas."""
        chaves = self.cache_keys(grupo)
        with self._lock:
            self._conn.execute("DELETE FROM cache WHERE grupo = ?", [grupo])
        logger.info("Cache %s: %d chave(s) removida(s)", grupo, len(chaves))
        return chaves

    # ============================================================
    # Acessos (trending)
    # ============================================================

    def registrar_acesso(self, uf: str, slug: str, meta: dict, agora: Optional[float] = None) -> int:
        """Registra um acesso e atualiza metadados; retorna acessos no historico."""
        agora = time.time() if agora is None else agora
        corte = agora - DIAS_HISTORICO_ACESSOS * SEGUNDOS_POR_DIA
        uf = uf.upper()
        with self._lock:
            self._conn.execute(
                "DELETE FROM acessos WHERE uf = ? AND slug = ? AND ts <= ?", [uf, slug, corte]
            )
            self._conn.execute("INSERT INTO acessos VALUES (?, ?, ?)", [uf, slug, agora])
            self._conn.execute(
                "INSERT OR REPLACE INTO acessos_meta VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    uf,
                    slug,
                    meta["nome"],
                    meta.get("nomeCompleto") or meta["nome"],
                    meta.get("partido") or "",
                    meta.get("cargo") or "",
                    meta.get("anoEleicao") or 0,
                    meta.get("situacao") or "",
                    meta.get("totalVotos") or 0,
                    agora,
                ],
            )
            count = self._conn.execute(
                "SELECT COUNT(*) FROM acessos WHERE uf = ? AND slug = ?", [uf, slug]
            ).fetchone()[0]
        return count

    def trending(self, uf: str, dias: int, limite: int, agora: Optional[float] = None) -> list[dict]:
        """Candidatos mais acessados da UF na janela, ignorando metadados incompletos."""
        agora = time.time() if agora is None else agora
        corte = agora - dias * SEGUNDOS_POR_DIA
        with self._lock:
            rel = self._conn.execute("""
                SELECT
                    m.slug,
                    m.nome,
                    m.nome_completo AS "nomeCompleto",
                    m.partido,
                    m.cargo,
                    m.ano_eleicao AS "anoEleicao",
                    m.situacao,
                    m.total_votos AS "totalVotos",
                    COUNT(*) AS acessos
                FROM acessos_meta m
                JOIN acessos a ON a.uf = m.uf AND a.slug = m.slug
                WHERE m.uf = ?
                  AND a.ts > ?
                  AND m.cargo <> ''
                  AND m.ano_eleicao > 0
                  AND m.total_votos > 0
                GROUP BY ALL
                ORDER BY acessos DESC, m.slug
                LIMIT ?
            """, [uf.upper(), corte, limite])
            colunas = [d[0] for d in rel.description]
            rows = rel.fetchall()
        return [dict(zip(colunas, row)) for row in rows]
