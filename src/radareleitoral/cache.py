"""Cache de respostas com max-age e stale-while-revalidate."""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from .database.duckdb_store import DuckDBStore

logger = logging.getLogger(__name__)


class CacheEleitoral:
    """Serve respostas do DuckDBStore, revalidando em background quando velhas.

    Erros do produtor nunca sao cacheados; falhas de escrita no cache sao
    apenas registradas em log.
    """

    def __init__(self, store: DuckDBStore, relogio: Callable[[], float] = time.time):
        self._store = store
        self._relogio = relogio
        self._revalidando: dict[tuple[str, str], asyncio.Task] = {}

    async def _gravar(self, grupo: str, chave: str, valor: Any):
        try:
            await asyncio.to_thread(
                self._store.cache_set, grupo, chave, valor, criado_em=self._relogio()
            )
        except Exception as e:
            logger.warning("Falha ao gravar cache %s:%s: %s", grupo, chave, e)

    async def _ler(self, grupo: str, chave: str):
        # DuckDB e sincrono: leitura e escrita rodam fora do event loop
        try:
            return await asyncio.to_thread(self._store.cache_get, grupo, chave)
        except Exception as e:
            logger.warning("Falha ao ler cache %s:%s: %s", grupo, chave, e)
            return None

    async def _revalidar(self, grupo: str, chave: str, produtor: Callable[[], Awaitable[Any]]):
        try:
            valor = await produtor()
            await self._gravar(grupo, chave, valor)
            logger.debug("Cache revalidado: %s:%s", grupo, chave)
        except Exception as e:
            logger.warning("Revalidacao de %s:%s falhou: %s", grupo, chave, e)
        finally:
            self._revalidando.pop((grupo, chave), None)

    def _agendar_revalidacao(self, grupo: str, chave: str, produtor):
        if (grupo, chave) in self._revalidando:
            return
        task = asyncio.get_running_loop().create_task(self._revalidar(grupo, chave, produtor))
        self._revalidando[(grupo, chave)] = task

    async def obter(
        self,
        grupo: str,
        chave: str,
        produtor: Callable[[], Awaitable[Any]],
        max_age: float,
        stale_max_age: Optional[float] = None,
        swr: bool = True,
    ) -> Any:
        """Retorna o valor cacheado ou produz, grava e retorna um novo.

        Args:
            max_age: segundos em que a entrada e considerada fresca
            stale_max_age: segundos alem de max_age em que a entrada velha
                ainda pode ser servida (None = para sempre)
            swr: servir a entrada velha e revalidar em background
        """
        entrada = await self._ler(grupo, chave)
        if entrada is not None:
            valor, criado_em = entrada
            idade = self._relogio() - criado_em
            if idade < max_age:
                return valor
            dentro_stale = stale_max_age is None or idade < max_age + stale_max_age
            if swr and dentro_stale:
                self._agendar_revalidacao(grupo, chave, produtor)
                return valor

        valor = await produtor()
        await self._gravar(grupo, chave, valor)
        return valor

    async def aguardar_revalidacoes(self):
        """Espera as revalidacoes pendentes (usado no desligamento e em testes)."""
        pendentes = list(self._revalidando.values())
        if pendentes:
            await asyncio.gather(*pendentes, return_exceptions=True)

    def invalidar(self, grupo: str, chave: Optional[str] = None) -> list[str]:
        """Remove uma chave do grupo, ou o grupo inteiro quando chave e None."""
        if chave is None:
            return [f"{grupo}:{c}" for c in self._store.cache_clear(grupo)]
        if self._store.cache_remove(grupo, chave):
            return [f"{grupo}:{chave}"]
        return []
