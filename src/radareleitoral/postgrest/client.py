"""Cliente HTTP com retry para o PostgREST."""

import asyncio
import logging
from typing import Any, Optional

import httpx

from ..config import Settings
from ..errors import ErroFonteDados, ErroTransporte

logger = logging.getLogger(__name__)


class PostgrestClient:
    """Cliente HTTP assincrono para o PostgREST com retry limitado."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._settings.postgrest_url,
                timeout=httpx.Timeout(
                    connect=self._settings.connect_timeout,
                    read=self._settings.read_timeout,
                    write=self._settings.read_timeout,
                    pool=self._settings.read_timeout,
                ),
                limits=httpx.Limits(
                    max_connections=self._settings.max_concurrent_requests * 4,
                    max_keepalive_connections=self._settings.max_concurrent_requests,
                ),
                headers={"Accept": "application/json"},
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def fetch_json(self, path: str, params: Optional[dict] = None) -> Optional[Any]:
        """Busca JSON do PostgREST.

        Retorna None para 404. Repete em 429, 5xx e erros de conexao;
        esgotadas as tentativas (ou em outro 4xx) levanta ErroFonteDados;
        falhas de conexao esgotadas levantam ErroTransporte.
        """
        tentativas = max(1, self._settings.max_retries)
        for attempt in range(tentativas):
            try:
                client = await self._get_client()
                response = await client.get(path, params=params)
                if response.status_code == 404:
                    logger.debug("404 para %s", path)
                    return None
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 429:
                    wait = 2 ** attempt
                    logger.warning("Rate limited (429), aguardando %ds...", wait)
                    await asyncio.sleep(wait)
                    continue
                logger.error("HTTP %d para %s", status, path)
                if status < 500 or attempt == tentativas - 1:
                    raise ErroFonteDados(f"HTTP {status} em {path}") from e
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                logger.warning(
                    "Erro de conexao (tentativa %d/%d): %s",
                    attempt + 1, tentativas, e,
                )
                if attempt == tentativas - 1:
                    raise ErroTransporte(f"PostgREST indisponivel: {e}") from e
                await asyncio.sleep(min(2 ** attempt, 5))
            except ValueError as e:
                raise ErroFonteDados(f"Resposta invalida de {path}: {e}") from e
        raise ErroFonteDados(f"Tentativas esgotadas para {path}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
