# src/gremlinalchemy/core/connection.py
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from gremlinalchemy.core.gremlin import GremlinQuery
from gremlinalchemy.exceptions import BackendError
from gremlinalchemy.settings import ConnectionSettings

logger = logging.getLogger(__name__)


class Connection(ABC):
    """
    Query-execution bridge consumed by the mapper.

    Implementations open a channel to a Gremlin-speaking backend, evaluate
    scripts with bindings and return the list of results. Failures must be
    raised as `BackendError`.
    """

    settings: ConnectionSettings

    @abstractmethod
    async def open(self) -> None:
        """Open the channel; returns once the backend is reachable."""

    @abstractmethod
    async def execute_query(self, query: GremlinQuery) -> List[Any]:
        """Evaluate a script and return its results."""

    @abstractmethod
    async def close(self) -> None:
        """Release the channel."""

    @property
    @abstractmethod
    def connected(self) -> bool:
        """True while the channel is open."""


class RexsterConnection(Connection):
    """
    Connection to a graph served by Rexster, through its Gremlin extension.

    Each script is POSTed as JSON (`{"script": ..., "params": ...}`) to
    `/graphs/<graph>/tp/gremlin`; Rexster answers with the evaluated
    `results` as GraphSON.
    """

    def __init__(
        self,
        settings: ConnectionSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._is_connected: bool = False
        self._connection_lock = asyncio.Lock()

    def _build_client(self) -> httpx.AsyncClient:
        options: Dict[str, Any] = {
            "base_url": self.settings.base_url,
            "timeout": self.settings.timeout,
            "limits": httpx.Limits(max_connections=self.settings.pool_size),
            "headers": {"Accept": "application/json"},
        }
        if self.settings.username:
            options["auth"] = (self.settings.username, self.settings.password or "")
        if self._transport is not None:
            options["transport"] = self._transport
        return httpx.AsyncClient(**options)

    async def _evaluate(self, query: GremlinQuery) -> List[Any]:
        try:
            response = await self._client.post(
                self.settings.endpoint,
                json={"script": query.script, "params": query.bindings},
            )
        except httpx.HTTPError as e:
            raise BackendError(f"Request to {self.settings.url} failed: {e}") from e
        return self._results(response)

    @staticmethod
    def _results(response: httpx.Response) -> List[Any]:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = {}

        if response.is_error or payload.get("success") is False:
            detail = payload.get("error") or payload.get("message") or response.text or response.reason_phrase
            raise BackendError(f"Rexster returned HTTP {response.status_code}: {detail}")

        results = payload.get("results")
        if results is None:
            return []
        return results if isinstance(results, list) else [results]

    async def open(self) -> None:
        """
        Build the HTTP client and verify the Gremlin extension answers. Idempotent.

        Raises:
            BackendError: If the endpoint does not evaluate a trivial script.
        """
        async with self._connection_lock:
            if self._is_connected and self._client:
                return

            url = self.settings.url
            logger.info("Opening Rexster connection to %s", url)
            self._client = self._build_client()
            try:
                await self._evaluate(GremlinQuery(script="1"))
            except BackendError as e:
                await self._client.aclose()
                self._client = None
                self._is_connected = False
                logger.error("Connection to %s failed: %s", url, e)
                raise BackendError(f"Failed to connect to Rexster at {url}: {e}") from e

            self._is_connected = True
            logger.info("Connected to %s", url)

    async def execute_query(self, query: GremlinQuery) -> List[Any]:
        """
        Evaluate a script remotely.

        Raises:
            BackendError: If the connection is not open or the backend rejects the script.
        """
        if not self._client or not self._is_connected:
            raise BackendError(
                f"Connection to {self.settings.url} is not open. Call `await connection.open()` first."
            )

        logger.debug("Executing Gremlin script: %s (bindings: %s)", query.script, sorted(query.bindings))
        return await self._evaluate(query)

    async def close(self) -> None:
        """Close the HTTP client if it is open."""
        async with self._connection_lock:
            if self._client is None:
                return
            logger.info("Closing connection to %s", self.settings.url)
            try:
                await self._client.aclose()
            finally:
                self._client = None
                self._is_connected = False
            logger.info("Connection to %s closed", self.settings.url)

    @property
    def connected(self) -> bool:
        return self._is_connected

    async def __aenter__(self) -> "RexsterConnection":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


def open_connection(settings: ConnectionSettings) -> Connection:
    """
    Default connection factory used by `Mapper.connect()`.

    The returned connection is not open yet; the mapper opens it.
    """
    return RexsterConnection(settings)
