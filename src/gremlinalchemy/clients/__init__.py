# src/gremlinalchemy/clients/__init__.py
"""
Backend clients, selected by the `client` connection setting.
"""
from typing import TYPE_CHECKING, Dict, Type

from gremlinalchemy.clients.base import GraphClient, IndexReport, IndexState
from gremlinalchemy.clients.rexster import RexsterClient
from gremlinalchemy.clients.titan import TitanClient
from gremlinalchemy.exceptions import ConfigurationError

if TYPE_CHECKING:
    from gremlinalchemy.mapper import Mapper


CLIENTS: Dict[str, Type[GraphClient]] = {
    TitanClient.name: TitanClient,
    RexsterClient.name: RexsterClient,
}


def create_client(name: str, mapper: "Mapper") -> GraphClient:
    """
    Instantiate the client registered under `name` (case-insensitive).

    Raises:
        ConfigurationError: If no client has that name.
    """
    try:
        client_class = CLIENTS[name.lower()]
    except (KeyError, AttributeError):
        raise ConfigurationError(f"Unknown graph client '{name}'; expected one of {sorted(CLIENTS)}") from None
    return client_class(mapper)


__all__ = [
    "GraphClient",
    "IndexReport",
    "IndexState",
    "TitanClient",
    "RexsterClient",
    "CLIENTS",
    "create_client",
]
