# src/gremlinalchemy/clients/rexster.py
import logging

from gremlinalchemy.clients.base import GraphClient
from gremlinalchemy.core.gremlin import GremlinQuery
from gremlinalchemy.orm.properties import Property

logger = logging.getLogger(__name__)


class RexsterClient(GraphClient):
    """
    Generic Blueprints graph served by Rexster.

    Such graphs only offer key indices (`KeyIndexableGraph`): no data types,
    no uniqueness and no transactions. Every property is written with
    `setProperty`.
    """

    name = "rexster"
    indexed_property_step = "setProperty"
    transactional = False

    def make_key_query(self, prop: Property) -> GremlinQuery:
        if prop.unique:
            logger.warning("Rexster graphs do not enforce uniqueness; '%s' is only indexed", prop.name)
        return GremlinQuery(script="g.createKeyIndex(key_name, Vertex.class)", bindings={"key_name": prop.name})
