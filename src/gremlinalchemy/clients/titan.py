# src/gremlinalchemy/clients/titan.py
from gremlinalchemy.clients.base import GraphClient
from gremlinalchemy.core.gremlin import COMMIT, GremlinQuery
from gremlinalchemy.orm.properties import Property


class TitanClient(GraphClient):
    """
    Titan backend.

    Titan requires a key to be defined before any vertex uses it, so every
    indexable property becomes a typed key indexed at vertex scope, with a
    uniqueness constraint for unique properties. Indexed properties are written
    with `addProperty`, which keeps Titan's multi-valued semantics.
    """

    name = "titan"
    indexed_property_step = "addProperty"
    transactional = True

    def make_key_query(self, prop: Property) -> GremlinQuery:
        # data_type comes from a closed set of class tokens; the key name is bound
        unique = ".unique()" if prop.unique else ""
        script = f"g.makeKey(key_name).dataType({prop.data_type}).indexed(Vertex.class){unique}.make()\n{COMMIT}"
        return GremlinQuery(script=script, bindings={"key_name": prop.name})
