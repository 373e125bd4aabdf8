# src/gremlinalchemy/core/scripts.py
"""
Auxiliary server-side script bundles.

A bundle is a named set of Groovy procedures (for instance `update(id,
propertiesMap)` or `findById(id)`) shipped with a model. Calling a procedure
sends the bundle's definitions followed by one invocation whose arguments are
passed as bindings, so the procedures are never re-derived per call.
"""
from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gremlinalchemy.core.gremlin import GremlinQuery
from gremlinalchemy.exceptions import SchemaError

if TYPE_CHECKING:
    from gremlinalchemy.orm.model import Model


_DEFINITION = re.compile(r"^\s*def\s+([A-Za-z_]\w*)\s*\(([^)]*)\)\s*\{", re.MULTILINE)


class Procedure(BaseModel):
    """One Groovy procedure: its name, parameter names and full definition."""

    name: str = Field(..., min_length=1)
    parameters: Tuple[str, ...] = Field(default_factory=tuple)
    source: str = Field(..., min_length=1, description="Groovy source defining the procedure")

    model_config = ConfigDict(frozen=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.isidentifier():
            raise ValueError(f"Procedure name '{v}' is not a valid identifier")
        return v

    def invocation(self, args: Sequence[Any]) -> GremlinQuery:
        """Build the script calling this procedure with `args` bound by position."""
        if len(args) != len(self.parameters):
            raise TypeError(
                f"{self.name}() takes {len(self.parameters)} arguments ({len(args)} given)"
            )
        bindings = {f"arg_{position}": value for position, value in enumerate(args)}
        call = f"{self.name}({', '.join(bindings)})"
        return GremlinQuery(script=f"{self.source}\n{call}", bindings=bindings)


class ScriptBundle:
    """
    Named collection of procedures.

    Example:
        ```python
        bundle = ScriptBundle.from_groovy('''
        def update(id, propertiesMap) {
          v = g.v(id)
          propertiesMap.each { key, value -> v.setProperty(key, value) }
          g.commit()
          v
        }
        ''')
        ```
    """

    def __init__(self, procedures: Optional[Sequence[Procedure]] = None):
        self._procedures: Dict[str, Procedure] = {}
        for procedure in procedures or []:
            self._procedures[procedure.name] = procedure

    @classmethod
    def from_groovy(cls, source: str) -> "ScriptBundle":
        """
        Parse `def name(params) { ... }` definitions out of Groovy text.

        Every procedure carries the whole text so procedures may call each other.

        Raises:
            SchemaError: If the text defines no procedure.
        """
        procedures: List[Procedure] = []
        for match in _DEFINITION.finditer(source):
            parameters = tuple(p.strip().split()[-1] for p in match.group(2).split(",") if p.strip())
            procedures.append(Procedure(name=match.group(1), parameters=parameters, source=source.strip()))

        if not procedures:
            raise SchemaError("Groovy script bundle defines no procedure")
        return cls(procedures)

    @classmethod
    def from_value(cls, value: Any) -> Optional["ScriptBundle"]:
        """Accept a bundle, Groovy text, a procedure mapping or None."""
        if value is None or isinstance(value, ScriptBundle):
            return value
        if isinstance(value, str):
            return cls.from_groovy(value)
        if isinstance(value, Mapping):
            for name, procedure in value.items():
                if not isinstance(procedure, Procedure):
                    raise SchemaError(
                        f"Script bundle entry '{name}' must be a Procedure, got {type(procedure).__name__}"
                    )
            return cls(list(value.values()))
        raise SchemaError(f"Unsupported script bundle: {type(value).__name__}")

    def bind(self, model: Type["Model"]) -> "BoundScriptBundle":
        return BoundScriptBundle(self, model)

    def get(self, name: str) -> Optional[Procedure]:
        return self._procedures.get(name)

    @property
    def names(self) -> List[str]:
        return list(self._procedures)

    def __contains__(self, name: object) -> bool:
        return name in self._procedures

    def __iter__(self) -> Iterator[Procedure]:
        return iter(self._procedures.values())

    def __len__(self) -> int:
        return len(self._procedures)

    def __repr__(self) -> str:
        return f"ScriptBundle({', '.join(self._procedures)})"


class BoundScript:
    """One pending procedure call."""

    def __init__(self, model: Type["Model"], query: GremlinQuery):
        self.model = model
        self.query_descriptor = query

    async def execute(self) -> List[Any]:
        """Run the procedure and return raw backend results."""
        return await self.model.__mapper__.execute(self.query_descriptor)

    async def query(self) -> List["Model"]:
        """Run the procedure and wrap each result as a model instance."""
        results = await self.execute()
        return [self.model.from_backend(element) for element in results if element is not None]


class BoundScriptBundle:
    """A bundle attached to a compiled model; procedures become callables."""

    def __init__(self, bundle: ScriptBundle, model: Type["Model"]):
        self.bundle = bundle
        self.model = model

    def call(self, name: str, *args: Any) -> BoundScript:
        procedure = self.bundle.get(name)
        if procedure is None:
            raise AttributeError(f"Script bundle of '{self.model.__model_name__}' has no procedure '{name}'")
        return BoundScript(self.model, procedure.invocation(args))

    def __getattr__(self, name: str):
        if name.startswith("__"):
            raise AttributeError(name)

        def invoke(*args: Any) -> BoundScript:
            return self.call(name, *args)

        if name not in self.bundle:
            raise AttributeError(f"Script bundle of '{self.model.__model_name__}' has no procedure '{name}'")
        return invoke

    def __contains__(self, name: object) -> bool:
        return name in self.bundle

    def __len__(self) -> int:
        return len(self.bundle)
