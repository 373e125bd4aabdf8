# src/gremlinalchemy/clients/base.py
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Iterable, List, Optional, Set

from pydantic import BaseModel, Field

from gremlinalchemy.core.gremlin import GremlinQuery, indexed_keys_query
from gremlinalchemy.orm.properties import Property
from gremlinalchemy.orm.schema import DISCRIMINATOR, DISCRIMINATOR_PROPERTY

if TYPE_CHECKING:
    from gremlinalchemy.mapper import Mapper

logger = logging.getLogger(__name__)


class IndexState(str, Enum):
    START = "start"
    FETCH_EXISTING = "fetch_existing"
    COMPUTE_MISSING = "compute_missing"
    CREATE_DISCRIMINATOR_KEY = "create_discriminator_key"
    CREATE_PROPERTY_KEYS = "create_property_keys"
    DONE = "done"
    ERROR = "error"


class IndexReport(BaseModel):
    """Outcome of one index coordination cycle."""

    existing: List[str] = Field(default_factory=list, description="Keys already indexed before this cycle")
    created: List[str] = Field(default_factory=list, description="Keys created during this cycle")
    failed: Dict[str, str] = Field(default_factory=dict, description="Key name -> error message")

    @property
    def ok(self) -> bool:
        return not self.failed


def _flatten(results: Iterable[Any]) -> List[str]:
    names: List[str] = []
    for result in results:
        if isinstance(result, (list, tuple, set, frozenset)):
            names.extend(str(name) for name in result)
        elif result is not None:
            names.append(str(result))
    return names


class GraphClient(ABC):
    """
    Behavior of the mapper against one family of graph backends.

    The shared part is index coordination: read the keys the backend already
    indexes, compute which indexable properties of every registered model are
    missing, create the discriminator key first when absent, then create every
    remaining key concurrently and wait for the whole batch to settle. Keys are
    never created twice within a cycle; the next cycle re-reads what the
    backend actually has, so keys that did succeed are skipped.

    Variants supply the backend commands and the write dialect.
    """

    name: ClassVar[str] = ""
    # Vertex method attaching indexed properties on insert
    indexed_property_step: ClassVar[str] = "addProperty"
    # Whether writes need an explicit g.commit()
    transactional: ClassVar[bool] = True

    def __init__(self, mapper: "Mapper"):
        self.mapper = mapper
        self.indexed_keys: Set[str] = set()
        self.state: IndexState = IndexState.START
        self.last_report: Optional[IndexReport] = None

    # =============================================================================
    # BACKEND COMMANDS
    # =============================================================================

    def indexed_keys_query(self) -> GremlinQuery:
        return indexed_keys_query()

    @abstractmethod
    def make_key_query(self, prop: Property) -> GremlinQuery:
        """Command creating an indexed key for `prop`."""

    async def get_existing_types(self) -> List[str]:
        """Names of keys the backend already indexes at vertex scope."""
        return _flatten(await self.mapper.execute(self.indexed_keys_query()))

    async def make_key(self, prop: Property) -> List[Any]:
        logger.debug("Creating %s index key '%s' (%s)", self.name, prop.name, prop.data_type)
        return await self.mapper.execute(self.make_key_query(prop))

    # =============================================================================
    # INDEX COORDINATION
    # =============================================================================

    def is_already_indexed(self, key_name: str) -> bool:
        return key_name in self.indexed_keys

    def compute_missing(self) -> List[Property]:
        """Indexable properties of all registered models not yet indexed, discriminator excluded."""
        return [
            prop
            for prop in self.mapper.get_properties_to_index()
            if prop.name != DISCRIMINATOR and not self.is_already_indexed(prop.name)
        ]

    async def initialize(self) -> IndexReport:
        """Prepare the backend for use by the registered models."""
        return await self.create_indexes()

    async def create_indexes(self) -> IndexReport:
        """
        Create index keys for every indexable property not yet known to the backend.

        Every issued creation call settles before this returns or raises.

        Returns:
            IndexReport of the cycle

        Raises:
            BackendError: The first failure in issue order, once the batch has settled.
        """
        report = IndexReport()
        self.last_report = report
        try:
            self.state = IndexState.FETCH_EXISTING
            self.indexed_keys = set(await self.get_existing_types())
            report.existing = sorted(self.indexed_keys)

            self.state = IndexState.COMPUTE_MISSING
            missing = self.compute_missing()

            # Inserts rely on the discriminator being queryable
            if not self.is_already_indexed(DISCRIMINATOR):
                self.state = IndexState.CREATE_DISCRIMINATOR_KEY
                try:
                    await self.make_key(DISCRIMINATOR_PROPERTY)
                except Exception as e:
                    report.failed[DISCRIMINATOR] = str(e)
                    raise
                self.indexed_keys.add(DISCRIMINATOR)
                report.created.append(DISCRIMINATOR)

            self.state = IndexState.CREATE_PROPERTY_KEYS
            outcomes = await asyncio.gather(
                *(self.make_key(prop) for prop in missing),
                return_exceptions=True,
            )

            first_error: Optional[BaseException] = None
            for prop, outcome in zip(missing, outcomes):
                if isinstance(outcome, BaseException):
                    report.failed[prop.name] = str(outcome)
                    first_error = first_error or outcome
                else:
                    self.indexed_keys.add(prop.name)
                    report.created.append(prop.name)

            if first_error is not None:
                raise first_error
        except Exception:
            self.state = IndexState.ERROR
            logger.error(
                "[%s] Error creating indexes: created %s, failed %s",
                self.name,
                report.created,
                sorted(report.failed),
            )
            raise

        self.state = IndexState.DONE
        logger.info(
            "[%s] Index keys ready: %d existing, %d created",
            self.name,
            len(report.existing),
            len(report.created),
        )
        return report
