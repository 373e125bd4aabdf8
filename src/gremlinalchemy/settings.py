# src/gremlinalchemy/settings.py
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from gremlinalchemy.exceptions import ConfigurationError


class ConnectionSettings(BaseModel):
    """
    Settings consumed by `Mapper.connect()`.

    Scripts are evaluated by Rexster's Gremlin extension at
    `/graphs/<graph>/tp/gremlin`; `path` overrides that endpoint. `client`
    selects the backend client implementation. `index_failure_policy`
    decides what happens when some index keys could not be created: "fail"
    makes `connect()` raise the first error, "degraded" logs it and signals
    readiness anyway.
    """

    host: str = Field(default="localhost", min_length=1)
    port: int = Field(default=8182, gt=0, lt=65536)
    graph: str = Field(default="graph", min_length=1, validation_alias="database")
    client: Literal["titan", "rexster"] = "titan"
    protocol: Literal["http", "https"] = "http"
    path: Optional[str] = Field(default=None, description="Gremlin endpoint; defaults to the graph's extension")
    username: Optional[str] = None
    password: Optional[str] = None
    pool_size: int = Field(default=4, ge=1, description="Maximum concurrent HTTP connections")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    index_failure_policy: Literal["fail", "degraded"] = "fail"

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
    )

    @field_validator("client", "protocol", mode="before")
    @classmethod
    def normalize_name(cls, v):
        """Client and protocol names are case-insensitive."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("path")
    @classmethod
    def ensure_leading_slash(cls, v):
        if v is None or v.startswith("/"):
            return v
        return f"/{v}"

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    @property
    def endpoint(self) -> str:
        """Path of the Gremlin extension scripts are posted to."""
        return self.path or f"/graphs/{self.graph}/tp/gremlin"

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.endpoint}"

    @classmethod
    def from_value(cls, value: Union["ConnectionSettings", Mapping[str, Any]]) -> "ConnectionSettings":
        """
        Coerce a plain mapping into validated settings.

        Raises:
            ConfigurationError: If the settings do not validate.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls.model_validate(dict(value))
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid connection settings: {e}") from e
