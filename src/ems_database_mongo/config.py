"""DatabaseConfig — component options and connection URL construction."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigurationError

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 27017
DEFAULT_DATABASE = "ems-database"


class DatabaseConfig(BaseModel):
    """Options recognised by the Mongo database component.

    Attributes:
        host: Server host name.
        port: Server port.
        database: Database selected by the connection URL.
        scheme: URL scheme, ``mongodb`` unless a variant is needed.
        server_selection_timeout_ms: Driver server selection timeout.
        connect_timeout_ms: Driver socket connect timeout.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    host: str = Field(default=DEFAULT_HOST, min_length=1)
    port: int = Field(default=DEFAULT_PORT, gt=0, le=65535)
    database: str = Field(default=DEFAULT_DATABASE, min_length=1)
    scheme: str = Field(default="mongodb", min_length=1)
    server_selection_timeout_ms: int = Field(default=5000, gt=0)
    connect_timeout_ms: int = Field(default=10000, gt=0)

    @property
    def url(self) -> str:
        """Connection URL: ``<scheme>://<host>:<port>/<database>``."""
        return f"{self.scheme}://{self.host}:{self.port}/{self.database}"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any] | None = None) -> DatabaseConfig:
        """Build a config from component options, filling defaults.

        Accepts the flat form (``{"host": ..., "port": ...}``) and the host
        framework's nested form (``{"database": {"host": ..., ...}}``).
        """
        if config is None:
            return cls()
        if isinstance(config, DatabaseConfig):
            return config
        data = dict(config)
        nested = data.get("database")
        if isinstance(nested, Mapping):
            data = {**{k: v for k, v in data.items() if k != "database"}, **nested}
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigurationError(str(e)) from e
