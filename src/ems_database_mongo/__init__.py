"""MongoDB database component.

Implements the database component contract (connect, disconnect, query,
insert, update, get, delete, clear) over Motor, translating backend-agnostic
abstract queries (or RQL strings) into MongoDB find arguments.
"""

from __future__ import annotations

from .backends.motor import (
    MotorBackendClient,
    MotorHandle,
    create_mongo_component,
    open_mongo_component,
)
from .component import DatabaseComponent
from .config import DatabaseConfig
from .connection import ConnectionManager, ConnectionState
from .exceptions import (
    BackendError,
    ConfigurationError,
    DatabaseComponentError,
    DatabaseConnectionError,
    DocumentNotFoundError,
    ErrorKind,
    InvalidDocumentError,
    InvalidIdentifierError,
    InvalidQueryError,
    NotConnectedError,
    RQLSyntaxError,
)
from .hooks import HookChain, InstrumentationHook, LoggingHook, log_result_set
from .identifiers import ObjectIdCodec
from .ports import IBackendClient, IBackendHandle, IDatabaseComponent, IIdentifierCodec
from .query import AbstractQuery, Projection, SortDirection
from .result import OperationResult
from .rql import parse_rql
from .translator import FindArguments, QueryTranslator

__all__ = [
    # Component
    "DatabaseComponent",
    "DatabaseConfig",
    "ConnectionManager",
    "ConnectionState",
    "OperationResult",
    # Queries
    "AbstractQuery",
    "Projection",
    "SortDirection",
    "QueryTranslator",
    "FindArguments",
    "parse_rql",
    # Protocols
    "IDatabaseComponent",
    "IBackendClient",
    "IBackendHandle",
    "IIdentifierCodec",
    # Observability
    "InstrumentationHook",
    "HookChain",
    "LoggingHook",
    "log_result_set",
    # MongoDB
    "MotorBackendClient",
    "MotorHandle",
    "ObjectIdCodec",
    "create_mongo_component",
    "open_mongo_component",
    # Exceptions
    "ErrorKind",
    "DatabaseComponentError",
    "NotConnectedError",
    "DatabaseConnectionError",
    "InvalidIdentifierError",
    "DocumentNotFoundError",
    "BackendError",
    "InvalidQueryError",
    "RQLSyntaxError",
    "InvalidDocumentError",
    "ConfigurationError",
]
