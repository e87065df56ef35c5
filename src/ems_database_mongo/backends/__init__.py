"""Backend implementations of the component's collaborator protocols."""

from __future__ import annotations

from .motor import (
    MotorBackendClient,
    MotorHandle,
    create_mongo_component,
    open_mongo_component,
)

__all__ = [
    "MotorBackendClient",
    "MotorHandle",
    "create_mongo_component",
    "open_mongo_component",
]
