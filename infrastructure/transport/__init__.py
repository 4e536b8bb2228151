"""Dual-transport (GraphQL -> REST) read execution."""

from infrastructure.transport.connection import Connection, MalformedConnection, normalize_connection
from infrastructure.transport.executor import DualTransportExecutor, LogicalQuery, resolve_node_id

__all__ = [
    "Connection",
    "MalformedConnection",
    "normalize_connection",
    "DualTransportExecutor",
    "LogicalQuery",
    "resolve_node_id",
]
