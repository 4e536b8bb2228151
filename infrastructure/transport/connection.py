"""
GraphQL connection shapes.

Foreman returns lists either as `{edges: [{node: {...}}]}` or `{nodes: [...]}`
depending on the field. `normalize_connection` is the one place that
understands both; everything downstream works with `Connection.nodes`.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, Field


class MalformedConnection(ValueError):
    """Payload is neither an edges- nor a nodes-style connection."""


class Connection(BaseModel):
    """Canonical connection: the flat list of node objects plus optional total."""

    nodes: list[dict[str, Any]] = Field(default_factory=list)
    total_count: int | None = None


def normalize_connection(payload: Any) -> Connection:
    """
    Accept `None`, `{edges: [{node}]}`, `{nodes: [...]}` or a bare list of nodes.

    Raises:
        MalformedConnection: if the payload matches none of the shapes or a node is not an object
    """
    if payload is None:
        return Connection()

    total = None
    if isinstance(payload, Mapping):
        raw_total = payload.get("totalCount")
        total = raw_total if isinstance(raw_total, int) and not isinstance(raw_total, bool) else None

        if payload.get("edges") is not None:
            edges = payload["edges"]
            if not isinstance(edges, Sequence):
                raise MalformedConnection("'edges' must be a list")
            items = [edge.get("node") if isinstance(edge, Mapping) else None for edge in edges]
        elif payload.get("nodes") is not None:
            items = payload["nodes"]
        else:
            raise MalformedConnection("connection has neither 'edges' nor 'nodes'")
    elif isinstance(payload, Sequence) and not isinstance(payload, (str, bytes)):
        items = payload
    else:
        raise MalformedConnection(f"unsupported connection payload: {type(payload).__name__}")

    if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
        raise MalformedConnection("'nodes' must be a list")

    nodes: list[dict[str, Any]] = []
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise MalformedConnection(f"connection item {index} is not an object")
        nodes.append(dict(item))
    return Connection(nodes=nodes, total_count=total)
