"""
Infrastructure layer: External dependencies and I/O boundaries.

Contains adapters for:
- Foreman REST / GraphQL clients and the taxonomy-scoped decorator
- Dual-transport (GraphQL -> REST) read execution
- Configuration loading (YAML, environment)
- Selection persistence and observability (logging)

This is the only layer that performs I/O operations.
"""

# Most commonly used - exposed at top level for convenience
from infrastructure.config import ClientConfig, load_client_config

__all__ = [
    "load_client_config",
    "ClientConfig",
]
