"""
Configuration management: models and loading.

Handles:
- ClientConfig: server URL, API paths, auth, timeouts, state file
- YAML loading (configs/client.yaml)
- Environment variable overrides (FOREMAN_*)

The loader module performs file I/O; models are pure Pydantic classes.
"""

from infrastructure.config.loader import ENV_OVERRIDES, load_client_config
from infrastructure.config.models import ClientConfig

__all__ = [
    "ClientConfig",
    "load_client_config",
    "ENV_OVERRIDES",
]
