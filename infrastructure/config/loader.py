"""Configuration loading from YAML files and environment variables."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from infrastructure.config.models import ClientConfig

# Environment variable -> ClientConfig field
ENV_OVERRIDES: dict[str, str] = {
    "FOREMAN_URL": "base_url",
    "FOREMAN_TOKEN": "token",
    "FOREMAN_USERNAME": "username",
    "FOREMAN_PASSWORD": "password",
}


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return as dict."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected YAML dict in {path}, got {type(data)}")

    return data


def load_client_config(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ClientConfig:
    """
    Load client.yaml and apply environment overrides.

    Args:
        path: Path to client.yaml; when None only the environment is used
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated ClientConfig

    Raises:
        FileNotFoundError: If `path` is given but missing
        ValueError: If the YAML is not a mapping or the merged config is invalid
    """
    data: dict[str, Any] = _load_yaml(path) if path is not None else {}
    env = os.environ if environ is None else environ

    for var, field in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[field] = value

    if not data.get("base_url"):
        raise ValueError("client config missing required key: base_url (or set FOREMAN_URL)")

    unknown = sorted(set(data) - set(ClientConfig.model_fields))
    if unknown:
        raise ValueError(f"Unknown keys in client config: {unknown}")

    return ClientConfig(**data)
