"""Resolver configuration: defaults, YAML/JSON config file, CLI overrides.

Precedence, lowest to highest: ``Constants`` defaults, the config file, CLI
flags. The config file is validated against a JSON schema so typos surface as
a clear error instead of silently falling back to defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import Draft7Validator

from constants import Constants
from common.errors import ConfigError
from registry.maven.models import Credentials, RepositoryDescriptor

logger = logging.getLogger(__name__)

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "repositories": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": ["url"],
                "properties": {
                    "id": {"type": "string"},
                    "url": {"type": "string", "minLength": 1},
                    "releases": {"type": "boolean"},
                    "snapshots": {"type": "boolean"},
                    "username": {"type": "string"},
                    "password": {"type": "string"},
                },
            },
        },
        "timeout": {"type": "number", "exclusiveMinimum": 0},
        "retry_max": {"type": "integer", "minimum": 1},
        "retry_base_delay": {"type": "number", "minimum": 0},
        "cache_ttl": {"type": "integer"},
        "max_workers": {"type": "integer", "minimum": 1},
    },
}


def validate_config(data: Dict[str, Any]) -> None:
    """Validate config data strictly and raise on the first error."""
    validator = Draft7Validator(CONFIG_SCHEMA)
    errs = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
    if errs:
        first = errs[0]
        path = "/".join([str(p) for p in first.path])
        raise ConfigError(f"Invalid config at '{path}': {first.message}")


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load and validate a YAML (or JSON) config file; no path -> empty dict."""
    if not config_path:
        return {}
    if not os.path.isfile(config_path):
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {config_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a mapping")
    validate_config(data)
    return data


def repository_from_config(entry: Dict[str, Any], index: int = 0) -> RepositoryDescriptor:
    """Build a repository; ``${VAR}`` in credentials expands from the environment."""
    credentials = None
    username = entry.get("username")
    password = entry.get("password")
    if username and password is not None:
        credentials = Credentials(os.path.expandvars(username), os.path.expandvars(password))
    return RepositoryDescriptor(
        id=entry.get("id") or f"repo-{index}",
        uri=entry["url"],
        releases=entry.get("releases", True),
        snapshots=entry.get("snapshots", False),
        credentials=credentials,
    )


@dataclass
class ResolverConfig:
    """Settings used to wire the resolver components."""

    repositories: List[RepositoryDescriptor] = field(default_factory=list)
    timeout: float = Constants.REQUEST_TIMEOUT
    retry_max: int = Constants.HTTP_RETRY_MAX
    retry_base_delay: float = Constants.HTTP_RETRY_BASE_DELAY_SEC
    cache_ttl: int = Constants.HTTP_CACHE_TTL_SEC
    max_workers: int = Constants.MAX_WORKERS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResolverConfig":
        """Create config from validated file data."""
        config = cls(
            repositories=[
                repository_from_config(entry, i)
                for i, entry in enumerate(data.get("repositories", []))
            ]
        )
        for name in ("timeout", "retry_max", "retry_base_delay", "cache_ttl", "max_workers"):
            if name in data:
                setattr(config, name, data[name])
        return config

    @classmethod
    def from_args(cls, args: Any, file_config: Optional[Dict[str, Any]] = None) -> "ResolverConfig":
        """Create config from file data, then apply CLI overrides.

        CLI repositories come before configured ones so they are asked first.
        """
        config = cls.from_dict(file_config or {})

        cli_repos = [
            repository_from_config(
                {"url": url, "snapshots": bool(getattr(args, "SNAPSHOTS", False))},
                len(config.repositories) + i,
            )
            for i, url in enumerate(getattr(args, "REPOSITORIES", None) or [])
        ]
        config.repositories = cli_repos + config.repositories

        if getattr(args, "TIMEOUT", None) is not None:
            config.timeout = float(args.TIMEOUT)
        if getattr(args, "JOBS", None) is not None:
            config.max_workers = max(1, int(args.JOBS))
        return config
