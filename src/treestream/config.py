"""YAML-backed configuration for tree stream sessions."""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

import yaml

from .decoder import COMMENT_PREFIXES, DATA_PREFIX, FENCE_PREFIX
from .errors import ConfigError
from .schema import Catalog

__all__ = [
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_CONFIG_TEMPLATE",
    "StreamConfig",
    "load_config",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "treestream.yaml"

DEFAULT_CONFIG_TEMPLATE: Dict[str, Any] = {
    "stream": {
        "catalog": Catalog.TODOLIST.value,
        "eager_trailing": True,
        "data_prefix": DATA_PREFIX,
        "comment_prefixes": list(COMMENT_PREFIXES),
        "fence_prefix": FENCE_PREFIX,
        "roles": ["assistant"],
    },
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(slots=True)
class StreamConfig:
    """Settings that shape how a session frames, decodes and applies lines."""

    catalog: Catalog = Catalog.TODOLIST
    eager_trailing: bool = True
    data_prefix: str = DATA_PREFIX
    comment_prefixes: Tuple[str, ...] = COMMENT_PREFIXES
    fence_prefix: str = FENCE_PREFIX
    roles: Tuple[str, ...] = field(default_factory=lambda: ("assistant",))

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any]) -> "StreamConfig":
        """Build a config from the ``stream`` section of a YAML document."""
        merged = copy.deepcopy(DEFAULT_CONFIG_TEMPLATE["stream"])
        merged.update(section)
        return cls(
            catalog=_parse_catalog(merged.get("catalog")),
            eager_trailing=_parse_bool(merged.get("eager_trailing"), "eager_trailing"),
            data_prefix=_parse_str(merged.get("data_prefix"), "data_prefix"),
            comment_prefixes=_parse_str_tuple(merged.get("comment_prefixes"), "comment_prefixes"),
            fence_prefix=_parse_str(merged.get("fence_prefix"), "fence_prefix"),
            roles=_parse_str_tuple(merged.get("roles"), "roles"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stream": {
                "catalog": self.catalog.value,
                "eager_trailing": self.eager_trailing,
                "data_prefix": self.data_prefix,
                "comment_prefixes": list(self.comment_prefixes),
                "fence_prefix": self.fence_prefix,
                "roles": list(self.roles),
            }
        }


def _parse_catalog(value: Any) -> Catalog:
    if isinstance(value, Catalog):
        return value
    try:
        return Catalog(str(value).strip().lower())
    except ValueError as error:
        valid = ", ".join(item.value for item in Catalog)
        raise ConfigError(
            f"Unknown catalog '{value}'. Expected one of: {valid}",
            details={"catalog": value},
        ) from error


def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ConfigError(f"Setting '{name}' must be a boolean.", details={name: value})


def _parse_str(value: Any, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"Setting '{name}' must be a string.", details={name: value})
    return value


def _parse_str_tuple(value: Any, name: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise ConfigError(f"Setting '{name}' must be a list of strings.", details={name: value})


def _apply_env_overrides(section: Dict[str, Any], env: Mapping[str, str]) -> None:
    """Overlay ``TREESTREAM_*`` environment variables onto ``section``."""
    eager = env.get("TREESTREAM_EAGER_TRAILING")
    if eager is not None:
        lowered = eager.strip().lower()
        if lowered in _TRUE_VALUES:
            section["eager_trailing"] = True
        elif lowered in _FALSE_VALUES:
            section["eager_trailing"] = False
        else:
            LOGGER.warning("Ignoring TREESTREAM_EAGER_TRAILING=%r; expected a boolean.", eager)

    catalog = env.get("TREESTREAM_CATALOG")
    if catalog is not None and catalog.strip():
        section["catalog"] = catalog.strip()


def load_config(
    config_path: Path | str | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> StreamConfig:
    """Load stream settings from YAML, falling back to defaults.

    A missing file yields the defaults. Environment overrides are applied last.
    """
    env_mapping = os.environ if env is None else env
    section: Dict[str, Any] = {}

    if config_path is not None:
        candidate = Path(config_path)
        try:
            with candidate.open("r", encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle) or {}
        except FileNotFoundError:
            LOGGER.debug("Config file %s not found; using defaults.", candidate)
            loaded = {}
        except yaml.YAMLError as error:
            raise ConfigError(f"Failed to parse config {candidate}: {error}") from error

        if not isinstance(loaded, Mapping):
            raise ConfigError("Configuration must be a mapping at the top level.")
        stream_section = loaded.get("stream") or {}
        if not isinstance(stream_section, Mapping):
            raise ConfigError("The 'stream' section must be a mapping.")
        section.update(stream_section)

    _apply_env_overrides(section, env_mapping)
    return StreamConfig.from_mapping(section)
