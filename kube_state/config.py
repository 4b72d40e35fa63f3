"""Configuration objects for kube-state.

The configuration is read from a YAML file and decoded into dataclasses. The
resulting `ExporterConfig` is passed explicitly to the parts of the exporter
that need it.
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path

import aiofiles
from mashumaro import DataClassDictMixin
from mashumaro.codecs.yaml import yaml_decode
from mashumaro.config import BaseConfig
from mashumaro.exceptions import ExtraKeysError, InvalidFieldValue, MissingField
import yaml

from .exceptions import ConfigException

__all__ = [
    "ExporterConfig",
    "MetricFilterConfig",
    "ReflectorConfig",
    "ServerConfig",
    "read_config",
    "parse_config",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_PORT = 8080
DEFAULT_HOST = "0.0.0.0"


@dataclass
class MetricFilterConfig(DataClassDictMixin):
    """Allow and deny lists of metric family names."""

    allow: list[str] = field(default_factory=list)
    """Regular expressions of family names to expose."""

    deny: list[str] = field(default_factory=list)
    """Regular expressions of family names never to expose."""

    default_admit: bool | None = None
    """Whether a family in neither list is exposed.

    When unset, families are admitted only when the allow list is empty.
    """


@dataclass
class ReflectorConfig(DataClassDictMixin):
    """Timing of list and watch calls against the API server."""

    resync_backoff_initial: float = 1.0
    """Seconds to wait before the first resync after an error."""

    resync_backoff_max: float = 30.0
    """Upper bound of the exponential resync backoff."""

    watch_timeout_seconds: int = 300
    """Server side timeout of one watch call, after which a resync happens."""

    request_timeout_seconds: float = 60.0
    """Client side timeout of one list call."""


@dataclass
class ServerConfig(DataClassDictMixin):
    """Address the metrics server listens on."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


@dataclass
class ExporterConfig(DataClassDictMixin):
    """Top level configuration of the exporter."""

    resources: list[str] = field(default_factory=list)
    """Resource kinds to expose, empty for all known kinds."""

    namespaces: list[str] = field(default_factory=list)
    """Namespaces to watch, empty for all namespaces."""

    field_selector: str | None = None
    """Optional field selector applied to every list and watch call."""

    metric_filter: MetricFilterConfig = field(default_factory=MetricFilterConfig)

    labels_allow_list: dict[str, list[str]] = field(default_factory=dict)
    """Kubernetes label keys exposed per resource kind, `*` for all."""

    annotations_allow_list: dict[str, list[str]] = field(default_factory=dict)
    """Kubernetes annotation keys exposed per resource kind, `*` for all."""

    reflector: ReflectorConfig = field(default_factory=ReflectorConfig)

    server: ServerConfig = field(default_factory=ServerConfig)

    class Config(BaseConfig):
        omit_none = True
        forbid_extra_keys = True


def parse_config(content: str) -> ExporterConfig:
    """Parse the YAML contents of a configuration file."""
    if not content.strip():
        return ExporterConfig()
    try:
        return yaml_decode(content, ExporterConfig)
    except (
        ExtraKeysError,
        InvalidFieldValue,
        MissingField,
        yaml.YAMLError,
        TypeError,
        ValueError,
    ) as err:
        raise ConfigException(f"Invalid configuration: {err}") from err


async def read_config(config_path: Path) -> ExporterConfig:
    """Return the configuration stored in a YAML file."""
    _LOGGER.debug("Reading configuration from %s", config_path)
    try:
        async with aiofiles.open(str(config_path)) as config_file:
            content = await config_file.read()
    except OSError as err:
        raise ConfigException(
            f"Unable to read configuration file {config_path}: {err}"
        ) from err
    return parse_config(content)
