"""Allow and deny lists deciding which metric families are exposed.

Entries are regular expressions matched against the whole family name, so a
plain family name matches only itself. A name matching the deny list is always
excluded, even when it also matches the allow list.
"""

from collections.abc import Iterable
import logging
import re

from .config import MetricFilterConfig
from .exceptions import ConfigException

__all__ = ["AllowDenyList"]

_LOGGER = logging.getLogger(__name__)


def _compile(patterns: Iterable[str], list_name: str) -> re.Pattern[str] | None:
    patterns = [pattern for pattern in patterns if pattern]
    if not patterns:
        return None
    try:
        return re.compile("|".join(f"(?:{pattern})" for pattern in patterns))
    except re.error as err:
        raise ConfigException(f"Invalid metric {list_name} pattern: {err}") from err


class AllowDenyList:
    """Policy answering whether a metric family is exposed."""

    def __init__(
        self,
        allow: Iterable[str] = (),
        deny: Iterable[str] = (),
        default_admit: bool | None = None,
    ) -> None:
        """Initialize AllowDenyList.

        Args:
            allow: Patterns of family names to expose.
            deny: Patterns of family names never to expose.
            default_admit: Whether a name in neither list is exposed. When
                None, names are admitted only if the allow list is empty.
        """
        self._allow = _compile(allow, "allowlist")
        self._deny = _compile(deny, "denylist")
        if default_admit is None:
            default_admit = self._allow is None
        self._default_admit = default_admit
        _LOGGER.debug("Metric family policy: %s", self)

    @classmethod
    def from_config(cls, config: MetricFilterConfig) -> "AllowDenyList":
        """Create the policy from the metric filter configuration."""
        return cls(
            allow=config.allow,
            deny=config.deny,
            default_admit=config.default_admit,
        )

    def is_included(self, name: str) -> bool:
        """Return True if the metric family should be exposed."""
        if self._deny is not None and self._deny.fullmatch(name):
            return False
        if self._allow is not None and self._allow.fullmatch(name):
            return True
        return self._default_admit

    def is_excluded(self, name: str) -> bool:
        """Return True if the metric family should not be exposed."""
        return not self.is_included(name)

    def __str__(self) -> str:
        allow = self._allow.pattern if self._allow else ""
        deny = self._deny.pattern if self._deny else ""
        return f"allow={allow!r} deny={deny!r} default_admit={self._default_admit}"
