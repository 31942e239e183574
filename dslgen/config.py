"""
config.py

Responsibility: Pass-level configuration consumed once before generation starts.

Missing required settings are configuration errors: they abort the whole pass
before any domain is processed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    pass


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ConfigError(f"`{key}` must be a boolean, got {value!r}")


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class BuilderConfig:
    """Configuration for one generation pass."""

    # The project root class path, e.g. io.violabs.target.folder
    project_root_classpath: str
    # Package of the project's `DslBuilder<T>` contract
    dsl_builder_classpath: str
    root_dsl_file_classpath_override: str | None = None
    # Qualified name of the DSL marker annotation, if any
    dsl_marker_class: str | None = None
    is_ignored: bool = False

    @property
    def root_dsl_file_classpath(self) -> str:
        return self.root_dsl_file_classpath_override or self.project_root_classpath

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> BuilderConfig:
        """
        Build from a raw options mapping.

        Recognized keys:
        - projectRootClasspath: str (required)
        - dslBuilderClasspath: str (required)
        - rootDslFileClasspath: str
        - dslMarkerClass: str
        - isIgnored: bool
        """
        project_root = _optional_str(options.get("projectRootClasspath"))
        if project_root is None:
            raise ConfigError("projectRootClasspath is missing")

        dsl_builder = _optional_str(options.get("dslBuilderClasspath"))
        if dsl_builder is None:
            raise ConfigError("dslBuilderClasspath is missing")

        return cls(
            project_root_classpath=project_root,
            dsl_builder_classpath=dsl_builder,
            root_dsl_file_classpath_override=_optional_str(options.get("rootDslFileClasspath")),
            dsl_marker_class=_optional_str(options.get("dslMarkerClass")),
            is_ignored=_as_bool("isIgnored", options.get("isIgnored", False)),
        )

    def log_debug(self, log: logging.Logger | logging.LoggerAdapter = logger) -> None:
        log.debug("rootDslFileClasspath: %s", self.root_dsl_file_classpath)
        log.debug("dslBuilderClasspath: %s", self.dsl_builder_classpath)
        log.debug("dslMarkerClass: %s", self.dsl_marker_class)
