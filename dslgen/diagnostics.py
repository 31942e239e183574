"""
diagnostics.py

Responsibility: Logging and diagnostics context for a single generation pass.

One `Diagnostics` is created per pass and handed to every component explicitly.
Nothing is cached at module level, so two passes never share state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger("dslgen")


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal event worth reporting, e.g. a classification fallback."""

    level: int
    message: str
    domain: str | None = None
    property: str | None = None
    fallback: str | None = None

    def __str__(self) -> str:
        where = ".".join(p for p in (self.domain, self.property) if p)
        text = f"{where}: {self.message}" if where else self.message
        return f"{text} (fallback: {self.fallback})" if self.fallback else text


@dataclass
class Diagnostics:
    """
    Tiered debug logging plus a record of warnings/errors for the pass.

    Debug lines are indented as a tree: `tier` is the depth, `branch=True`
    keeps a vertical guide open at that depth for following siblings.
    """

    debug_enabled: bool = False
    log: logging.Logger = field(default_factory=lambda: logger)
    records: list[Diagnostic] = field(default_factory=list)
    _active_branches: set[int] = field(default_factory=set, repr=False)

    def _prefix(self, tier: int) -> str:
        if tier <= 0:
            return ""
        guides = "".join("|  " if i in self._active_branches else "   " for i in range(1, tier))
        return guides + "|__ "

    def _update_branches(self, tier: int, branch: bool) -> None:
        self._active_branches = {t for t in self._active_branches if t < tier}
        if branch:
            self._active_branches.add(tier)

    def debug(self, message: str, *, tier: int = 0, branch: bool = False) -> None:
        if not self.debug_enabled:
            return
        self.log.debug("%s%s", self._prefix(tier), message)
        self._update_branches(tier, branch)

    def info(self, message: str) -> None:
        self.log.info("%s", message)

    def warn(
        self,
        message: str,
        *,
        domain: str | None = None,
        property: str | None = None,
        fallback: str | None = None,
    ) -> Diagnostic:
        record = Diagnostic(logging.WARNING, message, domain, property, fallback)
        self.records.append(record)
        self.log.warning("%s", record)
        return record

    def error(self, message: str, *, domain: str | None = None, exc: BaseException | None = None) -> Diagnostic:
        record = Diagnostic(logging.ERROR, message, domain)
        self.records.append(record)
        self.log.error("%s", record, exc_info=exc)
        return record

    @property
    def warnings(self) -> list[Diagnostic]:
        return [r for r in self.records if r.level == logging.WARNING]

    @property
    def errors(self) -> list[Diagnostic]:
        return [r for r in self.records if r.level >= logging.ERROR]
