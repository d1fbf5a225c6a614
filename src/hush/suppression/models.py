"""
Suppression models.

These models define the data that flows through the suppression engine:
- SourceUnit: Identity of one analyzed source file
- SourceRange: Inclusive range of positions inside one unit
- Severity / Outcome: Diagnostic severity and interception result
- Diagnostic: What a host reports and a sink receives
- Suppression: One directive and its usage flag
- FilterConfig: Process-wide filter configuration snapshot

JSON format: camelCase
Python internal format: snake_case
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Any

from hush.shared.domain.base_model import BaseDomainModel
from hush.shared.domain.exceptions import InvalidPatternError
from hush.suppression.patterns import PatternFilter

# A position is an integer offset or a (line, column) tuple; one unit uses one kind.
Position = Any


class Severity(Enum):
    """Severity of a diagnostic."""

    INFO = 0
    WARNING = 1
    ERROR = 2

    @classmethod
    def parse(cls, value: str | Severity) -> Severity:
        """Parse a severity name such as 'warning' (case-insensitive)."""
        if isinstance(value, Severity):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"Invalid severity: {value}")


class Outcome(Enum):
    """Result of intercepting one diagnostic."""

    SUPPRESSED = "suppressed"
    FORWARDED = "forwarded"
    DEFERRED = "deferred"  # Only when deferral of unregistered units is enabled


@dataclass(frozen=True)
class SourceUnit:
    """Identity of one source unit (compilation unit / analyzed file)."""

    path: str

    @classmethod
    def of(cls, unit: SourceUnit | str | PurePath) -> SourceUnit:
        """Coerce a path or an existing unit into a SourceUnit."""
        if isinstance(unit, SourceUnit):
            return unit
        return cls(path=str(unit))

    def to_json(self) -> str:
        return self.path

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class SourceRange:
    """
    Inclusive range of positions within one source unit.

    Invariant: end >= start.
    """

    start: Position
    end: Position

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Range end {self.end!r} precedes start {self.start!r}")

    @classmethod
    def union(cls, spans: Iterable[SourceRange | tuple[Position, Position]]) -> SourceRange:
        """
        Smallest range covering every span.

        Args:
            spans: Ranges or (start, end) pairs of the syntax covered by a directive

        Raises:
            ValueError: If spans is empty
        """
        start = end = None
        for span in spans:
            s, e = (span.start, span.end) if isinstance(span, SourceRange) else span
            start = s if start is None else min(start, s)
            end = e if end is None else max(end, e)

        if start is None:
            raise ValueError("Cannot compute the range of an empty set of spans")

        return cls(start=start, end=max(end, start))

    def contains(self, position: Position) -> bool:
        """Check whether a position falls inside this range."""
        if position is None:
            return False
        return self.start <= position <= self.end

    def encloses(self, other: SourceRange) -> bool:
        """Check whether other lies fully inside this range."""
        return self.start <= other.start and other.end <= self.end

    def strictly_encloses(self, other: SourceRange) -> bool:
        """Like encloses, but the two ranges must differ."""
        return self.encloses(other) and self != other

    def overlaps(self, other: SourceRange) -> bool:
        """Check whether the two ranges share at least one position."""
        return self.start <= other.end and other.start <= self.end

    def to_json(self) -> dict[str, Any]:
        return {"start": self.start, "end": self.end}

    def __str__(self) -> str:
        return f"[{self.start}, {self.end}]"


@dataclass
class Diagnostic(BaseDomainModel):
    """
    A diagnostic produced by the host tool.

    Examples:
    - Diagnostic(unit=SourceUnit("src/app.scala"), position=15,
                 severity=Severity.WARNING, message="method foo is deprecated")
    - Diagnostic(unit=SourceUnit("src/app.scala"), position=None,
                 severity=Severity.WARNING, message="unused import")
    """

    unit: SourceUnit
    position: Position
    severity: Severity
    message: str

    def __str__(self) -> str:
        where = f"{self.unit}:{self.position}" if self.position is not None else str(self.unit)
        return f"{where}: {self.severity.name.lower()}: {self.message}"


@dataclass(eq=False)
class Suppression(BaseDomainModel):
    """
    A suppression directive.

    Identity-compared: two directives with equal fields are still distinct
    directives with their own usage flag.
    """

    anchor: Position
    range: SourceRange
    message_pattern: PatternFilter | None = None
    in_macro_expansion: bool = False
    used: bool = False

    __eq__ = object.__eq__
    __hash__ = object.__hash__

    @classmethod
    def make(
        cls,
        anchor: Position,
        range: SourceRange,
        raw_pattern: str | None = None,
        in_macro_expansion: bool = False,
    ) -> Suppression:
        """
        Create a directive, compiling its optional message pattern.

        Args:
            anchor: Position of the directive itself (for error reporting)
            range: Source range the directive covers
            raw_pattern: Optional message regex (None = match any message)
            in_macro_expansion: Whether the directive came from expanded code

        Returns:
            New unused Suppression

        Raises:
            InvalidPatternError: If raw_pattern is not a valid regex; its
                anchor attribute is set to this directive's anchor
        """
        message_pattern = None
        if raw_pattern is not None:
            try:
                message_pattern = PatternFilter.compile(raw_pattern, source="suppression directive")
            except InvalidPatternError as e:
                raise e.at(anchor)

        return cls(
            anchor=anchor,
            range=range,
            message_pattern=message_pattern,
            in_macro_expansion=in_macro_expansion,
        )

    def applies_to(self, position: Position, message: str) -> bool:
        """Check whether this directive covers a diagnostic at position with message."""
        if not self.range.contains(position):
            return False
        return self.message_pattern is None or self.message_pattern.matches(message)

    def mark_used(self) -> None:
        """Record that this directive suppressed a diagnostic."""
        self.used = True

    def to_json(self) -> dict[str, Any]:
        """Convert to camelCase JSON."""
        data = super().to_json()
        data["messagePattern"] = self.message_pattern.text if self.message_pattern else None
        return data


@dataclass(frozen=True)
class FilterConfig:
    """
    Process-wide filter configuration.

    Built once before any unit is processed and shared read-only afterwards.

    Loaded from .hush/suppressions.yaml:
    ```yaml
    globalFilters:
      - deprecated
    pathFilters:
      - ^generated/
    sourceRoots:
      - src/main/scala
    checkUnused: true
    ```
    """

    global_filters: tuple[PatternFilter, ...] = ()
    path_filters: tuple[PatternFilter, ...] = ()
    source_roots: tuple[PurePath, ...] = ()
    check_unused: bool = False
    report_unused_in_macro_expansion: bool = True
    defer_unregistered: bool = False
    suppressible_severities: frozenset[Severity] = field(default_factory=lambda: frozenset(Severity))
    # Relative unit paths and source roots are resolved against this (default: cwd)
    base_dir: PurePath | None = None

    @property
    def has_filters(self) -> bool:
        """Check whether any global or path filter is configured."""
        return bool(self.global_filters or self.path_filters)

    def _absolute(self, path: str | PurePath) -> PurePath:
        # os.path.join drops the base when path is already absolute
        base = str(self.base_dir) if self.base_dir is not None else os.getcwd()
        return PurePath(os.path.normpath(os.path.join(base, path)))

    def relativize(self, path: str) -> str:
        """
        Express path relative to the most specific source root containing it.

        The unit path and the roots are both normalized against base_dir, so
        a relative unit path matches an absolute root and vice versa.

        Returns the raw path if no source root contains it.
        """
        if not self.source_roots:
            return path

        pure = self._absolute(path)
        roots = [self._absolute(root) for root in self.source_roots]
        containing = [root for root in roots if pure.is_relative_to(root)]
        if not containing:
            return path

        root = max(containing, key=lambda r: len(r.parts))
        return pure.relative_to(root).as_posix()
