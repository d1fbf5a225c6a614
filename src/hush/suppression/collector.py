"""
Directive collection for host extractors.

A host walks its own syntax tree and hands every directive it finds to a
DirectiveCollector, which does the bookkeeping common to all hosts:
- range of a directive = union of the spans of the syntax it covers
- only the first directive anchored at a given point is kept
- invalid message patterns are reported at the anchor and dropped

Directive markers come in two forms:
- a dedicated marker whose optional argument is the message regex
- a generic suppression marker carrying "hush" or "hush:<regex>" among its
  string values (see parse_annotation_value)
"""

from collections.abc import Iterable

from hush.shared.domain.exceptions import InvalidPatternError
from hush.shared.infrastructure.logging import get_logger
from hush.suppression.engine import SuppressionEngine
from hush.suppression.models import (
    Diagnostic,
    Position,
    Severity,
    SourceRange,
    SourceUnit,
    Suppression,
)

logger = get_logger(__name__)

ANNOTATION_VALUE_NAME = "hush"
ANNOTATION_VALUE_PREFIX = f"{ANNOTATION_VALUE_NAME}:"


def parse_annotation_value(values: Iterable[str]) -> str | None:
    """
    Extract a directive from the string values of a generic suppression marker.

    Args:
        values: String values of the marker, e.g. ["unchecked", "hush:deprecated"]

    Returns:
        "" for a bare "hush" (no message pattern), the regex after "hush:",
        or None if no value belongs to this tool
    """
    for value in values:
        if value == ANNOTATION_VALUE_NAME:
            return ""
        if value.startswith(ANNOTATION_VALUE_PREFIX):
            return value[len(ANNOTATION_VALUE_PREFIX):]
    return None


class DirectiveCollector:
    """
    Collects the directives of one unit and registers them with the engine.

    The host must call add() in innermost-first order, i.e. after visiting the
    children of an annotated construct. Nothing reaches the engine until
    finish(), so no diagnostic is ever matched against a partial set.
    """

    def __init__(self, engine: SuppressionEngine, unit: SourceUnit | str):
        self.engine = engine
        self.unit = SourceUnit.of(unit)

        self._anchors_seen: set = set()
        self.collected: list[Suppression] = []
        self.errors: list[InvalidPatternError] = []

    def add(
        self,
        anchor: Position,
        spans: Iterable[SourceRange | tuple[Position, Position]],
        raw_pattern: str | None = None,
        in_macro_expansion: bool = False,
    ) -> Suppression | None:
        """
        Build one directive; it is registered by finish().

        Args:
            anchor: Position of the directive marker
            spans: Spans of all syntax covered by the annotated construct
            raw_pattern: Optional message regex; None or "" match any message
            in_macro_expansion: Whether the marker was found in expanded code

        Returns:
            Collected Suppression, or None if it was a duplicate or invalid
        """
        if anchor in self._anchors_seen:
            logger.debug("duplicate_directive_skipped", unit=self.unit.path, anchor=anchor)
            return None
        self._anchors_seen.add(anchor)

        try:
            suppression = Suppression.make(
                anchor=anchor,
                range=SourceRange.union(spans),
                raw_pattern=raw_pattern or None,
                in_macro_expansion=in_macro_expansion,
            )
        except InvalidPatternError as e:
            self._report_invalid(e)
            return None

        self.collected.append(suppression)
        return suppression

    def finish(self) -> list[Suppression]:
        """
        Register the collected directives and replay deferred diagnostics.

        The unit counts as registered afterwards, even without directives.

        Returns:
            Directives registered through this collector
        """
        self.engine.set_suppressions(self.unit, self.collected)
        return list(self.collected)

    def _report_invalid(self, error: InvalidPatternError) -> None:
        self.errors.append(error)
        logger.warning(
            "invalid_directive_pattern",
            unit=self.unit.path,
            anchor=error.anchor,
            pattern=error.pattern,
            error=error.reason,
        )
        self.engine.emit(Diagnostic(
            unit=self.unit,
            position=error.anchor,
            severity=Severity.ERROR,
            message=f"invalid message pattern {error.pattern} in suppression directive: {error.reason}",
        ))
