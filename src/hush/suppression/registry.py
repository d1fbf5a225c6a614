"""
Per-unit ordered collection of suppression directives.

Directives are kept innermost-first: a directive whose range is nested in
another directive's range is stored before it. The order is fixed when a
directive is registered; lookups scan it as-is.
"""

from collections.abc import Iterator

from hush.shared.infrastructure.logging import get_logger
from hush.suppression.models import Position, SourceUnit, Suppression

logger = get_logger(__name__)


class SuppressionRegistry:
    """
    Ordered suppression directives of one source unit.

    Registration policy:
    1. A directive strictly enclosed by an already registered one is inserted
       right before the first directive enclosing it.
    2. Anything else (disjoint, overlapping-but-not-nested, identical ranges)
       is appended, so the later directive acts as the outer one.
    """

    def __init__(self, unit: SourceUnit):
        self.unit = unit
        self._suppressions: list[Suppression] = []

    def register(self, suppression: Suppression) -> None:
        """
        Add a directive, keeping innermost-first order.

        Args:
            suppression: Directive to add
        """
        new_range = suppression.range
        overlapping = None

        for index, existing in enumerate(self._suppressions):
            if existing.range.strictly_encloses(new_range):
                logger.warning(
                    "suppression_registered_out_of_order",
                    unit=self.unit.path,
                    anchor=suppression.anchor,
                    enclosing_anchor=existing.anchor,
                )
                self._suppressions.insert(index, suppression)
                return
            if overlapping is None and existing.range.overlaps(new_range) and not new_range.encloses(existing.range):
                overlapping = existing

        if overlapping is not None:
            logger.debug(
                "suppression_overlap_treated_as_outer",
                unit=self.unit.path,
                anchor=suppression.anchor,
                overlapping_anchor=overlapping.anchor,
            )
        self._suppressions.append(suppression)

    def find_match(self, position: Position, message: str) -> Suppression | None:
        """
        Find the innermost directive covering a diagnostic.

        Args:
            position: Diagnostic position
            message: Diagnostic message

        Returns:
            First directive in stored order that applies, or None
        """
        for suppression in self._suppressions:
            if suppression.applies_to(position, message):
                return suppression
        return None

    def unused(self) -> list[Suppression]:
        """Directives that never suppressed anything, in stored order."""
        return [s for s in self._suppressions if not s.used]

    def __iter__(self) -> Iterator[Suppression]:
        return iter(self._suppressions)

    def __len__(self) -> int:
        return len(self._suppressions)
