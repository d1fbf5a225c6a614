"""
Suppression engine: intercepts diagnostics before they reach the sink.

Main class:
- SuppressionEngine: Decides suppress/forward for every diagnostic and
  reports directives that never suppressed anything

Checks in priority order:
1. Path filters (unit path, relativized against source roots)
2. Global message filters
3. Directives of the unit, innermost first
"""

import threading
from collections.abc import Iterable

from hush.shared.domain.exceptions import MissingCapabilityError
from hush.shared.infrastructure.logging import get_logger
from hush.suppression.models import (
    Diagnostic,
    FilterConfig,
    Outcome,
    Position,
    Severity,
    SourceUnit,
    Suppression,
)
from hush.suppression.registry import SuppressionRegistry
from hush.suppression.sinks import DiagnosticSink

logger = get_logger(__name__)

UNUSED_SUPPRESSION_MESSAGE = "this suppression has no effect"


class SuppressionEngine:
    """
    Filters a host's diagnostic stream through suppression directives.

    The engine wraps the host's sink: forwarded diagnostics are passed on
    unchanged, suppressed ones are dropped. Registries are per unit and
    created on first registration.
    """

    def __init__(self, sink: DiagnosticSink, config: FilterConfig | None = None):
        """
        Initialize suppression engine.

        Args:
            sink: Host reporter that receives forwarded diagnostics
            config: Filter configuration (default: no filters)
        """
        self.sink = sink
        self.config = config or FilterConfig()

        self._registries: dict[SourceUnit, SuppressionRegistry] = {}
        self._deferred: dict[SourceUnit, list[Diagnostic]] = {}
        self._lock = threading.Lock()

    # Registration

    def registry(self, unit: SourceUnit | str) -> SuppressionRegistry:
        """Get the registry of a unit, creating it on first use."""
        unit = SourceUnit.of(unit)
        with self._lock:
            registry = self._registries.get(unit)
            if registry is None:
                registry = SuppressionRegistry(unit)
                self._registries[unit] = registry
            return registry

    def has_registry(self, unit: SourceUnit | str) -> bool:
        """Check whether any directive set was registered for a unit."""
        return SourceUnit.of(unit) in self._registries

    def register(self, unit: SourceUnit | str, suppression: Suppression) -> None:
        """
        Register one directive for a unit.

        Args:
            unit: Source unit the directive belongs to
            suppression: Directive to register
        """
        registry = self.registry(unit)
        registry.register(suppression)
        logger.debug(
            "suppression_registered",
            unit=registry.unit.path,
            anchor=suppression.anchor,
            range=str(suppression.range),
            pattern=suppression.message_pattern.text if suppression.message_pattern else None,
        )

    def set_suppressions(
        self,
        unit: SourceUnit | str,
        suppressions: Iterable[Suppression],
    ) -> list[Outcome]:
        """
        Register all directives of a unit and replay its deferred diagnostics.

        Args:
            unit: Source unit
            suppressions: Directives in innermost-first order

        Returns:
            Outcomes of the replayed deferred diagnostics, in arrival order
        """
        unit = SourceUnit.of(unit)
        registry = self.registry(unit)
        for suppression in suppressions:
            self.register(unit, suppression)

        deferred = self._deferred.pop(unit, [])
        if deferred:
            logger.debug("deferred_diagnostics_replayed", unit=unit.path, count=len(deferred))
        return [self._match_directives(registry, diagnostic) for diagnostic in deferred]

    # Interception

    def intercept(
        self,
        unit: SourceUnit | str,
        position: Position,
        severity: Severity,
        message: str,
    ) -> Outcome:
        """
        Decide whether a diagnostic is suppressed or forwarded to the sink.

        Args:
            unit: Source unit the diagnostic belongs to
            position: Diagnostic position (None if it has no location)
            severity: Diagnostic severity
            message: Diagnostic message

        Returns:
            SUPPRESSED, FORWARDED, or DEFERRED (deferral enabled and the
            unit's directives are not registered yet, or earlier deferred
            diagnostics of the unit are still waiting for set_suppressions)
        """
        diagnostic = Diagnostic(
            unit=SourceUnit.of(unit),
            position=position,
            severity=Severity.parse(severity),
            message=message,
        )
        return self.report(diagnostic)

    def report(self, diagnostic: Diagnostic) -> Outcome:
        """Same as intercept, for an already built Diagnostic."""
        if diagnostic.severity not in self.config.suppressible_severities:
            return self._forward(diagnostic)

        # Priority 1: Path filters
        if self._matches_path_filter(diagnostic.unit):
            logger.debug("diagnostic_suppressed", unit=diagnostic.unit.path, reason="path_filter")
            return Outcome.SUPPRESSED

        # Priority 2: Global message filters
        if any(f.matches(diagnostic.message) for f in self.config.global_filters):
            logger.debug("diagnostic_suppressed", unit=diagnostic.unit.path, reason="global_filter")
            return Outcome.SUPPRESSED

        # Priority 3: Directives
        registry = self._registries.get(diagnostic.unit)
        if self.config.defer_unregistered and (registry is None or diagnostic.unit in self._deferred):
            # Keep buffering until the pending ones are replayed, so the sink sees arrival order
            self._deferred.setdefault(diagnostic.unit, []).append(diagnostic)
            return Outcome.DEFERRED

        if registry is None:
            return self._forward(diagnostic)

        return self._match_directives(registry, diagnostic)

    def flush(self, unit: SourceUnit | str) -> list[Diagnostic]:
        """
        Release deferred diagnostics of a unit whose directive set was never completed.

        Diagnostics are matched against whatever directives the unit has
        registered so far; with none, they are all forwarded.

        Returns:
            Diagnostics that were forwarded
        """
        unit = SourceUnit.of(unit)
        deferred = self._deferred.pop(unit, [])
        registry = self._registries.get(unit)

        forwarded = []
        for diagnostic in deferred:
            if registry is None:
                self._forward(diagnostic)
                forwarded.append(diagnostic)
            elif self._match_directives(registry, diagnostic) is Outcome.FORWARDED:
                forwarded.append(diagnostic)
        return forwarded

    def flush_all(self) -> list[Diagnostic]:
        """Forward deferred diagnostics of every unit."""
        flushed: list[Diagnostic] = []
        for unit in list(self._deferred):
            flushed.extend(self.flush(unit))
        return flushed

    def emit(self, diagnostic: Diagnostic) -> None:
        """Send an engine-generated diagnostic straight to the sink, bypassing all filters."""
        self.sink.report(diagnostic)

    # Unused directives

    def report_unused(self, unit: SourceUnit | str) -> list[Suppression]:
        """
        Report directives of a unit that never suppressed anything.

        A warning is emitted at each unused directive's anchor. The reports
        bypass global and path filters. No-op unless check_unused is enabled.

        Args:
            unit: Source unit to check

        Returns:
            Unused directives, in stored order
        """
        if not self.config.check_unused:
            return []

        registry = self._registries.get(SourceUnit.of(unit))
        if registry is None:
            return []

        unused = [
            s for s in registry.unused()
            if self.config.report_unused_in_macro_expansion or not s.in_macro_expansion
        ]
        for suppression in unused:
            self.emit(Diagnostic(
                unit=registry.unit,
                position=suppression.anchor,
                severity=Severity.WARNING,
                message=UNUSED_SUPPRESSION_MESSAGE,
            ))

        if unused:
            logger.info("unused_suppressions_reported", unit=registry.unit.path, count=len(unused))
        return unused

    # Capability

    def require_directive_support(self, available: bool) -> bool:
        """
        Check that the host can express suppression directives.

        Args:
            available: Whether the directive marker exists in the analyzed environment

        Returns:
            True if directives can be used, False if only filters will apply

        Raises:
            MissingCapabilityError: If the marker is unavailable and no
                global or path filter is configured either
        """
        if available:
            return True

        if not self.config.has_filters:
            raise MissingCapabilityError(
                "suppression directives are enabled but the directive marker was not found"
                " - is the annotation library available to the analyzed code?",
                context={"global_filters": 0, "path_filters": 0},
            )

        logger.warning(
            "directive_marker_unavailable",
            global_filters=len(self.config.global_filters),
            path_filters=len(self.config.path_filters),
        )
        return False

    # Internals

    def _matches_path_filter(self, unit: SourceUnit) -> bool:
        if not self.config.path_filters:
            return False
        path = self.config.relativize(unit.path)
        return any(f.matches(path) for f in self.config.path_filters)

    def _match_directives(self, registry: SuppressionRegistry, diagnostic: Diagnostic) -> Outcome:
        suppression = registry.find_match(diagnostic.position, diagnostic.message)
        if suppression is None:
            return self._forward(diagnostic)

        suppression.mark_used()
        logger.debug(
            "diagnostic_suppressed",
            unit=registry.unit.path,
            reason="directive",
            anchor=suppression.anchor,
        )
        return Outcome.SUPPRESSED

    def _forward(self, diagnostic: Diagnostic) -> Outcome:
        self.sink.report(diagnostic)
        return Outcome.FORWARDED
