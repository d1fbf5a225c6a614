"""
Unit tests for SuppressionEngine.

Verifies:
1. Path filters suppress independently of directives
2. Global filters suppress independently of directives
3. Directives are matched innermost-first and marked used
4. Unused directives are reported at their anchors
5. Deferred diagnostics are replayed once directives are registered
6. Missing directive marker handling
"""

from pathlib import PurePath

import pytest

from hush.shared.domain.exceptions import MissingCapabilityError
from hush.suppression.engine import UNUSED_SUPPRESSION_MESSAGE, SuppressionEngine
from hush.suppression.models import Diagnostic, Outcome, Severity, SourceUnit


class TestPathFilters:
    """Test path filter suppression."""

    def test_path_filter_suppresses_without_touching_directives(self, make_engine, make_suppression, sink):
        """Test that path-filter suppression is directive-independent."""
        engine = make_engine(path_filters=["^generated/"], check_unused=True)
        unit = SourceUnit("generated/Model.scala")
        s = make_suppression(0, 100)
        engine.register(unit, s)

        outcome = engine.intercept(unit, 50, Severity.WARNING, "anything")

        assert outcome is Outcome.SUPPRESSED
        assert s.used is False
        assert sink.diagnostics == []

    def test_path_filter_uses_source_root_relative_path(self, make_engine):
        """Test that unit paths are relativized against the longest source root."""
        engine = make_engine(
            path_filters=["^gen/"],
            source_roots=[PurePath("/work"), PurePath("/work/src/main")],
        )

        assert engine.intercept("/work/src/main/gen/A.scala", 1, Severity.WARNING, "w") is Outcome.SUPPRESSED
        assert engine.intercept("/work/gen/B.scala", 1, Severity.WARNING, "w") is Outcome.SUPPRESSED
        assert engine.intercept("/work/src/main/app/C.scala", 1, Severity.WARNING, "w") is Outcome.FORWARDED

    def test_path_filter_on_raw_path_without_roots(self, make_engine):
        """Test that the raw path is used when no root contains the unit."""
        engine = make_engine(path_filters=[r"/legacy/"])

        assert engine.intercept("/work/legacy/A.scala", 1, Severity.WARNING, "w") is Outcome.SUPPRESSED
        assert engine.intercept("/work/app/A.scala", 1, Severity.WARNING, "w") is Outcome.FORWARDED

    def test_path_filter_checked_before_global_filters(self, make_engine, make_suppression):
        """Test that a path match short-circuits everything else."""
        engine = make_engine(path_filters=["Generated"], global_filters=["never"])
        s = make_suppression(0, 10)
        engine.register("Generated.scala", s)

        assert engine.intercept("Generated.scala", 5, Severity.ERROR, "x") is Outcome.SUPPRESSED
        assert s.used is False


class TestGlobalFilters:
    """Test global message filter suppression."""

    def test_global_filter_with_no_directives(self, make_engine, sink):
        """Test that global filters apply even with zero directives registered."""
        engine = make_engine(global_filters=[".*deprecated.*"])

        assert engine.intercept("a.scala", 3, Severity.WARNING, "method foo is deprecated now") is Outcome.SUPPRESSED
        assert engine.intercept("b.scala", None, Severity.WARNING, "deprecated") is Outcome.SUPPRESSED
        assert engine.intercept("a.scala", 3, Severity.WARNING, "unused import") is Outcome.FORWARDED
        assert sink.messages() == ["unused import"]

    def test_global_filter_does_not_mark_directives(self, make_engine, make_suppression):
        """Test that global-filter suppression leaves directive usage alone."""
        engine = make_engine(global_filters=["deprecated"], check_unused=True)
        s = make_suppression(0, 100)
        engine.register("a.scala", s)

        engine.intercept("a.scala", 50, Severity.WARNING, "deprecated API")

        assert s.used is False
        assert engine.report_unused("a.scala") == [s]


class TestDirectiveMatching:
    """Test directive-based suppression."""

    def test_single_directive_scenario(self, engine, make_suppression, sink, unit):
        """Test range [10,20] without pattern: in-range suppressed, out-of-range forwarded."""
        s = make_suppression(10, 20)
        engine.register(unit, s)

        assert engine.intercept(unit, 15, Severity.WARNING, "deprecated") is Outcome.SUPPRESSED
        assert s.used is True

        assert engine.intercept(unit, 25, Severity.WARNING, "deprecated") is Outcome.FORWARDED
        assert len(sink.diagnostics) == 1

        assert engine.report_unused(unit) == []
        assert len(sink.diagnostics) == 1

    def test_pattern_mismatch_scenario(self, engine, make_suppression, sink, unit):
        """Test range [0,100] with pattern '^unused import$' and a non-matching message."""
        s = make_suppression(0, 100, pattern="^unused import$", anchor=7)
        engine.register(unit, s)

        assert engine.intercept(unit, 5, Severity.WARNING, "deprecated API") is Outcome.FORWARDED

        assert engine.report_unused(unit) == [s]
        report = sink.diagnostics[-1]
        assert report.position == 7
        assert report.severity is Severity.WARNING
        assert report.message == UNUSED_SUPPRESSION_MESSAGE
        assert report.unit == unit

    def test_pattern_round_trip(self, engine, make_suppression, unit):
        """Test that pattern 'foo' suppresses 'foo bar' but not 'baz'."""
        s = make_suppression(0, 100, pattern="foo")
        engine.register(unit, s)

        assert engine.intercept(unit, 10, Severity.WARNING, "baz") is Outcome.FORWARDED
        assert s.used is False
        assert engine.intercept(unit, 10, Severity.WARNING, "foo bar") is Outcome.SUPPRESSED
        assert s.used is True

    def test_innermost_directive_claims_diagnostic(self, engine, make_suppression, unit):
        """Test that the nested directive is used and its container stays unused."""
        inner = make_suppression(10, 20, anchor=10)
        outer = make_suppression(0, 100, anchor=0)
        engine.register(unit, inner)
        engine.register(unit, outer)

        assert engine.intercept(unit, 15, Severity.WARNING, "x") is Outcome.SUPPRESSED

        assert inner.used is True
        assert outer.used is False
        assert engine.report_unused(unit) == [outer]

    def test_innermost_wins_when_registered_out_of_order(self, engine, make_suppression, unit):
        """Test the same property when the extractor delivered the outer directive first."""
        outer = make_suppression(0, 100, anchor=0)
        inner = make_suppression(10, 20, anchor=10)
        engine.register(unit, outer)
        engine.register(unit, inner)

        engine.intercept(unit, 15, Severity.WARNING, "x")

        assert inner.used is True
        assert outer.used is False

    def test_outer_directive_catches_what_inner_pattern_rejects(self, engine, make_suppression, unit):
        """Test fall-through from a pattern-scoped inner directive to its container."""
        inner = make_suppression(10, 20, pattern="^unused")
        outer = make_suppression(0, 100)
        engine.register(unit, inner)
        engine.register(unit, outer)

        assert engine.intercept(unit, 15, Severity.WARNING, "deprecated") is Outcome.SUPPRESSED
        assert outer.used is True
        assert inner.used is False

    def test_patternless_directive_suppresses_every_message_in_range(self, engine, make_suppression, unit):
        """Test that an absent pattern matches any message."""
        s = make_suppression(0, 50)
        engine.register(unit, s)

        for message in ["a", "", "deprecated API", "type mismatch; found Int"]:
            assert engine.intercept(unit, 25, Severity.WARNING, message) is Outcome.SUPPRESSED

    def test_diagnostic_without_position_is_forwarded(self, engine, make_suppression, unit, sink):
        """Test that a location-less diagnostic never matches a directive."""
        s = make_suppression(0, 100)
        engine.register(unit, s)

        assert engine.intercept(unit, None, Severity.WARNING, "x") is Outcome.FORWARDED
        assert s.used is False
        assert sink.diagnostics[0].position is None

    def test_directives_are_scoped_to_their_unit(self, engine, make_suppression):
        """Test that a directive in one unit never affects another."""
        s = make_suppression(0, 100)
        engine.register("a.scala", s)

        assert engine.intercept("b.scala", 50, Severity.WARNING, "x") is Outcome.FORWARDED
        assert s.used is False

    def test_forwarded_diagnostic_is_unchanged(self, engine, sink, unit):
        """Test that the sink receives exactly what was intercepted."""
        engine.intercept(unit, (3, 14), Severity.ERROR, "type mismatch")

        assert sink.diagnostics == [
            Diagnostic(unit=unit, position=(3, 14), severity=Severity.ERROR, message="type mismatch"),
        ]

    def test_report_accepts_diagnostic(self, engine, make_suppression, unit):
        """Test report() as the Diagnostic-based form of intercept()."""
        engine.register(unit, make_suppression(0, 10))
        diagnostic = Diagnostic(unit=unit, position=5, severity=Severity.WARNING, message="x")

        assert engine.report(diagnostic) is Outcome.SUPPRESSED

    def test_non_suppressible_severity_is_forwarded(self, make_engine, make_suppression, unit, sink):
        """Test that severities outside suppressible_severities bypass all filters."""
        engine = make_engine(
            global_filters=["x"],
            suppressible_severities=frozenset({Severity.WARNING}),
        )
        s = make_suppression(0, 10)
        engine.register(unit, s)

        assert engine.intercept(unit, 5, Severity.ERROR, "x") is Outcome.FORWARDED
        assert engine.intercept(unit, 5, Severity.WARNING, "x") is Outcome.SUPPRESSED
        assert s.used is False
        assert sink.messages() == ["x"]


class TestReportUnused:
    """Test report_unused()."""

    def test_disabled_by_default(self, make_engine, make_suppression, sink, unit):
        """Test that the pass is a no-op unless check_unused is enabled."""
        engine = make_engine()
        engine.register(unit, make_suppression(0, 10))

        assert engine.report_unused(unit) == []
        assert sink.diagnostics == []

    def test_idempotent(self, engine, make_suppression, sink, unit):
        """Test that two calls without new interceptions give the same set."""
        a = make_suppression(0, 10, anchor=0)
        b = make_suppression(20, 30, anchor=20)
        engine.register(unit, a)
        engine.register(unit, b)
        engine.intercept(unit, 5, Severity.WARNING, "x")

        first = engine.report_unused(unit)
        second = engine.report_unused(unit)

        assert first == second == [b]
        assert [d.position for d in sink.diagnostics] == [20, 20]

    def test_unknown_unit(self, engine):
        assert engine.report_unused("never-registered.scala") == []

    def test_reports_bypass_filters(self, make_engine, make_suppression, sink, unit):
        """Test that unused reports are not re-filtered by global filters."""
        engine = make_engine(global_filters=["no effect"], check_unused=True)
        engine.register(unit, make_suppression(0, 10))

        engine.report_unused(unit)

        assert sink.messages() == [UNUSED_SUPPRESSION_MESSAGE]

    def test_macro_expansion_directives_reported_by_default(self, engine, make_suppression, unit):
        s = make_suppression(0, 10, in_macro_expansion=True)
        engine.register(unit, s)

        assert engine.report_unused(unit) == [s]

    def test_macro_expansion_directives_can_be_exempted(self, make_engine, make_suppression, unit):
        engine = make_engine(check_unused=True, report_unused_in_macro_expansion=False)
        expanded = make_suppression(0, 10, in_macro_expansion=True)
        literal = make_suppression(20, 30)
        engine.register(unit, expanded)
        engine.register(unit, literal)

        assert engine.report_unused(unit) == [literal]

    def test_used_directive_never_reverts(self, engine, make_suppression, unit):
        """Test that later non-matching diagnostics do not make a directive unused again."""
        s = make_suppression(0, 10, pattern="foo")
        engine.register(unit, s)

        engine.intercept(unit, 5, Severity.WARNING, "foo")
        engine.intercept(unit, 5, Severity.WARNING, "bar")
        engine.intercept(unit, 50, Severity.WARNING, "foo")

        assert s.used is True
        assert engine.report_unused(unit) == []


class TestDeferredDiagnostics:
    """Test buffering of diagnostics for units without registered directives."""

    def test_deferred_until_registration(self, make_engine, make_suppression, sink, unit):
        """Test that early diagnostics are matched once directives arrive."""
        engine = make_engine(defer_unregistered=True, check_unused=True)

        assert engine.intercept(unit, 5, Severity.WARNING, "early") is Outcome.DEFERRED
        assert engine.intercept(unit, 50, Severity.WARNING, "late") is Outcome.DEFERRED
        assert sink.diagnostics == []

        s = make_suppression(0, 10)
        outcomes = engine.set_suppressions(unit, [s])

        assert outcomes == [Outcome.SUPPRESSED, Outcome.FORWARDED]
        assert s.used is True
        assert sink.messages() == ["late"]

    def test_filters_apply_before_deferral(self, make_engine, unit, sink):
        """Test that global filters are not deferred."""
        engine = make_engine(defer_unregistered=True, global_filters=["noise"])

        assert engine.intercept(unit, 1, Severity.WARNING, "noise") is Outcome.SUPPRESSED
        assert engine.flush(unit) == []

    def test_flush_forwards_remaining(self, make_engine, sink):
        """Test that flush forwards diagnostics of units that never registered."""
        engine = make_engine(defer_unregistered=True)
        engine.intercept("a.scala", 1, Severity.WARNING, "a")
        engine.intercept("b.scala", 1, Severity.WARNING, "b")

        flushed = engine.flush_all()

        assert [d.message for d in flushed] == ["a", "b"]
        assert sink.messages() == ["a", "b"]
        assert engine.flush_all() == []

    def test_pending_unit_keeps_deferring_after_register(self, make_engine, make_suppression, sink, unit):
        """Test that a directive registered alone does not let later diagnostics overtake earlier ones."""
        engine = make_engine(defer_unregistered=True)
        engine.intercept(unit, 50, Severity.WARNING, "first")

        engine.register(unit, make_suppression(0, 10))
        assert engine.intercept(unit, 60, Severity.WARNING, "second") is Outcome.DEFERRED

        assert engine.set_suppressions(unit, []) == [Outcome.FORWARDED, Outcome.FORWARDED]
        assert sink.messages() == ["first", "second"]
        assert engine.intercept(unit, 70, Severity.WARNING, "third") is Outcome.FORWARDED

    def test_flush_matches_registered_directives(self, make_engine, make_suppression, sink, unit):
        engine = make_engine(defer_unregistered=True)
        engine.intercept(unit, 5, Severity.WARNING, "covered")
        s = make_suppression(0, 10)
        engine.register(unit, s)
        engine.intercept(unit, 50, Severity.WARNING, "open")

        flushed = engine.flush(unit)

        assert [d.message for d in flushed] == ["open"]
        assert sink.messages() == ["open"]
        assert s.used is True

    def test_registered_units_are_not_deferred(self, make_engine, unit):
        engine = make_engine(defer_unregistered=True)
        engine.set_suppressions(unit, [])

        assert engine.intercept(unit, 1, Severity.WARNING, "x") is Outcome.FORWARDED

    def test_no_deferral_by_default(self, make_engine, unit):
        engine = make_engine()
        assert engine.intercept(unit, 1, Severity.WARNING, "x") is Outcome.FORWARDED
        assert not engine.has_registry(unit)


class TestDirectiveSupport:
    """Test require_directive_support()."""

    def test_available(self, make_engine):
        assert make_engine().require_directive_support(True) is True

    def test_missing_without_filters_is_fatal(self, make_engine):
        with pytest.raises(MissingCapabilityError):
            make_engine().require_directive_support(False)

    def test_missing_with_filters_degrades(self, make_engine):
        engine = make_engine(global_filters=["deprecated"])
        assert engine.require_directive_support(False) is False

        # Filters keep working
        assert engine.intercept("a.scala", 1, Severity.WARNING, "deprecated") is Outcome.SUPPRESSED


class TestEngineDefaults:
    """Test engine construction."""

    def test_default_config(self, sink):
        engine = SuppressionEngine(sink)

        assert engine.config.check_unused is False
        assert engine.intercept("a.scala", 1, Severity.INFO, "note") is Outcome.FORWARDED
        assert sink.count(Severity.INFO) == 1
