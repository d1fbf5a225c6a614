"""Shared test fixtures for Hush test suite."""

import pytest

from hush.suppression.engine import SuppressionEngine
from hush.suppression.models import FilterConfig, SourceRange, SourceUnit, Suppression
from hush.suppression.patterns import compile_all
from hush.suppression.sinks import CollectingSink


@pytest.fixture
def unit():
    """A source unit for testing."""
    return SourceUnit("src/main/scala/app/Service.scala")


@pytest.fixture
def sink():
    """An in-memory diagnostic sink."""
    return CollectingSink()


@pytest.fixture
def make_engine(sink):
    """Factory building an engine in front of the shared sink."""

    def _make(global_filters=(), path_filters=(), source_roots=(), **flags):
        config = FilterConfig(
            global_filters=compile_all(global_filters),
            path_filters=compile_all(path_filters),
            source_roots=tuple(source_roots),
            **flags,
        )
        return SuppressionEngine(sink, config)

    return _make


@pytest.fixture
def engine(make_engine):
    """An engine with unused checking enabled and no filters."""
    return make_engine(check_unused=True)


@pytest.fixture
def make_suppression():
    """Factory for directives anchored at their range start by default."""

    def _make(start, end, pattern=None, anchor=None, in_macro_expansion=False):
        return Suppression.make(
            anchor=start if anchor is None else anchor,
            range=SourceRange(start, end),
            raw_pattern=pattern,
            in_macro_expansion=in_macro_expansion,
        )

    return _make


@pytest.fixture
def project_root(tmp_path):
    """Create a temporary project root directory."""
    return tmp_path
