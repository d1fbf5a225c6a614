"""
Suppression module for silencing host tool diagnostics.

This module provides functionality to suppress diagnostics using:
- Suppression directives attached to source ranges (optionally message-scoped)
- Global message filters
- Path filters (relative to source roots)

Exports:
    - PatternFilter: Compiled message/path regex
    - Suppression: Individual suppression directive
    - SourceRange, SourceUnit, Diagnostic, Severity, Outcome: Data model
    - FilterConfig: Process-wide filter configuration
    - SuppressionRegistry: Innermost-first directives of one unit
    - SuppressionEngine: Main interception and unused-reporting logic
    - DirectiveCollector: Extraction bookkeeping for host extractors
    - DiagnosticSink, CollectingSink, ConsoleSink: Diagnostic receivers
    - load_filter_config / save_filter_config / parse_options: Configuration
"""

from hush.suppression.collector import DirectiveCollector, parse_annotation_value
from hush.suppression.config_loader import (
    build_filter_config,
    load_filter_config,
    parse_options,
    save_filter_config,
)
from hush.suppression.engine import UNUSED_SUPPRESSION_MESSAGE, SuppressionEngine
from hush.suppression.models import (
    Diagnostic,
    FilterConfig,
    Outcome,
    Severity,
    SourceRange,
    SourceUnit,
    Suppression,
)
from hush.suppression.patterns import PatternFilter
from hush.suppression.registry import SuppressionRegistry
from hush.suppression.sinks import CollectingSink, ConsoleSink, DiagnosticSink

__all__ = [
    "PatternFilter",
    "Suppression",
    "SourceRange",
    "SourceUnit",
    "Diagnostic",
    "Severity",
    "Outcome",
    "FilterConfig",
    "SuppressionRegistry",
    "SuppressionEngine",
    "UNUSED_SUPPRESSION_MESSAGE",
    "DirectiveCollector",
    "parse_annotation_value",
    "DiagnosticSink",
    "CollectingSink",
    "ConsoleSink",
    "build_filter_config",
    "load_filter_config",
    "save_filter_config",
    "parse_options",
]
