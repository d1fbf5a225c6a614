"""
Hush - suppression of host tool diagnostics.

Silences diagnostics covered by suppression directives or by global and
path filters, and reports directives that no longer suppress anything.
"""

__version__ = "0.1.0"
