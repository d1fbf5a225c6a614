"""
Domain exceptions for Hush.

Follows the "Fail Fast" and "Strict Types" principles.
All library errors should inherit from HushError.
"""

from typing import Any


class HushError(Exception):
    """Base class for all Hush exceptions."""

    def __init__(self, message: str, context: dict = None):
        super().__init__(message)
        self.context = context or {}


class ConfigurationError(HushError):
    """Raised when configuration is invalid or corrupt."""

    pass


class InvalidPatternError(HushError):
    """
    Raised when a message or path pattern is not a valid regular expression.

    Attributes:
        pattern: Offending pattern text
        reason: Description of the underlying regex syntax error
        source: Option or directive that supplied the pattern
        anchor: Anchor position of the directive, when raised for a directive
    """

    def __init__(
        self,
        pattern: str,
        reason: str,
        source: str | None = None,
        anchor: Any = None,
    ):
        self.pattern = pattern
        self.reason = reason
        self.source = source
        self.anchor = anchor

        where = f" in {source}" if source else ""
        super().__init__(
            f"invalid pattern {pattern!r}{where}: {reason}",
            context={"pattern": pattern, "reason": reason, "source": source},
        )

    def at(self, anchor: Any) -> "InvalidPatternError":
        """Attach the anchor position of the directive that supplied the pattern."""
        self.anchor = anchor
        self.context["anchor"] = anchor
        return self


class MissingCapabilityError(HushError):
    """Raised when the directive marker is unavailable and no filter could stand in for it."""

    pass
