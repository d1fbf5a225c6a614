"""
Compiled regex filters for diagnostic messages and source paths.

Main class:
- PatternFilter: Immutable compiled pattern that remembers its source text
"""

import re
from dataclasses import dataclass, field

from hush.shared.domain.exceptions import InvalidPatternError


@dataclass(frozen=True)
class PatternFilter:
    """
    A compiled regular expression plus the text it was compiled from.

    Matching uses search semantics: the pattern may match anywhere in the
    tested string unless it is anchored with ^ or $.
    """

    text: str
    regex: re.Pattern = field(repr=False, compare=False)
    source: str | None = field(default=None, compare=False)

    @classmethod
    def compile(cls, text: str, source: str | None = None) -> "PatternFilter":
        """
        Compile a pattern.

        Args:
            text: Regular expression source
            source: Option or directive that supplied the pattern (for errors)

        Returns:
            Compiled PatternFilter

        Raises:
            InvalidPatternError: If text is not a valid regular expression
        """
        try:
            regex = re.compile(text)
        except re.error as e:
            raise InvalidPatternError(text, str(e), source=source) from e
        return cls(text=text, regex=regex, source=source)

    def matches(self, s: str) -> bool:
        """Return True if the pattern matches anywhere in s."""
        return self.regex.search(s) is not None

    def __str__(self) -> str:
        return self.text


def compile_all(texts, source: str | None = None) -> tuple[PatternFilter, ...]:
    """Compile an ordered collection of patterns, failing on the first invalid one."""
    return tuple(PatternFilter.compile(text, source=source) for text in texts)
