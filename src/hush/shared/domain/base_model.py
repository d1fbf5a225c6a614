"""
Base domain model with camelCase JSON compatibility.

Provides camelCase <-> snake_case key conversion and camelCase JSON output.
Domain models that cross the CLI boundary inherit from BaseDomainModel.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict


def to_camel_case(snake_str: str) -> str:
    """
    Convert snake_case to camelCase.

    Examples:
        >>> to_camel_case("message_pattern")
        'messagePattern'
        >>> to_camel_case("in_macro_expansion")
        'inMacroExpansion'
    """
    components = snake_str.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


def to_snake_case(camel_str: str) -> str:
    """
    Convert camelCase to snake_case.

    Examples:
        >>> to_snake_case("globalFilters")
        'global_filters'
        >>> to_snake_case("checkUnused")
        'check_unused'
    """
    if not camel_str:
        return camel_str
    result = [camel_str[0].lower()]
    for char in camel_str[1:]:
        if char.isupper():
            result.extend(["_", char.lower()])
        else:
            result.append(char)
    return "".join(result)


def _to_json_value(value: Any) -> Any:
    """Convert a single field value to its JSON form."""
    if isinstance(value, BaseDomainModel) or hasattr(value, "to_json"):
        return value.to_json()

    # Enum values are serialized by name, lowercased
    if isinstance(value, Enum):
        return value.name.lower()

    if isinstance(value, (list, tuple)):
        return [_to_json_value(item) for item in value]

    if isinstance(value, dict):
        return {k: _to_json_value(v) for k, v in value.items()}

    return value


@dataclass
class BaseDomainModel:
    """
    Base class for domain models.

    Provides JSON compatibility:
    - to_json() serializes to camelCase
    - Enum values are serialized as lowercase names
    - Subclasses may hide fields from JSON via __json_exclude__
    """

    __json_exclude__ = ()

    def to_json(self) -> Dict[str, Any]:
        """
        Serialize to camelCase JSON.

        Returns:
            Dictionary with camelCase keys and JSON-safe values
        """
        result: Dict[str, Any] = {}

        for field in fields(self):
            if field.name in self.__json_exclude__:
                continue
            result[to_camel_case(field.name)] = _to_json_value(getattr(self, field.name))

        return result
