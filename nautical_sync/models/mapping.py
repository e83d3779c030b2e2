"""Attribute mapping table supplied by the mapping UI."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..utils.exceptions import ConfigError

# Field names written by the mapping UI, with generic aliases
_SOURCE_KEYS = ("shopifyAttribute", "sourceField")
_TARGET_KEYS = ("nauticalAttribute", "targetField")


@dataclass(frozen=True)
class AttributeMapping:
    """One ``source_field -> target_field`` row of the mapping table."""

    source_field: str
    target_field: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AttributeMapping":
        """Create instance from a mapping UI entry."""
        source = next((data[k] for k in _SOURCE_KEYS if data.get(k)), None)
        target = next((data[k] for k in _TARGET_KEYS if data.get(k)), None)

        if not source or not target:
            raise ConfigError(
                "Attribute mapping entry needs both a source and a target field",
                details={"entry": data}
            )

        return cls(
            source_field=str(source),
            target_field=str(target),
            description=data.get("description")
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shopifyAttribute": self.source_field,
            "nauticalAttribute": self.target_field,
            "description": self.description,
        }


def parse_attribute_mappings(data: Any) -> List[AttributeMapping]:
    """
    Convert decoded mapping state into typed mappings.

    Accepts ``{"mappings": [...]}`` or a bare list of entries.

    Raises:
        ConfigError: If the structure is not a list of mapping entries.
    """
    if isinstance(data, dict):
        entries = data.get("mappings", [])
    else:
        entries = data

    if not isinstance(entries, list):
        raise ConfigError(
            "Attribute mappings must be a list",
            details={"type": type(entries).__name__}
        )

    mappings = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigError("Attribute mapping entry must be an object", details={"entry": entry})
        mappings.append(AttributeMapping.from_dict(entry))
    return mappings
