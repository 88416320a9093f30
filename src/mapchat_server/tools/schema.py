"""Parameter schema normalization.

Several model providers reject JSON Schema constructs such as `anyOf` in tool
parameter definitions. SchemaNormalizer reshapes whatever schema a tool
provider declared into the strict object form those providers accept.
"""

import copy
import logging
from typing import Any

logger = logging.getLogger(__name__)


def empty_schema() -> dict[str, Any]:
    """Return a fresh parameter schema that accepts no arguments."""
    return {"type": "object", "properties": {}, "required": []}


class SchemaNormalizer:
    """Stateless normalizer for tool parameter schemas."""

    @staticmethod
    def clean(schema: dict[str, Any] | None) -> dict[str, Any]:
        """Normalize a parameter schema into the strict object dialect.

        The caller's schema is never mutated; a deep copy is reshaped instead.

        Args:
            schema: The declared parameter schema, or None

        Returns:
            dict: Schema with `type`, `properties` and `required` present and
                  every `anyOf` property collapsed to a single alternative
        """
        if not schema or not isinstance(schema, dict):
            return empty_schema()

        clean = copy.deepcopy(schema)

        if not clean.get("type"):
            clean["type"] = "object"
        if not isinstance(clean.get("properties"), dict):
            clean["properties"] = {}

        for key, prop in list(clean["properties"].items()):
            alternatives = prop.get("anyOf") if isinstance(prop, dict) else None
            # A null or false anyOf is not a union; an empty list still is
            if not alternatives and not isinstance(alternatives, list):
                continue
            if not isinstance(alternatives, list):
                alternatives = []
            chosen = next(
                (
                    alt
                    for alt in alternatives
                    if isinstance(alt, dict)
                    and alt.get("type")
                    and alt.get("type") != "null"
                ),
                None,
            )
            if chosen is None:
                logger.debug(f"No concrete type in anyOf for '{key}', using object")
                chosen = {"type": "object"}

            collapsed = dict(chosen)
            collapsed["description"] = (
                prop.get("description") or chosen.get("description") or ""
            )
            clean["properties"][key] = collapsed

        if "required" not in clean:
            clean["required"] = []

        return clean
