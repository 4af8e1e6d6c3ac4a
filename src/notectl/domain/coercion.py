"""Scalar coercion and value-shape helpers.

Frontmatter written by hand often stores ``"true"`` or ``"42"`` as
strings. These helpers convert such strings to the scalar the schema
expects, and classify values by shape so migrations can refuse to move a
list into a boolean field.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal

from notectl.domain.schema import FieldDef

ValueShape = Literal["string", "number", "boolean", "array", "object", "empty"]

_INTEGER = re.compile(r"^[+-]?\d+$")
_DECIMAL = re.compile(r"^[+-]?\d+\.\d+$")


@dataclass(frozen=True)
class Coercion:
    """Outcome of a string-to-scalar conversion."""

    ok: bool
    value: Any = None
    reason: str | None = None


def coerce_boolean(raw: Any) -> Coercion:
    if isinstance(raw, bool):
        return Coercion(ok=True, value=raw)
    text = str(raw).strip().lower()
    if text == "true":
        return Coercion(ok=True, value=True)
    if text == "false":
        return Coercion(ok=True, value=False)
    return Coercion(ok=False, reason=f"Cannot interpret {raw!r} as a boolean")


def coerce_number(raw: Any) -> Coercion:
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return Coercion(ok=True, value=raw)
    text = str(raw).strip()
    if _INTEGER.match(text):
        return Coercion(ok=True, value=int(text))
    if _DECIMAL.match(text):
        return Coercion(ok=True, value=float(text))
    return Coercion(ok=False, reason=f"Cannot interpret {raw!r} as a number")


def coerce_scalar(raw: Any, expected: str) -> Coercion:
    """Coerce *raw* to the ``"boolean"`` or ``"number"`` type named by *expected*."""
    if expected == "boolean":
        return coerce_boolean(raw)
    if expected == "number":
        return coerce_number(raw)
    return Coercion(ok=False, reason=f"Unsupported scalar type {expected!r}")


def is_empty(value: Any) -> bool:
    """True for None, blank strings, and empty lists or mappings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def value_shape(value: Any) -> ValueShape:
    if value is None:
        return "empty"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "string"


def field_shape(field_def: FieldDef | None) -> ValueShape | None:
    """The value shape a field definition expects, or None when unconstrained."""
    if field_def is None or field_def.prompt is None:
        return None
    if field_def.is_list:
        return "array"
    if field_def.prompt == "boolean":
        return "boolean"
    if field_def.prompt == "number":
        return "number"
    return "string"


def shapes_compatible(value: Any, field_def: FieldDef | None) -> bool:
    shape = value_shape(value)
    expected = field_shape(field_def)
    return shape == "empty" or expected is None or shape == expected
