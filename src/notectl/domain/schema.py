"""Vault schema — note types, inheritance, and per-type fields.

A schema declares note types. Each type may ``extends`` another type;
every chain ends at the implicit ``meta`` root, which carries fields
shared by all notes. A type inherits its ancestors' fields (closer
definitions win) and its field order is the ancestors' order followed
by its own additions.

Types marked ``recursive`` get an implied ``parent`` relation field
pointing at the same type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

META_TYPE = "meta"

FieldPrompt = Literal["text", "select", "list", "date", "relation", "boolean", "number"]


class FieldDef(BaseModel):
    """Definition of one frontmatter field."""

    model_config = {"frozen": True}

    prompt: FieldPrompt | None = None
    value: Any = None
    options: list[str] | None = None
    source: str | list[str] | None = None
    required: bool = False
    default: Any = None
    format: Literal["wikilink", "markdown"] | None = None
    multiple: bool = False

    @property
    def is_list(self) -> bool:
        return self.prompt == "list" or (self.prompt == "relation" and self.multiple)

    @property
    def sources(self) -> list[str]:
        if self.source is None:
            return []
        return [self.source] if isinstance(self.source, str) else list(self.source)


class TypeDef(BaseModel):
    """A note type as declared in the schema file."""

    model_config = {"frozen": True}

    extends: str | None = None
    fields: dict[str, FieldDef] = Field(default_factory=dict)
    field_order: list[str] | None = None
    recursive: bool = False


@dataclass(frozen=True)
class ResolvedType:
    """A type with inheritance applied."""

    name: str
    parent: str | None
    ancestors: tuple[str, ...]
    fields: dict[str, FieldDef] = field(default_factory=dict)
    field_order: tuple[str, ...] = ()


class Schema(BaseModel):
    """The full vault schema.

    ``types`` never needs to spell out ``meta``; a missing entry means
    the root type has no fields of its own.
    """

    model_config = {"frozen": True}

    version: int = 2
    types: dict[str, TypeDef] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_inheritance(self) -> Schema:
        for name in self.types:
            seen = {name}
            current = self._parent_name(name)
            while current is not None:
                if current != META_TYPE and current not in self.types:
                    msg = f"Type {name!r} extends unknown type {current!r}"
                    raise ValueError(msg)
                if current in seen:
                    msg = f"Type {name!r} has an inheritance cycle through {current!r}"
                    raise ValueError(msg)
                seen.add(current)
                current = self._parent_name(current)
        return self

    # --- Inheritance ---

    def _parent_name(self, name: str) -> str | None:
        if name == META_TYPE:
            return None
        type_def = self.types.get(name)
        if type_def is None:
            return None
        return type_def.extends or META_TYPE

    def _chain(self, name: str) -> list[str]:
        """Return ``[meta, ..., name]``, root first."""
        chain: list[str] = []
        current: str | None = name
        while current is not None:
            chain.append(current)
            current = self._parent_name(current)
        chain.reverse()
        return chain

    def has_type(self, name: str) -> bool:
        return name == META_TYPE or name in self.types

    def type_def(self, type_path: str) -> ResolvedType | None:
        """Resolve *type_path* (``"task"`` or ``"objective/task"``) with inheritance."""
        name = type_name(type_path)
        if not self.has_type(name):
            return None
        chain = self._chain(name)
        fields: dict[str, FieldDef] = {}
        order: list[str] = []
        for ancestor in chain:
            declared = self.types.get(ancestor, TypeDef())
            fields.update(declared.fields)
            own_order = declared.field_order or list(declared.fields)
            order.extend(key for key in own_order if key not in order)
            if declared.recursive and "parent" not in fields:
                fields["parent"] = FieldDef(prompt="relation", source=ancestor, format="wikilink")
                order.append("parent")
        order.extend(key for key in fields if key not in order)
        return ResolvedType(
            name=name,
            parent=self._parent_name(name),
            ancestors=tuple(chain[:-1]),
            fields=fields,
            field_order=tuple(order),
        )

    def fields_for_type(self, type_path: str) -> dict[str, FieldDef]:
        resolved = self.type_def(type_path)
        return dict(resolved.fields) if resolved else {}

    def resolve_type(self, frontmatter: dict[str, Any]) -> str | None:
        """Return the note's declared type when the schema knows it."""
        declared = frontmatter.get("type")
        if isinstance(declared, str) and declared in self.types:
            return declared
        return None

    def options_for_field(self, type_path: str, field_name: str) -> list[str]:
        field_def = self.fields_for_type(type_path).get(field_name)
        if field_def is None or not field_def.options:
            return []
        return list(field_def.options)

    def concrete_type_names(self) -> list[str]:
        """All declared types except the implicit root, in schema order."""
        return [name for name in self.types if name != META_TYPE]

    def type_families(self) -> list[str]:
        """Top-level types: direct children of the root."""
        return [name for name in self.concrete_type_names() if self._parent_name(name) == META_TYPE]

    def children(self, name: str) -> list[str]:
        return [child for child in self.concrete_type_names() if self._parent_name(child) == name]

    def descendants(self, name: str) -> list[str]:
        """All transitive subtypes of *name*, depth first."""
        result: list[str] = []
        for child in self.children(name):
            result.append(child)
            result.extend(self.descendants(child))
        return result


def type_name(type_path: str) -> str:
    """Reduce a ``family/sub/type`` path to its leaf type name."""
    return type_path.rstrip("/").rsplit("/", 1)[-1]


def discriminator_fields(type_path: str) -> dict[str, str]:
    """Frontmatter fields that declare a note to be of *type_path*."""
    return {"type": type_name(type_path)}
