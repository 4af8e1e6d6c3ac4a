"""Match heuristics — how confident we are that two names mean the same thing.

Used to auto-repair stale references (``[[Projcet Plan]]`` pointing at
``Project Plan``) and to migrate unknown frontmatter keys onto the schema
field they were clearly meant to be (``dead_line`` -> ``deadline``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from notectl.domain.coercion import is_empty, shapes_compatible
from notectl.domain.schema import FieldDef, Schema

_KEY_SEPARATORS = re.compile(r"[\s\-_]+")


def levenshtein(a: str, b: str) -> int:
    """Edit distance between *a* and *b* (insert, delete, substitute)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def is_high_confidence_match(target: str, candidate: str) -> bool:
    """Whether *candidate* is safe to substitute for *target* unattended.

    True when the two are equal ignoring case, when one is a prefix of the
    other and their lengths differ by at most 2, or when their
    case-insensitive edit distance is at most 2.
    """
    target_lower = target.lower()
    candidate_lower = candidate.lower()
    if target_lower == candidate_lower:
        return True
    if target_lower.startswith(candidate_lower) or candidate_lower.startswith(target_lower):
        if abs(len(target) - len(candidate)) <= 2:
            return True
    return levenshtein(target_lower, candidate_lower) <= 2


# ---------------------------------------------------------------------------
# Unknown-field candidates
# ---------------------------------------------------------------------------


def normalize_key(key: str) -> str:
    """Lowercase *key* and drop whitespace, hyphens, and underscores."""
    return "".join(token for token in _KEY_SEPARATORS.split(key.lower()) if token)


def _singular_plural(a: str, b: str) -> bool:
    if not a or not b or a == b:
        return False
    return a == f"{b}s" or b == f"{a}s"


@dataclass(frozen=True)
class FieldCandidate:
    """A schema field that an unknown key may have been meant to be."""

    field: str
    distance: int
    type_mismatch: bool
    priority: int  # 0 exact after normalization, 1 singular/plural, 2 other

    @property
    def label(self) -> str:
        return f"{self.field} (TYPE MISMATCH)" if self.type_mismatch else self.field


def similar_field_candidates(
    unknown_field: str,
    schema_fields: dict[str, FieldDef],
    value: Any,
    limit: int = 3,
) -> list[FieldCandidate]:
    """Rank schema fields by how likely *unknown_field* is a misspelling of them."""
    unknown_norm = normalize_key(unknown_field)
    if not unknown_norm:
        return []

    candidates: list[FieldCandidate] = []
    for name, field_def in schema_fields.items():
        if name == "type" or name.endswith("-type"):
            continue
        candidate_norm = normalize_key(name)
        if not candidate_norm:
            continue
        distance = levenshtein(unknown_norm, candidate_norm)
        max_distance = max(1, min(len(unknown_norm), len(candidate_norm)) // 5)
        if distance > max_distance:
            continue
        if candidate_norm == unknown_norm:
            priority = 0
        elif _singular_plural(unknown_norm, candidate_norm):
            priority = 1
        else:
            priority = 2
        candidates.append(
            FieldCandidate(
                field=name,
                distance=distance,
                type_mismatch=not shapes_compatible(value, field_def),
                priority=priority,
            )
        )

    candidates.sort(key=lambda c: (c.priority, c.type_mismatch, c.distance, c.field))
    return candidates[:limit]


def auto_migration_target(
    schema: Schema,
    frontmatter: dict[str, Any],
    unknown_field: str,
    value: Any,
) -> str | None:
    """Return the one schema field *unknown_field* can move to unattended.

    Requires a unique normalized-exact match (else a unique singular/plural
    match), an empty target in *frontmatter*, and a compatible value shape.
    """
    type_path = schema.resolve_type(frontmatter)
    if type_path is None:
        return None
    schema_fields = schema.fields_for_type(type_path)
    unknown_norm = normalize_key(unknown_field)
    if not unknown_norm:
        return None

    exact = [name for name in schema_fields if normalize_key(name) == unknown_norm]
    if len(exact) == 1:
        target = exact[0]
    else:
        plural = [
            name for name in schema_fields if _singular_plural(unknown_norm, normalize_key(name))
        ]
        if len(plural) != 1:
            return None
        target = plural[0]

    if target == unknown_field:
        return None
    if not is_empty(frontmatter.get(target)):
        return None
    if not shapes_compatible(value, schema_fields[target]):
        return None
    return target
