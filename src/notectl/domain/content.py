"""Frontmatter parsing and rendering.

Pure parsing utilities (``parse_frontmatter``, ``order_frontmatter``,
``render_frontmatter``) live here so that the dependency direction stays
clean: infrastructure -> domain, never the reverse.

The value fixer rewrites whole notes through these helpers. Everything
after the closing delimiter is the body and is written back verbatim.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from io import StringIO
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq

# ---------------------------------------------------------------------------
# YAML parser (round-trip preserves comments and quote styles)
# ---------------------------------------------------------------------------


def _new_yaml() -> YAML:
    """Create a fresh round-trip YAML parser.

    A new instance per call avoids corrupted internal emitter state from
    propagating across operations (ruamel.yaml's YAML object is stateful
    and a failed dump can leave the singleton in a broken state).
    """
    y = YAML()
    y.preserve_quotes = True
    y.default_flow_style = False
    y.width = 4096
    return y


def load_yaml_value(text: str) -> Any:
    """Load a standalone YAML fragment into plain Python values."""
    return YAML(typ="safe", pure=True).load(text)


FRONTMATTER_DELIMITER = "---"
BOM = "\ufeff"


@dataclass
class ParsedNote:
    """A note split into its frontmatter mapping and raw body text."""

    frontmatter: dict[str, Any]
    body: str
    has_frontmatter: bool = True


# ---------------------------------------------------------------------------
# Pure parsing / rendering utilities
# ---------------------------------------------------------------------------


def parse_frontmatter(content: str) -> ParsedNote:
    """Parse YAML frontmatter and body from markdown content.

    Expects the file to start with ``---`` on the first line (a leading
    BOM is ignored). The second ``---`` closes the YAML block. Everything
    after the closing delimiter line is the body.

    Handles both ``\\n`` and ``\\r\\n`` line endings.

    Raises:
        ruamel.yaml.YAMLError: If the header is not valid YAML (duplicate
            keys included).
    """
    normalized = content.removeprefix(BOM).replace("\r\n", "\n")
    lines = normalized.split("\n")
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return ParsedNote(frontmatter={}, body=content, has_frontmatter=False)

    end_idx: int | None = None
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONTMATTER_DELIMITER:
            end_idx = i
            break

    if end_idx is None:
        return ParsedNote(frontmatter={}, body=content, has_frontmatter=False)

    yaml_block = "\n".join(lines[1:end_idx])
    body = "\n".join(lines[end_idx + 1 :])

    loaded = _new_yaml().load(yaml_block)
    fm: dict[str, Any] = loaded if isinstance(loaded, dict) else {}
    return ParsedNote(frontmatter=fm, body=body)


def order_frontmatter(
    fm: dict[str, Any],
    field_order: Sequence[str] = (),
) -> dict[str, Any]:
    """Return *fm* with keys in schema order.

    ``type`` always comes first, then the keys named in *field_order*
    (in that order), then any remaining keys in their existing order.
    """
    ordered: dict[str, Any] = {}
    if "type" in fm:
        ordered["type"] = fm["type"]

    for key in field_order:
        if key in fm and key not in ordered:
            ordered[key] = fm[key]

    for key, value in fm.items():
        if key not in ordered:
            ordered[key] = value

    return ordered


def render_frontmatter(
    frontmatter: dict[str, Any],
    body: str,
    field_order: Sequence[str] = (),
) -> str:
    """Render a frontmatter mapping and body text into markdown."""
    ordered = CommentedMap(order_frontmatter(frontmatter, field_order))
    buf = StringIO()
    if ordered:
        _new_yaml().dump(ordered, buf)
    yaml_text = buf.getvalue()

    return "".join([FRONTMATTER_DELIMITER, "\n", yaml_text, FRONTMATTER_DELIMITER, "\n", body])


def sequence_like(original: Any, items: list[Any]) -> list[Any]:
    """Build a list of *items* that keeps *original*'s flow/block style."""
    if not isinstance(original, CommentedSeq):
        return items
    seq = CommentedSeq(items)
    if original.fa.flow_style():
        seq.fa.set_flow_style()
    return seq
