"""Raw text splicing for the frontmatter header.

Structural fixes must not disturb anything outside the bytes they repair,
so this module never re-serializes a note. It locates the primary
``---`` delimited block by character offsets and edits the header text in
place:

- block-level: replace the header text, or relocate the whole block to
  offset 0 (after a BOM, when present).
- node-level: ruamel.yaml's composer yields a node tree whose marks give
  the exact line and column of every key and scalar. Duplicate keys are
  only rejected at construction time, so composing still succeeds for a
  header that repeats a key. Entries are removed by line range and
  scalars replaced by character range.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError
from ruamel.yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from notectl.domain.content import BOM, FRONTMATTER_DELIMITER, load_yaml_value

STR_TAG = "tag:yaml.org,2002:str"

_PLAIN_SAFE = re.compile(r"^[A-Za-z_][A-Za-z0-9_ .\-/]*$")
_PLAIN_RESERVED = frozenset({"true", "false", "yes", "no", "on", "off", "null", "y", "n"})


class StructuralEditError(ValueError):
    """The header cannot be edited at node level."""


# ---------------------------------------------------------------------------
# Block detection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FrontmatterBlock:
    """Character offsets of one ``---`` delimited block.

    ``block_start``/``block_end`` span both delimiter lines (the end
    includes the closing line's newline when present). ``yaml_start`` and
    ``yaml_end`` span the header text between them.
    """

    block_start: int
    block_end: int
    yaml_start: int
    yaml_end: int


@dataclass(frozen=True)
class StructuralFrontmatter:
    """Everything the structural fixes need to know about a raw note."""

    raw: str
    blocks: tuple[FrontmatterBlock, ...] = ()
    unterminated: bool = False
    yaml: str | None = None
    root: MappingNode | None = None
    yaml_errors: tuple[str, ...] = field(default=())
    at_top: bool = True

    @property
    def primary_block(self) -> FrontmatterBlock | None:
        return self.blocks[0] if self.blocks else None


def _iter_lines(text: str) -> Iterator[tuple[int, int, str]]:
    """Yield ``(start, end, content)`` per line; *end* includes the newline."""
    start = 0
    length = len(text)
    while start < length:
        newline = text.find("\n", start)
        end = length if newline == -1 else newline + 1
        yield start, end, text[start:end].rstrip("\r\n")
        start = end


def _line_starts(text: str) -> list[int]:
    starts = [start for start, _end, _content in _iter_lines(text)]
    # Marks may point one past the final newline.
    starts.append(len(text))
    return starts


def _is_delimiter(content: str) -> bool:
    return content.removeprefix(BOM).strip() == FRONTMATTER_DELIMITER


def find_frontmatter_blocks(raw: str) -> tuple[list[FrontmatterBlock], bool]:
    """Pair successive delimiter lines into blocks.

    Returns the blocks in file order and whether a trailing delimiter was
    left unpaired.
    """
    blocks: list[FrontmatterBlock] = []
    opening: tuple[int, int] | None = None
    for start, end, content in _iter_lines(raw):
        if not _is_delimiter(content):
            continue
        if opening is None:
            opening = (start, end)
            continue
        blocks.append(
            FrontmatterBlock(
                block_start=opening[0],
                block_end=end,
                yaml_start=opening[1],
                yaml_end=start,
            )
        )
        opening = None
    return blocks, opening is not None


def compose_header(yaml_text: str) -> Node | None:
    """Compose *yaml_text* into a node tree without constructing values."""
    y = YAML()
    return y.compose(yaml_text)


def read_structural_frontmatter(raw: str) -> StructuralFrontmatter:
    """Locate the primary block of *raw* and compose its header."""
    blocks, unterminated = find_frontmatter_blocks(raw)
    if not blocks:
        return StructuralFrontmatter(raw=raw, unterminated=unterminated)

    primary = blocks[0]
    yaml_text = raw[primary.yaml_start : primary.yaml_end]
    prefix = raw[: primary.block_start].removeprefix(BOM)

    root: MappingNode | None = None
    errors: list[str] = []
    try:
        node = compose_header(yaml_text)
    except YAMLError as exc:
        errors.append(str(exc))
    else:
        if isinstance(node, MappingNode):
            root = node

    return StructuralFrontmatter(
        raw=raw,
        blocks=tuple(blocks),
        unterminated=unterminated,
        yaml=yaml_text,
        root=root,
        yaml_errors=tuple(errors),
        at_top=prefix.strip() == "",
    )


# ---------------------------------------------------------------------------
# Block-level splicing
# ---------------------------------------------------------------------------


def detect_eol(raw: str) -> str:
    return "\r\n" if "\r\n" in raw else "\n"


def replace_primary_yaml(raw: str, block: FrontmatterBlock, new_yaml: str) -> str:
    """Swap the header text of *block* for *new_yaml*, keeping the file's EOL."""
    eol = detect_eol(raw)
    trimmed = new_yaml.rstrip().replace("\r\n", "\n")
    body = trimmed.replace("\n", eol) + eol if trimmed else ""
    return raw[: block.yaml_start] + body + raw[block.yaml_end :]


def move_primary_block_to_top(raw: str, block: FrontmatterBlock) -> str:
    """Cut *block* out of *raw* and reinsert it at the start (after any BOM)."""
    block_text = raw[block.block_start : block.block_end]
    if not block_text.endswith("\n"):
        block_text += detect_eol(raw)
    remaining = raw[: block.block_start] + raw[block.block_end :]
    if remaining.startswith(BOM):
        return BOM + block_text + remaining[len(BOM) :]
    return block_text + remaining


def trim_trailing_whitespace(raw: str, line_number: int) -> str | None:
    """Strip spaces and tabs from the end of 1-based *line_number*.

    Returns None when the line does not exist or has nothing to trim.
    """
    for index, (start, end, content) in enumerate(_iter_lines(raw), start=1):
        if index != line_number:
            continue
        trimmed = content.rstrip(" \t")
        if trimmed == content:
            return None
        eol = raw[start + len(content) : end]
        return raw[:start] + trimmed + eol + raw[end:]
    return None


# ---------------------------------------------------------------------------
# Node-level editing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HeaderEntry:
    """One ``key: value`` pair of the root mapping, with its line range."""

    key: str
    index: int
    key_node: Node
    value_node: Node
    start: int
    end: int


def mapping_entries(yaml_text: str, root: MappingNode) -> list[HeaderEntry]:
    """List the root mapping's pairs in source order, duplicates included.

    Each entry spans from the start of its key line to the end of the last
    line holding its value. Comment and blank lines after the value belong
    to no entry, so removing an entry leaves them in place.

    Raises:
        StructuralEditError: If the root mapping is written in flow style.
    """
    if root.flow_style:
        msg = "Flow-style frontmatter mapping cannot be edited in place"
        raise StructuralEditError(msg)

    starts = _line_starts(yaml_text)
    key_starts = [starts[key_node.start_mark.line] for key_node, _value in root.value]
    entries: list[HeaderEntry] = []
    for index, (key_node, value_node) in enumerate(root.value):
        limit = key_starts[index + 1] if index + 1 < len(key_starts) else len(yaml_text)
        line, column = _content_end(key_node, value_node)
        if column > 0 or line == key_node.start_mark.line:
            line += 1
        end = min(starts[min(line, len(starts) - 1)], limit)
        entries.append(
            HeaderEntry(
                key=str(key_node.value),
                index=index,
                key_node=key_node,
                value_node=value_node,
                start=key_starts[index],
                end=end,
            )
        )
    return entries


def _content_end(key_node: Node, value_node: Node) -> tuple[int, int]:
    """Return the (line, column) just past the last character of a value.

    Block collections end at the token that closes them, which sits after
    any trailing comments, so descend to their last item instead.
    """
    if isinstance(value_node, (MappingNode, SequenceNode)) and not value_node.flow_style and value_node.value:
        last = value_node.value[-1]
        if isinstance(value_node, MappingNode):
            return _content_end(*last)
        return _content_end(value_node, last)
    if isinstance(value_node, ScalarNode) and value_node.value == "" and value_node.style is None:
        # An empty value is marked at the next token, possibly lines below
        return key_node.end_mark.line, key_node.end_mark.column + 1
    return value_node.end_mark.line, value_node.end_mark.column


def entries_for_key(entries: Iterable[HeaderEntry], key: str) -> list[HeaderEntry]:
    return [entry for entry in entries if entry.key == key]


def entry_value(yaml_text: str, entry: HeaderEntry) -> Any:
    """Load the value of one entry on its own, ignoring its siblings."""
    loaded = load_yaml_value(yaml_text[entry.start : entry.end])
    if not isinstance(loaded, dict) or not loaded:
        return None
    return next(iter(loaded.values()))


def remove_entries(yaml_text: str, entries: Iterable[HeaderEntry]) -> str:
    """Delete *entries* from *yaml_text*, highest offset first."""
    result = yaml_text
    for entry in sorted(entries, key=lambda e: e.start, reverse=True):
        result = result[: entry.start] + result[entry.end :]
    return result


def _render_scalar(value: str, style: str | None) -> str:
    if style == "'":
        return "'" + value.replace("'", "''") + "'"
    if style != '"' and _PLAIN_SAFE.match(value) and value.lower() not in _PLAIN_RESERVED:
        if not value.endswith(" "):
            return value
    return json.dumps(value, ensure_ascii=False)


def replace_scalar(yaml_text: str, node: Node, value: str) -> str:
    """Replace the source text of a string scalar node with *value*.

    The node's quoting style is kept when *value* can be written in it;
    otherwise the value is double-quoted.

    Raises:
        StructuralEditError: If *node* is not a string scalar.
    """
    if not isinstance(node, ScalarNode) or node.tag != STR_TAG:
        msg = "Target value is not a string scalar"
        raise StructuralEditError(msg)
    starts = _line_starts(yaml_text)
    start = starts[node.start_mark.line] + node.start_mark.column
    end = starts[node.end_mark.line] + node.end_mark.column
    return yaml_text[:start] + _render_scalar(value, node.style) + yaml_text[end:]


def sequence_item(node: Node, index: int) -> Node:
    """Return item *index* of a block or flow sequence node.

    Raises:
        StructuralEditError: If *node* is not a sequence or *index* is out of range.
    """
    if not isinstance(node, SequenceNode):
        msg = "Target value is not a list"
        raise StructuralEditError(msg)
    if not 0 <= index < len(node.value):
        msg = f"List index {index} is out of range"
        raise StructuralEditError(msg)
    return node.value[index]
