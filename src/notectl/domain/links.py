"""Link helpers — detect, extract, and convert wikilinks and markdown links.

Pure functions, no infrastructure dependencies. Relation fields hold
either ``[[Target]]`` wikilinks or ``[Target](Target.md)`` markdown links,
and the body may reference notes with ``[[Target#Heading|Alias]]``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# [[Title]] or [[Title|Display Text]]: captures content between brackets.
_WIKILINK_PATTERN = re.compile(r"\[\[([^\[\]]+)\]\]")
_FULL_WIKILINK = re.compile(r"^\[\[([^\[\]]+)\]\]$")
_QUOTED_WIKILINK = re.compile(r"^\"\[\[([^\[\]]+)\]\]\"$")
_MARKDOWN_LINK = re.compile(r"^\[([^\]]*)\]\(([^)]+)\)$")


@dataclass(frozen=True)
class WikiLink:
    """A wikilink extracted from body text."""

    raw: str  # original text between [[ ]] (target portion, heading included)
    display: str | None = None  # display text after | if present
    start: int = 0
    end: int = 0

    @property
    def target(self) -> str:
        """Link target without any ``#heading`` suffix."""
        return self.raw.split("#", 1)[0].strip()

    @property
    def heading(self) -> str | None:
        parts = self.raw.split("#", 1)
        return parts[1] if len(parts) > 1 else None


def extract_wikilinks(body: str) -> list[WikiLink]:
    """Extract all ``[[wikilinks]]`` from markdown text.

    Handles ``[[Target]]``, ``[[Target|Display Text]]`` and
    ``[[Target#Heading]]``. Returns an empty list if none are found.
    """
    results: list[WikiLink] = []
    for match in _WIKILINK_PATTERN.finditer(body):
        inner = match.group(1)
        parts = inner.split("|", 1)
        target = parts[0].strip()
        display = parts[1].strip() if len(parts) > 1 else None
        results.append(WikiLink(raw=target, display=display, start=match.start(), end=match.end()))
    return results


def is_wikilink(value: object) -> bool:
    return isinstance(value, str) and bool(_FULL_WIKILINK.match(value))


def is_quoted_wikilink(value: object) -> bool:
    return isinstance(value, str) and bool(_QUOTED_WIKILINK.match(value))


def is_markdown_link(value: object) -> bool:
    return isinstance(value, str) and bool(_MARKDOWN_LINK.match(value))


def extract_wikilink_target(value: str) -> str | None:
    """Return the note name inside ``[[...]]``, dropping heading and alias."""
    match = _FULL_WIKILINK.match(value) or _QUOTED_WIKILINK.match(value)
    if match is None:
        return None
    return match.group(1).split("|", 1)[0].split("#", 1)[0].strip()


def extract_markdown_link_target(value: str) -> str | None:
    """Return the note name of ``[Name](Name.md)``, without the extension."""
    match = _MARKDOWN_LINK.match(value)
    if match is None:
        return None
    target = match.group(2).strip()
    if target.endswith(".md"):
        target = target[:-3]
    return target


def link_target(value: str) -> str:
    """Return the bare note name for any supported link style, or *value*."""
    return extract_wikilink_target(value) or extract_markdown_link_target(value) or value


def to_wikilink(name: str) -> str:
    return f"[[{name}]]"


def to_markdown_link(name: str) -> str:
    return f"[{name}]({name}.md)"
