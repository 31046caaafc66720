"""YAML front-matter parsing and serialisation for markdown documents."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple, Union

import yaml

EDIT_URL_KEY = "custom_edit_url"

_DELIMITER = "---"
_BOM = "\ufeff"
_FRONT_MATTER = re.compile(
    r"\A---[ \t]*\r?\n(?P<meta>(?:.*?\r?\n)??)---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)
_LEADING_BLANK_LINES = re.compile(r"\A(?:[ \t]*\r?\n)+")


@dataclass
class Parsed:
    """Document whose front matter was read successfully."""

    metadata: Dict[str, Any]
    body: str


@dataclass
class Unparsed:
    """Document without usable front matter; ``content`` is kept verbatim."""

    content: str
    metadata: Dict[str, Any] = field(default_factory=dict, init=False)

    @property
    def body(self) -> str:
        return self.content


ParseResult = Union[Parsed, Unparsed]


def parse(document: str) -> ParseResult:
    """Split ``document`` into front matter and body without ever raising.

    Absent blocks, blocks PyYAML cannot load, and blocks that are not a
    mapping of string keys all produce :class:`Unparsed`. A leading byte
    order mark is ignored when looking for the block.
    """
    text = document[1:] if document.startswith(_BOM) else document
    match = _FRONT_MATTER.match(text)
    if not match:
        return Unparsed(document)
    try:
        loaded = yaml.safe_load(match.group("meta"))
    except Exception:
        # Constructors raise plain ValueError (bad dates) or RecursionError.
        return Unparsed(document)
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict) or not all(isinstance(key, str) for key in loaded):
        return Unparsed(document)
    return Parsed(dict(loaded), text[match.end():])


def decode(document: str) -> Tuple[Dict[str, Any], str]:
    """Return ``(metadata, body)``; metadata is empty when none could be read."""
    result = parse(document)
    return dict(result.metadata), result.body


def encode(metadata: Mapping[str, Any], body: str) -> str:
    """Serialise ``metadata`` as a front-matter block followed by ``body``."""
    text = _LEADING_BLANK_LINES.sub("", body)
    if text and not text.endswith("\n"):
        text += "\n"
    if not metadata:
        return f"{_DELIMITER}\n{_DELIMITER}\n{text}"
    rendered = yaml.safe_dump(
        dict(metadata),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"{_DELIMITER}\n{rendered}{_DELIMITER}\n{text}"


def merge_default(metadata: Mapping[str, Any], key: str, value: Any) -> Dict[str, Any]:
    """Return a copy of ``metadata`` with ``value`` filled in only when ``key`` is unset.

    A key holding ``None`` counts as unset; any other existing value wins.
    """
    merged = dict(metadata)
    if merged.get(key) is None:
        merged[key] = value
    return merged


__all__ = [
    "EDIT_URL_KEY",
    "ParseResult",
    "Parsed",
    "Unparsed",
    "decode",
    "encode",
    "merge_default",
    "parse",
]
