"""
Output writers — plain lines or an itemised JSON document.
"""

import json
from typing import Any, Iterable, TextIO

from scry.extract import ContentKind, ExtractedItem
from scry.text import split_paragraphs

# Kinds written as a single string in JSON; the rest are paragraph lists
_SCALAR_KINDS = frozenset({ContentKind.TITLE, ContentKind.SYNOPSIS})


def write_lines(items: Iterable[ExtractedItem], stream: TextIO) -> None:
    """Write every non-empty line of every item, one per output line."""
    for item in items:
        for line in split_paragraphs(item.text):
            stream.write(line + "\n")


def to_json_document(items: Iterable[ExtractedItem], keep_empty: bool = False) -> dict[str, Any]:
    """
    Group items by node into {"items": [{"uuid", "type", "title", <kind>: ...}]}.

    Items are assumed to arrive node by node, as extract_items emits them.
    Empty items are dropped unless `keep_empty` is set or they carry
    errors; a node left with no items is dropped too.
    """
    objects: list[dict[str, Any]] = []
    current: dict[str, Any] | None = None
    current_id: str | None = None

    for item in items:
        if not (item.text or item.errors or keep_empty):
            continue

        if current is None or item.identity != current_id:
            current = {"uuid": item.identity, "type": item.node_type, "title": item.title}
            current_id = item.identity
            objects.append(current)

        if item.kind in _SCALAR_KINDS:
            current[item.kind.value] = item.text
        else:
            current[item.kind.value] = split_paragraphs(item.text)

        if item.errors:
            current.setdefault("errors", []).extend(item.errors)

    return {"items": objects}


def write_json(items: Iterable[ExtractedItem], stream: TextIO, keep_empty: bool = False) -> None:
    stream.write(json.dumps(to_json_document(items, keep_empty), indent=2, ensure_ascii=False) + "\n")
