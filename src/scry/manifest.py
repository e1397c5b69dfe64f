"""
Manifest readers — turn a project file into flat ManifestEntry rows.

Two manifest formats are accepted:
- .scrivx: the Scrivener project XML, with BinderItem elements nested
  under Children.
- .json: a node list {"nodes": [{"id", "title", "kind", "parent", ...}]},
  validated against MANIFEST_SCHEMA.

Also reads content.comments files, which wrap one RTF document per
linked comment in XML.
"""

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

import jsonschema

from scry.binder import ManifestEntry, NodeKind, ProjectTree
from scry.config import JSON_MANIFEST_SUFFIX, PROJECT_SUFFIX
from scry.errors import ManifestError

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────
# Scrivener project XML
# ──────────────────────────────────────────────

# BinderItem Type attribute → (node kind, top-level role)
_ITEM_TYPES: dict[str, tuple[NodeKind, str | None]] = {
    "DraftFolder": (NodeKind.FOLDER, "draft"),
    "ResearchFolder": (NodeKind.FOLDER, "research"),
    "TrashFolder": (NodeKind.TRASH, "trash"),
    "Folder": (NodeKind.FOLDER, None),
    "Text": (NodeKind.DOCUMENT, None),
}


def parse_scrivx(source: bytes | Path) -> list[ManifestEntry]:
    """
    Flatten the binder of a .scrivx document into manifest entries.

    Node identity comes from the UUID attribute (Scrivener 3) or the ID
    attribute (Scrivener 2). Entries are listed in binder pre-order.

    Raises ManifestError on an unreadable file, malformed XML or a
    BinderItem without identity.
    """
    if isinstance(source, Path):
        try:
            data = source.read_bytes()
        except OSError as e:
            raise ManifestError(f"Cannot read project file {source.name}: {e}") from e
    else:
        data = source

    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise ManifestError(f"Cannot parse project XML: {e}") from e

    binder = root.find("Binder")
    if binder is None:
        raise ManifestError("Project XML has no <Binder> element.")

    entries: list[ManifestEntry] = []
    stack: list[tuple[ET.Element, str | None]] = [
        (item, None) for item in reversed(binder.findall("BinderItem"))
    ]

    while stack:
        item, parent = stack.pop()
        identity = item.get("UUID") or item.get("ID")
        if not identity:
            raise ManifestError("BinderItem without UUID or ID attribute.")

        kind, role = _ITEM_TYPES.get(item.get("Type", ""), (NodeKind.OTHER, None))
        entries.append(ManifestEntry(
            identity=identity,
            title=(item.findtext("Title") or "").strip(),
            kind=kind,
            parent=parent,
            role=role,
        ))

        children = item.find("Children")
        if children is not None:
            stack.extend(
                (child, identity) for child in reversed(children.findall("BinderItem"))
            )

    logger.debug("Parsed %d binder items from project XML", len(entries))
    return entries


def parse_comments(data: bytes) -> list[tuple[str, bytes]]:
    """
    Read a content.comments document.

    Returns (comment id, RTF bytes) pairs in document order.
    Raises ManifestError on malformed XML.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise ManifestError(f"Cannot parse comments XML: {e}") from e

    comments = []
    for element in root.iter("Comment"):
        body = (element.text or "").strip()
        comments.append((element.get("ID", ""), body.encode("utf-8")))
    return comments


# ──────────────────────────────────────────────
# JSON node list
# ──────────────────────────────────────────────

_ID_TYPES = ["string", "integer"]

MANIFEST_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["nodes"],
    "properties": {
        "title": {"type": "string"},
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id"],
                "properties": {
                    "id": {"type": _ID_TYPES},
                    "title": {"type": "string"},
                    "kind": {"enum": [k.value for k in NodeKind]},
                    "parent": {"type": _ID_TYPES + ["null"]},
                    "content_id": {"type": _ID_TYPES + ["null"]},
                    "role": {"enum": ["draft", "research", "trash", None]},
                },
                "additionalProperties": False,
            },
        },
    },
}


def entries_from_json(document: dict[str, Any]) -> list[ManifestEntry]:
    """Validate a JSON node list against MANIFEST_SCHEMA and convert it."""
    try:
        jsonschema.validate(document, MANIFEST_SCHEMA)
    except jsonschema.ValidationError as e:
        path_str = " → ".join(str(p) for p in e.absolute_path) if e.absolute_path else "root"
        raise ManifestError(f"Manifest schema error at '{path_str}': {e.message}") from e

    entries = []
    for node in document["nodes"]:
        parent = node.get("parent")
        content_id = node.get("content_id")
        entries.append(ManifestEntry(
            identity=str(node["id"]),
            title=node.get("title", ""),
            kind=NodeKind(node.get("kind", NodeKind.DOCUMENT.value)),
            parent=None if parent is None else str(parent),
            content_id=None if content_id is None else str(content_id),
            role=node.get("role"),
        ))
    return entries


def load_json_manifest(path: Path) -> list[ManifestEntry]:
    """Load and validate a JSON node-list manifest."""
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Cannot read JSON manifest {path.name}: {e}") from e
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestError(f"Cannot parse JSON manifest {path.name}: {e}") from e
    return entries_from_json(document)


# ──────────────────────────────────────────────
# Dispatch
# ──────────────────────────────────────────────


def load_manifest(path: Path) -> list[ManifestEntry]:
    """Read manifest entries from a .scrivx or .json file."""
    suffix = path.suffix.lower()
    if suffix == PROJECT_SUFFIX:
        return parse_scrivx(path)
    if suffix == JSON_MANIFEST_SUFFIX:
        return load_json_manifest(path)
    raise ManifestError(f"Unsupported manifest type: {path.name}")


def load_tree(path: Path) -> ProjectTree:
    """Read a manifest and build its binder tree (title = file stem)."""
    return ProjectTree.from_entries(load_manifest(path), title=path.stem)
