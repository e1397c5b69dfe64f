"""
Binder tree model — folders and documents of a project in binder order.

The tree is built once from flat manifest entries and is immutable
afterwards. Parents own their children; parent lookups go through an
identity → parent map built after construction.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

from scry.config import ALL_FOLDERS, FOLDER_ROLES, TRASH
from scry.errors import StructureError

logger = logging.getLogger(__name__)

ROOT_ID = ""

# ──────────────────────────────────────────────
# Data structures
# ──────────────────────────────────────────────


class NodeKind(str, Enum):
    DOCUMENT = "document"
    FOLDER = "folder"
    TRASH = "trash"
    OTHER = "other"


@dataclass(frozen=True)
class ManifestEntry:
    """One flat row of a project manifest."""

    identity: str
    title: str = ""
    kind: NodeKind = NodeKind.DOCUMENT
    parent: str | None = None
    content_id: str | None = None
    role: str | None = None


@dataclass(frozen=True)
class BinderNode:
    """A folder or document in the binder."""

    identity: str
    title: str
    kind: NodeKind
    children: tuple["BinderNode", ...] = ()
    content_id: str | None = None
    role: str | None = None

    @property
    def content_key(self) -> str:
        """Identity used to locate this node's content files."""
        return self.content_id or self.identity

    @property
    def is_folder(self) -> bool:
        return self.kind in (NodeKind.FOLDER, NodeKind.TRASH) or self.role is not None

    @property
    def is_trash(self) -> bool:
        return self.kind is NodeKind.TRASH or self.role == FOLDER_ROLES[TRASH]

    @property
    def label(self) -> str:
        """Kind, qualified by role for the top-level folders (e.g. "folder/draft")."""
        return self.kind.value if self.role is None else f"{self.kind.value}/{self.role}"


# ──────────────────────────────────────────────
# Tree
# ──────────────────────────────────────────────


class ProjectTree:
    """The binder of one project, rooted at a synthetic project node."""

    def __init__(self, root: BinderNode) -> None:
        self.root = root
        self._index: dict[str, BinderNode] = {}
        self._parents: dict[str, BinderNode] = {}

        stack = [root]
        while stack:
            node = stack.pop()
            self._index[node.identity] = node
            for child in node.children:
                self._parents[child.identity] = node
                stack.append(child)

    @classmethod
    def from_entries(cls, entries: Iterable[ManifestEntry], title: str = "") -> "ProjectTree":
        """
        Build a tree from flat manifest entries.

        Entries without a parent become top-level nodes. Sibling order
        follows entry order.

        Raises StructureError on a duplicate identity, a parent identity
        that does not exist, or a parent cycle.
        """
        entries = list(entries)
        by_id: dict[str, ManifestEntry] = {}

        for entry in entries:
            if entry.identity == ROOT_ID:
                raise StructureError("Node identity must not be empty.")
            if entry.identity in by_id:
                raise StructureError(f"Duplicate node identity: {entry.identity}")
            by_id[entry.identity] = entry

        for entry in entries:
            if entry.parent is not None and entry.parent not in by_id:
                raise StructureError(
                    f"Node '{entry.identity}' references missing parent '{entry.parent}'."
                )

        _check_cycles(by_id)

        child_ids: dict[str, list[str]] = {ROOT_ID: []}
        for entry in entries:
            child_ids.setdefault(entry.parent or ROOT_ID, []).append(entry.identity)

        # Pre-order from the root, then build in reverse so children exist first
        order: list[str] = []
        stack = [ROOT_ID]
        while stack:
            identity = stack.pop()
            order.append(identity)
            stack.extend(reversed(child_ids.get(identity, [])))

        built: dict[str, BinderNode] = {}
        for identity in reversed(order):
            children = tuple(built.pop(c) for c in child_ids.get(identity, []))
            if identity == ROOT_ID:
                built[identity] = BinderNode(ROOT_ID, title, NodeKind.FOLDER, children)
            else:
                entry = by_id[identity]
                built[identity] = BinderNode(
                    identity=entry.identity,
                    title=entry.title,
                    kind=entry.kind,
                    children=children,
                    content_id=entry.content_id,
                    role=entry.role,
                )

        tree = cls(built[ROOT_ID])
        logger.debug("Built binder tree with %d nodes", len(tree))
        return tree

    def __len__(self) -> int:
        return len(self._index) - 1

    def __contains__(self, identity: object) -> bool:
        return identity != ROOT_ID and identity in self._index

    def find(self, identity: str) -> BinderNode | None:
        if identity == ROOT_ID:
            return None
        return self._index.get(identity)

    def parent_of(self, identity: str) -> BinderNode | None:
        """Parent node of `identity`; None for top-level nodes and unknown ids."""
        parent = self._parents.get(identity)
        if parent is None or parent is self.root:
            return None
        return parent

    def top_level(self) -> tuple[BinderNode, ...]:
        return self.root.children

    def subtree(self, name: str) -> BinderNode | None:
        """First top-level node matching the conventional or literal folder name."""
        for node in self.top_level():
            if scope_matches(node, name):
                return node
        return None

    def select(self, scopes: Iterable[str]) -> list[BinderNode]:
        """Top-level nodes matching any of `scopes`, in binder order."""
        scopes = list(scopes)
        return [
            node for node in self.top_level()
            if any(scope_matches(node, scope) for scope in scopes)
        ]

    def walk(self, *starts: BinderNode) -> Iterator[BinderNode]:
        """
        Pre-order traversal in binder order.

        Walks each of `starts` (default: every top-level node) and its
        descendants; a parent is always yielded before its children.
        """
        stack = list(reversed(starts or self.top_level()))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


def scope_matches(node: BinderNode, scope: str) -> bool:
    """
    True if a top-level node falls under `scope`.

    Scopes are exact, case-sensitive folder titles. The conventional
    names Draft, Research and Trash also match by folder role, and
    ALL_FOLDERS matches everything except the trash.
    """
    if scope == ALL_FOLDERS:
        return not node.is_trash
    if node.title == scope:
        return True
    role = FOLDER_ROLES.get(scope)
    return role is not None and node.role == role


def _check_cycles(by_id: dict[str, ManifestEntry]) -> None:
    """Raise StructureError if any entry is transitively its own ancestor."""
    rooted: set[str] = set()

    for start in by_id:
        seen: set[str] = set()
        current: str | None = start
        while current is not None and current not in rooted:
            if current in seen:
                raise StructureError(f"Parent cycle detected involving node '{current}'.")
            seen.add(current)
            current = by_id[current].parent
        rooted.update(seen)
