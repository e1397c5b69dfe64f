"""
Project bundle on disk — locate the manifest and each node's content files.

Two layouts are supported:
- Scrivener 3: Files/Data/<UUID>/content.rtf, notes.rtf, synopsis.txt,
  content.comments
- Scrivener 2: Files/Docs/<ID>.rtf, <ID>_notes.rtf, <ID>_synopsis.txt,
  <ID>.comments

Only RTF bodies count as content. PDF, image and web archive bodies
stored under the same names with another extension are ignored.
"""

import logging
from enum import Enum
from pathlib import Path

from scry.binder import BinderNode
from scry.config import (
    COMMENTS_FILE,
    CONTENT_FILE,
    DATA_DIR,
    DOCS_DIR,
    JSON_MANIFEST_SUFFIX,
    LEGACY_COMMENTS_PATTERN,
    LEGACY_CONTENT_PATTERN,
    LEGACY_NOTES_PATTERN,
    LEGACY_SYNOPSIS_PATTERN,
    NOTES_FILE,
    PROJECT_SUFFIX,
    SYNOPSIS_FILE,
)

logger = logging.getLogger(__name__)


class ContentFile(str, Enum):
    """Role of a per-node file inside the bundle."""

    CONTENT = "content"
    NOTES = "notes"
    SYNOPSIS = "synopsis"
    COMMENTS = "comments"


_DATA_NAMES = {
    ContentFile.CONTENT: CONTENT_FILE,
    ContentFile.NOTES: NOTES_FILE,
    ContentFile.SYNOPSIS: SYNOPSIS_FILE,
    ContentFile.COMMENTS: COMMENTS_FILE,
}

_LEGACY_PATTERNS = {
    ContentFile.CONTENT: LEGACY_CONTENT_PATTERN,
    ContentFile.NOTES: LEGACY_NOTES_PATTERN,
    ContentFile.SYNOPSIS: LEGACY_SYNOPSIS_PATTERN,
    ContentFile.COMMENTS: LEGACY_COMMENTS_PATTERN,
}


def locate_project_file(path: Path) -> Path:
    """
    Resolve a user-supplied path to a project manifest.

    Accepts a .scrivx or .json manifest directly, or a bundle directory
    containing a .scrivx file. When a directory holds several, the one
    named after the directory wins, otherwise the first by name.

    Raises FileNotFoundError if nothing usable is found.
    """
    path = Path(path)

    if path.is_file():
        if path.suffix.lower() in (PROJECT_SUFFIX, JSON_MANIFEST_SUFFIX):
            return path
        raise FileNotFoundError(f"Not a project file: {path}")

    if not path.is_dir():
        raise FileNotFoundError(f"No such project: {path}")

    candidates = sorted(p for p in path.glob(f"*{PROJECT_SUFFIX}") if p.is_file())
    if not candidates:
        raise FileNotFoundError(f"No {PROJECT_SUFFIX} file in {path}")

    for candidate in candidates:
        if candidate.stem == path.stem:
            return candidate

    if len(candidates) > 1:
        logger.warning(
            "Several project files in %s, using %s", path, candidates[0].name
        )
    return candidates[0]


class Bundle:
    """Content file resolver for a project bundle rooted at `root`."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.legacy = (
            not self.root.joinpath(*DATA_DIR).is_dir()
            and self.root.joinpath(*DOCS_DIR).is_dir()
        )

    @classmethod
    def for_project(cls, project_file: Path) -> "Bundle":
        """Bundle whose root is the directory holding `project_file`."""
        return cls(Path(project_file).parent)

    def path_for(self, node: BinderNode, file: ContentFile) -> Path:
        key = node.content_key
        if self.legacy:
            return self.root.joinpath(*DOCS_DIR, _LEGACY_PATTERNS[file].format(id=key))
        return self.root.joinpath(*DATA_DIR, key.upper(), _DATA_NAMES[file])

    def files(self, node: BinderNode) -> set[ContentFile]:
        """The content files that exist for `node`."""
        return {f for f in ContentFile if self.path_for(node, f).is_file()}

    def read(self, node: BinderNode, file: ContentFile) -> bytes | None:
        """Raw bytes of one content file, or None if it does not exist."""
        path = self.path_for(node, file)
        if not path.is_file():
            return None
        logger.debug("Reading %s", path)
        return path.read_bytes()
