"""
Selector and extraction — walk the chosen binder scopes and turn each
node's content files into ExtractedItems.

For every node in pre-order within the selected scopes, one item is
produced per requested content kind whose backing file exists. Kinds
are always emitted in ContentKind order, whatever order they were
requested in.

Per-node failures (malformed markup, unreadable files, broken comment
XML) are recovered: the item keeps whatever text could be decoded and
records the problem in `errors`.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Protocol

from scry.binder import BinderNode, NodeKind, ProjectTree
from scry.bundle import ContentFile
from scry.config import DEFAULT_JOBS, DEFAULT_UNICODE_FALLBACK, DRAFT, SYNOPSIS_ENCODING
from scry.errors import ManifestError
from scry.manifest import parse_comments
from scry.rtf import ConversionResult, Interpreter
from scry.text import normalize_paragraphs, strip_style_tags

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────
# Data structures
# ──────────────────────────────────────────────


class ContentKind(str, Enum):
    """What to extract from a node. Definition order is emission order."""

    TITLE = "title"
    SYNOPSIS = "synopsis"
    BODY = "body"
    NOTE = "note"
    ANNOTATION = "annotation"
    FOOTNOTE = "footnote"
    COMMENT = "comment"


@dataclass(frozen=True)
class ExtractedItem:
    """One piece of text pulled from one node."""

    identity: str
    title: str
    kind: ContentKind
    text: str
    errors: tuple[str, ...] = ()
    node_type: str = NodeKind.DOCUMENT.value


class ContentLoader(Protocol):
    """Anything that can list and read the content files of a node."""

    def files(self, node: BinderNode) -> set[ContentFile]: ...

    def read(self, node: BinderNode, file: ContentFile) -> bytes | None: ...


# File each kind is read from; None means no file is needed
_SOURCES: dict[ContentKind, ContentFile | None] = {
    ContentKind.TITLE: None,
    ContentKind.SYNOPSIS: ContentFile.SYNOPSIS,
    ContentKind.BODY: ContentFile.CONTENT,
    ContentKind.NOTE: ContentFile.NOTES,
    ContentKind.ANNOTATION: ContentFile.CONTENT,
    ContentKind.FOOTNOTE: ContentFile.CONTENT,
    ContentKind.COMMENT: ContentFile.COMMENTS,
}

# ──────────────────────────────────────────────
# Extraction
# ──────────────────────────────────────────────


def extract_items(
    tree: ProjectTree,
    loader: ContentLoader,
    scopes: Iterable[str] = (DRAFT,),
    kinds: Iterable[ContentKind] = (ContentKind.BODY,),
    jobs: int = DEFAULT_JOBS,
    fallback_char: str = DEFAULT_UNICODE_FALLBACK,
) -> list[ExtractedItem]:
    """
    Extract the requested kinds from every node under the given scopes.

    Args:
        tree: The project binder.
        loader: Source of content file bytes (usually a Bundle).
        scopes: Top-level folder names; see binder.scope_matches.
        kinds: Content kinds to extract.
        jobs: Worker threads for conversion. Output order does not
            depend on this.
        fallback_char: Replacement for invalid \\u code points.

    Returns:
        Items in binder pre-order, then ContentKind order within a node.
    """
    wanted = set(kinds)
    ordered_kinds = [k for k in ContentKind if k in wanted]
    selected = tree.select(scopes)
    nodes = list(tree.walk(*selected)) if selected else []
    interpreter = Interpreter(fallback_char)

    logger.debug(
        "Extracting %s from %d nodes with %d job(s)",
        ", ".join(k.value for k in ordered_kinds), len(nodes), jobs,
    )

    def run(node: BinderNode) -> list[ExtractedItem]:
        return _NodeExtraction(node, loader, interpreter).items(ordered_kinds)

    if jobs > 1 and len(nodes) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            per_node = list(pool.map(run, nodes))
    else:
        per_node = [run(node) for node in nodes]

    return [item for items in per_node for item in items]


class _NodeExtraction:
    """Reads and converts the files of one node, each at most once."""

    def __init__(self, node: BinderNode, loader: ContentLoader, interpreter: Interpreter) -> None:
        self.node = node
        self.loader = loader
        self.interpreter = interpreter
        self._converted: dict[ContentFile, tuple[ConversionResult, tuple[str, ...]] | None] = {}

    def items(self, kinds: list[ContentKind]) -> list[ExtractedItem]:
        node = self.node
        available = self.loader.files(node)

        if node.is_folder and ContentFile.CONTENT not in available:
            logger.debug("Skipping folder %r without content", node.title)
            return []

        logger.debug("Extracting %r (%s)", node.title, node.identity)

        items = []
        for kind in kinds:
            source = _SOURCES[kind]
            if source is not None and source not in available:
                continue
            extracted = self._extract(kind)
            if extracted is None:
                continue
            text, errors = extracted
            items.append(ExtractedItem(node.identity, node.title, kind, text, errors, node.label))
        return items

    def _extract(self, kind: ContentKind) -> tuple[str, tuple[str, ...]] | None:
        if kind is ContentKind.TITLE:
            return self.node.title, ()

        if kind is ContentKind.SYNOPSIS:
            read = self._read(ContentFile.SYNOPSIS)
            if read is None:
                return None
            data, errors = read
            return data.decode(SYNOPSIS_ENCODING, errors="replace").rstrip(), errors

        if kind is ContentKind.COMMENT:
            return self._comments()

        source = ContentFile.NOTES if kind is ContentKind.NOTE else ContentFile.CONTENT
        converted = self._convert(source)
        if converted is None:
            return None
        result, errors = converted

        if kind is ContentKind.BODY:
            text = strip_style_tags(result.body)
        elif kind is ContentKind.NOTE:
            text = result.body
        elif kind is ContentKind.ANNOTATION:
            text = result.annotation
        else:
            text = result.comment
        return normalize_paragraphs(text), errors

    def _read(self, file: ContentFile) -> tuple[bytes, tuple[str, ...]] | None:
        try:
            data = self.loader.read(self.node, file)
        except OSError as e:
            logger.warning("Cannot read %s of %r: %s", file.value, self.node.title, e)
            return b"", (f"{file.value}: {e}",)
        if data is None:
            return None
        return data, ()

    def _convert(self, file: ContentFile) -> tuple[ConversionResult, tuple[str, ...]] | None:
        if file not in self._converted:
            read = self._read(file)
            if read is None:
                self._converted[file] = None
            else:
                data, errors = read
                result = self.interpreter.convert(data)
                self._converted[file] = (result, errors + self._markup_errors(file, result))
        return self._converted[file]

    def _markup_errors(self, file: ContentFile, result: ConversionResult) -> tuple[str, ...]:
        for error in result.errors:
            logger.warning("Markup error in %s of %r: %s", file.value, self.node.title, error)
        return tuple(f"{file.value}: {e}" for e in result.errors)

    def _comments(self) -> tuple[str, tuple[str, ...]] | None:
        read = self._read(ContentFile.COMMENTS)
        if read is None:
            return None
        data, errors = read
        if not data:
            return "", errors

        try:
            comments = parse_comments(data)
        except ManifestError as e:
            logger.warning("Cannot parse comments of %r: %s", self.node.title, e)
            return "", errors + (f"{ContentFile.COMMENTS.value}: {e}",)

        texts = []
        for _comment_id, rtf in comments:
            result = self.interpreter.convert(rtf)
            errors += self._markup_errors(ContentFile.COMMENTS, result)
            text = normalize_paragraphs(result.body)
            if text:
                texts.append(text)
        return "\n".join(texts), errors
