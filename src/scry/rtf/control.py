"""
Control word tables for the RTF interpreter.

These are process-wide read-only tables: destination words, words and
symbols that stand for a character, and words that change the codepage.
Destination names are drawn from the RTF 1.9.1 specification plus the
Cocoa and Scrivener extensions that show up in Scrivener projects.
"""

from enum import Enum
from types import MappingProxyType
from typing import Final, Mapping


class DestinationKind(str, Enum):
    """Where text inside the current group is routed."""

    BODY = "body"
    ANNOTATION = "annotation"
    COMMENT = "comment"
    SKIP = "skip"


# ──────────────────────────────────────────────
# Destinations
# ──────────────────────────────────────────────

_SKIPPED_DESTINATIONS = (
    # Document tables and metadata
    "fonttbl", "colortbl", "expandedcolortbl", "stylesheet", "info",
    "listtable", "listoverridetable", "rsidtbl", "revtbl", "filetbl",
    "generator", "xmlnstbl", "themedata", "colorschememapping",
    "datastore", "latentstyles", "pgdsctbl", "defchp", "defpap",
    "mmathPr", "wgrffmtfilter", "userprops", "docvar",
    # Info group fields
    "author", "operator", "title", "subject", "keywords", "doccomm",
    "company", "category", "manager", "hlinkbase", "creatim", "revtim",
    "printim", "buptim",
    # Headers and footers
    "header", "headerl", "headerr", "headerf",
    "footer", "footerl", "footerr", "footerf",
    # Footnote separators
    "ftnsep", "ftnsepc", "ftncn", "aftnsep", "aftnsepc", "aftncn",
    # Annotation bookkeeping (the annotation text itself is kept)
    "atnid", "atnauthor", "atndate", "atnicn", "atnparent", "atnref",
    "atntime", "atrfstart", "atrfend",
    # Fields, bookmarks, objects and pictures
    "fldinst", "datafield", "formfield", "bkmkstart", "bkmkend",
    "pict", "shppict", "nonshppict", "blipuid", "picprop",
    "object", "objdata", "objclass", "objname", "result",
    "sp", "sn", "sv", "shpinst", "shptxt", "background",
    # Cocoa text system extensions
    "NeXTGraphic", "glid",
)

DESTINATIONS: Final[Mapping[str, DestinationKind]] = MappingProxyType({
    **{name: DestinationKind.SKIP for name in _SKIPPED_DESTINATIONS},
    "annotation": DestinationKind.ANNOTATION,
    "footnote": DestinationKind.COMMENT,
    "comment": DestinationKind.COMMENT,
})

# ──────────────────────────────────────────────
# Characters
# ──────────────────────────────────────────────

# Control words that stand for a character
CHARACTER_WORDS: Final[Mapping[str, str]] = MappingProxyType({
    "par": "\n",
    "line": "\n",
    "sect": "\n",
    "page": "\n",
    "row": "\n",
    "tab": "\t",
    "cell": "\t",
    "emdash": "\u2014",
    "endash": "\u2013",
    "emspace": "\u2003",
    "enspace": "\u2002",
    "qmspace": "\u2005",
    "bullet": "\u2022",
    "lquote": "\u2018",
    "rquote": "\u2019",
    "ldblquote": "\u201c",
    "rdblquote": "\u201d",
    "zwj": "\u200d",
    "zwnj": "\u200c",
    "ltrmark": "\u200e",
    "rtlmark": "\u200f",
})

# Control symbols that stand for a character; \{ \} \\ are handled by the tokenizer
CHARACTER_SYMBOLS: Final[Mapping[str, str]] = MappingProxyType({
    "\n": "\n",
    "~": "\u00a0",
    "-": "",
    "_": "-",
    "|": "",
    ":": "",
})

# ──────────────────────────────────────────────
# Encodings
# ──────────────────────────────────────────────

# Character set flags in the document header
CHARSET_WORDS: Final[Mapping[str, str]] = MappingProxyType({
    "ansi": "cp1252",
    "mac": "mac_roman",
    "pc": "cp437",
    "pca": "cp850",
})

# ──────────────────────────────────────────────
# Scrivener inline annotations
# ──────────────────────────────────────────────

SCRIVENER_ANNOTATION_START: Final[str] = "Scrv_annot"
SCRIVENER_ANNOTATION_TEXT: Final[str] = "text"
SCRIVENER_ANNOTATION_END: Final[str] = "end_Scrv_annot"

# The same markers when Scrivener escaped them into the document text,
# as they appear after decoding
ESCAPED_ANNOTATION_OPEN: Final[str] = "{\\" + SCRIVENER_ANNOTATION_START
ESCAPED_ANNOTATION_TEXT: Final[str] = "\\" + SCRIVENER_ANNOTATION_TEXT + "="
ESCAPED_ANNOTATION_CLOSE: Final[str] = "\\" + SCRIVENER_ANNOTATION_END + "}"
