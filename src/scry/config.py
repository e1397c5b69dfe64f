"""
Global configuration and constants.

All magic numbers, file names and default values live here.
Extraction code imports from config — never hardcodes.
"""

from typing import Final

# ──────────────────────────────────────────────
# Binder conventions
# ──────────────────────────────────────────────

DRAFT: Final[str] = "Draft"
RESEARCH: Final[str] = "Research"
TRASH: Final[str] = "Trash"

# Scope matching every top-level folder except the trash
ALL_FOLDERS: Final[str] = "*"

# Conventional folder name → role recorded from the manifest Type attribute
FOLDER_ROLES: Final[dict[str, str]] = {
    DRAFT: "draft",
    RESEARCH: "research",
    TRASH: "trash",
}

# ──────────────────────────────────────────────
# Bundle layout
# ──────────────────────────────────────────────

PROJECT_SUFFIX: Final[str] = ".scrivx"
JSON_MANIFEST_SUFFIX: Final[str] = ".json"

# Scrivener 3: Files/Data/<UUID>/...
DATA_DIR: Final[tuple[str, ...]] = ("Files", "Data")
CONTENT_FILE: Final[str] = "content.rtf"
NOTES_FILE: Final[str] = "notes.rtf"
SYNOPSIS_FILE: Final[str] = "synopsis.txt"
COMMENTS_FILE: Final[str] = "content.comments"

# Scrivener 2: Files/Docs/<ID>.rtf, <ID>_notes.rtf, ...
DOCS_DIR: Final[tuple[str, ...]] = ("Files", "Docs")
LEGACY_CONTENT_PATTERN: Final[str] = "{id}.rtf"
LEGACY_NOTES_PATTERN: Final[str] = "{id}_notes.rtf"
LEGACY_SYNOPSIS_PATTERN: Final[str] = "{id}_synopsis.txt"
LEGACY_COMMENTS_PATTERN: Final[str] = "{id}.comments"

# ──────────────────────────────────────────────
# RTF decoding
# ──────────────────────────────────────────────

DEFAULT_CODEC: Final[str] = "cp1252"
DEFAULT_UNICODE_FALLBACK: Final[str] = "\ufffd"
DEFAULT_UC_SKIP: Final[int] = 1

PARAMETER_MIN: Final[int] = -(2**31)
PARAMETER_MAX: Final[int] = 2**31 - 1
MAX_CONTROL_WORD_LEN: Final[int] = 32

# Codepage numbers Python knows under a different codec name
CODEPAGE_ALIASES: Final[dict[int, str]] = {
    10000: "mac_roman",
    10001: "shift_jis",
    10006: "mac_greek",
    10007: "mac_cyrillic",
    10029: "mac_latin2",
    10081: "mac_turkish",
    65001: "utf-8",
}

# Text encoding of synopsis files
SYNOPSIS_ENCODING: Final[str] = "utf-8"

# ──────────────────────────────────────────────
# Extraction
# ──────────────────────────────────────────────

DEFAULT_JOBS: Final[int] = 1
JOBS_ENVVAR: Final[str] = "SCRY_JOBS"
