"""Shared test fixtures for scry."""

import sys
from pathlib import Path

import pytest

# Fix ModuleNotFoundError when running locally without editable install
sys.path.insert(0, str(Path(__file__).parents[1] / "src"))

from scry.binder import BinderNode, ManifestEntry, NodeKind, ProjectTree  # noqa: E402
from scry.bundle import ContentFile  # noqa: E402

# ──────────────────────────────────────────────────────────────
# Scrivener 3 sample project
# ──────────────────────────────────────────────────────────────

DRAFT_UUID = "0D5A8E34-1111-4C5B-9E35-000000000001"
CHAPTER_ONE_UUID = "0D5A8E34-1111-4C5B-9E35-000000000002"
SCENE_A_UUID = "0D5A8E34-1111-4C5B-9E35-000000000003"
SCENE_B_UUID = "0D5A8E34-1111-4C5B-9E35-000000000004"
CHAPTER_TWO_UUID = "0D5A8E34-1111-4C5B-9E35-000000000005"
RESEARCH_UUID = "0D5A8E34-1111-4C5B-9E35-000000000006"
BACKGROUND_UUID = "0D5A8E34-1111-4C5B-9E35-000000000007"
PHOTO_UUID = "0D5A8E34-1111-4C5B-9E35-000000000008"
TRASH_UUID = "0D5A8E34-1111-4C5B-9E35-000000000009"
DELETED_UUID = "0D5A8E34-1111-4C5B-9E35-00000000000A"

SCRIVX_V3 = f"""<?xml version="1.0" encoding="UTF-8"?>
<ScrivenerProject Identifier="6C0E2F1A-0000-0000-0000-000000000000" Version="2.0" Creator="SCRMAC-3.2.3">
    <Binder>
        <BinderItem UUID="{DRAFT_UUID}" Type="DraftFolder" Created="2023-01-01 10:00:00 +0000">
            <Title>Draft</Title>
            <Children>
                <BinderItem UUID="{CHAPTER_ONE_UUID}" Type="Folder">
                    <Title>Chapter One</Title>
                    <Children>
                        <BinderItem UUID="{SCENE_A_UUID}" Type="Text">
                            <Title>Scene A</Title>
                        </BinderItem>
                        <BinderItem UUID="{SCENE_B_UUID}" Type="Text">
                            <Title>Scene B</Title>
                        </BinderItem>
                    </Children>
                </BinderItem>
                <BinderItem UUID="{CHAPTER_TWO_UUID}" Type="Text">
                    <Title>Chapter Two</Title>
                </BinderItem>
            </Children>
        </BinderItem>
        <BinderItem UUID="{RESEARCH_UUID}" Type="ResearchFolder">
            <Title>Research</Title>
            <Children>
                <BinderItem UUID="{BACKGROUND_UUID}" Type="Text">
                    <Title>Background</Title>
                </BinderItem>
                <BinderItem UUID="{PHOTO_UUID}" Type="Image">
                    <Title>Photo</Title>
                </BinderItem>
            </Children>
        </BinderItem>
        <BinderItem UUID="{TRASH_UUID}" Type="TrashFolder">
            <Title>Trash</Title>
            <Children>
                <BinderItem UUID="{DELETED_UUID}" Type="Text">
                    <Title>Deleted</Title>
                </BinderItem>
            </Children>
        </BinderItem>
    </Binder>
</ScrivenerProject>
"""

SCENE_A_RTF = (
    rb"{\rtf1\ansi\ansicpg1252\cocoartf2639"
    rb"{\fonttbl\f0\fswiss\fcharset0 Helvetica;}"
    rb"{\colortbl;\red255\green255\blue255;}"
    b"\n"
    rb"\f0\fs24 It was a dark night.{\*\annotation check the weather} The end.\par\par\par "
    rb"Second paragraph.}"
)

SCENE_A_NOTES_RTF = rb"{\rtf1\ansi Remember the dog.}"

SCENE_A_COMMENTS = b"""<?xml version="1.0" encoding="UTF-8"?>
<Comments Version="1.0">
    <Comment ID="C0FFEE00-0000-0000-0000-000000000001" Footnote="No"><![CDATA[{\\rtf1\\ansi Needs a stronger verb.}]]></Comment>
    <Comment ID="C0FFEE00-0000-0000-0000-000000000002" Footnote="No"><![CDATA[{\\rtf1\\ansi Check dates.}]]></Comment>
</Comments>
"""

# Scrivener writes its annotation markers as escaped text
SCENE_B_RTF = (
    rb"{\rtf1\ansi Before \{\\Scrv_annot \\color=\{\\R=1\\G=0\\B=0\} "
    rb"\\text=Fix this\\end_Scrv_annot\} after.}"
)

CHAPTER_TWO_RTF = (
    rb"{\rtf1\ansi <$Scr_Ps::0>Chapter two text<!$Scr_Ps::0>{\footnote A footnote.}\par}"
)


def write_v3_bundle(root: Path) -> Path:
    """Write the Scrivener 3 sample project under `root`; return the bundle dir."""
    bundle = root / "Novel.scriv"
    bundle.mkdir(parents=True)
    (bundle / "Novel.scrivx").write_text(SCRIVX_V3, encoding="utf-8")

    def put(uuid: str, name: str, data: bytes) -> None:
        folder = bundle / "Files" / "Data" / uuid
        folder.mkdir(parents=True, exist_ok=True)
        (folder / name).write_bytes(data)

    put(SCENE_A_UUID, "content.rtf", SCENE_A_RTF)
    put(SCENE_A_UUID, "notes.rtf", SCENE_A_NOTES_RTF)
    put(SCENE_A_UUID, "synopsis.txt", "Night falls.  \n".encode("utf-8"))
    put(SCENE_A_UUID, "content.comments", SCENE_A_COMMENTS)
    put(SCENE_B_UUID, "content.rtf", SCENE_B_RTF)
    put(CHAPTER_TWO_UUID, "content.rtf", CHAPTER_TWO_RTF)
    put(BACKGROUND_UUID, "content.rtf", rb"{\rtf1\ansi Notes on the period.}")
    put(PHOTO_UUID, "content.jpg", b"\xff\xd8\xff\xe0")
    put(DELETED_UUID, "content.rtf", rb"{\rtf1\ansi Cut scene.}")
    return bundle


# ──────────────────────────────────────────────────────────────
# Scrivener 2 sample project
# ──────────────────────────────────────────────────────────────

SCRIVX_V2 = """<?xml version="1.0" encoding="UTF-8"?>
<ScrivenerProject Version="1.0" Creator="SCRMAC-2.9">
    <Binder>
        <BinderItem ID="0" Type="DraftFolder">
            <Title>Manuscript</Title>
            <Children>
                <BinderItem ID="3" Type="Text">
                    <Title>Opening</Title>
                </BinderItem>
                <BinderItem ID="4" Type="Text">
                    <Title>Middle</Title>
                </BinderItem>
            </Children>
        </BinderItem>
        <BinderItem ID="1" Type="ResearchFolder">
            <Title>Research</Title>
        </BinderItem>
        <BinderItem ID="2" Type="TrashFolder">
            <Title>Trash</Title>
        </BinderItem>
    </Binder>
</ScrivenerProject>
"""


def write_v2_bundle(root: Path) -> Path:
    """Write the Scrivener 2 sample project under `root`; return the bundle dir."""
    bundle = root / "Legacy.scriv"
    docs = bundle / "Files" / "Docs"
    docs.mkdir(parents=True)
    (bundle / "Legacy.scrivx").write_text(SCRIVX_V2, encoding="utf-8")
    (docs / "3.rtf").write_bytes(rb"{\rtf1\mac Caf\'8e society.}")
    (docs / "3_notes.rtf").write_bytes(rb"{\rtf1\ansi Old note.}")
    (docs / "3_synopsis.txt").write_bytes("Arrival.\n".encode("utf-8"))
    (docs / "4.rtf").write_bytes(rb"{\rtf1\ansi Middle text.}")
    return bundle


# ──────────────────────────────────────────────────────────────
# In-memory loader
# ──────────────────────────────────────────────────────────────


class MemoryLoader:
    """Content loader backed by a dict of (content key, file) → bytes."""

    def __init__(self, files: dict[tuple[str, ContentFile], bytes] | None = None) -> None:
        self.contents = dict(files or {})
        self.failing: set[tuple[str, ContentFile]] = set()

    def files(self, node: BinderNode) -> set[ContentFile]:
        return {f for key, f in self.contents if key == node.content_key}

    def read(self, node: BinderNode, file: ContentFile) -> bytes | None:
        if (node.content_key, file) in self.failing:
            raise PermissionError(f"denied: {node.content_key}/{file.value}")
        return self.contents.get((node.content_key, file))


# ──────────────────────────────────────────────────────────────
# Fixtures
# ──────────────────────────────────────────────────────────────


@pytest.fixture
def v3_bundle(tmp_path) -> Path:
    """A Scrivener 3 bundle with draft, research and trash content."""
    return write_v3_bundle(tmp_path)


@pytest.fixture
def v2_bundle(tmp_path) -> Path:
    """A Scrivener 2 bundle using Files/Docs/<ID>.rtf naming."""
    return write_v2_bundle(tmp_path)


@pytest.fixture
def small_tree() -> ProjectTree:
    """
    Draft(A(B(D), C)), Research(R), Trash(T) built from manifest entries.
    """
    entries = [
        ManifestEntry("draft", "Draft", NodeKind.FOLDER, role="draft"),
        ManifestEntry("A", "Part A", NodeKind.FOLDER, parent="draft"),
        ManifestEntry("B", "Doc B", NodeKind.DOCUMENT, parent="A"),
        ManifestEntry("D", "Doc D", NodeKind.DOCUMENT, parent="B"),
        ManifestEntry("C", "Doc C", NodeKind.DOCUMENT, parent="A"),
        ManifestEntry("research", "Research", NodeKind.FOLDER, role="research"),
        ManifestEntry("R", "Doc R", NodeKind.DOCUMENT, parent="research"),
        ManifestEntry("trash", "Trash", NodeKind.TRASH, role="trash"),
        ManifestEntry("T", "Doc T", NodeKind.DOCUMENT, parent="trash"),
    ]
    return ProjectTree.from_entries(entries, title="Small")


@pytest.fixture
def memory_loader() -> MemoryLoader:
    """Loader with body content for every document in small_tree."""
    return MemoryLoader({
        ("B", ContentFile.CONTENT): rb"{\rtf1\ansi Text of B.}",
        ("D", ContentFile.CONTENT): rb"{\rtf1\ansi Text of D.}",
        ("C", ContentFile.CONTENT): rb"{\rtf1\ansi Text of C.}",
        ("R", ContentFile.CONTENT): rb"{\rtf1\ansi Text of R.}",
        ("T", ContentFile.CONTENT): rb"{\rtf1\ansi Text of T.}",
    })
