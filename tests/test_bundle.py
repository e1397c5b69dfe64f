"""Tests for bundle location and content file resolution."""

from pathlib import Path

import pytest

from scry.bundle import Bundle, ContentFile, locate_project_file
from scry.manifest import load_tree

from conftest import BACKGROUND_UUID, CHAPTER_ONE_UUID, PHOTO_UUID, SCENE_A_UUID, SCENE_B_UUID


class TestLocateProjectFile:
    """Resolving user paths to a manifest."""

    def test_bundle_directory(self, v3_bundle: Path) -> None:
        assert locate_project_file(v3_bundle) == v3_bundle / "Novel.scrivx"

    def test_scrivx_file(self, v3_bundle: Path) -> None:
        path = v3_bundle / "Novel.scrivx"
        assert locate_project_file(path) == path

    def test_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "manifest.json"
        path.write_text("{}", encoding="utf-8")
        assert locate_project_file(path) == path

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            locate_project_file(tmp_path / "nothing.scriv")

    def test_directory_without_project(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="scrivx"):
            locate_project_file(tmp_path)

    def test_wrong_file_type(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("hello", encoding="utf-8")
        with pytest.raises(FileNotFoundError):
            locate_project_file(path)

    def test_prefers_file_named_after_bundle(self, tmp_path: Path) -> None:
        bundle = tmp_path / "Book.scriv"
        bundle.mkdir()
        (bundle / "Another.scrivx").write_text("<x/>", encoding="utf-8")
        (bundle / "Book.scrivx").write_text("<x/>", encoding="utf-8")
        assert locate_project_file(bundle).name == "Book.scrivx"


class TestScrivener3Layout:
    """Files/Data/<UUID>/ layout."""

    def test_not_legacy(self, v3_bundle: Path) -> None:
        assert Bundle(v3_bundle).legacy is False

    def test_files_for_document(self, v3_bundle: Path) -> None:
        tree = load_tree(v3_bundle / "Novel.scrivx")
        bundle = Bundle(v3_bundle)
        assert bundle.files(tree.find(SCENE_A_UUID)) == set(ContentFile)
        assert bundle.files(tree.find(SCENE_B_UUID)) == {ContentFile.CONTENT}

    def test_folder_without_files(self, v3_bundle: Path) -> None:
        tree = load_tree(v3_bundle / "Novel.scrivx")
        assert Bundle(v3_bundle).files(tree.find(CHAPTER_ONE_UUID)) == set()

    def test_non_rtf_content_ignored(self, v3_bundle: Path) -> None:
        tree = load_tree(v3_bundle / "Novel.scrivx")
        assert Bundle(v3_bundle).files(tree.find(PHOTO_UUID)) == set()

    def test_read(self, v3_bundle: Path) -> None:
        tree = load_tree(v3_bundle / "Novel.scrivx")
        data = Bundle(v3_bundle).read(tree.find(BACKGROUND_UUID), ContentFile.CONTENT)
        assert data == rb"{\rtf1\ansi Notes on the period.}"

    def test_read_missing_returns_none(self, v3_bundle: Path) -> None:
        tree = load_tree(v3_bundle / "Novel.scrivx")
        assert Bundle(v3_bundle).read(tree.find(SCENE_B_UUID), ContentFile.NOTES) is None

    def test_content_path(self, v3_bundle: Path) -> None:
        tree = load_tree(v3_bundle / "Novel.scrivx")
        node = tree.find(SCENE_B_UUID)
        path = Bundle(v3_bundle).path_for(node, ContentFile.CONTENT)
        assert path == v3_bundle / "Files" / "Data" / SCENE_B_UUID / "content.rtf"

    def test_for_project(self, v3_bundle: Path) -> None:
        assert Bundle.for_project(v3_bundle / "Novel.scrivx").root == v3_bundle


class TestScrivener2Layout:
    """Files/Docs/<ID>.rtf layout."""

    def test_legacy_detected(self, v2_bundle: Path) -> None:
        assert Bundle(v2_bundle).legacy is True

    def test_files(self, v2_bundle: Path) -> None:
        tree = load_tree(v2_bundle / "Legacy.scrivx")
        bundle = Bundle(v2_bundle)
        assert bundle.files(tree.find("3")) == {
            ContentFile.CONTENT, ContentFile.NOTES, ContentFile.SYNOPSIS,
        }
        assert bundle.files(tree.find("4")) == {ContentFile.CONTENT}

    def test_paths(self, v2_bundle: Path) -> None:
        tree = load_tree(v2_bundle / "Legacy.scrivx")
        bundle = Bundle(v2_bundle)
        node = tree.find("3")
        docs = v2_bundle / "Files" / "Docs"
        assert bundle.path_for(node, ContentFile.CONTENT) == docs / "3.rtf"
        assert bundle.path_for(node, ContentFile.NOTES) == docs / "3_notes.rtf"
        assert bundle.path_for(node, ContentFile.SYNOPSIS) == docs / "3_synopsis.txt"
        assert bundle.path_for(node, ContentFile.COMMENTS) == docs / "3.comments"
