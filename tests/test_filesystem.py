"""Tests for webide.filesystem — VirtualFileSystem.

Covers:
- Seeding from a nested tree (dicts and models) and round-tripping to_tree()
- resolve() / read_content() including wrong-kind and empty-segment paths
- write_content() no-op semantics and snapshot stability
- create / rename / delete, including the rejected cases
- Listing order (storage order vs display order)
"""

from __future__ import annotations

import pytest

from webide.contracts import FileNode, FolderNode
from webide.defaults import INITIAL_FILE_SYSTEM
from webide.errors import InvalidOperation, PathNotFound
from webide.filesystem import (
    FileEntry,
    VirtualFileSystem,
    is_under,
    join_path,
    normalise_path,
    split_path,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def vfs() -> VirtualFileSystem:
    return VirtualFileSystem(INITIAL_FILE_SYSTEM)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


class TestPathHelpers:
    def test_normalise_skips_empty_segments(self):
        assert normalise_path("/src//App.tsx/") == "src/App.tsx"
        assert normalise_path("") == ""
        assert normalise_path("///") == ""

    def test_split_and_join(self):
        assert split_path("src/App.tsx") == ("src", "App.tsx")
        assert split_path("README.md") == ("", "README.md")
        assert join_path("", "a") == "a"
        assert join_path("src", "a") == "src/a"

    def test_is_under(self):
        assert is_under("src/App.tsx", "src")
        assert is_under("src", "src")
        assert not is_under("srcs/x", "src")


# ---------------------------------------------------------------------------
# Seeding / views
# ---------------------------------------------------------------------------


class TestSeeding:
    def test_round_trip(self, vfs):
        tree = vfs.to_tree()
        assert list(tree) == ["README.md", "src", "package.json"]
        assert isinstance(tree["src"], FolderNode)
        assert list(tree["src"].children) == ["App.tsx", "index.css"]

    def test_accepts_models(self):
        vfs = VirtualFileSystem({"a": FolderNode(children={"b.txt": FileNode(content="hi")})})
        assert vfs.read_content("a/b.txt") == "hi"

    def test_empty(self):
        vfs = VirtualFileSystem()
        assert vfs.to_tree() == {}
        assert vfs.list_children() == []

    def test_rejects_slash_in_name(self):
        with pytest.raises(InvalidOperation):
            VirtualFileSystem({"a/b": {"type": "file", "content": ""}})

    def test_walk_files(self, vfs):
        paths = [path for path, _ in vfs.walk_files()]
        assert paths == ["README.md", "src/App.tsx", "src/index.css", "package.json"]


# ---------------------------------------------------------------------------
# resolve / read
# ---------------------------------------------------------------------------


class TestResolve:
    def test_file(self, vfs):
        node = vfs.resolve("README.md")
        assert isinstance(node, FileNode)
        assert node.content.startswith("# VS Code Web Edition")

    def test_folder(self, vfs):
        node = vfs.resolve("src")
        assert isinstance(node, FolderNode)
        assert set(node.children) == {"App.tsx", "index.css"}

    def test_empty_path_is_root(self, vfs):
        node = vfs.resolve("")
        assert isinstance(node, FolderNode)
        assert "README.md" in node.children

    def test_empty_segments_skipped(self, vfs):
        assert vfs.resolve("/src//App.tsx") is not None

    def test_missing(self, vfs):
        assert vfs.resolve("nope") is None
        assert vfs.resolve("src/nope") is None

    def test_through_a_file(self, vfs):
        assert vfs.resolve("README.md/child") is None

    def test_read_content_of_folder_is_none(self, vfs):
        assert vfs.read_content("src") is None
        assert vfs.read_content("missing") is None

    def test_kind(self, vfs):
        assert vfs.kind("src") == "folder"
        assert vfs.kind("src/App.tsx") == "file"
        assert vfs.kind("") == "folder"
        assert vfs.kind("nope") is None


# ---------------------------------------------------------------------------
# write_content
# ---------------------------------------------------------------------------


class TestWriteContent:
    @pytest.mark.parametrize("content", ["", "x", "multi\nline\n", "ünïcödé"])
    def test_read_after_write(self, vfs, content):
        assert vfs.write_content("src/App.tsx", content) is True
        assert vfs.read_content("src/App.tsx") == content

    def test_folder_is_noop(self, vfs):
        before = vfs.snapshot()
        assert vfs.write_content("src", "x") is False
        assert vfs.snapshot() == before

    def test_missing_is_noop(self, vfs):
        assert vfs.write_content("nope.txt", "x") is False
        assert not vfs.exists("nope.txt")

    def test_old_snapshot_unchanged(self, vfs):
        before = vfs.snapshot()
        vfs.write_content("README.md", "changed")
        assert before["README.md"] == FileEntry(INITIAL_FILE_SYSTEM["README.md"]["content"])
        assert vfs.snapshot()["README.md"] == FileEntry("changed")

    def test_untouched_entries_are_shared(self, vfs):
        before = vfs.snapshot()
        vfs.write_content("README.md", "changed")
        assert vfs.snapshot()["src/App.tsx"] is before["src/App.tsx"]


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


class TestCreate:
    def test_create_file_at_root(self, vfs):
        assert vfs.create_file("notes.txt", "hello") == "notes.txt"
        assert vfs.read_content("notes.txt") == "hello"
        assert [c.name for c in vfs.list_children()][-1] == "notes.txt"

    def test_create_file_default_content(self, vfs):
        vfs.create_file("src/new.ts")
        assert vfs.read_content("src/new.ts") == ""

    def test_create_folder_then_file(self, vfs):
        vfs.create_folder("src/components")
        vfs.create_file("src/components/Button.tsx", "export {}")
        assert vfs.kind("src/components") == "folder"
        assert vfs.read_content("src/components/Button.tsx") == "export {}"

    def test_missing_parent(self, vfs):
        with pytest.raises(PathNotFound):
            vfs.create_file("lib/x.py")

    def test_parent_is_file(self, vfs):
        with pytest.raises(PathNotFound):
            vfs.create_folder("README.md/sub")

    def test_existing_name_not_overwritten(self, vfs):
        with pytest.raises(InvalidOperation):
            vfs.create_file("README.md", "clobber")
        assert vfs.read_content("README.md").startswith("# VS Code")

    def test_folder_over_existing_file(self, vfs):
        with pytest.raises(InvalidOperation):
            vfs.create_folder("package.json")

    def test_empty_name(self, vfs):
        with pytest.raises(InvalidOperation):
            vfs.create_file("")


# ---------------------------------------------------------------------------
# rename
# ---------------------------------------------------------------------------


class TestRename:
    def test_rename_file(self, vfs):
        content = vfs.read_content("src/index.css")
        assert vfs.rename("src/index.css", "main.css") == "src/main.css"
        assert vfs.read_content("src/main.css") == content
        assert not vfs.exists("src/index.css")

    def test_keeps_position(self, vfs):
        vfs.rename("src/App.tsx", "Main.tsx")
        assert [c.name for c in vfs.list_children("src")] == ["Main.tsx", "index.css"]

    def test_rename_folder_moves_descendants(self, vfs):
        assert vfs.rename("src", "lib") == "lib"
        assert vfs.read_content("lib/App.tsx") is not None
        assert vfs.resolve("src") is None
        assert [c.name for c in vfs.list_children()] == ["README.md", "lib", "package.json"]

    @pytest.mark.parametrize("new_name", ["", "App.tsx"])
    def test_noop_names(self, vfs, new_name):
        before = vfs.snapshot()
        assert vfs.rename("src/App.tsx", new_name) == "src/App.tsx"
        assert vfs.snapshot() == before

    def test_duplicate_sibling(self, vfs):
        with pytest.raises(InvalidOperation):
            vfs.rename("src/App.tsx", "index.css")
        assert vfs.exists("src/App.tsx")

    def test_slash_in_new_name(self, vfs):
        with pytest.raises(InvalidOperation):
            vfs.rename("README.md", "docs/README.md")

    def test_missing_source(self, vfs):
        with pytest.raises(PathNotFound):
            vfs.rename("nope", "x")


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


class TestDelete:
    def test_delete_file(self, vfs):
        assert vfs.delete("package.json") == ["package.json"]
        assert vfs.resolve("package.json") is None
        assert "package.json" not in [c.name for c in vfs.list_children()]

    def test_delete_subtree(self, vfs):
        removed = vfs.delete("src")
        assert set(removed) == {"src", "src/App.tsx", "src/index.css"}
        assert all(not vfs.exists(p) for p in removed)

    def test_missing(self, vfs):
        with pytest.raises(PathNotFound):
            vfs.delete("ghost")

    def test_root_cannot_be_deleted(self, vfs):
        with pytest.raises(PathNotFound):
            vfs.delete("")


# ---------------------------------------------------------------------------
# Listing order
# ---------------------------------------------------------------------------


class TestListing:
    def test_storage_order(self, vfs):
        assert [c.name for c in vfs.list_children()] == ["README.md", "src", "package.json"]

    def test_display_order_folders_first(self, vfs):
        assert [c.name for c in vfs.sorted_children()] == ["src", "README.md", "package.json"]

    def test_display_order_case_sensitive(self):
        vfs = VirtualFileSystem(
            {
                "b.txt": {"type": "file"},
                "B.txt": {"type": "file"},
                "a.txt": {"type": "file"},
                "zeta": {"type": "folder"},
                "Alpha": {"type": "folder"},
            }
        )
        names = [c.name for c in vfs.sorted_children()]
        assert names == ["Alpha", "zeta", "B.txt", "a.txt", "b.txt"]

    def test_listing_a_file_is_none(self, vfs):
        assert vfs.list_children("README.md") is None
        assert vfs.sorted_children("missing") is None

    def test_node_info_paths(self, vfs):
        infos = vfs.list_children("src")
        assert [(i.path, i.kind) for i in infos] == [
            ("src/App.tsx", "file"),
            ("src/index.css", "file"),
        ]
