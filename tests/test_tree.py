"""Tests for archive listing tree rendering."""

import pytest

from stz.core.tree import (
    ArchiveEntry,
    iter_tree_lines,
    normalize_entry,
    render_tree,
    sort_entries,
)


class TestNormalizeEntry:
    """Tests for normalize_entry."""

    @pytest.mark.parametrize(
        "raw, path, is_dir",
        [
            ("etc/nginx/", "etc/nginx", True),
            ("./etc/nginx/nginx.conf", "etc/nginx/nginx.conf", False),
            ("./", "", False),
            (".", "", False),
            ("etc/hosts\n", "etc/hosts", False),
        ],
    )
    def test_normalize(self, raw, path, is_dir):
        entry = normalize_entry(raw)
        assert entry.path == path
        assert entry.is_dir is is_dir


class TestArchiveEntry:
    def test_properties(self):
        entry = ArchiveEntry("etc/nginx/nginx.conf")
        assert entry.segments == ["etc", "nginx", "nginx.conf"]
        assert entry.depth == 3
        assert entry.parent == "etc/nginx"
        assert entry.name == "nginx.conf"

    def test_top_level_parent(self):
        assert ArchiveEntry("etc", is_dir=True).parent == ""


class TestSortEntries:
    def test_children_follow_parent(self):
        """Plain string sorting would put 'a-b' between 'a/' and 'a/x'."""
        paths = ["a-b", "a/x", "a/"]
        assert sort_entries(paths) == ["a/", "a/x", "a-b"]

    def test_leading_dot_slash_ignored(self):
        assert sort_entries(["./b", "a"]) == ["a", "./b"]


class TestRenderTree:
    """Tests for iter_tree_lines and render_tree."""

    def test_single_directory(self):
        lines = list(iter_tree_lines(["a/", "a/b", "a/c"]))
        assert lines == ["└─ a/", "  ├─ b", "  └─ c"]

    def test_nginx_listing(self):
        """A directory followed by its own children is drawn as terminal."""
        paths = [
            "etc/",
            "etc/nginx/",
            "etc/nginx/mime.types",
            "etc/nginx/nginx.conf",
            "var/",
            "var/www/",
            "var/www/index.html",
        ]
        assert render_tree(paths) == "\n".join(
            [
                "└─ etc/",
                "  └─ nginx/",
                "    ├─ mime.types",
                "    └─ nginx.conf",
                "└─ var/",
                "  └─ www/",
                "    └─ index.html",
            ]
        )

    def test_empty_entries_skipped(self):
        assert list(iter_tree_lines(["./", "", "./a"])) == ["└─ a"]

    def test_dot_slash_prefix_stripped(self):
        assert list(iter_tree_lines(["./x/", "./x/y"])) == ["└─ x/", "  └─ y"]

    def test_order_preserved(self):
        """The renderer never sorts; that is sort_entries' job."""
        assert list(iter_tree_lines(["b", "a", "a/x"])) == ["├─ b", "└─ a", "  └─ x"]

    def test_empty_listing(self):
        assert render_tree([]) == ""

    def test_names_with_spaces(self):
        assert list(iter_tree_lines(["d/", "d/with space.txt"])) == [
            "└─ d/",
            "  └─ with space.txt",
        ]
