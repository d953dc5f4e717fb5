"""Tests for the dot-path codec over catalog trees."""

from __future__ import annotations

import copy

import pytest
from hypothesis import event, given
from hypothesis import strategies as st

from i18nvault.core.paths import (
    count_leaves,
    delete_path,
    enumerate_leaves,
    get_path,
    is_group,
    is_valid_path,
    join_path,
    leaf_prefix,
    leaf_map,
    mirror_tree,
    namespace_leaves,
    set_path,
    split_path,
)
from tests.strategies import catalog_trees, key_paths, leaf_values

TREE = {
    "Nav": {"home": "Home", "menu": {"open": "Open", "close": "Close"}},
    "Footer": {"copyright": "(c)"},
}


class TestSplitAndJoin:
    """Path validation and joining."""

    @pytest.mark.parametrize("path", ["", ".", "a.", ".a", "a..b"])
    def test_malformed_paths_rejected(self, path: str) -> None:
        """Empty paths and empty segments are invalid."""
        assert split_path(path) is None
        assert is_valid_path(path) is False

    def test_split_valid_path(self) -> None:
        """A valid path splits into its segments."""
        assert split_path("Nav.menu.open") == ("Nav", "menu", "open")

    def test_join_skips_empty_parts(self) -> None:
        """Empty parts do not produce empty segments."""
        assert join_path("Nav", "", "home") == "Nav.home"

    @given(key_paths())
    def test_join_inverts_split(self, path: str) -> None:
        """join_path(*split_path(p)) == p for valid paths."""
        segments = split_path(path)
        assert segments is not None
        event(f"depth={len(segments)}")
        assert join_path(*segments) == path


class TestGetPath:
    """Reading leaves and groups."""

    def test_get_leaf(self) -> None:
        """A leaf path returns its string."""
        assert get_path(TREE, "Nav.menu.open") == "Open"

    def test_get_group(self) -> None:
        """A group path returns the nested mapping."""
        node = get_path(TREE, "Nav.menu")
        assert is_group(node)
        assert node == {"open": "Open", "close": "Close"}

    @pytest.mark.parametrize("path", ["Nav.missing", "Nav.home.deeper", "Nope", "Nav..home"])
    def test_absent_or_malformed_returns_none(self, path: str) -> None:
        """Missing keys, paths through a leaf and malformed paths give None."""
        assert get_path(TREE, path) is None


class TestSetPath:
    """Writing leaves."""

    def test_creates_intermediate_groups(self) -> None:
        """Missing groups are created on the way down."""
        tree: dict[str, object] = {}
        set_path(tree, "Nav.menu.open", "Open")
        assert tree == {"Nav": {"menu": {"open": "Open"}}}

    def test_overwrites_existing_leaf(self) -> None:
        """An existing leaf is replaced."""
        tree = copy.deepcopy(TREE)
        set_path(tree, "Nav.home", "Start")
        assert get_path(tree, "Nav.home") == "Start"

    def test_malformed_path_is_noop(self) -> None:
        """A malformed path leaves the tree untouched."""
        tree = copy.deepcopy(TREE)
        set_path(tree, "Nav..home", "x")
        assert tree == TREE

    @given(catalog_trees())
    def test_set_of_get_is_identity(self, tree: dict[str, object]) -> None:
        """Writing back the value read at any leaf path leaves the tree unchanged."""
        for path, _ in enumerate_leaves(tree):
            copied = copy.deepcopy(tree)
            value = get_path(copied, path)
            assert isinstance(value, str)
            set_path(copied, path, value)
            assert copied == tree

    @given(catalog_trees(), key_paths(), leaf_values())
    def test_get_after_set(self, tree: dict[str, object], path: str, value: str) -> None:
        """get_path returns what set_path just wrote."""
        set_path(tree, path, value)
        assert get_path(tree, path) == value


class TestLeafPrefix:
    """Finding a value that a longer path would run through."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("Nav.home.deeper", "Nav.home"),
            ("Nav.home.a.b", "Nav.home"),
            ("Footer.copyright.year", "Footer.copyright"),
            ("Nav.home", None),
            ("Nav.menu.open", None),
            ("Nav.menu.new", None),
            ("Nope.x", None),
            ("Nav..home", None),
        ],
    )
    def test_leaf_prefix(self, path: str, expected: str | None) -> None:
        """Only a proper prefix holding a string counts."""
        assert leaf_prefix(TREE, path) == expected

    @given(catalog_trees(), key_paths())
    def test_set_keeps_other_leaves_when_path_is_free(
        self, tree: dict[str, object], path: str
    ) -> None:
        """With nothing blocking the path, set_path removes no other leaf."""
        blocked = leaf_prefix(tree, path) is not None or is_group(get_path(tree, path))
        event(f"path_blocked={blocked}")
        if blocked:
            return
        before = {leaf for leaf, _ in enumerate_leaves(tree)} - {path}
        set_path(tree, path, "x")
        after = {leaf for leaf, _ in enumerate_leaves(tree)}
        assert before <= after


class TestDeletePath:
    """Removing leaves and pruning."""

    def test_prunes_emptied_groups(self) -> None:
        """Groups left empty below the namespace are removed."""
        tree = {"Nav": {"menu": {"open": "Open"}, "home": "Home"}}
        assert delete_path(tree, "Nav.menu.open") is True
        assert tree == {"Nav": {"home": "Home"}}

    def test_keeps_empty_namespace(self) -> None:
        """The namespace itself survives losing its last key."""
        tree = {"Nav": {"home": "Home"}}
        assert delete_path(tree, "Nav.home") is True
        assert tree == {"Nav": {}}

    def test_missing_path_returns_false(self) -> None:
        """Deleting an absent path reports False and changes nothing."""
        tree = copy.deepcopy(TREE)
        assert delete_path(tree, "Nav.missing") is False
        assert tree == TREE

    @given(catalog_trees())
    def test_delete_removes_exactly_one_leaf(self, tree: dict[str, object]) -> None:
        """Deleting a leaf lowers the leaf count by one."""
        leaves = enumerate_leaves(tree)
        if not leaves:
            return
        path, _ = leaves[0]
        before = count_leaves(tree)
        assert delete_path(tree, path) is True
        assert get_path(tree, path) is None
        assert count_leaves(tree) == before - 1


class TestLeafViews:
    """Flattened and mirrored views."""

    def test_leaf_map(self) -> None:
        """leaf_map flattens to full dot paths."""
        assert leaf_map(TREE) == {
            "Nav.home": "Home",
            "Nav.menu.open": "Open",
            "Nav.menu.close": "Close",
            "Footer.copyright": "(c)",
        }

    def test_non_string_values_are_not_leaves(self) -> None:
        """Numbers and lists are skipped."""
        tree = {"Ns": {"a": "A", "n": 3, "l": ["x"]}}
        assert leaf_map(tree) == {"Ns.a": "A"}  # type: ignore[arg-type]

    def test_namespace_leaves(self) -> None:
        """Leaves grouped by namespace with namespace-relative keys."""
        grouped = namespace_leaves({**TREE, "stray": "top-level"})
        assert grouped == {
            "Nav": {"home": "Home", "menu.open": "Open", "menu.close": "Close"},
            "Footer": {"copyright": "(c)"},
        }

    @given(catalog_trees())
    def test_mirror_keeps_structure(self, tree: dict[str, object]) -> None:
        """mirror_tree has the same leaf paths, every value empty."""
        mirrored = mirror_tree(tree)
        assert set(leaf_map(mirrored)) == set(leaf_map(tree))
        assert all(value == "" for value in leaf_map(mirrored).values())

    @given(st.dictionaries(st.sampled_from(["a", "b", "c"]), st.text(max_size=5)))
    def test_count_matches_enumeration(self, group: dict[str, str]) -> None:
        """count_leaves agrees with enumerate_leaves."""
        tree = {"Ns": group}
        assert count_leaves(tree) == len(enumerate_leaves(tree)) == len(group)
