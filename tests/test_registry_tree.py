# Copyright 2026 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.

"""Tests for the registry trie and its serialized form."""

import pytest

from plugin_resolver.codebase.registry_tree import (
    TYPE_KEY,
    NodeKind,
    RegistryNode,
    RegistryTree,
    SourcePosition,
    SourceRange,
)

SERVICE_PATH = ("server", "plugins", "core-services", "EldService")


def make_node(name: str, file_path: str = "/ws/eld-service.js", start: int = 0) -> RegistryNode:
    return RegistryNode(
        path=file_path,
        name=name,
        start=start,
        end=start + 10,
        loc=SourceRange(
            start=SourcePosition(line=1, column=0),
            end=SourcePosition(line=2, column=2),
        ),
    )


class TestAddAndGet:
    """add_node / get_node behavior."""

    def test_get_returns_added_node(self):
        tree = RegistryTree()
        node = make_node("checkEldPermission")
        tree.add_node(SERVICE_PATH + ("checkEldPermission",), node)

        assert tree.get_node(SERVICE_PATH + ("checkEldPermission",)) == node

    def test_empty_path_is_rejected(self):
        with pytest.raises(ValueError):
            RegistryTree().add_node([], make_node("x"))

    def test_branch_path_has_no_node(self):
        tree = RegistryTree()
        tree.add_node(SERVICE_PATH + ("checkEldPermission",), make_node("checkEldPermission"))

        assert tree.get_node(SERVICE_PATH) is None
        assert tree.get_subtree(SERVICE_PATH).kind is NodeKind.BRANCH

    def test_missing_path(self):
        assert RegistryTree().get_node(("server", "nothing")) is None

    def test_add_replaces_existing_leaf(self):
        tree = RegistryTree()
        path = SERVICE_PATH + ("check",)
        tree.add_node(path, make_node("check", start=0))
        tree.add_node(path, make_node("check", start=50))

        assert tree.get_node(path).start == 50

    def test_add_below_leaf_turns_it_into_branch(self):
        tree = RegistryTree()
        tree.add_node(("a", "b"), make_node("b"))
        tree.add_node(("a", "b", "c"), make_node("c"))

        assert tree.get_node(("a", "b", "c")).name == "c"

    def test_node_is_immutable(self):
        node = make_node("check")
        with pytest.raises(Exception):
            node.start = 5


class TestMerge:
    """Merge semantics."""

    def test_disjoint_merge_is_order_independent(self):
        left = RegistryTree()
        left.add_node(SERVICE_PATH + ("a",), make_node("a"))
        right = RegistryTree()
        right.add_node(("server", "plugins", "core-models", "Driver"), make_node("Driver"))

        first = RegistryTree()
        first.merge(left)
        first.merge(right)
        second = RegistryTree()
        second.merge(right)
        second.merge(left)

        assert {path for path, _ in first.iter_leaves()} == {path for path, _ in second.iter_leaves()}
        assert first.leaf_count() == 2

    def test_branches_merge_recursively(self):
        tree = RegistryTree()
        tree.add_node(SERVICE_PATH + ("a",), make_node("a"))
        other = RegistryTree()
        other.add_node(SERVICE_PATH + ("b",), make_node("b"))

        tree.merge(other)

        assert tree.get_subtree(SERVICE_PATH).keys() == ["a", "b"]

    def test_incoming_leaf_wins_on_collision(self):
        tree = RegistryTree()
        tree.add_node(SERVICE_PATH + ("a",), make_node("a", start=1))
        other = RegistryTree()
        other.add_node(SERVICE_PATH + ("a",), make_node("a", start=99))

        tree.merge(other)

        assert tree.get_node(SERVICE_PATH + ("a",)).start == 99

    def test_incoming_branch_replaces_leaf(self):
        tree = RegistryTree()
        tree.add_node(("a", "b"), make_node("b"))
        other = RegistryTree()
        other.add_node(("a", "b", "c"), make_node("c"))

        tree.merge(other)

        assert tree.get_node(("a", "b", "c")).name == "c"

    def test_merged_tree_does_not_share_branches(self):
        tree = RegistryTree()
        other = RegistryTree()
        other.add_node(SERVICE_PATH + ("a",), make_node("a"))

        tree.merge(other)
        update = RegistryTree()
        update.add_node(SERVICE_PATH + ("b",), make_node("b"))
        tree.merge(update)

        assert tree.get_subtree(SERVICE_PATH).keys() == ["a", "b"]
        assert other.get_subtree(SERVICE_PATH).keys() == ["a"]

    def test_merging_leaf_root_raises(self):
        with pytest.raises(ValueError):
            RegistryTree().merge(RegistryTree(make_node("x")))


class TestSerialization:
    """to_serializable / from_serializable."""

    def test_round_trip(self):
        tree = RegistryTree()
        tree.add_node(SERVICE_PATH + ("a",), make_node("a"))
        tree.add_node(SERVICE_PATH + ("b",), make_node("b", start=20))

        restored = RegistryTree.from_serializable(tree.to_serializable())

        assert restored == tree
        assert restored.get_subtree(SERVICE_PATH).keys() == ["a", "b"]

    def test_leaf_fields_are_inlined(self):
        tree = RegistryTree()
        tree.add_node(("server", "x"), make_node("x"))

        data = tree.to_serializable()
        leaf = data["server"]["x"]

        assert data[TYPE_KEY] == "branch"
        assert leaf[TYPE_KEY] == "leaf"
        assert leaf["path"] == "/ws/eld-service.js"
        assert set(leaf) == {TYPE_KEY, "path", "name", "start", "end", "loc"}

    def test_untagged_mapping_reads_as_branch(self):
        data = {"server": {"x": {TYPE_KEY: "leaf", "path": "f.js", "name": "x", "start": 0, "end": 1}}}

        tree = RegistryTree.from_serializable(data)

        assert tree.get_node(("server", "x")).file_path == "f.js"

    def test_malformed_entry_raises(self):
        with pytest.raises(ValueError):
            RegistryTree.from_serializable({"server": 5})


class TestChangeKeyAtLevel:
    """Key rebinding."""

    def test_rebinds_root_key_in_place(self):
        tree = RegistryTree()
        tree.add_node(("first", "x"), make_node("x"))
        tree.add_node(("server", "plugins", "y"), make_node("y"))
        tree.add_node(("last", "z"), make_node("z"))

        assert tree.change_key_at_level(0, "server", "root") == 1
        assert tree.keys() == ["first", "root", "last"]
        assert tree.get_node(("root", "plugins", "y")).name == "y"

    def test_rebinds_every_branch_at_depth(self):
        tree = RegistryTree()
        tree.add_node(("a", "old", "x"), make_node("x"))
        tree.add_node(("b", "old", "y"), make_node("y"))

        assert tree.change_key_at_level(1, "old", "new") == 2
        assert tree.get_node(("a", "new", "x")) is not None
        assert tree.get_node(("b", "new", "y")) is not None

    def test_missing_key_is_a_no_op(self):
        tree = RegistryTree()
        tree.add_node(("server", "x"), make_node("x"))

        assert tree.change_key_at_level(0, "nothing", "other") == 0
        assert tree.keys() == ["server"]


class TestCopiesAndPruning:
    """copy, shallow_copy and prune_file."""

    def test_copy_is_independent(self):
        tree = RegistryTree()
        tree.add_node(SERVICE_PATH + ("a",), make_node("a"))
        clone = tree.copy()
        clone.add_node(SERVICE_PATH + ("b",), make_node("b"))

        assert tree.get_node(SERVICE_PATH + ("b",)) is None

    def test_shallow_copy_rebinding_leaves_original(self):
        tree = RegistryTree()
        tree.add_node(("server", "plugins", "x"), make_node("x"))
        view = tree.shallow_copy()
        view.change_key_at_level(0, "server", "srv")

        assert tree.keys() == ["server"]
        assert view.get_node(("srv", "plugins", "x")) is not None

    def test_prune_file_drops_leaves_and_empty_branches(self):
        tree = RegistryTree()
        tree.add_node(SERVICE_PATH + ("a",), make_node("a", file_path="/ws/eld-service.js"))
        tree.add_node(("server", "plugins", "core-models", "Driver"), make_node("Driver", file_path="/ws/driver-model.js"))

        removed = tree.prune_file("/ws/eld-service.js")

        assert removed == 1
        assert tree.get_subtree(("server", "plugins", "core-services")) is None
        assert tree.get_node(("server", "plugins", "core-models", "Driver")) is not None

    def test_iter_leaves_in_insertion_order(self):
        tree = RegistryTree()
        tree.add_node(SERVICE_PATH + ("b",), make_node("b"))
        tree.add_node(SERVICE_PATH + ("a",), make_node("a"))

        assert [path[-1] for path, _ in tree.iter_leaves()] == ["b", "a"]
