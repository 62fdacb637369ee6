# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Registry tree: an ordered trie of plugin declarations.

Paths follow the plugin layout the indexed code registers onto its server
object, e.g. ``server -> plugins -> core-services -> EldService -> checkEldPermission``.
Each leaf carries a RegistryNode pointing at the declaration's byte range.

The serialized form is a nested mapping tagged with ``"__type__"``::

    {"__type__": "branch",
     "server": {"__type__": "branch", ...
        "checkEldPermission": {"__type__": "leaf", "path": "...", "name": "...",
                               "start": 120, "end": 410, "loc": {...}}}}
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

TYPE_KEY = "__type__"


class SourcePosition(BaseModel):
    """A position in a source file (1-based line, 0-based byte column)."""

    model_config = ConfigDict(frozen=True)

    line: int
    column: int


class SourceRange(BaseModel):
    """Start and end positions of a source span."""

    model_config = ConfigDict(frozen=True)

    start: SourcePosition
    end: SourcePosition


class RegistryNode(BaseModel):
    """A single declaration site.

    Serialized with the field names ``path``, ``name``, ``start``, ``end`` and ``loc``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_path: str = Field(alias="path")  # defining file
    name: str  # member (or model) name
    start: int  # byte offset
    end: int  # byte offset, exclusive
    loc: Optional[SourceRange] = None


class NodeKind(Enum):
    """Tag of a registry tree node."""

    BRANCH = "branch"
    LEAF = "leaf"


class RegistryTree:
    """Ordered trie keyed by path segments.

    A tree is either a branch (ordered children) or a leaf (one RegistryNode).
    """

    def __init__(self, node: Optional[RegistryNode] = None):
        self._node = node
        self.children: Dict[str, RegistryTree] = {}

    @property
    def kind(self) -> NodeKind:
        return NodeKind.LEAF if self._node is not None else NodeKind.BRANCH

    @property
    def is_leaf(self) -> bool:
        return self._node is not None

    @property
    def node(self) -> Optional[RegistryNode]:
        return self._node

    def __repr__(self) -> str:
        if self.is_leaf:
            return f"RegistryTree(leaf={self._node.name!r})"
        return f"RegistryTree(branch={list(self.children)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegistryTree):
            return NotImplemented
        return self.to_serializable() == other.to_serializable()

    def add_node(self, path: Sequence[str], node: RegistryNode) -> None:
        """Add a node at ``path``, creating intermediate branches.

        Whatever sits at the final segment is replaced.

        Raises:
            ValueError: If path is empty
        """
        if not path:
            raise ValueError("Path cannot be empty")

        current = self
        for segment in path[:-1]:
            child = current.children.get(segment)
            if child is None or child.is_leaf:
                child = RegistryTree()
                current.children[segment] = child
            current = child
        current.children[path[-1]] = RegistryTree(node)

    def get_subtree(self, path: Sequence[str]) -> Optional["RegistryTree"]:
        current: Optional[RegistryTree] = self
        for segment in path:
            if current is None:
                return None
            current = current.children.get(segment)
        return current

    def get_node(self, path: Sequence[str]) -> Optional[RegistryNode]:
        """Return the node stored at ``path`` or None."""
        subtree = self.get_subtree(path)
        return subtree.node if subtree is not None else None

    def merge(self, other: "RegistryTree") -> None:
        """Merge another tree into this one.

        Branches are merged recursively. When either side of a shared key is a
        leaf, the incoming subtree replaces the existing one (newest write wins).
        Incoming subtrees are copied, so later changes to this tree never
        reach other.

        Raises:
            ValueError: If other is a leaf
        """
        if other.is_leaf:
            raise ValueError("Cannot merge a leaf into a registry tree")
        if self.is_leaf:
            raise ValueError("Cannot merge into a leaf")

        for key, incoming in other.children.items():
            existing = self.children.get(key)
            if existing is None or existing.is_leaf or incoming.is_leaf:
                self.children[key] = incoming.copy()
            else:
                existing.merge(incoming)

    def change_key_at_level(self, depth: int, old_key: str, new_key: str) -> int:
        """Rebind ``old_key`` to ``new_key`` on every branch at ``depth``.

        Depth 0 is the first path segment. The rebound child keeps its position;
        an existing ``new_key`` entry at that level is overwritten.

        Returns:
            Number of branches where the key was rebound
        """
        if depth < 0:
            raise ValueError("Depth cannot be negative")
        if old_key == new_key:
            return 0

        if depth == 0:
            if old_key not in self.children:
                return 0
            rebound: Dict[str, RegistryTree] = {}
            for key, child in self.children.items():
                if key == old_key:
                    rebound[new_key] = child
                elif key != new_key:
                    rebound[key] = child
            self.children = rebound
            return 1

        count = 0
        for child in self.children.values():
            if not child.is_leaf:
                count += child.change_key_at_level(depth - 1, old_key, new_key)
        return count

    def copy(self) -> "RegistryTree":
        """Copy every branch. Leaves share their (immutable) nodes."""
        if self.is_leaf:
            return RegistryTree(self._node)
        clone = RegistryTree()
        clone.children = {key: child.copy() for key, child in self.children.items()}
        return clone

    def shallow_copy(self) -> "RegistryTree":
        """Copy only the top-level mapping; subtrees are shared."""
        if self.is_leaf:
            return RegistryTree(self._node)
        clone = RegistryTree()
        clone.children = dict(self.children)
        return clone

    def prune_file(self, file_path: str) -> int:
        """Remove leaves defined in ``file_path`` and any branch left empty.

        Returns:
            Number of leaves removed
        """
        removed = 0
        for key in list(self.children):
            child = self.children[key]
            if child.is_leaf:
                if child.node.file_path == file_path:
                    del self.children[key]
                    removed += 1
                continue
            removed += child.prune_file(file_path)
            if not child.children:
                del self.children[key]
        return removed

    def iter_leaves(self, prefix: Tuple[str, ...] = ()) -> Iterator[Tuple[Tuple[str, ...], RegistryNode]]:
        """Yield (path, node) for every leaf in insertion order."""
        for key, child in self.children.items():
            path = prefix + (key,)
            if child.is_leaf:
                yield path, child.node
            else:
                yield from child.iter_leaves(path)

    def leaf_count(self) -> int:
        return sum(1 for _ in self.iter_leaves())

    def keys(self) -> List[str]:
        return list(self.children)

    def to_serializable(self) -> Dict[str, Any]:
        """Convert to nested plain dicts tagged branch/leaf."""
        if self.is_leaf:
            payload: Dict[str, Any] = {TYPE_KEY: NodeKind.LEAF.value}
            payload.update(self._node.model_dump(by_alias=True))
            return payload

        result: Dict[str, Any] = {TYPE_KEY: NodeKind.BRANCH.value}
        for key, child in self.children.items():
            result[key] = child.to_serializable()
        return result

    @classmethod
    def from_serializable(cls, data: Dict[str, Any]) -> "RegistryTree":
        """Rebuild a tree from ``to_serializable`` output.

        Mappings without a tag are read as branches.

        Raises:
            pydantic.ValidationError: If a leaf payload is malformed
        """
        if data.get(TYPE_KEY) == NodeKind.LEAF.value:
            fields = {key: value for key, value in data.items() if key != TYPE_KEY}
            return cls(RegistryNode.model_validate(fields))

        tree = cls()
        for key, value in data.items():
            if key == TYPE_KEY:
                continue
            if not isinstance(value, dict):
                raise ValueError(f"Malformed registry tree entry at {key!r}")
            tree.children[key] = cls.from_serializable(value)
        return tree
