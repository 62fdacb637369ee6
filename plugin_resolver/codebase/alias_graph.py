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

"""Alias graph for tracing local identifiers back to the plugin root.

Vertices are identifier or property-name strings. An edge ``u -> v`` means
"u was derived from v":

- access chain ``a.b.c`` adds ``c -> b`` and ``b -> a``
- declaration ``x = a.b`` adds the chain and then ``x -> b``

so walking outgoing edges from a referenced name moves towards the object it
was ultimately read from. Vertices bound by local declarations are flagged as
assignment targets; they are aliases, not registry path segments.

Graphs are built per query and discarded. Vertices live in an arena indexed
by integer and edges are insertion-ordered, so path search is deterministic.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from plugin_resolver.codebase.syntax import parse_expression_parts

logger = logging.getLogger(__name__)


class AliasGraph:
    """Directed graph of "resolves to" relationships between names."""

    def __init__(self, graph_id: str = "alias"):
        self.graph_id = graph_id
        self._index: Dict[str, int] = {}
        self._names: List[Optional[str]] = []  # None marks a removed vertex
        self._targets: List[bool] = []
        self._outgoing: List[Dict[int, None]] = []
        self._incoming: List[Dict[int, None]] = []

    def __repr__(self) -> str:
        return f"AliasGraph({self.graph_id!r}, vertices={len(self._index)})"

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self._index)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_assignments(cls, assignments: Mapping[str, str], graph_id: str = "assignments") -> "AliasGraph":
        graph = cls(graph_id)
        for name, value in assignments.items():
            graph.add_assignment(name, value)
        return graph

    @classmethod
    def from_access_chain(cls, parts: Sequence[str], graph_id: str = "chain") -> "AliasGraph":
        graph = cls(graph_id)
        graph.add_access_chain(parts)
        return graph

    def add_vertex(self, name: str, is_assignment_target: bool = False) -> int:
        """Add a vertex if missing. The target flag is sticky once set."""
        index = self._index.get(name)
        if index is None:
            index = len(self._names)
            self._index[name] = index
            self._names.append(name)
            self._targets.append(False)
            self._outgoing.append({})
            self._incoming.append({})
        if is_assignment_target:
            self._targets[index] = True
        return index

    def add_edge(self, source: str, target: str) -> None:
        src = self.add_vertex(source)
        dst = self.add_vertex(target)
        self._outgoing[src][dst] = None
        self._incoming[dst][src] = None

    def add_access_chain(self, parts: Sequence[str]) -> None:
        """Add a chain, linking each segment to its container.

        Chains shorter than two segments add nothing.
        """
        if len(parts) < 2:
            return
        for part in parts:
            self.add_vertex(part)
        for i in range(len(parts) - 1, 0, -1):
            self.add_edge(parts[i], parts[i - 1])

    def add_assignment(self, name: str, value: str) -> None:
        """Add ``name = value`` where value is expression source text."""
        self.add_vertex(name, is_assignment_target=True)
        parts = parse_expression_parts(value)
        if parts:
            self.add_access_chain(parts)
            self.add_edge(name, parts[-1])
        else:
            literal = value.strip()
            if literal:
                self.add_edge(name, literal)

    def add_destructuring(self, bindings: Iterable[Tuple[str, str]], value: str) -> None:
        """Add ``const { prop: local, ... } = value``.

        Property names point at the last segment of ``value``; renamed locals
        are assignment targets pointing at their property.
        """
        parts = parse_expression_parts(value)
        if not parts:
            return
        self.add_access_chain(parts)
        container = parts[-1]
        for prop, local in bindings:
            if prop != container:
                self.add_edge(prop, container)
            if local != prop:
                self.add_vertex(local, is_assignment_target=True)
                self.add_edge(local, prop)

    def remove_edge(self, source: str, target: str) -> None:
        src = self._index.get(source)
        dst = self._index.get(target)
        if src is None or dst is None:
            return
        self._outgoing[src].pop(dst, None)
        self._incoming[dst].pop(src, None)

    def remove_vertex(self, name: str) -> None:
        index = self._index.pop(name, None)
        if index is None:
            return
        for dst in self._outgoing[index]:
            self._incoming[dst].pop(index, None)
        for src in self._incoming[index]:
            self._outgoing[src].pop(index, None)
        self._outgoing[index] = {}
        self._incoming[index] = {}
        self._names[index] = None
        self._targets[index] = False

    def copy(self, graph_id: Optional[str] = None) -> "AliasGraph":
        clone = AliasGraph(graph_id or self.graph_id)
        for name in self.vertices():
            clone.add_vertex(name, self.is_assignment_target(name))
        for name in self.vertices():
            for target in self.outgoing(name):
                clone.add_edge(name, target)
        return clone

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def vertices(self) -> List[str]:
        return [name for name in self._names if name is not None]

    def is_assignment_target(self, name: str) -> bool:
        index = self._index.get(name)
        return index is not None and self._targets[index]

    def outgoing(self, name: str) -> List[str]:
        index = self._index.get(name)
        if index is None:
            return []
        return [self._names[i] for i in self._outgoing[index]]

    def incoming(self, name: str) -> List[str]:
        index = self._index.get(name)
        if index is None:
            return []
        return [self._names[i] for i in self._incoming[index]]

    def has_edge(self, source: str, target: str) -> bool:
        src = self._index.get(source)
        dst = self._index.get(target)
        return src is not None and dst is not None and dst in self._outgoing[src]

    def has_path(self, source: str, target: str) -> bool:
        """Breadth-first reachability."""
        src = self._index.get(source)
        dst = self._index.get(target)
        if src is None or dst is None:
            return False
        seen: Set[int] = {src}
        queue = deque([src])
        while queue:
            current = queue.popleft()
            if current == dst:
                return True
            for nxt in self._outgoing[current]:
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append(nxt)
        return False

    def find_paths(self, source: str, target: str) -> Iterator[List[str]]:
        """Yield every simple path from source to target."""
        yield from self._simple_paths(source, target, None)

    def find_paths_through(self, source: str, through: str, target: str) -> Iterator[List[str]]:
        """Yield simple paths from source to target that visit ``through``.

        Paths are produced lazily in depth-first discovery order, following
        edges in insertion order. Search does not continue past the target.
        """
        if through not in self._index:
            return
        yield from self._simple_paths(source, target, self._index[through])

    def first_path_through(self, source: str, through: str, target: str) -> Optional[List[str]]:
        return next(self.find_paths_through(source, through, target), None)

    def _simple_paths(self, source: str, target: str, via: Optional[int]) -> Iterator[List[str]]:
        src = self._index.get(source)
        dst = self._index.get(target)
        if src is None or dst is None:
            return

        if src == dst:
            if via is None or via == src:
                yield [source]
            return

        path = [src]
        on_path = {src}
        stack = [iter(list(self._outgoing[src]))]
        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if nxt in on_path:
                continue
            if nxt == dst:
                found = path + [nxt]
                if via is None or via in found:
                    yield [self._names[i] for i in found]
                continue
            path.append(nxt)
            on_path.add(nxt)
            stack.append(iter(list(self._outgoing[nxt])))

    def connected_components(self) -> List[List[str]]:
        """Weakly connected components, each in discovery order."""
        seen: Set[int] = set()
        components: List[List[str]] = []
        for start, name in enumerate(self._names):
            if name is None or start in seen:
                continue
            component: List[str] = []
            queue = deque([start])
            seen.add(start)
            while queue:
                current = queue.popleft()
                component.append(self._names[current])
                for nxt in list(self._outgoing[current]) + list(self._incoming[current]):
                    if nxt not in seen:
                        seen.add(nxt)
                        queue.append(nxt)
            components.append(component)
        return components
