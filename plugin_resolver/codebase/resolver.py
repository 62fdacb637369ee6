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

"""Reference resolution against the registry tree.

Plugin code rarely spells out the full registry path of what it calls.
Instead it aliases pieces of it::

    internals.controller = (server) => {
      const services = server.plugins["core-services"];
      const eld = services.EldService;
      ...
      await eld.checkEldPermission(request);   // <- query here
    };

The resolver finds the access chain nearest the query line, builds an alias
graph from the file's local declarations, walks from the referenced name back
to the root argument and drops alias vertices. What remains, reversed, is
the canonical registry path
``server -> plugins -> core-services -> EldService -> checkEldPermission``.

Resolution is static and best effort: any failure yields None.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from plugin_resolver.codebase.alias_graph import AliasGraph
from plugin_resolver.codebase.file_access import FileAccess, LocalFileAccess
from plugin_resolver.codebase.registry_tree import RegistryTree, SourceRange
from plugin_resolver.codebase.syntax import (
    FUNCTION_TYPES,
    MEMBER_TYPES,
    AccessChain,
    SyntaxIndex,
    unwrap,
)
from plugin_resolver.config import MAX_IDENTIFIER_LENGTH, ResolverSettings
from plugin_resolver.errors import AmbiguousReference, UnresolvedReference

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_$][\w$]*$")

# Words that cannot be assignment targets in a non-strict script
JS_RESERVED_WORDS = frozenset(
    {
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "enum",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "import",
        "in",
        "instanceof",
        "new",
        "null",
        "return",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
        "with",
    }
)


class DefinitionLocation(BaseModel):
    """Where a resolved reference is defined."""

    model_config = ConfigDict(frozen=True)

    file_path: str
    name: str
    start: int
    end: int
    loc: Optional[SourceRange] = None
    text: str
    canonical_path: Tuple[str, ...]


def is_valid_reference_name(name: str, max_length: int = MAX_IDENTIFIER_LENGTH) -> bool:
    """Identifier syntax, not reserved, shorter than max_length."""
    return (
        len(name) < max_length
        and IDENTIFIER_PATTERN.match(name) is not None
        and name not in JS_RESERVED_WORDS
    )


def find_root_argument(syntax: SyntaxIndex, settings: ResolverSettings) -> Optional[str]:
    """Parameter name of the last root function assigned onto the namespace."""
    bindings = syntax.namespace_assignments(settings.root_function_properties, settings.namespace_identifier)
    return bindings[-1].parameter if bindings else None


def collect_assignments(syntax: SyntaxIndex) -> Dict[str, str]:
    """``name -> value text`` for declarations of names used as member-access objects.

    Function-valued and uninitialized declarations are skipped. A later
    declaration of the same name replaces the value of an earlier one.
    """
    relevant = syntax.member_object_identifiers()
    assignments: Dict[str, str] = {}
    for declaration in syntax.declarations():
        if declaration.name not in relevant or declaration.value is None:
            continue
        value = unwrap(declaration.value)
        if value is not None and value.type in FUNCTION_TYPES:
            continue
        assignments[declaration.name] = syntax.text(declaration.value)
    return assignments


def build_document_graph(syntax: SyntaxIndex, graph_id: str = "document") -> AliasGraph:
    """Alias graph of a document's relevant declarations and destructurings."""
    graph = AliasGraph.from_assignments(collect_assignments(syntax), graph_id)
    relevant = syntax.member_object_identifiers()
    for bindings, value in syntax.destructurings():
        if any(local in relevant for _, local in bindings):
            graph.add_destructuring(bindings, syntax.text(value))
    return graph


class ReferenceResolver:
    """Resolves references in one document against a registry tree.

    Holds no per-query state, so one instance can serve concurrent queries
    against the same tree snapshot.
    """

    def __init__(
        self,
        tree: RegistryTree,
        settings: Optional[ResolverSettings] = None,
        file_access: Optional[FileAccess] = None,
    ):
        self.tree = tree
        self.settings = settings or ResolverSettings()
        self.file_access: FileAccess = file_access or LocalFileAccess()

    def resolve(self, document_text: str, reference_name: str, line_number: int) -> Optional[DefinitionLocation]:
        """Resolve ``reference_name`` referenced near ``line_number`` (1-based).

        Returns:
            DefinitionLocation, or None when the reference cannot be resolved
        """
        if not is_valid_reference_name(reference_name, self.settings.max_identifier_length):
            logger.debug(f"Rejected reference name {reference_name[:40]!r}")
            return None

        try:
            return self._resolve(document_text, reference_name, line_number)
        except UnresolvedReference as e:
            logger.debug(f"Could not resolve {reference_name}: {e}")
            return None
        except Exception as e:
            logger.debug(f"Resolution of {reference_name} failed: {e}")
            return None

    def _resolve(self, document_text: str, reference_name: str, line_number: int) -> DefinitionLocation:
        syntax = SyntaxIndex.parse(document_text, strict=True)

        root_argument = find_root_argument(syntax, self.settings)
        if root_argument is None:
            raise UnresolvedReference("document has no root plugin function")

        chain = self.find_candidate(syntax, reference_name, line_number)
        if chain is None:
            raise UnresolvedReference(f"no access chain ending in {reference_name} near line {line_number}")

        canonical_path = self.trace_path(syntax, chain, reference_name, root_argument)
        node = self.tree.get_node(canonical_path)
        if node is None:
            raise UnresolvedReference(f"{'.'.join(canonical_path)} is not registered")

        text = self.file_access.read_bytes(node.file_path, node.start, node.end).decode("utf-8", errors="replace")
        return DefinitionLocation(
            file_path=node.file_path,
            name=node.name,
            start=node.start,
            end=node.end,
            loc=node.loc,
            text=text,
            canonical_path=tuple(canonical_path),
        )

    def find_candidate(self, syntax: SyntaxIndex, reference_name: str, line_number: int) -> Optional[AccessChain]:
        """Access chain ending in reference_name closest to the query line.

        Chains farther than ``max_line_distance`` lines are ignored; on a tie
        the earliest chain in document order wins.
        """
        try:
            return self.nearest_candidate(syntax, reference_name, line_number)
        except AmbiguousReference as e:
            chosen = e.candidates[0]
            logger.debug(f"{e}; using line {chosen.line}")
            return chosen

    def nearest_candidate(
        self, syntax: SyntaxIndex, reference_name: str, line_number: int
    ) -> Optional[AccessChain]:
        """Unique closest chain ending in reference_name.

        Raises:
            AmbiguousReference: If several chains share the smallest distance
        """
        best: List[AccessChain] = []
        best_distance = self.settings.max_line_distance + 1

        for candidate in self._candidates(syntax):
            if candidate.terminal != reference_name:
                continue
            distance = abs(candidate.line - line_number)
            if distance < best_distance:
                best, best_distance = [candidate], distance
            elif distance == best_distance:
                best.append(candidate)

        if len(best) > 1:
            raise AmbiguousReference(
                f"{len(best)} chains ending in {reference_name} at distance {best_distance}", candidates=best
            )
        return best[0] if best else None

    def _candidates(self, syntax: SyntaxIndex) -> List[AccessChain]:
        """Member accesses and ``handler:`` values, in document order."""
        candidates: List[AccessChain] = []
        for node in syntax.walk():
            if node.type in MEMBER_TYPES:
                chain = syntax.access_chain(node)
                if chain is not None:
                    candidates.append(chain)
            elif node.type == "pair":
                key = syntax.property_key(node.child_by_field_name("key"))
                value = unwrap(node.child_by_field_name("value"))
                if key != self.settings.handler_property or value is None or value.type not in MEMBER_TYPES:
                    continue
                parts = syntax.chain_parts(value)
                if parts:
                    candidates.append(AccessChain(parts=tuple(parts), node=value, line=syntax.line(node)))
        return candidates

    def trace_path(
        self, syntax: SyntaxIndex, chain: AccessChain, reference_name: str, root_argument: str
    ) -> List[str]:
        """Canonical registry path of reference_name as accessed by chain.

        Raises:
            UnresolvedReference: If the alias trace does not reach the root argument
        """
        graph = build_document_graph(syntax, graph_id="document")
        graph.add_access_chain(chain.parts)

        next_hops = AliasGraph.from_access_chain(chain.parts, graph_id="chain").outgoing(reference_name)
        if not next_hops:
            raise UnresolvedReference(f"{chain.dotted()} has no container for {reference_name}")

        path = graph.first_path_through(reference_name, next_hops[0], root_argument)
        if path is None:
            raise UnresolvedReference(f"{reference_name} does not trace back to {root_argument}")

        canonical = [vertex for vertex in path if not graph.is_assignment_target(vertex)]
        if len(canonical) < self.settings.min_canonical_path_length:
            raise UnresolvedReference(f"path {canonical} is too short")

        canonical.reverse()
        if canonical[0] == root_argument:
            canonical[0] = self.settings.root_marker
        return canonical


def resolve(
    document_text: str,
    reference_name: str,
    line_number: int,
    tree: RegistryTree,
    settings: Optional[ResolverSettings] = None,
    file_access: Optional[FileAccess] = None,
) -> Optional[DefinitionLocation]:
    """Resolve a reference with a one-off ReferenceResolver."""
    return ReferenceResolver(tree, settings, file_access).resolve(document_text, reference_name, line_number)
