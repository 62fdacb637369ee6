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

"""Single-parse syntax index for JavaScript source files.

Wraps one tree-sitter parse together with the source bytes and exposes the
handful of constructs the registry and the resolver inspect as small typed
views:

- AccessChain: ``a.b["c"].d`` flattened to ``("a", "b", "c", "d")``
- ObjectMember: one entry of an object literal (pair, shorthand, method, spread)
- FunctionBinding: ``internals.controller = (server) => {...}``
- Declaration: ``const x = <expr>`` with an identifier binding

Every other component consumes these views rather than raw text.

Usage:
    syntax = SyntaxIndex.parse(source_text, file_path="eld-service.js")
    for binding in syntax.namespace_assignments({"controller"}):
        print(binding.parameter)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Optional, Set, Tuple, Union

from plugin_resolver.codebase.registry_tree import SourcePosition, SourceRange
from plugin_resolver.codebase.tree_sitter_manager import get_parser, run_query
from plugin_resolver.errors import ParseFailure

if TYPE_CHECKING:
    from tree_sitter import Node, Tree

logger = logging.getLogger(__name__)

# tree-sitter-javascript renamed ``function`` to ``function_expression`` in 0.21
FUNCTION_TYPES = frozenset({"arrow_function", "function_expression", "function", "generator_function"})
FUNCTION_DECLARATION_TYPES = frozenset({"function_declaration", "generator_function_declaration"})
DECLARATION_TYPES = frozenset({"lexical_declaration", "variable_declaration"})
MEMBER_TYPES = frozenset({"member_expression", "subscript_expression"})
PROPERTY_NAME_TYPES = frozenset({"property_identifier", "private_property_identifier"})
TRANSPARENT_TYPES = frozenset({"parenthesized_expression", "await_expression"})


class MemberKind(Enum):
    """Kinds of entries inside an object literal."""

    PAIR = "pair"  # key: value
    SHORTHAND = "shorthand"  # { key }
    METHOD = "method"  # key() {}
    SPREAD = "spread"  # ...other


@dataclass(frozen=True)
class ObjectMember:
    """One entry of an object literal.

    Attributes:
        kind: Entry kind
        key: Property name, None for spreads and computed keys
        node: The entry as written
        value: Pair value, the method node, the shorthand identifier or the spread argument
    """

    kind: MemberKind
    key: Optional[str]
    node: "Node"
    value: Optional["Node"]


@dataclass(frozen=True)
class AccessChain:
    """A flattened member-access chain."""

    parts: Tuple[str, ...]
    node: "Node"
    line: int  # 1-based line of the chain's first character

    @property
    def terminal(self) -> Optional[str]:
        return self.parts[-1] if self.parts else None

    def dotted(self) -> str:
        return ".".join(self.parts)


@dataclass(frozen=True)
class FunctionBinding:
    """A function assigned onto the namespace object, e.g. ``internals.controller``."""

    property_name: str
    parameter: Optional[str]  # first parameter, the root argument name
    function: "Node"
    assignment: "Node"


@dataclass(frozen=True)
class Declaration:
    """A variable declarator that binds a plain identifier."""

    name: str
    declarator: "Node"
    value: Optional["Node"]


def unwrap(node: Optional["Node"]) -> Optional["Node"]:
    """Strip parentheses and ``await`` around an expression."""
    while node is not None and node.type in TRANSPARENT_TYPES:
        inner = _first_named(node)
        if inner is None:
            return node
        node = inner
    return node


def _first_named(node: "Node") -> Optional["Node"]:
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


class SyntaxIndex:
    """One parse of a JavaScript document with source-position metadata."""

    def __init__(
        self,
        source: Union[str, bytes],
        file_path: Optional[str] = None,
        language: str = "javascript",
    ):
        self.source: bytes = source.encode("utf-8") if isinstance(source, str) else source
        self.file_path = file_path
        self.language = language
        self.tree: "Tree" = get_parser(language).parse(self.source)

    @classmethod
    def parse(
        cls,
        source: Union[str, bytes],
        file_path: Optional[str] = None,
        strict: bool = True,
    ) -> "SyntaxIndex":
        """Parse source text.

        Args:
            source: Document text or bytes
            file_path: Optional path used in error messages
            strict: Raise ParseFailure when the tree contains error nodes

        Raises:
            ParseFailure: If strict and the source does not parse cleanly
        """
        syntax = cls(source, file_path)
        if strict and syntax.has_errors:
            raise ParseFailure(f"Syntax errors in {file_path or '<document>'}", file_path)
        return syntax

    @classmethod
    def from_file(cls, file_path: Union[str, Path], strict: bool = True) -> "SyntaxIndex":
        path = Path(file_path)
        return cls.parse(path.read_bytes(), str(path), strict=strict)

    # ------------------------------------------------------------------
    # Positions and traversal
    # ------------------------------------------------------------------

    @property
    def root(self) -> "Node":
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return self.tree.root_node.has_error

    def text(self, node: "Node") -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def line(self, node: "Node") -> int:
        return node.start_point[0] + 1

    def source_range(self, node: "Node") -> SourceRange:
        return SourceRange(
            start=SourcePosition(line=node.start_point[0] + 1, column=node.start_point[1]),
            end=SourcePosition(line=node.end_point[0] + 1, column=node.end_point[1]),
        )

    def walk(self, node: Optional["Node"] = None) -> Iterator["Node"]:
        """Yield named nodes in document (pre-)order."""
        stack = [node if node is not None else self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.named_children))

    def nodes_of_type(self, node_type: str) -> List["Node"]:
        """All nodes of one grammar type, in document order."""
        return run_query(self.tree, f"({node_type}) @node", self.language).get("node", [])

    # ------------------------------------------------------------------
    # Literals and chains
    # ------------------------------------------------------------------

    def string_value(self, node: Optional["Node"]) -> Optional[str]:
        """Value of a string literal or a substitution-free template string."""
        if node is None:
            return None
        if node.type == "string":
            return self.text(node)[1:-1]
        if node.type == "template_string":
            if any(c.type == "template_substitution" for c in node.named_children):
                return None
            return self.text(node)[1:-1]
        return None

    def property_key(self, key: Optional["Node"]) -> Optional[str]:
        """Name of an object key; computed keys have none."""
        if key is None:
            return None
        if key.type in PROPERTY_NAME_TYPES or key.type == "identifier":
            return self.text(key)
        if key.type == "number":
            return self.text(key)
        return self.string_value(key)

    def chain_parts(self, node: Optional["Node"]) -> List[str]:
        """Flatten a member/subscript chain.

        ``obj["foo"]`` and ``obj.foo`` both contribute ``foo``. Objects that are
        neither identifiers nor accesses (calls, ``this``) contribute nothing.
        A computed subscript such as ``obj[name]`` breaks the whole chain, so
        the result is empty.
        """
        parts = self._chain(node)
        return parts if parts is not None else []

    def _chain(self, node: Optional["Node"]) -> Optional[List[str]]:
        """Chain segments, or None when a computed subscript breaks the chain."""
        if node is None:
            return []
        if node.type == "identifier":
            return [self.text(node)]
        if node.type not in MEMBER_TYPES:
            return []

        parts: List[str] = []
        obj = node.child_by_field_name("object")
        if obj is not None:
            if obj.type in MEMBER_TYPES:
                head = self._chain(obj)
                if head is None:
                    return None
                parts.extend(head)
            elif obj.type == "identifier":
                parts.append(self.text(obj))

        if node.type == "member_expression":
            prop = node.child_by_field_name("property")
            if prop is not None and prop.type in PROPERTY_NAME_TYPES:
                parts.append(self.text(prop))
            return parts

        index = unwrap(node.child_by_field_name("index"))
        if index is None:
            return None
        if index.type == "number":
            parts.append(self.text(index))
            return parts
        literal = self.string_value(index)
        if literal is None:
            return None
        parts.append(literal)
        return parts

    def access_chain(self, node: "Node") -> Optional[AccessChain]:
        if node.type not in MEMBER_TYPES:
            return None
        parts = self.chain_parts(node)
        if not parts:
            return None
        return AccessChain(parts=tuple(parts), node=node, line=self.line(node))

    def expression_parts(self, node: Optional["Node"]) -> List[str]:
        """Segments of an expression used as an assignment value.

        Calls contribute their callee chain; ``await`` and parentheses are
        transparent. Anything else falls back to the first access chain inside.
        A chain broken by a computed subscript yields nothing.
        """
        node = unwrap(node)
        if node is None:
            return []
        if node.type == "call_expression":
            node = unwrap(node.child_by_field_name("function"))
            if node is None:
                return []
        parts = self.chain_parts(node)
        if parts:
            return parts
        if node.type in MEMBER_TYPES:
            return []
        for inner in self.walk(node):
            if inner.type in MEMBER_TYPES:
                parts = self.chain_parts(inner)
                if parts:
                    return parts
        return []

    # ------------------------------------------------------------------
    # Functions and objects
    # ------------------------------------------------------------------

    def function_parameter(self, function: "Node") -> Optional[str]:
        """First parameter name when it is a plain identifier."""
        single = function.child_by_field_name("parameter")
        if single is not None:
            return self.text(single) if single.type == "identifier" else None
        params = function.child_by_field_name("parameters")
        if params is None:
            return None
        first = _first_named(params)
        if first is None or first.type != "identifier":
            return None
        return self.text(first)

    def namespace_assignments(
        self, properties: Iterable[str], namespace: str = "internals", require_parameter: bool = True
    ) -> List[FunctionBinding]:
        """Find ``<namespace>.<property> = (param) => ...`` assignments.

        With ``require_parameter`` only functions whose first parameter is a
        plain identifier qualify; otherwise ``parameter`` may be None.
        Results are in document order.
        """
        wanted = set(properties)
        bindings: List[FunctionBinding] = []
        for assignment in self.nodes_of_type("assignment_expression"):
            left = assignment.child_by_field_name("left")
            right = unwrap(assignment.child_by_field_name("right"))
            if left is None or right is None or left.type != "member_expression":
                continue
            obj = left.child_by_field_name("object")
            prop = left.child_by_field_name("property")
            if obj is None or prop is None or obj.type != "identifier":
                continue
            if self.text(obj) != namespace or self.text(prop) not in wanted:
                continue
            if right.type not in FUNCTION_TYPES:
                continue
            parameter = self.function_parameter(right)
            if parameter is None and require_parameter:
                continue
            bindings.append(
                FunctionBinding(
                    property_name=self.text(prop),
                    parameter=parameter,
                    function=right,
                    assignment=assignment,
                )
            )
        return bindings

    def first_return(self, block: "Node") -> Optional["Node"]:
        """First ``return`` among the direct statements of a block."""
        for statement in block.named_children:
            if statement.type == "return_statement":
                return statement
        return None

    def return_argument(self, statement: "Node") -> Optional["Node"]:
        return unwrap(_first_named(statement))

    def object_members(self, obj: "Node") -> List[ObjectMember]:
        members: List[ObjectMember] = []
        for child in obj.named_children:
            if child.type == "pair":
                members.append(
                    ObjectMember(
                        kind=MemberKind.PAIR,
                        key=self.property_key(child.child_by_field_name("key")),
                        node=child,
                        value=child.child_by_field_name("value"),
                    )
                )
            elif child.type == "shorthand_property_identifier":
                members.append(
                    ObjectMember(kind=MemberKind.SHORTHAND, key=self.text(child), node=child, value=child)
                )
            elif child.type == "method_definition":
                members.append(
                    ObjectMember(
                        kind=MemberKind.METHOD,
                        key=self.property_key(child.child_by_field_name("name")),
                        node=child,
                        value=child,
                    )
                )
            elif child.type == "spread_element":
                members.append(
                    ObjectMember(kind=MemberKind.SPREAD, key=None, node=child, value=_first_named(child))
                )
        return members

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def declarations(self, scope: Optional["Node"] = None) -> List[Declaration]:
        """Declarators binding a plain identifier, in document order."""
        found: List[Declaration] = []
        for node in self.walk(scope):
            if node.type != "variable_declarator":
                continue
            name = node.child_by_field_name("name")
            if name is None or name.type != "identifier":
                continue
            found.append(
                Declaration(name=self.text(name), declarator=node, value=node.child_by_field_name("value"))
            )
        return found

    def destructurings(self, scope: Optional["Node"] = None) -> List[Tuple[List[Tuple[str, str]], "Node"]]:
        """Object-pattern declarators as ([(property, local)], value) pairs."""
        found: List[Tuple[List[Tuple[str, str]], "Node"]] = []
        for node in self.walk(scope):
            if node.type != "variable_declarator":
                continue
            pattern = node.child_by_field_name("name")
            value = node.child_by_field_name("value")
            if pattern is None or value is None or pattern.type != "object_pattern":
                continue
            bindings: List[Tuple[str, str]] = []
            for entry in pattern.named_children:
                if entry.type == "shorthand_property_identifier_pattern":
                    name = self.text(entry)
                    bindings.append((name, name))
                elif entry.type == "object_assignment_pattern":
                    left = entry.child_by_field_name("left")
                    if left is not None:
                        name = self.text(left)
                        bindings.append((name, name))
                elif entry.type == "pair_pattern":
                    key = self.property_key(entry.child_by_field_name("key"))
                    local = entry.child_by_field_name("value")
                    if local is not None and local.type == "assignment_pattern":
                        local = local.child_by_field_name("left")
                    if key is not None and local is not None and local.type == "identifier":
                        bindings.append((key, self.text(local)))
            if bindings:
                found.append((bindings, value))
        return found

    def object_binding(self, name: str, scopes: Iterable[Optional["Node"]]) -> Optional["Node"]:
        """Object literal bound to ``name`` by the last matching declaration.

        Scopes are searched in order; the first scope with a match wins.
        """
        for scope in scopes:
            match: Optional["Node"] = None
            for declaration in self.declarations(scope):
                value = unwrap(declaration.value)
                if declaration.name == name and value is not None and value.type == "object":
                    match = value
            if match is not None:
                return match
        return None

    def call_binding(self, name: str) -> Optional["Node"]:
        """Call expression bound to ``name`` by the last matching declaration."""
        match: Optional["Node"] = None
        for declaration in self.declarations():
            value = unwrap(declaration.value)
            if declaration.name == name and value is not None and value.type == "call_expression":
                match = value
        return match

    def function_declarations(self) -> Dict[str, "Node"]:
        """Functions declared anywhere in the file, by name.

        ``function f() {}`` maps to the declaration; ``const f = () => ...``
        maps to its declaration statement when it binds a single name.
        Later declarations replace earlier ones.
        """
        functions: Dict[str, "Node"] = {}
        for node in self.walk():
            if node.type in FUNCTION_DECLARATION_TYPES:
                name = node.child_by_field_name("name")
                if name is not None:
                    functions[self.text(name)] = node
            elif node.type == "variable_declarator":
                name = node.child_by_field_name("name")
                value = unwrap(node.child_by_field_name("value"))
                if name is None or name.type != "identifier" or value is None:
                    continue
                if value.type not in FUNCTION_TYPES:
                    continue
                parent = node.parent
                if parent is not None and parent.type in DECLARATION_TYPES and len(
                    [c for c in parent.named_children if c.type == "variable_declarator"]
                ) == 1:
                    functions[self.text(name)] = parent
                else:
                    functions[self.text(name)] = node
        return functions

    def member_object_identifiers(self) -> Set[str]:
        """Identifiers used as the object of some member access."""
        names: Set[str] = set()
        for node in self.walk():
            if node.type in MEMBER_TYPES:
                obj = node.child_by_field_name("object")
                if obj is not None and obj.type == "identifier":
                    names.add(self.text(obj))
        return names


def parse_expression_parts(expression: str) -> List[str]:
    """Segments of an expression given as text; [] when it does not parse."""
    text = expression.strip()
    if not text:
        return []
    try:
        syntax = SyntaxIndex.parse(text, strict=True)
    except ParseFailure:
        logger.debug(f"Failed to parse expression: {text!r}")
        return []

    statement = _first_named(syntax.root)
    if statement is None or statement.type != "expression_statement":
        return []
    return syntax.expression_parts(_first_named(statement))
