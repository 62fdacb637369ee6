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

"""Base types for category extractors.

A category is one convention-tagged group of plugin declarations (services,
controllers, models, configuration objects, utility functions). Each
category file assigns a single-parameter function onto the ``internals``
namespace and returns the object that gets registered under
``server.plugins[<marker>]``::

    internals.controller = (server) => {
      const checkEldPermission = async (request) => { ... };
      return { serviceName: "EldService", checkEldPermission };
    };

Extractors recognize that shape in a SyntaxIndex and produce a RegistryTree
subtree rooted at ``registry_root_path + (marker, declared name)``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Set, Tuple, Union

from plugin_resolver.codebase.registry_tree import RegistryNode, RegistryTree
from plugin_resolver.codebase.syntax import FunctionBinding, MemberKind, ObjectMember, SyntaxIndex, unwrap
from plugin_resolver.config import ResolverSettings
from plugin_resolver.errors import ConventionMismatch

if TYPE_CHECKING:
    from tree_sitter import Node

logger = logging.getLogger(__name__)


@dataclass
class CategoryConvention:
    """Declaration convention of one category.

    Attributes:
        name: Canonical category name (e.g. "service")
        display_name: Human-readable name
        marker: Plugin key the category registers under (e.g. "core-services")
        file_suffix: File stem suffix used for discovery (``*-service.js``)
        namespace_property: Namespace property receiving the plugin function
        name_property: Returned property holding the declared name; None for models
    """

    name: str
    display_name: str
    marker: str
    file_suffix: str
    namespace_property: str = "controller"
    name_property: Optional[str] = None

    def glob_pattern(self, extension: str = ".js") -> str:
        return f"**/*-{self.file_suffix}{extension}"

    def matches_file(self, path: Union[str, Path]) -> bool:
        return Path(path).stem.endswith(self.file_suffix)


@dataclass
class ExtractionResult:
    """What an extractor found in one file."""

    category: str
    declared_name: str
    root_argument_name: str
    file_path: str
    members: Dict[str, "Node"] = field(default_factory=dict)
    subtree: RegistryTree = field(default_factory=RegistryTree)


class BaseCategoryExtractor(ABC):
    """Base class for category extractors with the shared recognition logic."""

    def __init__(self, settings: Optional[ResolverSettings] = None):
        self.settings = settings or ResolverSettings()
        self._convention: Optional[CategoryConvention] = None

    @property
    def convention(self) -> CategoryConvention:
        if self._convention is None:
            self._convention = self._create_convention()
        return self._convention

    @property
    def registry_path(self) -> Tuple[str, ...]:
        """Path every subtree of this category is rooted under."""
        return tuple(self.settings.registry_root_path) + (self.convention.marker,)

    @abstractmethod
    def _create_convention(self) -> CategoryConvention:
        """Create the category convention record."""
        ...

    @abstractmethod
    def _extract(self, syntax: SyntaxIndex, file_path: str) -> ExtractionResult:
        """Extract declarations or raise ConventionMismatch."""
        ...

    def detect_from_file(self, path: Union[str, Path]) -> bool:
        return self.convention.matches_file(path)

    def extract(self, syntax: SyntaxIndex, file_path: Optional[str] = None) -> Optional[ExtractionResult]:
        """Extract this category's declarations from a parsed file.

        Args:
            syntax: Parsed file
            file_path: Path recorded in registry nodes (defaults to syntax.file_path)

        Returns:
            ExtractionResult, or None when the file does not follow the convention
        """
        path = file_path or syntax.file_path or ""
        if syntax.has_errors:
            logger.debug(f"Not extracting {self.convention.name} from {path}: syntax errors")
            return None
        try:
            return self._extract(syntax, path)
        except ConventionMismatch as e:
            logger.debug(f"{path} is not a {self.convention.name} file: {e}")
            return None
        except Exception as e:
            logger.debug(f"Failed to extract {self.convention.name} from {path}: {e}")
            return None

    # ------------------------------------------------------------------
    # Shared recognition
    # ------------------------------------------------------------------

    def root_binding(self, syntax: SyntaxIndex) -> FunctionBinding:
        """Last namespace assignment for this category.

        Raises:
            ConventionMismatch: If the file has none
        """
        bindings = syntax.namespace_assignments(
            {self.convention.namespace_property}, self.settings.namespace_identifier
        )
        if not bindings:
            raise ConventionMismatch(
                f"no {self.settings.namespace_identifier}.{self.convention.namespace_property} function"
            )
        return bindings[-1]

    def collect_members(self, syntax: SyntaxIndex, function: "Node") -> Dict[str, "Node"]:
        """Member map of the object a namespace function returns.

        Raises:
            ConventionMismatch: If the function does not return an object
        """
        body = unwrap(function.child_by_field_name("body"))
        if body is None:
            raise ConventionMismatch("function has no body")

        functions = syntax.function_declarations()

        if body.type == "object":
            return self._object_members(syntax, body, (function, None), functions, set())

        if body.type != "statement_block":
            raise ConventionMismatch("function body is not an object or a block")

        statement = syntax.first_return(body)
        argument = syntax.return_argument(statement) if statement is not None else None
        if argument is None:
            raise ConventionMismatch("function has no return value")

        if argument.type == "object":
            return self._object_members(syntax, argument, (body, None), functions, set())

        if argument.type == "identifier":
            name = syntax.text(argument)
            bound = syntax.object_binding(name, (body, None))
            if bound is None:
                raise ConventionMismatch(f"returned identifier {name!r} is not an object literal")
            return self._object_members(syntax, bound, (body, None), functions, {name})

        raise ConventionMismatch(f"function returns {argument.type}")

    def _object_members(
        self,
        syntax: SyntaxIndex,
        obj: "Node",
        scopes: Iterable[Optional["Node"]],
        functions: Dict[str, "Node"],
        expanding: Set[str],
    ) -> Dict[str, "Node"]:
        scopes = tuple(scopes)
        members: Dict[str, "Node"] = {}
        for member in syntax.object_members(obj):
            if member.kind is MemberKind.SPREAD:
                argument = unwrap(member.value)
                if argument is None or argument.type != "identifier":
                    continue
                name = syntax.text(argument)
                if name in expanding:
                    continue
                source = syntax.object_binding(name, scopes)
                if source is None:
                    continue
                members.update(self._object_members(syntax, source, scopes, functions, expanding | {name}))
            elif member.key is not None:
                members[member.key] = self._member_node(syntax, member, functions)
        return members

    def _member_node(self, syntax: SyntaxIndex, member: ObjectMember, functions: Dict[str, "Node"]) -> "Node":
        """Declaration node a member points at."""
        if member.kind is MemberKind.METHOD:
            return member.node
        value = unwrap(member.value)
        if value is not None and value.type in ("identifier", "shorthand_property_identifier"):
            declared = functions.get(syntax.text(value))
            if declared is not None:
                return declared
        if member.kind is MemberKind.SHORTHAND or member.value is None:
            return member.node
        return member.value

    def literal_name(self, syntax: SyntaxIndex, node: Optional["Node"]) -> Optional[str]:
        """String value of a name node, following one ``const NAME = "..."`` hop."""
        node = unwrap(node)
        if node is None:
            return None
        if node.type in ("shorthand_property_identifier", "identifier"):
            name = syntax.text(node)
            value: Optional[str] = None
            for declaration in syntax.declarations():
                if declaration.name == name:
                    value = syntax.string_value(unwrap(declaration.value))
            return value
        return syntax.string_value(node)

    def make_node(self, syntax: SyntaxIndex, file_path: str, name: str, node: "Node") -> RegistryNode:
        return RegistryNode(
            path=file_path,
            name=name,
            start=node.start_byte,
            end=node.end_byte,
            loc=syntax.source_range(node),
        )


class MemberCategoryExtractor(BaseCategoryExtractor):
    """Categories whose returned object names itself through a literal property.

    Services, controllers, configuration objects and utility functions all
    share this shape; they differ only in their convention record.
    """

    def _extract(self, syntax: SyntaxIndex, file_path: str) -> ExtractionResult:
        convention = self.convention
        binding = self.root_binding(syntax)
        members = self.collect_members(syntax, binding.function)

        name_property = convention.name_property
        if not name_property or name_property not in members:
            raise ConventionMismatch(f"returned object has no {name_property}")
        declared_name = self.literal_name(syntax, members.pop(name_property))
        if not declared_name:
            raise ConventionMismatch(f"{name_property} is not a string literal")

        subtree = RegistryTree()
        base = self.registry_path + (declared_name,)
        for member_name, node in members.items():
            subtree.add_node(base + (member_name,), self.make_node(syntax, file_path, member_name, node))

        logger.debug(f"Extracted {len(members)} members of {convention.name} {declared_name} from {file_path}")
        return ExtractionResult(
            category=convention.name,
            declared_name=declared_name,
            root_argument_name=binding.parameter,
            file_path=file_path,
            members=members,
            subtree=subtree,
        )
