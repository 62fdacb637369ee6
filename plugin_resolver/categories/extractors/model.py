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

"""Model category extractor.

Model files register an ORM model rather than a member object::

    internals.Model = (server) => {
      const Driver = server.db.define("Driver", { ... });
      return Driver;
    };

The registry records one leaf per model, keyed by the name passed to
``define``/``model``, covering the return statement.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Tuple

from plugin_resolver.categories.base import BaseCategoryExtractor, CategoryConvention, ExtractionResult
from plugin_resolver.codebase.registry_tree import RegistryTree
from plugin_resolver.codebase.syntax import SyntaxIndex, unwrap
from plugin_resolver.errors import ConventionMismatch

if TYPE_CHECKING:
    from tree_sitter import Node

MODEL_FACTORY_METHODS = frozenset({"model", "define"})


class ModelExtractor(BaseCategoryExtractor):
    def _create_convention(self) -> CategoryConvention:
        return CategoryConvention(
            name="model",
            display_name="Model",
            marker="core-models",
            file_suffix="model",
            namespace_property="Model",
            name_property=None,
        )

    def _extract(self, syntax: SyntaxIndex, file_path: str) -> ExtractionResult:
        binding = self.root_binding(syntax)
        anchor, argument = self._returned_expression(syntax, binding.function)

        call = argument
        if argument.type == "identifier":
            call = syntax.call_binding(syntax.text(argument))
            if call is None:
                raise ConventionMismatch(f"{syntax.text(argument)!r} is not bound to a call")

        model_name = self._model_name(syntax, call)
        if not model_name:
            raise ConventionMismatch("returned value is not a model definition")

        subtree = RegistryTree()
        subtree.add_node(
            self.registry_path + (model_name,),
            self.make_node(syntax, file_path, model_name, anchor),
        )
        return ExtractionResult(
            category=self.convention.name,
            declared_name=model_name,
            root_argument_name=binding.parameter,
            file_path=file_path,
            members={model_name: anchor},
            subtree=subtree,
        )

    def _returned_expression(self, syntax: SyntaxIndex, function: "Node") -> Tuple["Node", "Node"]:
        """(node the leaf covers, returned expression)."""
        body = function.child_by_field_name("body")
        if body is None:
            raise ConventionMismatch("function has no body")
        if body.type != "statement_block":
            expression = unwrap(body)
            return body, expression

        statement = syntax.first_return(body)
        argument = syntax.return_argument(statement) if statement is not None else None
        if argument is None:
            raise ConventionMismatch("function has no return value")
        return statement, argument

    def _model_name(self, syntax: SyntaxIndex, call: Optional["Node"]) -> Optional[str]:
        """First-argument literal of ``X.model("Name", ...)`` or ``X.define("Name", ...)``."""
        if call is None or call.type != "call_expression":
            return None
        callee = call.child_by_field_name("function")
        if callee is None or callee.type != "member_expression":
            return None
        prop = callee.child_by_field_name("property")
        if prop is None or syntax.text(prop) not in MODEL_FACTORY_METHODS:
            return None

        arguments = call.child_by_field_name("arguments")
        if arguments is None:
            return None
        first = next((c for c in arguments.named_children if c.type != "comment"), None)
        return syntax.string_value(first)
