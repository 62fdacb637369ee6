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

"""Hover previews for resolved definitions."""

import logging
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict

from plugin_resolver.codebase.resolver import DefinitionLocation
from plugin_resolver.codebase.syntax import FUNCTION_DECLARATION_TYPES, FUNCTION_TYPES, SyntaxIndex

if TYPE_CHECKING:
    from tree_sitter import Node

logger = logging.getLogger(__name__)

SIGNATURE_NODE_TYPES = FUNCTION_TYPES | FUNCTION_DECLARATION_TYPES | {"method_definition"}


class HoverPreview(BaseModel):
    """Text shown when hovering a resolved reference."""

    model_config = ConfigDict(frozen=True)

    text: str
    signature: Optional[str] = None
    file_path: str
    line: Optional[int] = None  # 1-based first line of the definition
    line_count: Optional[int] = None

    def to_markdown(self) -> str:
        sections: List[str] = []
        if self.line is not None:
            sections.append(f"`{self.file_path}:{self.line}`")
        else:
            sections.append(f"`{self.file_path}`")
        if self.signature:
            sections.append(f"```javascript\n{self.signature}\n```")
        sections.append(f"```javascript\n{self.text}\n```")
        return "\n\n".join(sections)


class DefinitionPreview:
    """Builds HoverPreview records from DefinitionLocation results."""

    def render(self, location: DefinitionLocation) -> HoverPreview:
        line = location.loc.start.line if location.loc is not None else None
        line_count = location.loc.end.line - location.loc.start.line + 1 if location.loc is not None else None
        return HoverPreview(
            text=location.text,
            signature=self.signature(location.text, location.name),
            file_path=location.file_path,
            line=line,
            line_count=line_count,
        )

    def signature(self, text: str, name: str) -> Optional[str]:
        """Parameter signature of the first function in ``text``.

        Example: ``const checkEldPermission: async (request, h)``
        """
        # Bare method definitions only parse inside an object literal
        for source in (text, f"({{\n{text}\n}})"):
            syntax = SyntaxIndex.parse(source, strict=False)
            function = next((n for n in syntax.walk() if n.type in SIGNATURE_NODE_TYPES), None)
            if function is not None:
                return self._format(syntax, function, name)
        logger.debug(f"No function found in definition of {name}")
        return None

    def _format(self, syntax: SyntaxIndex, function: "Node", name: str) -> str:
        if function.type in FUNCTION_DECLARATION_TYPES:
            kind = "function"
        elif function.type == "method_definition":
            kind = "method"
        else:
            kind = "const"
        is_async = any(child.type == "async" for child in function.children)
        params = ", ".join(self._parameter_names(syntax, function))
        prefix = "async " if is_async else ""
        return f"{kind} {name}: {prefix}({params})"

    def _parameter_names(self, syntax: SyntaxIndex, function: "Node") -> List[str]:
        single = function.child_by_field_name("parameter")
        if single is not None:
            return [syntax.text(single)]
        params = function.child_by_field_name("parameters")
        if params is None:
            return []

        names: List[str] = []
        for param in params.named_children:
            if param.type == "comment":
                continue
            if param.type == "assignment_pattern":
                left = param.child_by_field_name("left")
                names.append(syntax.text(left) if left is not None else syntax.text(param))
            else:
                names.append(" ".join(syntax.text(param).split()))
        return names
