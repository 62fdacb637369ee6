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

"""Member completion for partially typed registry accesses."""

import logging
from typing import List, Optional

from plugin_resolver.codebase.registry_tree import RegistryTree
from plugin_resolver.codebase.resolver import build_document_graph, find_root_argument
from plugin_resolver.codebase.syntax import SyntaxIndex, unwrap
from plugin_resolver.config import ResolverSettings
from plugin_resolver.errors import ParseFailure

logger = logging.getLogger(__name__)


def split_expression(expression: str) -> List[str]:
    """Segments of a typed expression; a trailing ``.`` adds an empty segment.

    Text that is not a plain access chain (``server.plugins.core-s`` reads as
    a subtraction) is split on dots.
    """
    text = expression.strip()
    if not text:
        return []
    if text.endswith("."):
        head = split_expression(text[:-1])
        return head + [""] if head else []

    try:
        syntax = SyntaxIndex.parse(text, strict=True)
    except ParseFailure:
        return text.split(".")
    statement = syntax.root.named_children[0] if syntax.root.named_children else None
    if statement is None or statement.type != "expression_statement" or not statement.named_children:
        return text.split(".")
    expression_node = unwrap(statement.named_children[0])
    parts = syntax.chain_parts(expression_node)
    return parts if parts else text.split(".")


class CompletionProvider:
    """Suggests registry keys for the segment being typed.

    Documents are parsed leniently since the text under the cursor is usually
    incomplete.
    """

    def __init__(self, tree: RegistryTree, settings: Optional[ResolverSettings] = None):
        self.tree = tree
        self.settings = settings or ResolverSettings()

    def complete(self, document_text: str, expression: str, current_word: Optional[str] = None) -> List[str]:
        """Keys under the path spelled by all but the last segment of expression.

        Args:
            document_text: Full text of the document being edited
            expression: Access expression left of the cursor, e.g. ``server.plugins.``
            current_word: Prefix to filter on (defaults to the last segment)
        """
        try:
            return self._complete(document_text, expression, current_word)
        except Exception as e:
            logger.debug(f"Completion for {expression!r} failed: {e}")
            return []

    def _complete(self, document_text: str, expression: str, current_word: Optional[str]) -> List[str]:
        syntax = SyntaxIndex.parse(document_text, strict=False)
        root_argument = find_root_argument(syntax, self.settings)
        if root_argument is None:
            return []

        segments = split_expression(expression)
        if not segments:
            return []
        if current_word is None:
            current_word = segments[-1].strip()

        prefix = self._expand_alias(syntax, segments[:-1], root_argument)

        view = self.tree.shallow_copy()
        view.change_key_at_level(0, self.settings.root_marker, root_argument)

        subtree: Optional[RegistryTree] = view
        for segment in prefix:
            segment = segment.strip()
            if not segment:
                continue
            subtree = subtree.children.get(segment)
            if subtree is None:
                return []

        return [key for key in subtree.keys() if key.startswith(current_word)]

    def _expand_alias(self, syntax: SyntaxIndex, prefix: List[str], root_argument: str) -> List[str]:
        """Replace a leading local alias with the registry path it stands for."""
        if not prefix or prefix[0] == root_argument:
            return prefix

        graph = build_document_graph(syntax, graph_id="completion")
        path = next(graph.find_paths(prefix[0], root_argument), None)
        if path is None:
            return prefix

        expanded = [vertex for vertex in path if not graph.is_assignment_target(vertex)]
        expanded.reverse()
        return expanded + prefix[1:]
