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


import threading
from typing import TYPE_CHECKING, Dict, List

from tree_sitter import Language, Parser, Query, QueryCursor

if TYPE_CHECKING:
    from tree_sitter import Node, Tree


# Language package mapping for tree-sitter 0.25+
# Install with: pip install tree-sitter-javascript
# Format: "language_name": ("module_name", "function_name")
LANGUAGE_MODULES: Dict[str, tuple] = {
    "javascript": ("tree_sitter_javascript", "language"),
}

_language_cache: Dict[str, Language] = {}
_query_cache: Dict[tuple, Query] = {}

# Parser instances are not safe to share between threads
_thread_state = threading.local()


def get_language(language: str) -> Language:
    """
    Loads a tree-sitter Language object using pre-compiled language packages.

    This uses the tree-sitter 0.25+ API which requires pre-installed language packages
    (e.g., tree-sitter-javascript) instead of runtime compilation.
    """
    if language in _language_cache:
        return _language_cache[language]

    module_info = LANGUAGE_MODULES.get(language)
    if not module_info:
        raise ValueError(f"Unsupported language for tree-sitter: {language}")

    module_name, func_name = module_info

    try:
        language_module = __import__(module_name)
        lang_func = getattr(language_module, func_name)

        # Older grammars expose a PyCapsule; wrap via Language
        lang_obj = lang_func()
        lang = Language(lang_obj) if not isinstance(lang_obj, Language) else lang_obj

        _language_cache[language] = lang
        return lang

    except ImportError:
        raise ImportError(
            f"Language package '{module_name}' not installed. "
            f"Install it with: pip install {module_name.replace('_', '-')}"
        )
    except AttributeError:
        raise AttributeError(
            f"Language module '{module_name}' does not have function '{func_name}'. "
            f"Check the tree-sitter package version and update LANGUAGE_MODULES."
        )


def get_parser(language: str = "javascript") -> Parser:
    """
    Returns a tree-sitter Parser initialized with the specified language.

    Parsers are cached per thread so concurrent resolver calls never share one.
    """
    parsers: Dict[str, Parser] = getattr(_thread_state, "parsers", None)
    if parsers is None:
        parsers = {}
        _thread_state.parsers = parsers

    if language in parsers:
        return parsers[language]

    parser = Parser(get_language(language))
    parsers[language] = parser
    return parser


def run_query(tree: "Tree", query_src: str, language: str = "javascript") -> Dict[str, List["Node"]]:
    """Run a tree-sitter query using the QueryCursor API.

    Args:
        tree: Parsed tree-sitter tree
        query_src: Query source string (S-expression syntax)
        language: Language name

    Returns:
        Dictionary mapping capture names to lists of matching nodes,
        each list sorted in document order.

    Example:
        >>> parser = get_parser("javascript")
        >>> tree = parser.parse(b"a.b.c;")
        >>> captures = run_query(tree, "(member_expression) @member")
        >>> [n.start_byte for n in captures["member"]]
        [0, 0]
    """
    key = (language, query_src)
    query = _query_cache.get(key)
    if query is None:
        query = Query(get_language(language), query_src)
        _query_cache[key] = query

    cursor = QueryCursor(query)
    captures = cursor.captures(tree.root_node)
    return {
        name: sorted(nodes, key=lambda n: (n.start_byte, -n.end_byte))
        for name, nodes in captures.items()
    }
