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

"""Go-to-definition engine for convention-based plugin codebases.

Indexes category files (services, controllers, models, configuration
objects, utility functions) that register onto ``server.plugins`` into a
registry tree, and resolves locally aliased references back to their
declarations.

Package Structure:
    categories/               - Category conventions and extractors
    codebase/syntax.py        - tree-sitter views over JavaScript sources
    codebase/registry_tree.py - Registry trie and its serialized form
    codebase/indexer.py       - IndexBuilder and the live RegistryIndex
    codebase/alias_graph.py   - Per-query alias graph
    codebase/resolver.py      - Reference resolution
    codebase/completion.py    - Member completion
    codebase/diagnostics.py   - Naming-convention warnings
    codebase/preview.py       - Hover previews
    codebase/cache.py         - Registry persistence

Usage:
    from plugin_resolver import IndexBuilder, resolve

    tree = IndexBuilder("/path/to/workspace").build_full()
    location = resolve(document_text, "checkEldPermission", 42, tree)
"""

from plugin_resolver.codebase.alias_graph import AliasGraph
from plugin_resolver.codebase.cache import JsonRegistryStore, RegistryStore
from plugin_resolver.codebase.completion import CompletionProvider
from plugin_resolver.codebase.diagnostics import NamingDiagnostics, NamingWarning
from plugin_resolver.codebase.file_access import FileAccess, LocalFileAccess
from plugin_resolver.codebase.indexer import BuildReport, IndexBuilder, RegistryIndex
from plugin_resolver.codebase.preview import DefinitionPreview, HoverPreview
from plugin_resolver.codebase.registry_tree import RegistryNode, RegistryTree, SourcePosition, SourceRange
from plugin_resolver.codebase.resolver import DefinitionLocation, ReferenceResolver, resolve
from plugin_resolver.config import IndexerSettings, ResolverSettings
from plugin_resolver.errors import (
    AmbiguousReference,
    ConventionMismatch,
    ParseFailure,
    PluginResolverError,
    UnresolvedReference,
)

__version__ = "0.1.0"

__all__ = [
    "AliasGraph",
    "AmbiguousReference",
    "BuildReport",
    "CompletionProvider",
    "ConventionMismatch",
    "DefinitionLocation",
    "DefinitionPreview",
    "FileAccess",
    "HoverPreview",
    "IndexBuilder",
    "IndexerSettings",
    "JsonRegistryStore",
    "LocalFileAccess",
    "NamingDiagnostics",
    "NamingWarning",
    "ParseFailure",
    "PluginResolverError",
    "ReferenceResolver",
    "RegistryIndex",
    "RegistryNode",
    "RegistryStore",
    "RegistryTree",
    "ResolverSettings",
    "SourcePosition",
    "SourceRange",
    "UnresolvedReference",
    "resolve",
]
