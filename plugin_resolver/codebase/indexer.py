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

"""Registry indexing for convention-based plugin workspaces.

Features:
- Category file discovery by name suffix (``**/*-service.js`` ...)
- tree-sitter extraction of declarations into a RegistryTree
- Parallel extraction with ProcessPoolExecutor for large workspaces
- Single-file refresh merged into a copy of the live tree
- Optional persistence through a RegistryStore

Usage:
    index = RegistryIndex(IndexBuilder("/path/to/workspace"))
    index.rebuild()
    tree = index.snapshot()
"""

import logging
import os
import threading
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from plugin_resolver.categories.base import BaseCategoryExtractor, ExtractionResult
from plugin_resolver.categories.registry import CategoryRegistry
from plugin_resolver.codebase.cache import JsonRegistryStore, RegistryStore
from plugin_resolver.codebase.file_access import FileAccess, LocalFileAccess
from plugin_resolver.codebase.registry_tree import RegistryTree
from plugin_resolver.codebase.syntax import SyntaxIndex
from plugin_resolver.config import IndexerSettings, ResolverSettings
from plugin_resolver.errors import ParseFailure

logger = logging.getLogger(__name__)

# Per-file extraction outcomes
STATUS_INDEXED = "indexed"
STATUS_PARSE_FAILURE = "parse_failure"
STATUS_MISMATCH = "convention_mismatch"
STATUS_READ_FAILURE = "read_failure"


class BuildReport(BaseModel):
    """Counters for one registry build."""

    files_scanned: int = 0
    files_indexed: int = 0
    parse_failures: int = 0
    convention_mismatches: int = 0
    read_failures: int = 0
    elapsed_seconds: float = 0.0
    failed_files: List[str] = Field(default_factory=list)

    def record(self, outcome: Dict[str, Any]) -> None:
        status = outcome["status"]
        if status == STATUS_INDEXED:
            self.files_indexed += 1
        elif status == STATUS_MISMATCH:
            self.convention_mismatches += 1
        else:
            if status == STATUS_PARSE_FAILURE:
                self.parse_failures += 1
            else:
                self.read_failures += 1
            self.failed_files.append(outcome["path"])


def _normalize_path(file_path: Union[str, Path]) -> str:
    return os.path.abspath(str(file_path))


def _extract_source(source: bytes, file_path: str, extractor: BaseCategoryExtractor) -> Dict[str, Any]:
    """Parse and extract one file into a plain, picklable outcome dict."""
    try:
        syntax = SyntaxIndex.parse(source, file_path)
    except ParseFailure as e:
        return {"path": file_path, "status": STATUS_PARSE_FAILURE, "error": str(e)}

    result = extractor.extract(syntax, file_path)
    if result is None:
        return {"path": file_path, "status": STATUS_MISMATCH}
    return {
        "path": file_path,
        "status": STATUS_INDEXED,
        "declared_name": result.declared_name,
        "tree": result.subtree.to_serializable(),
    }


# Module-level function for ProcessPoolExecutor (must be picklable)
def _extract_file_worker(args: Tuple[str, BaseCategoryExtractor]) -> Dict[str, Any]:
    """Read and extract one category file in a worker process.

    Args:
        args: Tuple of (file_path_str, extractor)

    Returns:
        Outcome dict with a serialized subtree when the file was indexed
    """
    file_path, extractor = args
    try:
        source = Path(file_path).read_bytes()
    except OSError as e:
        return {"path": file_path, "status": STATUS_READ_FAILURE, "error": str(e)}
    return _extract_source(source, file_path, extractor)


class IndexBuilder:
    """Builds registry trees from the category files of a workspace."""

    def __init__(
        self,
        workspace_root: Optional[Union[str, Path]] = None,
        settings: Optional[IndexerSettings] = None,
        resolver_settings: Optional[ResolverSettings] = None,
        registry: Optional[CategoryRegistry] = None,
        file_access: Optional[FileAccess] = None,
    ):
        self.workspace_root = Path(workspace_root) if workspace_root is not None else None
        self.settings = settings or IndexerSettings()
        if registry is None:
            registry = CategoryRegistry(resolver_settings)
            registry.discover_extractors()
        self.registry = registry
        self.file_access: FileAccess = file_access or LocalFileAccess()
        self.last_report: Optional[BuildReport] = None

    def discover_files(self, workspace_root: Optional[Union[str, Path]] = None) -> List[Tuple[str, str]]:
        """(category, file path) pairs in category order, then path order."""
        root = self._root(workspace_root)
        found: List[Tuple[str, str]] = []
        for category in self.registry.list_categories():
            convention = self.registry.get(category).convention
            pattern = convention.glob_pattern(self.settings.file_extension)
            for path in self.file_access.find_files(root, pattern, self.settings.extra_skip_dirs):
                found.append((category, _normalize_path(path)))
        return found

    def build_full(self, workspace_root: Optional[Union[str, Path]] = None) -> RegistryTree:
        """Index every category file under the workspace.

        Files that cannot be read or parsed are logged and skipped; the
        counts end up in ``last_report``.
        """
        start_time = time.time()
        files = self.discover_files(workspace_root)
        report = BuildReport(files_scanned=len(files))

        use_parallel = (
            self.settings.parallel_workers > 1
            and len(files) > self.settings.parallel_threshold
            and isinstance(self.file_access, LocalFileAccess)
        )
        if use_parallel:
            outcomes = self._extract_parallel(files)
        else:
            outcomes = [self._extract_sequential(path, category) for category, path in files]

        tree = RegistryTree()
        for outcome in outcomes:
            report.record(outcome)
            if outcome["status"] == STATUS_INDEXED:
                tree.merge(RegistryTree.from_serializable(outcome["tree"]))
            elif outcome["status"] in (STATUS_PARSE_FAILURE, STATUS_READ_FAILURE):
                logger.warning(f"Skipping {outcome['path']}: {outcome.get('error')}")
            else:
                logger.debug(f"{outcome['path']} does not follow its category convention")

        report.elapsed_seconds = time.time() - start_time
        self.last_report = report
        logger.info(
            f"Indexed {report.files_indexed}/{report.files_scanned} files "
            f"({tree.leaf_count()} entries) in {report.elapsed_seconds:.2f}s"
        )
        return tree

    def build_partial(self, file_path: Union[str, Path]) -> Optional[RegistryTree]:
        """Index a single file with the extractor its name selects.

        Returns:
            The file's subtree, or None when the file matches no category or
            cannot be indexed
        """
        category = self.registry.detect_category(file_path)
        if category is None:
            logger.debug(f"No category matches {file_path}")
            return None
        result = self.extract_file(file_path, category)
        return result.subtree if result is not None else None

    def extract_file(self, file_path: Union[str, Path], category: str) -> Optional[ExtractionResult]:
        """Run one category extractor on one file."""
        path = _normalize_path(file_path)
        extractor = self.registry.get(category)
        try:
            source = self.file_access.read_bytes(path)
        except OSError as e:
            logger.warning(f"Failed to read {path}: {e}")
            return None
        try:
            syntax = SyntaxIndex.parse(source, path)
        except ParseFailure as e:
            logger.warning(f"Skipping {path}: {e}")
            return None
        return extractor.extract(syntax, path)

    def _root(self, workspace_root: Optional[Union[str, Path]]) -> Path:
        root = workspace_root if workspace_root is not None else self.workspace_root
        if root is None:
            raise ValueError("No workspace root given")
        return Path(_normalize_path(root))

    def _extract_sequential(self, path: str, category: str) -> Dict[str, Any]:
        try:
            source = self.file_access.read_bytes(path)
        except OSError as e:
            return {"path": path, "status": STATUS_READ_FAILURE, "error": str(e)}
        return _extract_source(source, path, self.registry.get(category))

    def _extract_parallel(self, files: List[Tuple[str, str]]) -> List[Dict[str, Any]]:
        """Extract files in worker processes, returning outcomes in input order."""
        total_files = len(files)
        logger.info(
            f"Starting parallel indexing: {total_files} files, {self.settings.parallel_workers} workers"
        )
        outcomes: List[Optional[Dict[str, Any]]] = [None] * total_files

        with ProcessPoolExecutor(max_workers=self.settings.parallel_workers) as executor:
            futures = {
                executor.submit(_extract_file_worker, (path, self.registry.get(category))): i
                for i, (category, path) in enumerate(files)
            }
            for future in as_completed(futures):
                i = futures[future]
                try:
                    outcomes[i] = future.result()
                except Exception as exc:
                    path = files[i][1]
                    logger.debug(f"Parallel extraction failed for {path}: {exc}")
                    outcomes[i] = {"path": path, "status": STATUS_READ_FAILURE, "error": str(exc)}

        return [outcome for outcome in outcomes if outcome is not None]


class RegistryIndex:
    """Holds the live registry tree.

    Readers take ``snapshot()`` and never mutate it. Writers build a new tree
    (full rebuild) or a modified copy (file refresh) and swap the reference
    under one lock.

    Without an explicit store, the builder's ``cache_path`` setting (when set)
    selects a JsonRegistryStore.
    """

    def __init__(self, builder: Optional[IndexBuilder] = None, store: Optional[RegistryStore] = None):
        self.builder = builder or IndexBuilder()
        if store is None and self.builder.settings.cache_path:
            store = JsonRegistryStore(self.builder.settings.cache_path)
        self.store = store
        self._tree = RegistryTree()
        self._version = 0
        self._lock = threading.Lock()

    @property
    def version(self) -> int:
        """Incremented on every publish."""
        return self._version

    def snapshot(self) -> RegistryTree:
        return self._tree

    def publish(self, tree: RegistryTree) -> None:
        with self._lock:
            self._tree = tree
            self._version += 1

    def rebuild(self, workspace_root: Optional[Union[str, Path]] = None) -> RegistryTree:
        """Full build, publish, and store when a store is configured."""
        tree = self.builder.build_full(workspace_root)
        self.publish(tree)
        self.save()
        return tree

    def refresh_file(self, file_path: Union[str, Path]) -> RegistryTree:
        """Replace one file's entries with a fresh extraction of it."""
        partial = self.builder.build_partial(file_path)
        path = _normalize_path(file_path)
        with self._lock:
            updated = self._tree.copy()
            removed = updated.prune_file(path)
            if partial is not None:
                updated.merge(partial)
            self._tree = updated
            self._version += 1
        logger.debug(f"Refreshed {path}: removed {removed} entries, added {partial.leaf_count() if partial else 0}")
        return updated

    def remove_file(self, file_path: Union[str, Path]) -> int:
        """Drop every entry defined in a deleted file."""
        path = _normalize_path(file_path)
        with self._lock:
            updated = self._tree.copy()
            removed = updated.prune_file(path)
            self._tree = updated
            self._version += 1
        return removed

    def load(self) -> bool:
        """Publish the stored tree, if there is one."""
        if self.store is None:
            return False
        tree = self.store.load()
        if tree is None:
            return False
        self.publish(tree)
        return True

    def save(self) -> bool:
        if self.store is None:
            return False
        try:
            self.store.store(self.snapshot())
            return True
        except OSError as e:
            logger.warning(f"Failed to store registry: {e}")
            return False
