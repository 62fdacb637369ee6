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

"""Persistence for registry trees.

A stored registry lets an editor session answer queries before the first
full build of the workspace has finished.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Protocol, Union

from plugin_resolver.codebase.registry_tree import RegistryTree

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class RegistryStore(Protocol):
    """Load and store a registry tree."""

    def load(self) -> Optional[RegistryTree]: ...

    def store(self, tree: RegistryTree) -> None: ...


class JsonRegistryStore:
    """Registry tree stored as ``{"version": 1, "tree": {...}}`` in one JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Optional[RegistryTree]:
        """Load the stored tree.

        Returns:
            The tree, or None when the file is missing, corrupt or from another version
        """
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read registry cache {self.path}: {e}")
            return None

        if not isinstance(data, dict) or data.get("version") != STORE_VERSION:
            logger.warning(f"Ignoring registry cache {self.path}: unsupported version")
            return None

        try:
            tree = RegistryTree.from_serializable(data["tree"])
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed registry cache {self.path}: {e}")
            return None

        logger.debug(f"Loaded {tree.leaf_count()} registry entries from {self.path}")
        return tree

    def store(self, tree: RegistryTree) -> None:
        """Write the tree atomically (temporary file, then rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"version": STORE_VERSION, "tree": tree.to_serializable()}
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_text(json.dumps(payload), encoding="utf-8")
        os.replace(tmp_path, self.path)
        logger.debug(f"Stored registry cache at {self.path}")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
