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

"""Directory filtering for category file discovery.

Installed packages and build output routinely contain files whose names
match the category globs (``node_modules/**/x-service.js``), so discovery
drops them along with every hidden directory.
"""

from pathlib import Path
from typing import Iterable, Optional, Set

# Hidden directories are excluded separately by is_hidden_path()
DEFAULT_SKIP_DIRS: Set[str] = {
    # Dependencies
    "node_modules",
    "bower_components",
    "jspm_packages",
    "vendor",
    "third_party",
    # Build outputs
    "build",
    "dist",
    "out",
    "coverage",
    # Python tooling that sometimes lives next to JS projects
    "__pycache__",
    "venv",
}


def is_hidden_path(path: Path) -> bool:
    """Check if any component of the path starts with '.' (except '.' and '..')."""
    for part in path.parts:
        if part.startswith(".") and part not in (".", ".."):
            return True
    return False


def relative_to_root(path: Path, root: Optional[Path]) -> Path:
    """Path relative to root when it lies inside it, else unchanged."""
    if root is None:
        return path
    try:
        return path.relative_to(root)
    except ValueError:
        return path


def should_ignore_path(
    path: Path,
    root: Optional[Path] = None,
    skip_dirs: Optional[Set[str]] = None,
    extra_skip_dirs: Optional[Iterable[str]] = None,
) -> bool:
    """Check if a discovered file should be left out of the registry.

    Only the components below ``root`` are checked, so a workspace that itself
    sits under a hidden directory is still indexed.

    Example:
        >>> should_ignore_path(Path("src/eld-service.js"))
        False
        >>> should_ignore_path(Path("node_modules/pkg/x-service.js"))
        True
        >>> should_ignore_path(Path("/home/u/.cache/ws/a-service.js"), root=Path("/home/u/.cache/ws"))
        False
    """
    relative = relative_to_root(path, root)
    # Directory components only
    parents = Path(*relative.parts[:-1]) if len(relative.parts) > 1 else Path()

    if is_hidden_path(parents):
        return True

    effective = get_effective_skip_dirs(skip_dirs, extra_skip_dirs)
    return any(part in effective for part in parents.parts)


def get_effective_skip_dirs(
    base_skip_dirs: Optional[Set[str]] = None,
    extra_skip_dirs: Optional[Iterable[str]] = None,
) -> Set[str]:
    """Union of the base skip set (DEFAULT_SKIP_DIRS by default) and extras."""
    effective = set(base_skip_dirs) if base_skip_dirs is not None else set(DEFAULT_SKIP_DIRS)
    if extra_skip_dirs:
        effective |= set(extra_skip_dirs)
    return effective
