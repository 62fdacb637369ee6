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

"""File access used by the indexer and the resolver.

Editor glue can supply its own implementation (for example one that serves
unsaved buffers); LocalFileAccess reads the local file system.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Union

from plugin_resolver.codebase.ignore_patterns import should_ignore_path

PathLike = Union[str, Path]


class FileAccess(Protocol):
    """Read files and discover category files."""

    def read_text(self, path: PathLike) -> str: ...

    def read_bytes(self, path: PathLike, start: int = 0, end: Optional[int] = None) -> bytes:
        """Bytes ``[start, end)`` of a file; ``end=None`` reads to the end."""
        ...

    def find_files(
        self, root: PathLike, pattern: str, extra_skip_dirs: Optional[Iterable[str]] = None
    ) -> List[Path]:
        """Files under root matching a glob, sorted, dependency directories excluded."""
        ...


class LocalFileAccess:
    """FileAccess over the local file system."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def read_text(self, path: PathLike) -> str:
        return Path(path).read_text(encoding=self.encoding)

    def read_bytes(self, path: PathLike, start: int = 0, end: Optional[int] = None) -> bytes:
        if start < 0 or (end is not None and end < start):
            raise ValueError(f"Invalid byte range [{start}, {end})")
        with open(path, "rb") as f:
            f.seek(start)
            if end is None:
                return f.read()
            return f.read(end - start)

    def find_files(
        self, root: PathLike, pattern: str, extra_skip_dirs: Optional[Iterable[str]] = None
    ) -> List[Path]:
        root_path = Path(root)
        extras = list(extra_skip_dirs or [])
        found = [
            path
            for path in root_path.glob(pattern)
            if path.is_file() and not should_ignore_path(path, root=root_path, extra_skip_dirs=extras)
        ]
        return sorted(found)
