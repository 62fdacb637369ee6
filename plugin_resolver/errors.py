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

"""Error taxonomy for indexing and resolution.

None of these escape the public entry points: builders count and log them,
the resolver turns them into a ``None`` result.
"""

from typing import Optional


class PluginResolverError(Exception):
    """Base class for all plugin-resolver errors."""


class ParseFailure(PluginResolverError):
    """Source text did not parse cleanly."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message)
        self.file_path = file_path


class ConventionMismatch(PluginResolverError):
    """A file does not follow the declaration convention of a category."""


class AmbiguousReference(PluginResolverError):
    """More than one access chain matches a reference at the same distance.

    ``candidates`` holds the tied chains in document order.
    """

    def __init__(self, message: str, candidates: Optional[list] = None):
        super().__init__(message)
        self.candidates = candidates or []


class UnresolvedReference(PluginResolverError):
    """Alias tracing or registry lookup did not reach a definition."""
