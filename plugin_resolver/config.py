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

"""Settings for the indexer and the reference resolver.

Both models accept plain mappings through ``model_validate`` so editor glue
can pass its workspace configuration straight through.
"""

import os
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

# Reference must be within this many lines of the query line
MAX_LINE_DISTANCE = 5

# server -> plugins -> category -> declared name -> member
MIN_CANONICAL_PATH_LENGTH = 5

MAX_IDENTIFIER_LENGTH = 100

ROOT_MARKER = "server"
REGISTRY_ROOT_PATH: Tuple[str, ...] = (ROOT_MARKER, "plugins")
NAMESPACE_IDENTIFIER = "internals"


class ResolverSettings(BaseModel):
    """Thresholds and naming conventions used during resolution."""

    max_line_distance: int = Field(
        default=MAX_LINE_DISTANCE,
        ge=0,
        description="Maximum distance in lines between the query and a candidate chain",
    )
    min_canonical_path_length: int = Field(
        default=MIN_CANONICAL_PATH_LENGTH,
        ge=1,
        description="Minimum number of non-alias segments in a traced path",
    )
    max_identifier_length: int = Field(
        default=MAX_IDENTIFIER_LENGTH,
        ge=1,
        description="References at or above this length are rejected up front",
    )
    root_marker: str = Field(
        default=ROOT_MARKER, description="Synthetic first segment of every registry path"
    )
    registry_root_path: Tuple[str, ...] = Field(
        default=REGISTRY_ROOT_PATH,
        description="Segments every category subtree is rooted under",
    )
    namespace_identifier: str = Field(
        default=NAMESPACE_IDENTIFIER,
        description="Sentinel object whose properties receive the plugin functions",
    )
    root_function_properties: Tuple[str, ...] = Field(
        default=("controller", "applyRoutes", "Model"),
        description="Namespace properties whose function parameter is the root object",
    )
    handler_property: str = Field(
        default="handler", description="Object property whose value is a route handler chain"
    )


def _default_workers() -> int:
    return min(8, os.cpu_count() or 1)


class IndexerSettings(BaseModel):
    """File discovery and parallelism for registry builds."""

    file_extension: str = Field(default=".js", description="Extension of category files")
    extra_skip_dirs: List[str] = Field(
        default_factory=list, description="Directory names skipped in addition to the defaults"
    )
    parallel_workers: int = Field(
        default_factory=_default_workers,
        ge=1,
        description="Worker processes used for full builds",
    )
    parallel_threshold: int = Field(
        default=50,
        ge=0,
        description="Minimum number of files before a build uses worker processes",
    )
    cache_path: Optional[str] = Field(
        default=None, description="Where the serialized registry tree is stored"
    )
