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

"""Utility function category extractor."""

from plugin_resolver.categories.base import CategoryConvention, MemberCategoryExtractor


class UtilityFunctionExtractor(MemberCategoryExtractor):
    """Shared helpers in ``*-function.js`` files, named by ``UtilityName``."""

    def _create_convention(self) -> CategoryConvention:
        return CategoryConvention(
            name="utility-function",
            display_name="Utility Function",
            marker="core-utility-functions",
            file_suffix="function",
            namespace_property="controller",
            name_property="UtilityName",
        )
