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

"""Category extractor registry.

Manages registration of category extractors and maps file names to the
category whose naming convention they follow.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Type, Union

from plugin_resolver.categories.base import BaseCategoryExtractor
from plugin_resolver.config import ResolverSettings

logger = logging.getLogger(__name__)

# Type alias for extractor factory
ExtractorFactory = Callable[[ResolverSettings], BaseCategoryExtractor]


class CategoryRegistry:
    """Registry for category extractors.

    Categories keep their registration order; builds merge in that order and
    file detection checks suffixes in that order.
    """

    def __init__(self, settings: Optional[ResolverSettings] = None):
        self.settings = settings or ResolverSettings()
        self._extractors: Dict[str, ExtractorFactory] = {}
        self._instances: Dict[str, BaseCategoryExtractor] = {}

    def register(
        self,
        name: str,
        extractor: Union[Type[BaseCategoryExtractor], ExtractorFactory],
    ) -> None:
        """Register a category extractor.

        Args:
            name: Canonical category name
            extractor: Extractor class or factory taking ResolverSettings
        """
        name = name.lower()
        self._extractors[name] = extractor
        self._instances.pop(name, None)
        logger.debug(f"Registered category extractor: {name}")

    def unregister(self, name: str) -> None:
        name = name.lower()
        if name in self._extractors:
            del self._extractors[name]
            self._instances.pop(name, None)
            logger.info(f"Unregistered category extractor: {name}")

    def get(self, name: str) -> BaseCategoryExtractor:
        """Get a category extractor by name.

        Raises:
            KeyError: If the category is not registered
        """
        name = name.lower()
        if name not in self._extractors:
            available = ", ".join(self._extractors)
            raise KeyError(f"Category '{name}' not registered. Available: {available}")
        return self._get_or_create_instance(name)

    def has(self, name: str) -> bool:
        return name.lower() in self._extractors

    def detect_category(self, path: Union[str, Path]) -> Optional[str]:
        """Category whose file suffix the path's stem ends with, if any."""
        for name in self._extractors:
            if self._get_or_create_instance(name).detect_from_file(path):
                return name
        return None

    def list_categories(self) -> List[str]:
        """Registered category names in registration order."""
        return list(self._extractors)

    def extractors(self) -> List[BaseCategoryExtractor]:
        return [self._get_or_create_instance(name) for name in self._extractors]

    def _get_or_create_instance(self, name: str) -> BaseCategoryExtractor:
        if name not in self._instances:
            self._instances[name] = self._extractors[name](self.settings)
        return self._instances[name]

    def discover_extractors(self) -> int:
        """Register the built-in category extractors.

        Returns:
            Number of extractors registered
        """
        from plugin_resolver.categories.extractors import (
            ConfigExtractor,
            ControllerExtractor,
            ModelExtractor,
            ServiceExtractor,
            UtilityFunctionExtractor,
        )

        extractors = [
            ("config", ConfigExtractor),
            ("service", ServiceExtractor),
            ("controller", ControllerExtractor),
            ("model", ModelExtractor),
            ("utility-function", UtilityFunctionExtractor),
        ]

        count = 0
        for name, extractor_class in extractors:
            try:
                self.register(name, extractor_class)
                count += 1
            except Exception as e:
                logger.warning(f"Failed to register {name} extractor: {e}")

        logger.debug(f"Discovered {count} category extractors")
        return count


# Global registry instance
_global_registry: Optional[CategoryRegistry] = None


def get_category_registry() -> CategoryRegistry:
    """Get the global category registry.

    Returns:
        Global registry instance with the built-in extractors registered
    """
    global _global_registry
    if _global_registry is None:
        _global_registry = CategoryRegistry()
        _global_registry.discover_extractors()
    return _global_registry
