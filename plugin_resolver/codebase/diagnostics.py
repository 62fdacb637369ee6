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

"""Naming-convention diagnostics for service and controller files.

A file named ``eld-service.js`` is expected to declare
``serviceName: "EldService"``; any other name (or none) produces a warning
over the returned object.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from plugin_resolver.codebase.registry_tree import SourceRange
from plugin_resolver.codebase.syntax import MemberKind, SyntaxIndex, unwrap
from plugin_resolver.config import ResolverSettings
from plugin_resolver.errors import ParseFailure

logger = logging.getLogger(__name__)

# (file stem suffix, property expected to hold the PascalCase stem)
NAMED_CONVENTIONS: Tuple[Tuple[str, str], ...] = (
    ("service", "serviceName"),
    ("controller", "controllerName"),
)


class NamingWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    start: int  # byte offset
    end: int
    range: SourceRange


def to_pascal_case(name: str) -> str:
    """``eld-service`` -> ``EldService``."""
    pascal = re.sub(r"(^|-)(\w)", lambda m: m.group(2).upper(), name)
    return re.sub(r"[^a-zA-Z0-9]", "", pascal)


class NamingDiagnostics:
    """Checks that category files declare the name their file name implies."""

    def __init__(self, settings: Optional[ResolverSettings] = None):
        self.settings = settings or ResolverSettings()

    def analyze(self, document_text: str, document_name: str) -> List[NamingWarning]:
        """Warnings for one document.

        Args:
            document_text: Document text
            document_name: File name or path; only its stem is used
        """
        stem = Path(document_name).stem
        property_name = self._convention_for(stem)
        if property_name is None:
            return []
        expected = to_pascal_case(stem)

        try:
            syntax = SyntaxIndex.parse(document_text, document_name, strict=True)
        except ParseFailure as e:
            logger.debug(f"Skipping naming diagnostics: {e}")
            return []

        warnings: List[NamingWarning] = []
        bindings = syntax.namespace_assignments(
            {"controller"}, self.settings.namespace_identifier, require_parameter=False
        )
        for binding in bindings:
            returned = self._returned_expression(syntax, binding.function)
            if returned is not None and self._declares(syntax, returned, property_name, expected):
                continue
            anchor = returned if returned is not None else binding.function
            warnings.append(
                NamingWarning(
                    message=f'Recommended {property_name} as "{expected}"',
                    start=anchor.start_byte,
                    end=anchor.end_byte,
                    range=syntax.source_range(anchor),
                )
            )
        return warnings

    def _convention_for(self, stem: str) -> Optional[str]:
        lowered = stem.lower()
        for suffix, property_name in NAMED_CONVENTIONS:
            if lowered.endswith(suffix):
                return property_name
        return None

    def _returned_expression(self, syntax: SyntaxIndex, function):
        body = function.child_by_field_name("body")
        if body is None:
            return None
        if body.type != "statement_block":
            return unwrap(body)
        statement = syntax.first_return(body)
        return syntax.return_argument(statement) if statement is not None else None

    def _declares(self, syntax: SyntaxIndex, returned, property_name: str, expected: str) -> bool:
        if returned.type != "object":
            return False
        for member in syntax.object_members(returned):
            if member.kind is not MemberKind.PAIR or member.key != property_name:
                continue
            if syntax.string_value(unwrap(member.value)) == expected:
                return True
        return False
