# Copyright 2026 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.

"""Tests for naming-convention diagnostics."""

import pytest

from js_sources import CONTROLLER_SOURCE, SERVICE_SOURCE, UTILITY_SOURCE, line_of
from plugin_resolver import NamingDiagnostics
from plugin_resolver.codebase.diagnostics import to_pascal_case


class TestPascalCase:
    @pytest.mark.parametrize(
        "stem,expected",
        [
            ("eld-service", "EldService"),
            ("user-auth-controller", "UserAuthController"),
            ("eld", "Eld"),
        ],
    )
    def test_conversion(self, stem, expected):
        assert to_pascal_case(stem) == expected


class TestNamingDiagnostics:
    """Warnings for service and controller files."""

    def test_matching_service_name(self):
        assert NamingDiagnostics().analyze(SERVICE_SOURCE, "src/services/eld-service.js") == []

    def test_matching_controller_name(self):
        assert NamingDiagnostics().analyze(CONTROLLER_SOURCE, "eld-controller.js") == []

    def test_wrong_service_name(self):
        source = SERVICE_SOURCE.replace('"EldService"', '"DeviceService"')

        warnings = NamingDiagnostics().analyze(source, "eld-service.js")

        assert len(warnings) == 1
        assert warnings[0].message == 'Recommended serviceName as "EldService"'
        assert warnings[0].range.start.line == line_of(source, "  return {")

    def test_missing_controller_name(self):
        source = CONTROLLER_SOURCE.replace('    controllerName: "EldController",\n', "")

        warnings = NamingDiagnostics().analyze(source, "eld-controller.js")

        assert [w.message for w in warnings] == ['Recommended controllerName as "EldController"']

    def test_name_from_variable_is_flagged(self):
        source = SERVICE_SOURCE.replace('serviceName: "EldService"', "serviceName: NAME")

        warnings = NamingDiagnostics().analyze(source, "eld-service.js")

        assert len(warnings) == 1

    def test_other_categories_are_not_checked(self):
        assert NamingDiagnostics().analyze(UTILITY_SOURCE, "date-function.js") == []

    def test_unparseable_document(self):
        broken = SERVICE_SOURCE.replace("return {", "return {{")

        assert NamingDiagnostics().analyze(broken, "eld-service.js") == []

    def test_warning_offsets_cover_returned_object(self):
        source = SERVICE_SOURCE.replace('"EldService"', '"Other"')

        warning = NamingDiagnostics().analyze(source, "eld-service.js")[0]

        covered = source.encode("utf-8")[warning.start : warning.end].decode("utf-8")
        assert covered.startswith("{")
        assert covered.endswith("}")
        assert '"Other"' in covered

    def test_function_without_parameter_is_checked(self):
        source = 'internals.controller = () => ({ serviceName: "Wrong" });\n'

        warnings = NamingDiagnostics().analyze(source, "eld-service.js")

        assert [w.message for w in warnings] == ['Recommended serviceName as "EldService"']
