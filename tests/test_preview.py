# Copyright 2026 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.

"""Tests for hover previews."""

from js_sources import CONTROLLER_SOURCE, line_of
from plugin_resolver import DefinitionLocation, DefinitionPreview, SourcePosition, SourceRange, resolve


def make_location(text, name, start_line=3, end_line=5):
    return DefinitionLocation(
        file_path="/ws/eld-service.js",
        name=name,
        start=0,
        end=len(text),
        loc=SourceRange(
            start=SourcePosition(line=start_line, column=2),
            end=SourcePosition(line=end_line, column=4),
        ),
        text=text,
        canonical_path=("server", "plugins", "core-services", "EldService", name),
    )


class TestSignature:
    """Signature lines."""

    def test_const_arrow(self):
        text = "const checkEldPermission = async (request, h) => {\n    return true;\n  }"

        assert DefinitionPreview().signature(text, "checkEldPermission") == "const checkEldPermission: async (request, h)"

    def test_function_declaration(self):
        text = "function listDevices(request) {\n  return [];\n}"

        assert DefinitionPreview().signature(text, "listDevices") == "function listDevices: (request)"

    def test_single_unparenthesized_parameter(self):
        assert DefinitionPreview().signature("const trim = (value) => value;", "trim") == "const trim: (value)"
        assert DefinitionPreview().signature("const trim = value => value;", "trim") == "const trim: (value)"

    def test_default_parameter(self):
        text = "const page = (items, size = 10) => items.slice(0, size);"

        assert DefinitionPreview().signature(text, "page") == "const page: (items, size)"

    def test_not_a_function(self):
        assert DefinitionPreview().signature("8080", "port") is None


class TestRender:
    """HoverPreview records."""

    def test_render_position(self):
        preview = DefinitionPreview().render(make_location("const run = () => 1;", "run", 3, 5))

        assert preview.line == 3
        assert preview.line_count == 3
        assert preview.signature == "const run: ()"

    def test_markdown(self):
        preview = DefinitionPreview().render(make_location("const run = () => 1;", "run"))

        markdown = preview.to_markdown()

        assert "`/ws/eld-service.js:3`" in markdown
        assert "const run = () => 1;" in markdown

    def test_preview_of_resolved_reference(self, registry_tree):
        line = line_of(CONTROLLER_SOURCE, "eld.checkEldPermission")
        location = resolve(CONTROLLER_SOURCE, "checkEldPermission", line, registry_tree)

        preview = DefinitionPreview().render(location)

        assert preview.signature == "const checkEldPermission: async (request, h)"
        assert preview.line_count == 3
