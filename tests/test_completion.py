# Copyright 2026 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.

"""Tests for registry member completion."""

from js_sources import CONTROLLER_SOURCE
from plugin_resolver import CompletionProvider
from plugin_resolver.codebase.completion import split_expression


class TestSplitExpression:
    """Expression segmentation."""

    def test_trailing_dot_adds_empty_segment(self):
        assert split_expression("server.plugins.") == ["server", "plugins", ""]

    def test_subscript_segment(self):
        assert split_expression('server.plugins["core-services"].Eld') == [
            "server",
            "plugins",
            "core-services",
            "Eld",
        ]

    def test_non_chain_text_splits_on_dots(self):
        assert split_expression("server.plugins.core-services.") == ["server", "plugins", "core-services", ""]

    def test_empty(self):
        assert split_expression("  ") == []


class TestCompletionProvider:
    """Completion against a built registry."""

    def test_plugin_markers(self, registry_tree):
        items = CompletionProvider(registry_tree).complete(CONTROLLER_SOURCE, "server.plugins.")

        assert items == [
            "core-config",
            "core-services",
            "core-controller",
            "core-models",
            "core-utility-functions",
        ]

    def test_prefix_filter(self, registry_tree):
        items = CompletionProvider(registry_tree).complete(CONTROLLER_SOURCE, "server.plugins.core-s")

        assert items == ["core-services"]

    def test_declared_names(self, registry_tree):
        items = CompletionProvider(registry_tree).complete(CONTROLLER_SOURCE, 'server.plugins["core-services"].')

        assert items == ["EldService"]

    def test_local_alias_is_expanded(self, registry_tree):
        items = CompletionProvider(registry_tree).complete(CONTROLLER_SOURCE, "eld.")

        assert items == ["checkEldPermission", "listDevices"]

    def test_explicit_current_word(self, registry_tree):
        items = CompletionProvider(registry_tree).complete(CONTROLLER_SOURCE, "eld.", current_word="list")

        assert items == ["listDevices"]

    def test_root_argument_with_other_name(self, registry_tree):
        document = "internals.controller = (srv) => {\n  return srv.plugins;\n};\n"

        items = CompletionProvider(registry_tree).complete(document, 'srv.plugins["core-models"].')

        assert items == ["Driver"]
        assert registry_tree.keys() == ["server"]

    def test_no_root_function(self, registry_tree):
        assert CompletionProvider(registry_tree).complete("const a = 1;\n", "server.plugins.") == []

    def test_unknown_path(self, registry_tree):
        assert CompletionProvider(registry_tree).complete(CONTROLLER_SOURCE, "server.nothing.") == []
