# Copyright 2026 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.

"""Tests for registry builds and the live registry index."""

import logging
import os

from js_sources import (
    MALFORMED_SERVICE_SOURCE,
    PLAIN_SERVICE_SOURCE,
    SERVICE_SOURCE,
    write_workspace,
)
from plugin_resolver import IndexBuilder, IndexerSettings, JsonRegistryStore, RegistryIndex, RegistryTree

ELD_PATH = ("server", "plugins", "core-services", "EldService")


class TestBuildFull:
    """Full workspace builds."""

    def test_indexes_every_category(self, registry_tree):
        plugins = registry_tree.get_subtree(("server", "plugins"))

        assert plugins.keys() == [
            "core-config",
            "core-services",
            "core-controller",
            "core-models",
            "core-utility-functions",
        ]
        assert registry_tree.get_node(ELD_PATH + ("checkEldPermission",)) is not None
        assert registry_tree.get_node(("server", "plugins", "core-models", "Driver")) is not None

    def test_node_paths_are_absolute(self, registry_tree, workspace):
        node = registry_tree.get_node(ELD_PATH + ("listDevices",))

        assert os.path.isabs(node.file_path)
        assert node.file_path == os.path.abspath(workspace / "src/services/eld-service.js")

    def test_report_counts(self, sequential_builder):
        sequential_builder.build_full()
        report = sequential_builder.last_report

        assert report.files_scanned == 5
        assert report.files_indexed == 5
        assert report.parse_failures == 0
        assert report.elapsed_seconds >= 0

    def test_malformed_file_does_not_stop_build(self, workspace, caplog):
        write_workspace(
            workspace,
            {
                "src/services/broken-service.js": MALFORMED_SERVICE_SOURCE,
                "src/services/plain-service.js": PLAIN_SERVICE_SOURCE,
            },
        )
        builder = IndexBuilder(workspace, settings=IndexerSettings(parallel_workers=1))

        with caplog.at_level(logging.WARNING, logger="plugin_resolver.codebase.indexer"):
            tree = builder.build_full()

        report = builder.last_report
        assert report.files_scanned == 7
        assert report.files_indexed == 5
        assert report.parse_failures == 1
        assert report.convention_mismatches == 1
        assert report.failed_files == [os.path.abspath(workspace / "src/services/broken-service.js")]
        assert tree.get_node(ELD_PATH + ("checkEldPermission",)) is not None
        assert "broken-service.js" in caplog.text

    def test_dependency_and_hidden_directories_are_skipped(self, workspace, sequential_builder):
        write_workspace(
            workspace,
            {
                "node_modules/pkg/other-service.js": SERVICE_SOURCE.replace("EldService", "PkgService"),
                ".cache/stale-service.js": SERVICE_SOURCE.replace("EldService", "StaleService"),
            },
        )

        tree = sequential_builder.build_full()

        services = tree.get_subtree(("server", "plugins", "core-services"))
        assert services.keys() == ["EldService"]

    def test_extra_skip_dirs(self, workspace):
        builder = IndexBuilder(workspace, settings=IndexerSettings(parallel_workers=1, extra_skip_dirs=["models"]))

        tree = builder.build_full()

        assert tree.get_subtree(("server", "plugins", "core-models")) is None

    def test_parallel_build_matches_sequential(self, workspace, registry_tree):
        builder = IndexBuilder(workspace, settings=IndexerSettings(parallel_workers=2, parallel_threshold=0))

        tree = builder.build_full()

        assert tree == registry_tree
        assert builder.last_report.files_indexed == 5

    def test_empty_workspace(self, tmp_path):
        builder = IndexBuilder(tmp_path, settings=IndexerSettings(parallel_workers=1))

        tree = builder.build_full()

        assert tree.leaf_count() == 0
        assert builder.last_report.files_scanned == 0


class TestBuildPartial:
    """Single-file builds."""

    def test_partial_build_of_service(self, workspace, sequential_builder):
        subtree = sequential_builder.build_partial(workspace / "src/services/eld-service.js")

        assert [path[-1] for path, _ in subtree.iter_leaves()] == ["checkEldPermission", "listDevices"]

    def test_unknown_category(self, workspace, sequential_builder):
        assert sequential_builder.build_partial(workspace / "src/routes/eld-routes.js") is None

    def test_missing_file(self, workspace, sequential_builder):
        assert sequential_builder.build_partial(workspace / "src/services/gone-service.js") is None

    def test_extract_file(self, workspace, sequential_builder):
        result = sequential_builder.extract_file(workspace / "src/models/driver-model.js", "model")

        assert result.declared_name == "Driver"


class TestRegistryIndex:
    """Publishing and single-file refresh."""

    def test_rebuild_publishes(self, sequential_builder):
        index = RegistryIndex(sequential_builder)

        tree = index.rebuild()

        assert index.snapshot() is tree
        assert index.version == 1

    def test_refresh_replaces_file_entries(self, workspace, sequential_builder):
        index = RegistryIndex(sequential_builder)
        index.rebuild()
        before = index.snapshot()

        service_file = workspace / "src/services/eld-service.js"
        service_file.write_text(SERVICE_SOURCE.replace("listDevices", "auditDevices"), encoding="utf-8")
        after = index.refresh_file(service_file)

        assert after.get_node(ELD_PATH + ("listDevices",)) is None
        assert after.get_node(ELD_PATH + ("auditDevices",)) is not None
        assert after.get_node(("server", "plugins", "core-models", "Driver")) is not None
        assert before.get_node(ELD_PATH + ("listDevices",)) is not None
        assert index.version == 2

    def test_refresh_of_broken_file_drops_its_entries(self, workspace, sequential_builder):
        index = RegistryIndex(sequential_builder)
        index.rebuild()

        service_file = workspace / "src/services/eld-service.js"
        service_file.write_text(MALFORMED_SERVICE_SOURCE, encoding="utf-8")
        tree = index.refresh_file(service_file)

        assert tree.get_subtree(("server", "plugins", "core-services")) is None

    def test_remove_file(self, workspace, sequential_builder):
        index = RegistryIndex(sequential_builder)
        index.rebuild()

        removed = index.remove_file(workspace / "src/services/eld-service.js")

        assert removed == 2
        assert index.snapshot().get_subtree(("server", "plugins", "core-services")) is None

    def test_store_and_load(self, tmp_path, sequential_builder):
        store = JsonRegistryStore(tmp_path / "cache" / "registry.json")
        RegistryIndex(sequential_builder, store=store).rebuild()

        fresh = RegistryIndex(sequential_builder, store=store)

        assert fresh.load()
        assert fresh.snapshot().get_node(ELD_PATH + ("checkEldPermission",)) is not None

    def test_load_without_store(self):
        index = RegistryIndex(IndexBuilder(settings=IndexerSettings(parallel_workers=1)))

        assert not index.load()
        assert index.snapshot() == RegistryTree()

    def test_cache_path_setting_selects_store(self, workspace, tmp_path):
        cache = tmp_path / "cache" / "registry.json"
        settings = IndexerSettings(parallel_workers=1, cache_path=str(cache))
        index = RegistryIndex(IndexBuilder(workspace, settings=settings))

        index.rebuild()

        assert isinstance(index.store, JsonRegistryStore)
        assert cache.exists()
        fresh = RegistryIndex(IndexBuilder(workspace, settings=settings))
        assert fresh.load()
        assert fresh.snapshot().get_node(ELD_PATH + ("checkEldPermission",)) is not None
