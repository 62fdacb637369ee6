# Copyright 2026 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.

"""Shared fixtures."""

import pytest

from js_sources import DEFAULT_WORKSPACE, write_workspace
from plugin_resolver import IndexBuilder, IndexerSettings


@pytest.fixture
def workspace(tmp_path):
    """A workspace holding one file of every category plus a routes file."""
    return write_workspace(tmp_path / "workspace", DEFAULT_WORKSPACE)


@pytest.fixture
def sequential_builder(workspace):
    return IndexBuilder(workspace, settings=IndexerSettings(parallel_workers=1))


@pytest.fixture
def registry_tree(sequential_builder):
    return sequential_builder.build_full()
