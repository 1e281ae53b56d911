# *******************************************************************************
# Copyright (c) 2025 Contributors to the Eclipse Foundation
#
# See the NOTICE file(s) distributed with this work for additional
# information regarding copyright ownership.
#
# This program and the accompanying materials are made available under the
# terms of the Apache License Version 2.0 which is available at
# https://www.apache.org/licenses/LICENSE-2.0
#
# SPDX-License-Identifier: Apache-2.0
# *******************************************************************************

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from src.gem_index.requirement import Dependency
from src.gem_index.source_index import RuntimePath, RuntimeSourceIndex, SourceIndex
from tests.conftest import MockLogger, make_spec

A1 = make_spec("a", "1")
A2 = make_spec("a", "2")
A3A = make_spec("a", "3.a")
A_EVIL9 = make_spec("a_evil", "9")
C1_2 = make_spec("c", "1.2")


@pytest.fixture
def runtime_index(install_specs: Callable[..., None]) -> RuntimeSourceIndex:
    install_specs("/gems", [A1, A2, A3A, A_EVIL9, C1_2])
    return RuntimeSourceIndex.from_gems_in("/gems")


class TestRuntimeSourceIndex:
    def test_search_with_version(self, runtime_index: RuntimeSourceIndex):
        assert runtime_index.search(Dependency.of("a", ">= 2")) == [A2, A3A]

    def test_search_with_default_requirement(self, runtime_index: RuntimeSourceIndex):
        assert runtime_index.search(Dependency.of("a")) == [A1, A2, A3A]

    def test_search_pessimistic(self, runtime_index: RuntimeSourceIndex):
        assert runtime_index.search(Dependency.of("c", "~> 1.1")) == [C1_2]

    def test_search_unknown_gem(self, runtime_index: RuntimeSourceIndex):
        assert runtime_index.search(Dependency.of("missing")) == []

    def test_find_name(self, runtime_index: RuntimeSourceIndex):
        assert runtime_index.find_name("a", "< 2") == [A1]
        assert runtime_index.find_name("a_evil") == [A_EVIL9]

    def test_multiple_gem_dirs_in_order(self, install_specs: Callable[..., None]):
        install_specs("/home/gems", [A2])
        install_specs("/system/gems", [A1])
        index = RuntimeSourceIndex.from_installed_gems(
            [Path("/home/gems"), Path("/system/gems")]
        )
        assert index.search(Dependency.of("a")) == [A2, A1]

    def test_loaded_specs_remember_their_file(self, runtime_index: RuntimeSourceIndex):
        (spec,) = runtime_index.find_name("c")
        assert spec.path == Path("/gems/specifications/c/1.2.gemspec")


class TestRuntimePath:
    def test_specs_are_read_once(self, install_specs: Callable[..., None]):
        install_specs("/gems", [A1])
        path = RuntimePath("/gems")
        assert path["a"] == [A1]

        install_specs("/gems", [A2])
        assert path["a"] == [A1]
        assert RuntimePath("/gems")["a"] == [A1, A2]

    def test_ignores_other_files(self, build_fake_filesystem: Callable[..., None]):
        build_fake_filesystem(
            {"gems": {"specifications": {"a": {"README": "not a spec"}}}}
        )
        assert RuntimePath("/gems")["a"] == []

    def test_invalid_spec_is_skipped(
        self, build_fake_filesystem: Callable[..., None], mock_logger: MockLogger
    ):
        build_fake_filesystem(
            {
                "gems": {
                    "specifications": {
                        "a": {
                            "1.gemspec": '{"name": "a", "version": "1"}',
                            "2.gemspec": "{not json",
                            "3.gemspec": '{"name": "a", "version": "3@"}',
                            "4.gemspec": '["a", "4"]',
                        }
                    }
                }
            }
        )
        with patch("src.gem_index.source_index.log", mock_logger):
            specs = RuntimePath("/gems")["a"]

        assert specs == [A1]
        assert len(mock_logger.warning_messages) == 3
        assert all("could not be parsed" in m for m in mock_logger.warning_messages)

    def test_spec_for_other_gem_is_skipped(
        self, install_specs: Callable[..., None], mock_logger: MockLogger
    ):
        install_specs("/gems", [make_spec("b", "1")])
        # move b's spec below a's directory
        Path("/gems/specifications/a").mkdir()
        Path("/gems/specifications/b/1.gemspec").rename(
            "/gems/specifications/a/1.gemspec"
        )
        with patch("src.gem_index.source_index.log", mock_logger):
            assert RuntimePath("/gems")["a"] == []
        assert "declares gem 'b'" in mock_logger.warning_messages[0]


class TestSourceIndex:
    def test_add_and_remove(self):
        index = SourceIndex([A1, C1_2])
        assert index.specification("a-1") == A1
        assert "c-1.2" in index

        index.remove_spec("a-1")
        assert index.specification("a-1") is None
        assert len(index) == 1

    def test_search_sorted_by_version(self):
        index = SourceIndex([A3A, A1, A2])
        assert index.search(Dependency.of("a", "> 1")) == [A2, A3A]

    def test_list_round_trip(self):
        index = SourceIndex([A1, A3A])
        restored = SourceIndex.from_list(index.to_list())
        assert sorted(name for name, _ in restored) == ["a-1", "a-3.a"]
        assert restored.specification("a-3.a") == A3A

    @pytest.mark.parametrize("data", [{"a": 1}, ["a-1"], [{"name": "a"}]])
    def test_from_invalid_list(self, data: object):
        with pytest.raises(ValueError):
            SourceIndex.from_list(data)
