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
import json
import zlib
from pathlib import Path
from typing import Any

import pytest

from src.gem_index.gh_logging import Logger
from src.gem_index.spec import GemSpec
from src.gem_index.version import Version


class MockLogger(Logger):
    """Logger that captures messages for testing."""

    def __init__(self):
        super().__init__("test")
        self.debug_messages: list[str] = []
        self.info_messages: list[str] = []
        self.warning_messages: list[str] = []
        self.error_messages: list[str] = []

    def _print(
        self, prefix: str, msg: str, file: Path | None = None, line: int | None = None
    ) -> None:
        if prefix == "debug":
            self.debug_messages.append(msg)
        elif prefix == "info":
            self.info_messages.append(msg)
        elif prefix == "warning":
            self.warning_messages.append(msg)
        elif prefix == "error":
            self.error_messages.append(msg)


@pytest.fixture(autouse=True)
def reset_logging(monkeypatch: pytest.MonkeyPatch):
    """Start each test without remembered warnings or debug output."""
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    Logger.reset()
    Logger.verbose = False
    yield
    Logger.reset()
    Logger.verbose = False


@pytest.fixture
def mock_logger() -> MockLogger:
    """Create a mock logger for testing."""
    return MockLogger()


@pytest.fixture
def build_fake_filesystem(fs: Any):
    """Convenience helper to build a fake filesystem from a nested dict."""

    def _build(structure: dict[str, object], base_path: str = "") -> None:
        base = base_path or "/"
        for name, value in structure.items():
            path = f"{base.rstrip('/')}/{name}"
            if isinstance(value, dict):
                fs.makedirs(path, exist_ok=True)
                _build(value, path)
            else:
                fs.create_file(path, contents=value)

    return _build


def make_spec(name: str = "a", version: str = "1.0", summary: str = "") -> GemSpec:
    return GemSpec(name=name, version=Version(version), summary=summary)


def spec_json(spec: GemSpec) -> str:
    return json.dumps(spec.to_dict())


@pytest.fixture
def install_specs(build_fake_filesystem):
    """Write specs below <gem_dir>/specifications/<name>/<version>.gemspec."""

    def _install(gem_dir: str, specs: list[GemSpec]) -> None:
        by_name: dict[str, dict[str, object]] = {}
        for spec in specs:
            by_name.setdefault(spec.name, {})[f"{spec.version}.gemspec"] = spec_json(
                spec
            )
        build_fake_filesystem({"specifications": by_name}, gem_dir)

    return _install


def quick_index(*full_names: str) -> bytes:
    return zlib.compress("\n".join(full_names).encode("utf-8"))


def quick_spec(spec: GemSpec) -> bytes:
    return zlib.compress(spec_json(spec).encode("utf-8"))
