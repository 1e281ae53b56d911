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

from pathlib import Path

import pytest

from src.gem_index.gh_logging import Logger


def test_local_output(capsys: pytest.CaptureFixture[str]):
    log = Logger("gems")
    log.info("hello")
    log.warning("careful", file=Path("specs/a.gemspec"), line=3)
    assert capsys.readouterr().out.splitlines() == [
        "INFO: gems hello",
        "WARNING: specs/a.gemspec:3 gems careful",
    ]


def test_github_actions_annotations(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    log = Logger("gems")
    log.ok("done")
    log.warning("careful", file=Path("specs/a.gemspec"), line=3)
    log.error("broken", file=Path("specs/b.gemspec"))
    assert capsys.readouterr().out.splitlines() == [
        "::notice::gems done",
        "::warning file=specs/a.gemspec,line=3::gems careful",
        "::error file=specs/b.gemspec::gems broken",
    ]


def test_debug_only_when_verbose(capsys: pytest.CaptureFixture[str]):
    log = Logger("gems")
    log.debug("hidden")
    Logger.verbose = True
    log.debug("shown")
    assert capsys.readouterr().out.splitlines() == ["DEBUG: gems shown"]


def test_warnings_are_remembered():
    first, second = Logger("first"), Logger("second")
    first.warning("one")
    second.warning("two")
    assert first.warnings == ["one"]
    assert Logger.issued_warnings == ["first: one", "second: two"]


def test_fatal_exits(capsys: pytest.CaptureFixture[str]):
    log = Logger("gems")
    with pytest.raises(SystemExit) as exc:
        log.fatal("giving up")
    assert exc.value.code == 1
    assert "ERROR: gems giving up" in capsys.readouterr().out
