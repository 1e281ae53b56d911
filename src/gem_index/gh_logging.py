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

import os
from contextlib import suppress
from pathlib import Path
from typing import NoReturn

# GitHub workflow commands have no "success" or "info" level.
GITHUB_COMMANDS = {
    "debug": "debug",
    "info": "notice",
    "success": "notice",
    "warning": "warning",
    "error": "error",
}

LOCAL_PREFIXES = {
    "debug": "DEBUG",
    "info": "INFO",
    "success": "SUCCESS",
    "warning": "WARNING",
    "error": "ERROR",
}


def is_running_in_github_actions() -> bool:
    return "GITHUB_ACTIONS" in os.environ


def is_debug_requested() -> bool:
    return os.environ.get("RUNNER_DEBUG") == "1"


class Logger:
    """Minimal logger that prints locally and emits annotations on GitHub Actions.

    Warnings are remembered, so a command can finish its work and
    still report failure at the end.
    """

    verbose: bool = is_debug_requested()
    # Warnings issued by any logger during this process.
    issued_warnings: list[str] = []

    def __init__(self, name: str):
        self.name = name
        self.warnings: list[str] = []

    @classmethod
    def reset(cls) -> None:
        cls.issued_warnings.clear()

    def _loc(self, file: Path | None, line: int | None) -> str:
        if file and file.is_absolute():
            with suppress(ValueError):
                file = file.relative_to(Path.cwd())

        if is_running_in_github_actions():
            parts = []
            if file:
                parts.append(f"file={file}")
                if line:
                    parts.append(f"line={line}")
            return " " + ",".join(parts) if parts else ""

        if file and line:
            return f" {file}:{line}"
        if file:
            return f" {file}"
        return ""

    def _print(
        self, prefix: str, msg: str, file: Path | None = None, line: int | None = None
    ) -> None:
        location = self._loc(file, line)
        if is_running_in_github_actions():
            command = GITHUB_COMMANDS.get(prefix, prefix)
            print(f"::{command}{location}::{self.name} {msg}")
            return

        print(f"{LOCAL_PREFIXES.get(prefix, prefix)}:{location} {self.name} {msg}")

    def debug(self, msg: str) -> None:
        if Logger.verbose:
            self._print("debug", msg)

    def info(self, msg: str) -> None:
        self._print("info", msg)

    def ok(self, msg: str) -> None:
        self._print("success", msg)

    def warning(
        self, msg: str, file: Path | None = None, line: int | None = None
    ) -> None:
        self.warnings.append(msg)
        Logger.issued_warnings.append(f"{self.name}: {msg}")
        self._print("warning", msg, file, line)

    def error(
        self, msg: str, file: Path | None = None, line: int | None = None
    ) -> None:
        self._print("error", msg, file, line)

    def fatal(
        self, msg: str, file: Path | None = None, line: int | None = None
    ) -> NoReturn:
        self.error(msg, file, line)
        raise SystemExit(1)
