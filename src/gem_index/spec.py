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
from dataclasses import dataclass, field
from pathlib import Path

from .requirement import Dependency
from .version import Version


@dataclass(frozen=True)
class GemSpec:
    name: str
    version: Version
    summary: str = ""
    # File the spec was loaded from, if any; not part of its identity.
    path: Path | None = field(default=None, compare=False)

    @property
    def full_name(self) -> str:
        return f"{self.name}-{self.version}"

    def satisfies_requirement(self, dependency: Dependency) -> bool:
        return dependency.matches(self.name, self.version)

    @classmethod
    def from_dict(cls, data: dict[str, object], path: Path | None = None) -> "GemSpec":
        """Build a spec from its serialized form.

        Raises ValueError (or MalformedVersion) on missing or invalid fields.
        """
        name = data.get("name")
        version = data.get("version")
        if not isinstance(name, str) or not name:
            raise ValueError("spec has no valid 'name'")
        if not isinstance(version, str):
            raise ValueError(f"spec {name} has no valid 'version'")

        return cls(
            name=name,
            version=Version(version),
            summary=str(data.get("summary", "")),
            path=path,
        )

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"name": self.name, "version": str(self.version)}
        if self.summary:
            data["summary"] = self.summary
        return data


def load_spec(path: Path) -> GemSpec:
    """Read a JSON gem specification file."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return GemSpec.from_dict(data, path=path)
