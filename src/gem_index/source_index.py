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
from collections.abc import Iterable, Iterator
from pathlib import Path

from .gh_logging import Logger
from .requirement import Dependency, Requirement
from .spec import GemSpec, load_spec

log = Logger(__name__)

SPEC_SUFFIX = ".gemspec"


def _by_version(specs: Iterable[GemSpec]) -> list[GemSpec]:
    """Sort specs oldest first; ties keep their original order."""
    return sorted(specs, key=lambda s: s.version)


class SourceIndex:
    """In-memory index of gem specs keyed by full name (e.g. "rake-0.8.1")."""

    def __init__(self, specs: Iterable[GemSpec] = ()) -> None:
        self._specs: dict[str, GemSpec] = {}
        for spec in specs:
            self.add_spec(spec)

    def add_spec(self, spec: GemSpec) -> None:
        self._specs[spec.full_name] = spec

    def remove_spec(self, full_name: str) -> None:
        del self._specs[full_name]

    def specification(self, full_name: str) -> GemSpec | None:
        return self._specs.get(full_name)

    def __iter__(self) -> Iterator[tuple[str, GemSpec]]:
        # Iterate over a snapshot so callers may remove while iterating.
        return iter(list(self._specs.items()))

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, full_name: object) -> bool:
        return full_name in self._specs

    def search(self, dependency: Dependency) -> list[GemSpec]:
        return _by_version(
            s for s in self._specs.values() if s.satisfies_requirement(dependency)
        )

    def to_list(self) -> list[dict[str, object]]:
        return [s.to_dict() for s in self._specs.values()]

    @classmethod
    def from_list(cls, data: object) -> "SourceIndex":
        if not isinstance(data, list):
            raise ValueError("source index must be a list of specs")

        index = cls()
        for entry in data:
            if not isinstance(entry, dict):
                raise ValueError(f"invalid spec entry {entry!r}")
            index.add_spec(GemSpec.from_dict(entry))
        return index


class RuntimePath:
    """Specs installed below one gem directory.

    Specs are read from ``<dir>/specifications/<name>/*.gemspec`` the first
    time a name is looked up, and cached afterwards.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path) / "specifications"
        self._index: dict[str, list[GemSpec]] = {}

    def _load(self, name: str) -> list[GemSpec]:
        matches: list[GemSpec] = []
        spec_dir = self.path / name
        if not spec_dir.is_dir():
            log.debug(f"No specifications for {name} in {self.path}")
            return matches

        for spec_file in sorted(spec_dir.glob(f"*{SPEC_SUFFIX}")):
            try:
                spec = load_spec(spec_file)
            except (json.JSONDecodeError, OSError, ValueError) as e:
                # MalformedVersion is a ValueError as well
                log.warning(f"{spec_file} could not be parsed: {e}", file=spec_file)
                continue

            if spec.name != name:
                log.warning(
                    f"{spec_file} declares gem '{spec.name}'; expected '{name}'",
                    file=spec_file,
                )
                continue
            matches.append(spec)
        return matches

    def __getitem__(self, name: str) -> list[GemSpec]:
        if name not in self._index:
            self._index[name] = self._load(name)
        return self._index[name]

    def search(self, dependency: Dependency) -> list[GemSpec]:
        return _by_version(
            m for m in self[dependency.name] if m.satisfies_requirement(dependency)
        )

    def find_name(
        self, name: str, requirements: "Requirement | str | Iterable[str] | None" = None
    ) -> list[GemSpec]:
        return self.search(Dependency(name, Requirement.create(requirements)))


class RuntimeSourceIndex:
    """Installed specs found across several gem directories, in order."""

    def __init__(self, *dirs: Path | str) -> None:
        self.indexes = [RuntimePath(d) for d in dirs]

    @classmethod
    def from_gems_in(cls, *dirs: Path | str) -> "RuntimeSourceIndex":
        return cls(*dirs)

    @classmethod
    def from_installed_gems(cls, gem_paths: Iterable[Path]) -> "RuntimeSourceIndex":
        return cls(*gem_paths)

    def find_name(
        self, name: str, requirements: "Requirement | str | Iterable[str] | None" = None
    ) -> list[GemSpec]:
        results: list[GemSpec] = []
        for index in self.indexes:
            results.extend(index.find_name(name, requirements))
        return results

    def search(self, dependency: Dependency) -> list[GemSpec]:
        results: list[GemSpec] = []
        for index in self.indexes:
            results.extend(index.search(dependency))
        return results

