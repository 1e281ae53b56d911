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

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .version import VERSION_PATTERN, MalformedVersion, Version


class InvalidRequirement(ValueError):
    """Raised when a requirement string cannot be parsed."""

    def __init__(self, requirement: object, message: str = ""):
        self.requirement = requirement
        self.message = message or f"Illformed requirement {requirement!r}"
        super().__init__(self.message)


def _pessimistic(version: Version, requirement: Version) -> bool:
    # "~> 3.5" allows 3.5 up to, but excluding, 4.0
    return version >= requirement and version.release() < requirement.bump()


# "=" and "!=" use the padded ordering, so "= 1.0" is satisfied by "1".
OPS: dict[str, Callable[[Version, Version], bool]] = {
    "=": lambda v, r: v.compare(r) == 0,
    "!=": lambda v, r: v.compare(r) != 0,
    ">": lambda v, r: v.compare(r) > 0,
    "<": lambda v, r: v.compare(r) < 0,
    ">=": lambda v, r: v.compare(r) >= 0,
    "<=": lambda v, r: v.compare(r) <= 0,
    "~>": _pessimistic,
}

_QUOTED_OPS = "|".join(re.escape(op) for op in sorted(OPS, key=len, reverse=True))
PATTERN = re.compile(rf"\s*({_QUOTED_OPS})?\s*({VERSION_PATTERN})\s*")


@dataclass(frozen=True)
class Constraint:
    op: str
    version: Version

    def __str__(self) -> str:
        return f"{self.op} {self.version}"


class Requirement:
    """A set of version constraints, all of which must hold."""

    def __init__(self, *constraints: Constraint) -> None:
        self.constraints: tuple[Constraint, ...] = constraints or (
            Constraint(">=", Version("0")),
        )

    @staticmethod
    def parse_constraint(requirement: "str | Version") -> Constraint:
        """Parse a single constraint such as "> 3.0"; a bare version means "="."""
        if isinstance(requirement, Version):
            return Constraint("=", requirement)
        if not isinstance(requirement, str):
            raise InvalidRequirement(requirement)

        if not (m := PATTERN.fullmatch(requirement)):
            raise InvalidRequirement(requirement)

        op = m.group(1) or "="
        try:
            version = Version(m.group(2))
            if op == "~>":
                version.bump()
        except MalformedVersion as e:
            raise InvalidRequirement(requirement, str(e)) from e
        return Constraint(op, version)

    @classmethod
    def parse(cls, requirement: str) -> "Requirement":
        return cls(cls.parse_constraint(requirement))

    @classmethod
    def default(cls) -> "Requirement":
        return cls()

    @classmethod
    def create(
        cls, requirement: "Requirement | Version | str | Iterable[str] | None"
    ) -> "Requirement":
        """Coerce a requirement-like value to a Requirement.

        None gives the default requirement (">= 0").
        """
        if isinstance(requirement, Requirement):
            return requirement
        if requirement is None:
            return cls.default()
        if isinstance(requirement, (str, Version)):
            return cls(cls.parse_constraint(requirement))
        return cls(*(cls.parse_constraint(r) for r in requirement))

    def satisfied_by(self, version: Version) -> bool:
        return all(OPS[c.op](version, c.version) for c in self.constraints)

    @property
    def is_prerelease(self) -> bool:
        return any(c.version.is_prerelease for c in self.constraints)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Requirement):
            return NotImplemented
        return sorted(map(str, self.constraints)) == sorted(map(str, other.constraints))

    def __hash__(self) -> int:
        return hash(tuple(sorted(map(str, self.constraints))))

    def __repr__(self) -> str:
        return f"Requirement({str(self)!r})"

    def __str__(self) -> str:
        return ", ".join(str(c) for c in self.constraints)


@dataclass(frozen=True)
class Dependency:
    """A gem name together with the versions of it that are acceptable."""

    name: str
    requirement: Requirement

    @classmethod
    def of(cls, name: str, *requirements: "str | Version") -> "Dependency":
        """Dependency.of("rake", ">= 0.8", "< 1.0")"""
        if not requirements:
            return cls(name, Requirement.default())
        return cls(name, Requirement.create(list(requirements)))

    def matches(self, name: str, version: Version) -> bool:
        return name == self.name and self.requirement.satisfied_by(version)

    def __str__(self) -> str:
        return f"{self.name} ({self.requirement})"
