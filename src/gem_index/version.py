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

"""
Version strings of gems, turned into comparable values.

A version string is a series of numbers separated by periods. Each part is
compared as its own number, so 3.10 sorts higher than 3.2. If any part
contains letters the version is a prerelease. A prerelease part sorts below
a numeric part in the same position, so prereleases sort between real
releases (newest to oldest):

    1.0
    1.0.b
    1.0.a
    0.9
"""

import re
from collections.abc import Sequence

Segment = int | str

VERSION_PATTERN = r"[0-9]+(?:\.[0-9a-zA-Z]+)*"
PATTERN = re.compile(rf"\s*(?:{VERSION_PATTERN})?\s*")

_TOKEN = re.compile(r"[0-9a-zA-Z]+")
_DIGITS = re.compile(r"[0-9]+")


class MalformedVersion(ValueError):
    """Raised when a value cannot be turned into a Version."""

    def __init__(self, version: object, message: str = ""):
        self.version = version
        self.message = message or f"Malformed version number string {version!r}"
        super().__init__(self.message)


def _classify(tokens: Sequence[object]) -> tuple[tuple[Segment, ...], tuple[int, ...]]:
    """Type each token and collect the leading run of numeric segments."""
    segments: list[Segment] = []
    release: list[int] = []
    prerelease = False

    for token in tokens:
        # bool is an int subclass, but True is not a version segment
        if isinstance(token, bool):
            raise MalformedVersion(token, f"Invalid version segment {token!r}")
        if isinstance(token, int):
            if token < 0:
                raise MalformedVersion(token, f"Negative version segment {token!r}")
            segment: Segment = token
        elif isinstance(token, str) and _DIGITS.fullmatch(token):
            segment = int(token)
        elif isinstance(token, str) and token:
            segment = token.lower()
        else:
            raise MalformedVersion(token, f"Invalid version segment {token!r}")

        if isinstance(segment, str):
            prerelease = True
        elif not prerelease:
            release.append(segment)
        segments.append(segment)

    return tuple(segments), tuple(release)


def _balance(
    mine: tuple[Segment, ...], theirs: tuple[Segment, ...]
) -> tuple[tuple[Segment, ...], tuple[Segment, ...]]:
    """Right-pad the shorter sequence with zeros."""
    size = max(len(mine), len(theirs))
    return (
        mine + (0,) * (size - len(mine)),
        theirs + (0,) * (size - len(theirs)),
    )


class Version:
    """An immutable, comparable gem version.

    Ordering (``<``, ``<=``, ``compare``) pads missing trailing segments with
    zeros, while equality and hashing do not: ``Version("1.0")`` and
    ``Version("1")`` sort as equal but are different versions.
    """

    __slots__ = (
        "_raw",
        "_segments",
        "_release_segments",
        "_normalized_segments",
    )

    def __init__(self, version: "Version | str | int | Sequence[Segment]") -> None:
        tokens: Sequence[object]
        if isinstance(version, Version):
            self._raw = version.raw
            tokens = version.segments
        elif isinstance(version, str):
            if not PATTERN.fullmatch(version):
                raise MalformedVersion(version)
            self._raw = version.strip()
            tokens = _TOKEN.findall(self._raw)
        elif isinstance(version, int) and not isinstance(version, bool):
            if version < 0:
                raise MalformedVersion(version)
            self._raw = str(version)
            tokens = [version]
        elif isinstance(version, Sequence) and not isinstance(
            version, (bytes, bytearray)
        ):
            self._raw = None
            tokens = version
        else:
            raise MalformedVersion(version)

        self._segments, self._release_segments = _classify(tokens)
        self._normalized_segments = self._normalize(self._segments)

    @staticmethod
    def _normalize(segments: tuple[Segment, ...]) -> tuple[Segment, ...]:
        end = len(segments)
        while end and segments[end - 1] == 0:
            end -= 1
        return segments[:end] or (0,)

    @property
    def raw(self) -> str | None:
        """The string this version was parsed from, if any."""
        return self._raw

    @property
    def segments(self) -> tuple[Segment, ...]:
        return self._segments

    @property
    def release_segments(self) -> tuple[int, ...]:
        return self._release_segments

    @property
    def normalized_segments(self) -> tuple[Segment, ...]:
        """Segments with ignored trailing zeros stripped (never empty)."""
        return self._normalized_segments

    @property
    def is_prerelease(self) -> bool:
        """A version is a prerelease if any segment contains a letter."""
        return len(self._release_segments) != len(self._segments)

    @property
    def version(self) -> str:
        if self._raw is not None:
            return self._raw
        return ".".join(str(s) for s in self._segments)

    def release(self) -> "Version":
        """The release for this version (e.g. 1.2.0.a -> 1.2.0).

        Non-prerelease versions return themselves.
        """
        if not self.is_prerelease:
            return self
        return Version(self._release_segments)

    def bump(self) -> "Version":
        """Return a version where the next to last segment is one greater.

        Prerelease parts are ignored: 5.3.1 -> 5.4 and 5.3.1.b2 -> 5.4.
        """
        segments = list(self._segments)
        while segments and isinstance(segments[-1], str):
            segments.pop()
        if len(segments) > 1:
            segments.pop()

        if not segments or not isinstance(segments[-1], int):
            raise MalformedVersion(
                self.version, f"Cannot bump version {self.version!r}"
            )

        segments[-1] += 1
        return Version(segments)

    def compare(self, other: "Version | None") -> int:
        """Return -1, 0 or 1 if this version is older, the same, or newer."""
        if other is None:
            return 1
        if not isinstance(other, Version):
            raise TypeError(f"Cannot compare Version with {type(other).__name__}")

        mine, theirs = _balance(self._segments, other._segments)
        for part, other_part in zip(mine, theirs):
            part_is_num = isinstance(part, int)
            other_is_num = isinstance(other_part, int)

            if part_is_num and not other_is_num:
                return 1
            if other_is_num and not part_is_num:
                return -1
            if part != other_part:
                return 1 if part > other_part else -1  # type: ignore[operator]
        return 0

    def eql(self, other: object) -> bool:
        """True only if both versions have exactly the same segments.

        "1.0" is not the same version as "1".
        """
        return isinstance(other, Version) and self._segments == other._segments

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.eql(other)

    def __hash__(self) -> int:
        return hash(self._segments)

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) >= 0

    def __setattr__(self, name: str, value: object) -> None:
        # Attributes may only be set once, from __init__.
        try:
            object.__getattribute__(self, name)
        except AttributeError:
            object.__setattr__(self, name, value)
        else:
            raise AttributeError(f"Version is immutable; cannot set {name!r}")

    def __reduce__(self):
        return (Version, (self._raw if self._raw is not None else self._segments,))

    def __repr__(self) -> str:
        return f"Version({self.version!r})"

    def __str__(self) -> str:
        return self.version


def parse(version: str) -> Version:
    """Parse a version string; raise MalformedVersion if it is not one."""
    if not isinstance(version, str):
        raise TypeError("Version must be a string")
    return Version(version)


def create(version: "Version | str | int | Sequence[Segment] | None") -> Version | None:
    """Coerce a value to a Version.

    >>> v = create("1.3.17")
    >>> create(v) is v
    True
    >>> create(None) is None
    True
    """
    if isinstance(version, Version):
        return version
    if version is None:
        return None
    return Version(version)


def compare(a: Version, b: Version | None) -> int:
    return a.compare(b)
