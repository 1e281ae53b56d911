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

import argparse
import os
import sys
from pathlib import Path

from .fetcher import FetchError, IncrementalFetcher, RemoteFetcher, SourceInfoCache
from .gh_logging import Logger
from .requirement import Dependency, InvalidRequirement, Requirement
from .source_index import RuntimeSourceIndex
from .spec import GemSpec
from .version import MalformedVersion, Version

log = Logger(__name__)

DEFAULT_SOURCE = "https://rubygems.org"


def parse_args(args: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compare gem versions and search gem indexes."
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Print debug messages."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search installed gems.")
    search.add_argument(
        "--gem-path",
        action="append",
        default=None,
        help=(
            "Directory containing a specifications/ folder; may be repeated. "
            "Defaults to $GEM_PATH, then $GEM_HOME, then ~/.gem."
        ),
    )
    search.add_argument("name")
    search.add_argument("requirements", nargs="*", help='e.g. ">= 1.0" "< 2"')

    remote = sub.add_parser("remote", help="Search the index of a remote source.")
    remote.add_argument(
        "--source",
        default=None,
        help=f"Gem source URI; defaults to $GEM_SOURCE or {DEFAULT_SOURCE}.",
    )
    remote.add_argument(
        "--cache",
        type=Path,
        default=None,
        help="Source cache file; defaults to ~/.gem/source_cache.json.",
    )
    remote.add_argument("name")
    remote.add_argument("requirements", nargs="*")

    sort = sub.add_parser("sort", help="Print versions, highest first.")
    sort.add_argument("versions", nargs="+")

    cmp = sub.add_parser("compare", help="Print -1, 0 or 1.")
    cmp.add_argument("a")
    cmp.add_argument("b")

    bump = sub.add_parser("bump", help="Print the next significant release.")
    bump.add_argument("version")

    release = sub.add_parser("release", help="Print the version without prerelease parts.")
    release.add_argument("version")

    return parser.parse_args(args)


def get_gem_paths(args: argparse.Namespace) -> list[Path]:
    """Get gem directories from CLI, environment, or the user's home.

    Tries sources in order:
    1. --gem-path CLI arguments
    2. GEM_PATH environment variable
    3. GEM_HOME environment variable
    4. ~/.gem
    """
    if args.gem_path:
        log.debug("Using gem paths from command-line arguments.")
        return [Path(p) for p in args.gem_path]
    elif gem_path := os.getenv("GEM_PATH"):
        log.debug("Using gem paths from GEM_PATH.")
        return [Path(p) for p in gem_path.split(os.pathsep) if p]
    elif gem_home := os.getenv("GEM_HOME"):
        log.debug("Using gem path from GEM_HOME.")
        return [Path(gem_home)]
    else:
        log.debug("No gem path configured; using ~/.gem.")
        return [Path.home() / ".gem"]


def get_source(args: argparse.Namespace) -> str:
    return args.source or os.getenv("GEM_SOURCE") or DEFAULT_SOURCE


def get_cache_path(args: argparse.Namespace) -> Path:
    return args.cache or Path.home() / ".gem" / "source_cache.json"


def parse_version_arg(value: str) -> Version:
    try:
        return Version(value)
    except MalformedVersion as e:
        log.fatal(str(e))


def make_dependency(name: str, requirements: list[str]) -> Dependency:
    try:
        return Dependency(name, Requirement.create(requirements or None))
    except InvalidRequirement as e:
        log.fatal(str(e))


def print_specs(specs: list[GemSpec]) -> None:
    for spec in sorted(specs, key=lambda s: s.version, reverse=True):
        print(f"{spec.name} ({spec.version})")


def run_search(args: argparse.Namespace) -> None:
    dependency = make_dependency(args.name, args.requirements)
    index = RuntimeSourceIndex.from_installed_gems(get_gem_paths(args))
    specs = index.search(dependency)
    if not specs:
        log.info(f"No installed gems match {dependency}")
    print_specs(specs)


def run_remote(args: argparse.Namespace) -> None:
    dependency = make_dependency(args.name, args.requirements)
    source = get_source(args)
    fetcher = IncrementalFetcher(
        source, RemoteFetcher(source), SourceInfoCache(get_cache_path(args))
    )
    try:
        index = fetcher.source_index()
    except FetchError as e:
        log.fatal(f"Could not read source {source}: {e}")

    specs = index.search(dependency)
    if not specs:
        log.info(f"No gems in {source} match {dependency}")
    print_specs(specs)


def run_sort(args: argparse.Namespace) -> None:
    versions = [parse_version_arg(v) for v in args.versions]
    for v in sorted(versions, reverse=True):
        print(v)


def run_compare(args: argparse.Namespace) -> None:
    print(parse_version_arg(args.a).compare(parse_version_arg(args.b)))


def run_bump(args: argparse.Namespace) -> None:
    version = parse_version_arg(args.version)
    try:
        print(version.bump())
    except MalformedVersion as e:
        log.fatal(str(e))


def run_release(args: argparse.Namespace) -> None:
    print(parse_version_arg(args.version).release())


COMMANDS = {
    "search": run_search,
    "remote": run_remote,
    "sort": run_sort,
    "compare": run_compare,
    "bump": run_bump,
    "release": run_release,
}


def main(args: list[str]) -> None:
    """Main entry point for the gem-index command."""
    p = parse_args(args)
    if p.verbose:
        Logger.verbose = True

    COMMANDS[p.command](p)

    if Logger.issued_warnings:
        # If any warnings were issued, exit with non-zero code
        log.fatal(f"Completed with {len(Logger.issued_warnings)} warnings.")


def cli() -> None:
    main(args=sys.argv[1:])


if __name__ == "__main__":
    cli()
