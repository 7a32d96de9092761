#!/usr/bin/env python3
"""
pubgate command line

Usage:
  pubgate consistent-version --input path/to/package
  pubgate is-latest-state-published --input path/to/package
  pubgate published-version
  pubgate is-published
  pubgate is-version-prepared
  pubgate prepare-next-version --version-increment patch
  pubgate publish [--dry-run]

Exit code 0: check passed, 1: check failed, 2: invalid arguments.

Environment variables:
  PUBGATE_REGISTRY_URL         Registry base URL (default: https://pub.dev)
  PUBGATE_TIMEOUT              Request timeout in seconds (default: 10)
  PUBGATE_REGISTRY_SSL_VERIFY  "0" disables certificate verification
  PUBGATE_REGISTRY_SSL_CERT    Custom CA bundle (PEM)
"""

import argparse
import logging
import os
import sys

from pubgate_core import (
    PublishError,
    UrllibFetcher,
    VersionIncrement,
    is_latest_published,
    is_published,
    is_version_prepared,
    prepare_next_version,
    publish,
    published_version,
    resolve,
)

from pubgate import __version__


def existing_directory(value):
    """argparse type: a directory that must already exist."""
    if not os.path.isdir(value):
        raise argparse.ArgumentTypeError(f'Directory "{value}" does not exist.')
    return os.path.abspath(value)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
# Each command returns (passed, message).

def cmd_consistent_version(args, fetcher, log):
    version = resolve(args.input, log=log)
    return True, f"Version {version} is consistent."


def cmd_is_latest_state_published(args, fetcher, log):
    is_latest_published(args.input, fetcher=fetcher,
                        registry_url=args.registry_url, log=log)
    return True, "Latest state is published."


def cmd_published_version(args, fetcher, log):
    version = published_version(args.input, fetcher=fetcher,
                                registry_url=args.registry_url, log=log)
    return True, f"Published version: {version}"


def cmd_is_published(args, fetcher, log):
    if is_published(args.input, fetcher=fetcher,
                    registry_url=args.registry_url, log=log):
        return True, "Package is published."
    return False, "Package is not published yet."


def cmd_is_version_prepared(args, fetcher, log):
    if is_version_prepared(args.input, fetcher=fetcher,
                           registry_url=args.registry_url, log=log):
        return True, "Next version is prepared."
    return False, "Version is not increased. Run prepare-next-version first."


def cmd_prepare_next_version(args, fetcher, log):
    version = prepare_next_version(
        args.input, VersionIncrement.from_name(args.version_increment),
        fetcher=fetcher, registry_url=args.registry_url, log=log)
    return True, f"Version increased to {version}."


def cmd_publish(args, fetcher, log):
    kwargs = {"runner": args.runner} if args.runner else {}
    version = publish(args.input, fetcher=fetcher, registry_url=args.registry_url,
                      dry_run=args.dry_run, log=log, **kwargs)
    if args.dry_run:
        return True, f"Version {version} is ready to publish."
    return True, f"Version {version} is published."


COMMANDS = {
    "consistent-version": (
        cmd_consistent_version,
        "Check that pubspec.yaml, CHANGELOG.md and the git tag agree."),
    "is-latest-state-published": (
        cmd_is_latest_state_published,
        "Check that the local version is not behind the published one."),
    "published-version": (
        cmd_published_version,
        "Print the version published in the registry."),
    "is-published": (
        cmd_is_published,
        "Check that the package has been published at all."),
    "is-version-prepared": (
        cmd_is_version_prepared,
        "Check that the local version is ahead of the published one."),
    "prepare-next-version": (
        cmd_prepare_next_version,
        "Write the next version into pubspec.yaml."),
    "publish": (
        cmd_publish,
        "Publish a prepared version with dart pub publish."),
}


def build_parser():
    parser = argparse.ArgumentParser(
        prog="pubgate",
        description="Version consistency and registry checks for package releases")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__}")
    parser.add_argument("--registry-url", default=None,
                        help="Registry base URL (default: $PUBGATE_REGISTRY_URL or https://pub.dev)")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Registry request timeout in seconds (default: 10)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, (_, help_text) in COMMANDS.items():
        sub = subparsers.add_parser(name, help=help_text, description=help_text)
        sub.add_argument("-i", "--input", type=existing_directory, default=".",
                         help="Package directory (default: current directory)")
        if name == "prepare-next-version":
            sub.add_argument(
                "-n", "--version-increment", required=True,
                choices=[m.value for m in VersionIncrement],
                help="The component the next version increases.")
        if name == "publish":
            sub.add_argument("--dry-run", action="store_true",
                             help="Validate with dart pub publish --dry-run only.")
    return parser


def main(argv=None, fetcher=None, log=print, runner=None):
    """Run a pubgate command and return its exit code.

    Args:
        argv: Argument list (default: sys.argv[1:]).
        fetcher: Registry fetcher override (default: UrllibFetcher).
        log: Output sink for progress and result lines.
        runner: Command runner for publish (default: runs dart).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s")

    handler, _ = COMMANDS[args.command]
    args.runner = runner
    try:
        fetcher = fetcher or UrllibFetcher(timeout=args.timeout)
        passed, message = handler(args, fetcher, log)
    except PublishError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if passed:
        log(f"✅ {message}")
        return 0
    print(f"❌ {message}", file=sys.stderr)
    return 1


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
