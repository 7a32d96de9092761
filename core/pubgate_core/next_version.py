"""
next_version.py - compute the next release version and write it into pubspec.yaml
"""

import logging
import os

from .errors import MissingManifestFieldError
from .gate import published_version
from .semver import VersionIncrement
from .version_sources import (
    MANIFEST_FILENAME, manifest_field, manifest_field_re, manifest_path, noop_log,
    read_manifest,
)

logger = logging.getLogger(__name__)


def calculate_next_version(published, increment):
    """Return the version following ``published`` for the given increment.

    Lower components reset to zero; pre-release and build metadata are dropped.
    """
    if not isinstance(increment, VersionIncrement):
        increment = VersionIncrement.from_name(increment)
    return published.bump(increment)


def check_manifest(directory):
    """Make sure pubspec.yaml exists and declares a version.

    Raises:
        ManifestNotFoundError
        ManifestFieldMissingError
    """
    if manifest_field(read_manifest(directory), "version") is None:
        raise MissingManifestFieldError(
            f'"version:" not found in {MANIFEST_FILENAME}')


def write_version_into_manifest(directory, version):
    """Replace the ``version:`` value in pubspec.yaml, keeping all other lines.

    The key, its spacing and any trailing comment stay as they were.

    Raises:
        ManifestFieldMissingError: If no version line was replaced.
    """
    content = read_manifest(directory)
    version_re = manifest_field_re("version")
    new_lines = []
    replaced = 0
    for line in content.splitlines():
        m = version_re.match(line)
        if m and m.group("value"):
            new_lines.append(f"{m.group('key')}{version}{m.group('rest')}")
            replaced += 1
        else:
            new_lines.append(line)
    if not replaced:
        raise MissingManifestFieldError(
            f'"version:" not found in {MANIFEST_FILENAME}')

    text = os.linesep.join(new_lines)
    if content.endswith(("\n", "\r")):
        text += os.linesep
    with open(manifest_path(directory), "w", encoding="utf-8", newline="") as f:
        f.write(text)
    logger.debug("Wrote version %s into %s", version, manifest_path(directory))


def prepare_next_version(directory, increment, fetcher=None, registry_url=None,
                         published=None, log=None):
    """Compute the next version from the published one and write it.

    Args:
        directory: Package directory.
        increment: VersionIncrement or its name.
        fetcher: Registry fetcher, used only when ``published`` is None.
        registry_url: Registry base URL override.
        published: Already known published Version; skips the registry.
        log: Output sink.

    Returns:
        The Version written into pubspec.yaml.
    """
    log = log or noop_log
    check_manifest(directory)

    if published is None:
        published = published_version(
            directory, fetcher=fetcher, registry_url=registry_url, log=log)

    next_version = calculate_next_version(published, increment)
    write_version_into_manifest(directory, next_version)
    log(f"Next version: {next_version}")
    return next_version
