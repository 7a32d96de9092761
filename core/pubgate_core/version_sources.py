"""
version_sources.py - read the current version of a package

A package declares its version in three places that must agree before it
can be published:

  - pubspec.yaml      the ``version:`` field
  - CHANGELOG.md      the topmost versioned heading
  - git               the latest tag

Each source has its own reader returning a ``Version``; ``resolve()``
compares all three.
"""

import logging
import os
import re
import subprocess
from dataclasses import dataclass

from .errors import (
    ChangelogNotFoundError,
    InconsistentVersionsError,
    InvalidVersionError,
    ManifestNotFoundError,
    MissingChangelogVersionError,
    MissingManifestFieldError,
    MissingVersionTagError,
    NotARepositoryError,
)
from .semver import SEMVER_SEARCH, Version

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "pubspec.yaml"
CHANGELOG_FILENAME = "CHANGELOG.md"

# key, value, then optional trailing whitespace and YAML comment
_MANIFEST_FIELD_RE = (
    r"^(?P<key>{field}:[ \t]*)(?P<value>.*?)(?P<rest>[ \t]*(?:[ \t]#.*)?)$")

# "## 1.2.3", "## [1.2.3] - 2024-05-01", "# v1.2.3"
_CHANGELOG_HEADING_RE = re.compile(
    r"^#{1,6}[ \t]*\[?[ \t]*(v?" + SEMVER_SEARCH + ")", re.MULTILINE)


def noop_log(message):
    """Output sink that discards everything."""


def _parse(text, source):
    try:
        return Version.parse(text)
    except ValueError:
        raise InvalidVersionError(
            f"{source} contains an invalid version: {text!r}") from None


def manifest_path(directory):
    return os.path.join(directory, MANIFEST_FILENAME)


def read_manifest(directory):
    """Return the text of pubspec.yaml.

    Raises:
        ManifestNotFoundError: If the file does not exist.
    """
    path = manifest_path(directory)
    if not os.path.isfile(path):
        raise ManifestNotFoundError(f"{MANIFEST_FILENAME} not found")
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def manifest_field_re(field):
    """Regex matching a top-level ``field:`` line, with key/value/rest groups."""
    return re.compile(_MANIFEST_FIELD_RE.format(field=re.escape(field)), re.MULTILINE)


def manifest_field(content, field):
    """Return the value of a top-level ``field:`` line, or None.

    Quotes and a trailing ``# comment`` are stripped.
    """
    m = manifest_field_re(field).search(content)
    if not m or not m.group("value"):
        return None
    return m.group("value").strip("'\"")


def manifest_version(directory):
    """Read the ``version:`` field of pubspec.yaml."""
    value = manifest_field(read_manifest(directory), "version")
    if value is None:
        raise MissingManifestFieldError(
            f'"version:" not found in {MANIFEST_FILENAME}')
    return _parse(value, MANIFEST_FILENAME)


def manifest_package_name(directory):
    """Read the ``name:`` field of pubspec.yaml."""
    value = manifest_field(read_manifest(directory), "name")
    if value is None:
        raise MissingManifestFieldError(
            f'"name:" not found in {MANIFEST_FILENAME}')
    return value


def changelog_version(directory):
    """Return the version of the topmost versioned heading in CHANGELOG.md.

    Headings without a version (e.g. ``## Unreleased``) are skipped.
    """
    path = os.path.join(directory, CHANGELOG_FILENAME)
    if not os.path.isfile(path):
        raise ChangelogNotFoundError(f"{CHANGELOG_FILENAME} not found")
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()

    m = _CHANGELOG_HEADING_RE.search(content)
    if not m:
        raise MissingChangelogVersionError(
            f"No version heading found in {CHANGELOG_FILENAME}")
    return _parse(m.group(1), CHANGELOG_FILENAME)


def _run_git(directory, *args):
    cmd = ["git", *args]
    logger.debug("Running %s in %s", " ".join(cmd), directory)
    return subprocess.run(cmd, cwd=directory, capture_output=True, text=True)


def tag_version(directory, git=_run_git):
    """Return the latest git tag reachable from HEAD as a Version.

    Args:
        directory: Git working tree.
        git: Callable(directory, *args) -> CompletedProcess. Replaceable
             for tests.
    """
    try:
        cp = git(directory, "describe", "--tags", "--abbrev=0")
    except OSError as e:
        raise MissingVersionTagError(f"Could not run git: {e}") from e
    tag = (cp.stdout or "").strip()
    if cp.returncode != 0 or not tag:
        raise MissingVersionTagError(
            f"No version tag found in git repository {directory}")
    return _parse(tag, f"Git tag {tag!r}")


def is_git_repository(directory):
    return os.path.exists(os.path.join(directory, ".git"))


# ---------------------------------------------------------------------------
# Consistency check
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VersionSet:
    manifest: Version
    changelog: Version
    tag: Version

    @property
    def is_consistent(self):
        return self.manifest == self.changelog == self.tag


def resolve(directory, log=None, git=_run_git):
    """Return the version manifest, changelog and git tag agree on.

    Raises:
        NotARepositoryError: If the directory is not a git working tree.
        VersionSourceError: If one of the sources cannot be read.
        InconsistentVersionsError: If the three versions differ.
    """
    log = log or noop_log
    if not is_git_repository(directory):
        raise NotARepositoryError(os.path.basename(os.path.abspath(directory)))

    versions = VersionSet(
        manifest=manifest_version(directory),
        changelog=changelog_version(directory),
        tag=tag_version(directory, git=git),
    )
    if not versions.is_consistent:
        raise InconsistentVersionsError(
            versions.manifest, versions.changelog, versions.tag)

    logger.info("Consistent version %s in %s", versions.manifest, directory)
    log(f"Current version: {versions.manifest}")
    return versions.manifest
