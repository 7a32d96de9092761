"""
publisher.py - upload a prepared package with ``dart pub publish``

Publishing only proceeds when the version sources agree and the local
version is ahead of the registry, or the package has never been published.
"""

import logging
import subprocess

from .errors import (
    BehindPublishedError,
    PackageNotPublishedError,
    PublishCommandError,
    VersionNotPreparedError,
)
from .gate import published_version
from .version_sources import noop_log, resolve

logger = logging.getLogger(__name__)


def _run_dart(directory, *args):
    cmd = ["dart", *args]
    logger.debug("Running %s in %s", " ".join(cmd), directory)
    return subprocess.run(cmd, cwd=directory, capture_output=True, text=True)


def publish(directory, fetcher=None, registry_url=None, runner=_run_dart,
            dry_run=False, log=None):
    """Publish the package in ``directory``.

    Args:
        directory: Package directory.
        fetcher: Registry fetcher.
        registry_url: Registry base URL override.
        runner: Callable(directory, *args) -> CompletedProcess running dart.
        dry_run: Pass ``--dry-run`` instead of ``--force``.
        log: Output sink.

    Returns:
        The published Version.

    Raises:
        VersionNotPreparedError: If the local version equals the published one.
        BehindPublishedError: If the local version is behind.
        PublishCommandError: If dart cannot run or fails.
    """
    log = log or noop_log
    local = resolve(directory, log=log)
    try:
        published = published_version(
            directory, fetcher=fetcher, registry_url=registry_url, log=log)
    except PackageNotPublishedError:
        log("Package is not published yet")
        published = None

    if published is not None:
        if local < published:
            raise BehindPublishedError(local, published)
        if not local > published:
            raise VersionNotPreparedError(local)

    args = ["pub", "publish", "--dry-run" if dry_run else "--force"]
    try:
        cp = runner(directory, *args)
    except OSError as e:
        raise PublishCommandError(f"Could not run dart: {e}") from e

    if cp.returncode != 0:
        detail = (cp.stderr or cp.stdout or "").strip()
        raise PublishCommandError(
            f"dart {' '.join(args)} failed with exit code {cp.returncode}"
            + (f": {detail}" if detail else ""),
            returncode=cp.returncode)

    log(f"{'Validated' if dry_run else 'Published'} version {local}")
    return local
