"""
gate.py - compare the local package version with the registry

All checks resolve the consistent local version first, so a package with
disagreeing version sources never reaches the network.
"""

import logging

from .errors import BehindPublishedError, PackageNotPublishedError
from .registry_client import fetch_published_version
from .version_sources import manifest_package_name, noop_log, resolve

logger = logging.getLogger(__name__)


def published_version(directory, fetcher=None, registry_url=None, log=None):
    """Return the version of the package currently on the registry."""
    log = log or noop_log
    name = manifest_package_name(directory)
    version = fetch_published_version(name, fetcher=fetcher, registry_url=registry_url)
    log(f"Published version of {name}: {version}")
    return version


def _local_and_published(directory, fetcher, registry_url, log):
    local = resolve(directory, log=log)
    published = published_version(
        directory, fetcher=fetcher, registry_url=registry_url, log=log)
    if local < published:
        raise BehindPublishedError(local, published)
    return local, published


def is_latest_published(directory, fetcher=None, registry_url=None, log=None):
    """Check that the local version is not behind the published one.

    A local version ahead of the registry counts as success as well: a
    bumped but unpublished version is not an error here.

    Returns:
        True

    Raises:
        BehindPublishedError: If local < published.
        PublishError: Resolver and registry errors, unchanged.
    """
    local, published = _local_and_published(directory, fetcher, registry_url, log or noop_log)
    logger.info("Local %s, published %s", local, published)
    return True


def is_version_prepared(directory, fetcher=None, registry_url=None, log=None):
    """Return True if the local version is a new, unpublished release."""
    local, published = _local_and_published(directory, fetcher, registry_url, log or noop_log)
    return local > published


def is_published(directory, fetcher=None, registry_url=None, log=None):
    """Return True if the registry knows the package at all."""
    try:
        published_version(directory, fetcher=fetcher, registry_url=registry_url, log=log)
    except PackageNotPublishedError:
        return False
    return True
