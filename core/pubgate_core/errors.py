"""
errors.py - exception taxonomy for pubgate_core

Every failure a check can end in is one of these. They are raised by the
library and handled only at the command layer.
"""


class PublishError(Exception):
    """Base exception for all pubgate checks."""


class NotARepositoryError(PublishError):
    """Raised when the package directory has no git metadata."""

    def __init__(self, directory):
        self.directory = directory
        super().__init__(f'Directory "{directory}" is not a git repository.')


# ---------------------------------------------------------------------------
# Version sources
# ---------------------------------------------------------------------------

class VersionSourceError(PublishError):
    """Raised when a version cannot be read from one of its sources."""


class ManifestNotFoundError(VersionSourceError):
    """Raised when pubspec.yaml does not exist."""


class MissingManifestFieldError(VersionSourceError):
    """Raised when a required field is absent from pubspec.yaml."""


ManifestFieldMissingError = MissingManifestFieldError


class ChangelogNotFoundError(VersionSourceError):
    """Raised when CHANGELOG.md does not exist."""


class MissingChangelogVersionError(VersionSourceError):
    """Raised when CHANGELOG.md has no versioned heading."""


class MissingVersionTagError(VersionSourceError):
    """Raised when the repository has no tag to read a version from."""


class InvalidVersionError(VersionSourceError):
    """Raised when a source holds a string that is not a semantic version."""


class InconsistentVersionsError(PublishError):
    """Raised when manifest, changelog and git tag disagree."""

    def __init__(self, manifest, changelog, tag):
        self.manifest = manifest
        self.changelog = changelog
        self.tag = tag
        super().__init__(
            f"Versions are not consistent: "
            f"manifest: {manifest}, changelog: {changelog}, tag: {tag}")


class BehindPublishedError(PublishError):
    """Raised when the local version orders below the published one."""

    def __init__(self, local, published):
        self.local = local
        self.published = published
        super().__init__(
            f'The local version "{local}" is behind published version '
            f"{published}. Update and try again.")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class RegistryError(PublishError):
    """Base exception for registry operations."""


class RegistryRequestError(RegistryError):
    """Raised when the registry request fails or returns a non-200 status."""

    def __init__(self, message, status=None):
        self.status = status
        super().__init__(message)


class PackageNotPublishedError(RegistryRequestError):
    """Raised when the registry answers 404 for the package."""


class RegistrySSLError(RegistryRequestError):
    """Raised when SSL certificate verification fails."""


class RegistryResponseError(RegistryError):
    """Raised when the registry response is not the expected JSON."""


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------

class VersionNotPreparedError(PublishError):
    """Raised when publishing a version the registry already has."""

    def __init__(self, version):
        self.version = version
        super().__init__(
            f"Version {version} is already published. "
            f"Run prepare-next-version first.")


class PublishCommandError(PublishError):
    """Raised when the publish command cannot run or exits non-zero."""

    def __init__(self, message, returncode=None):
        self.returncode = returncode
        super().__init__(message)
