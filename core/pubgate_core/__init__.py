"""pubgate_core - version consistency and registry checks for package releases."""

__version__ = "0.1.0"

from .errors import (
    PublishError, NotARepositoryError,
    VersionSourceError, ManifestNotFoundError, MissingManifestFieldError,
    ManifestFieldMissingError, ChangelogNotFoundError,
    MissingChangelogVersionError, MissingVersionTagError, InvalidVersionError,
    InconsistentVersionsError, BehindPublishedError,
    RegistryError, RegistryRequestError, PackageNotPublishedError,
    RegistrySSLError, RegistryResponseError,
    VersionNotPreparedError, PublishCommandError,
)
from .semver import Version, VersionIncrement
from .version_sources import (
    VersionSet, resolve,
    manifest_version, changelog_version, tag_version, manifest_package_name,
)
from .registry_client import (
    RegistryResponse, UrllibFetcher, PackageInfo,
    fetch_package_info, fetch_published_version,
)
from .gate import published_version, is_latest_published, is_published, is_version_prepared
from .next_version import (
    calculate_next_version, check_manifest,
    write_version_into_manifest, prepare_next_version,
)
from .publisher import publish
