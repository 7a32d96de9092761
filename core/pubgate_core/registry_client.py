"""
registry_client.py - package registry client

Queries a pub-style registry (``GET /api/packages/{name}``) for the
version currently published for a package.

The HTTP transport is a *fetcher*: any object with a ``fetch(url)`` method
returning a ``RegistryResponse``. ``UrllibFetcher`` is the default and
uses only urllib; tests substitute their own.
"""

import logging
import os
import ssl
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import (
    PackageNotPublishedError,
    RegistryRequestError,
    RegistryResponseError,
    RegistrySSLError,
)
from .semver import Version

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "https://pub.dev"
DEFAULT_TIMEOUT = 10


def registry_url_from_env(registry_url=None):
    """Return the registry base URL: argument, PUBGATE_REGISTRY_URL, default."""
    url = registry_url or os.environ.get("PUBGATE_REGISTRY_URL") or DEFAULT_REGISTRY_URL
    return url.rstrip("/")


def timeout_from_env(timeout=None):
    if timeout is not None:
        return timeout
    raw = os.environ.get("PUBGATE_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid PUBGATE_TIMEOUT=%r", raw)
        return DEFAULT_TIMEOUT


def package_url(registry_url, package_name):
    return f"{registry_url.rstrip('/')}/api/packages/{urllib.parse.quote(package_name)}"


# ---------------------------------------------------------------------------
# Response schema
# ---------------------------------------------------------------------------

class LatestRelease(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: str


class PackageInfo(BaseModel):
    """The subset of the registry's package document pubgate reads."""

    model_config = ConfigDict(extra="ignore")

    name: str
    latest: LatestRelease


@dataclass(frozen=True)
class RegistryResponse:
    status: int
    body: str
    url: str = ""


# ---------------------------------------------------------------------------
# Fetchers
# ---------------------------------------------------------------------------

def ssl_settings_from_env():
    """Return (verify, cafile) from PUBGATE_REGISTRY_SSL_VERIFY / _SSL_CERT."""
    verify = os.environ.get("PUBGATE_REGISTRY_SSL_VERIFY", "1").strip() != "0"
    cafile = os.environ.get("PUBGATE_REGISTRY_SSL_CERT", "").strip() or None
    return verify, cafile


class UrllibFetcher:
    """Default fetcher: one GET per call, no retries.

    Args:
        timeout: Seconds; defaults to PUBGATE_TIMEOUT or 10.
        verify: False disables certificate verification.
        cafile: PEM bundle to trust instead of the system store.
    """

    def __init__(self, timeout=None, verify=None, cafile=None, user_agent="pubgate"):
        env_verify, env_cafile = ssl_settings_from_env()
        self.timeout = timeout_from_env(timeout)
        self.verify = env_verify if verify is None else verify
        self.cafile = cafile or env_cafile
        self.user_agent = user_agent
        self.ssl_context = self._build_ssl_context()

    def _build_ssl_context(self):
        if not self.verify:
            logger.warning("SSL certificate verification disabled for registry requests")
            ctx = ssl.create_default_context()
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
            return ctx
        if self.cafile:
            if not os.path.isfile(self.cafile):
                raise RegistryRequestError(f"CA bundle not found: {self.cafile}")
            return ssl.create_default_context(cafile=self.cafile)
        return None

    def fetch(self, url):
        """GET ``url`` and return its status and decoded body.

        HTTP error statuses are returned, not raised. Network failures,
        including timeouts, raise RegistryRequestError; a body that is not
        UTF-8 raises RegistryResponseError.
        """
        req = urllib.request.Request(url, headers={
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        })
        logger.info("GET %s", url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout,
                                        context=self.ssl_context) as resp:
                status = getattr(resp, "status", 200)
                raw = resp.read()
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace") if e.fp else ""
            return RegistryResponse(status=e.code, body=body, url=url)
        except (urllib.error.URLError, OSError) as e:
            reason = getattr(e, "reason", e)
            if isinstance(e, ssl.SSLError) or isinstance(reason, ssl.SSLError):
                raise RegistrySSLError(
                    f"SSL certificate verification failed: {e}") from e
            raise RegistryRequestError(f"Failed to reach registry at {url}: {e}") from e

        try:
            body = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RegistryResponseError(f"Registry response from {url} is not UTF-8: {e}") from e
        return RegistryResponse(status=status, body=body, url=url)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def fetch_package_info(package_name, fetcher=None, registry_url=None):
    """Fetch and validate the registry document for a package.

    Args:
        package_name: Name as declared in pubspec.yaml.
        fetcher: Object with ``fetch(url) -> RegistryResponse``.
                 Defaults to UrllibFetcher().
        registry_url: Registry base URL. Defaults to PUBGATE_REGISTRY_URL
                      or https://pub.dev.

    Returns:
        PackageInfo.

    Raises:
        PackageNotPublishedError: On HTTP 404.
        RegistryRequestError: On any other non-200 status or network failure.
        RegistryResponseError: On malformed JSON or missing fields.
    """
    fetcher = fetcher or UrllibFetcher()
    url = package_url(registry_url_from_env(registry_url), package_name)
    response = fetcher.fetch(url)

    if response.status == 404:
        raise PackageNotPublishedError(
            f'Package "{package_name}" is not published at {url}', status=404)
    if response.status != 200:
        raise RegistryRequestError(
            f"Registry request {url} failed with HTTP {response.status}",
            status=response.status)

    try:
        info = PackageInfo.model_validate_json(response.body)
    except ValidationError as e:
        raise RegistryResponseError(f"Invalid registry response from {url}: {e}") from e
    logger.debug("Registry reports %s %s", info.name, info.latest.version)
    return info


def fetch_published_version(package_name, fetcher=None, registry_url=None):
    """Return the latest published Version of a package."""
    info = fetch_package_info(package_name, fetcher=fetcher, registry_url=registry_url)
    try:
        return Version.parse(info.latest.version)
    except ValueError as e:
        raise RegistryResponseError(
            f"Registry reports an invalid version for {package_name}: "
            f"{info.latest.version!r}") from e
