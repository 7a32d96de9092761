"""
Shared test fixtures for the pubgate test suite.

  - make_package: factory creating a git-backed package directory with
    pubspec.yaml, CHANGELOG.md and a version tag
  - fake_fetcher: RecordingFetcher returning canned registry responses
  - registry: FastAPI app standing in for the registry, with a fetcher
    that talks to it through TestClient
"""

import json
import shutil
import subprocess
import urllib.parse

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from pubgate_core import RegistryResponse


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's PUBGATE_* settings out of the tests."""
    for key in ("PUBGATE_REGISTRY_URL", "PUBGATE_TIMEOUT",
                "PUBGATE_REGISTRY_SSL_VERIFY", "PUBGATE_REGISTRY_SSL_CERT"):
        monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# Package directories
# ---------------------------------------------------------------------------

def pubspec_text(name="test", version="1.0.0"):
    lines = [
        f"name: {name}",
        "description: A sample package.",
    ]
    if version is not None:
        lines.append(f"version: {version}")
    lines += [
        "repository: https://github.com/example/test",
        "",
        "environment:",
        "  sdk: ^3.0.0",
        "",
        "dev_dependencies:",
        "  test: ^1.24.0",
    ]
    return "\n".join(lines) + "\n"


def changelog_text(version="1.0.0"):
    return (
        "# Changelog\n"
        "\n"
        f"## [{version}] - 2024-05-01\n"
        "\n"
        "- Latest change\n"
        "\n"
        "## [0.0.1] - 2024-01-01\n"
        "\n"
        "- Initial version\n"
    )


def git(directory, *args):
    return subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com",
         "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false", *args],
        cwd=directory, check=True, capture_output=True, text=True)


@pytest.fixture
def make_package(tmp_path):
    """Return a factory building a package directory under tmp_path/test.

    changelog=None / tag=None leave that source out. manifest=None writes a
    pubspec.yaml without a version line, manifest=False writes none at all.
    """
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    def _make(manifest="1.0.0", changelog="1.0.0", tag="1.0.0",
              name="test", init_git=True):
        d = tmp_path / "test"
        d.mkdir(exist_ok=True)
        if manifest is not False:
            (d / "pubspec.yaml").write_text(pubspec_text(name, manifest), encoding="utf-8")
        if changelog is not None:
            (d / "CHANGELOG.md").write_text(changelog_text(changelog), encoding="utf-8")
        if init_git:
            git(d, "init", "-q")
            (d / "README.md").write_text("# test\n", encoding="utf-8")
            git(d, "add", "-A")
            git(d, "commit", "-q", "-m", "Initial commit")
            if tag is not None:
                git(d, "tag", tag)
        return str(d)

    return _make


# ---------------------------------------------------------------------------
# Registry doubles
# ---------------------------------------------------------------------------

def registry_document(name="test", version="1.0.2"):
    """A trimmed pub.dev package document."""
    return {
        "name": name,
        "latest": {
            "version": version,
            "pubspec": {"name": name, "version": version},
            "archive_url": f"https://pub.dev/packages/{name}/versions/{version}.tar.gz",
            "published": "2024-05-01T00:00:00.000Z",
        },
        "versions": [
            {"version": "1.0.0"},
            {"version": version},
        ],
    }


class RecordingFetcher:
    """Fetcher returning one canned response and recording requested URLs."""

    def __init__(self, status=200, body=None):
        self.status = status
        self.body = body if body is not None else json.dumps(registry_document())
        self.urls = []

    def fetch(self, url):
        self.urls.append(url)
        return RegistryResponse(status=self.status, body=self.body, url=url)


@pytest.fixture
def fake_fetcher():
    return RecordingFetcher()


class TestClientFetcher:
    """Fetcher routing registry URLs to a FastAPI app via TestClient."""

    def __init__(self, app):
        self.client = TestClient(app)
        self.urls = []

    def fetch(self, url):
        self.urls.append(url)
        path = urllib.parse.urlsplit(url).path
        resp = self.client.get(path)
        return RegistryResponse(status=resp.status_code, body=resp.text, url=url)


def create_registry_app(packages):
    """Build a registry app serving ``packages`` (name -> latest version)."""
    app = FastAPI()

    @app.get("/api/packages/{name}")
    def get_package(name: str):
        if name not in packages:
            raise HTTPException(status_code=404, detail=f"Package {name} not found")
        return registry_document(name, packages[name])

    return app


@pytest.fixture
def registry():
    """Mutable dict of published packages plus a fetcher bound to them."""
    packages = {"test": "1.0.2"}
    fetcher = TestClientFetcher(create_registry_app(packages))
    fetcher.packages = packages
    return fetcher
