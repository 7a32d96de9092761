"""
Tests for pubgate_core.gate - comparing local and published versions.
"""

import pytest

from pubgate_core import (
    BehindPublishedError,
    InconsistentVersionsError,
    NotARepositoryError,
    RegistryResponseError,
    Version,
    is_latest_published,
    is_published,
    is_version_prepared,
    published_version,
)

from conftest import RecordingFetcher


class TestPublishedVersion:
    def test_uses_manifest_name(self, make_package, registry):
        registry.packages["gg_check"] = "0.4.0"
        d = make_package(name="gg_check")
        messages = []
        assert published_version(d, fetcher=registry, log=messages.append) == Version(0, 4, 0)
        assert registry.urls == ["https://pub.dev/api/packages/gg_check"]
        assert messages == ["Published version of gg_check: 0.4.0"]

    def test_custom_registry_url(self, make_package, fake_fetcher):
        d = make_package()
        published_version(d, fetcher=fake_fetcher, registry_url="http://localhost:9000")
        assert fake_fetcher.urls == ["http://localhost:9000/api/packages/test"]


class TestIsLatestPublished:
    def test_local_equals_published(self, make_package, registry):
        d = make_package(manifest="1.0.2", changelog="1.0.2", tag="1.0.2")
        assert is_latest_published(d, fetcher=registry) is True
        assert len(registry.urls) == 1

    def test_local_ahead_of_published(self, make_package, registry):
        d = make_package(manifest="1.1.0", changelog="1.1.0", tag="1.1.0")
        assert is_latest_published(d, fetcher=registry) is True

    def test_local_behind_published(self, make_package, registry):
        d = make_package(manifest="1.0.0", changelog="1.0.0", tag="1.0.0")
        with pytest.raises(BehindPublishedError) as exc_info:
            is_latest_published(d, fetcher=registry)
        assert str(exc_info.value) == (
            'The local version "1.0.0" is behind published version 1.0.2. '
            'Update and try again.')
        assert exc_info.value.local == Version(1, 0, 0)
        assert exc_info.value.published == Version(1, 0, 2)

    def test_not_a_repository_skips_network(self, make_package, fake_fetcher):
        d = make_package(init_git=False)
        with pytest.raises(NotARepositoryError):
            is_latest_published(d, fetcher=fake_fetcher)
        assert fake_fetcher.urls == []

    def test_inconsistent_versions_skip_network(self, make_package, fake_fetcher):
        d = make_package(manifest="1.0.0", changelog="1.0.1", tag="1.0.0")
        with pytest.raises(InconsistentVersionsError):
            is_latest_published(d, fetcher=fake_fetcher)
        assert fake_fetcher.urls == []

    def test_registry_errors_propagate(self, make_package):
        d = make_package(manifest="1.0.2", changelog="1.0.2", tag="1.0.2")
        with pytest.raises(RegistryResponseError):
            is_latest_published(d, fetcher=RecordingFetcher(body="not json"))


class TestIsVersionPrepared:
    def test_prepared(self, make_package, registry):
        d = make_package(manifest="1.0.3", changelog="1.0.3", tag="1.0.3")
        assert is_version_prepared(d, fetcher=registry) is True

    def test_not_prepared_when_equal(self, make_package, registry):
        d = make_package(manifest="1.0.2", changelog="1.0.2", tag="1.0.2")
        assert is_version_prepared(d, fetcher=registry) is False

    def test_build_metadata_is_not_a_new_version(self, make_package, registry):
        registry.packages["test"] = "1.0.2+1"
        d = make_package(manifest="1.0.2+2", changelog="1.0.2+2", tag="1.0.2+2")
        assert is_version_prepared(d, fetcher=registry) is False
        assert is_latest_published(d, fetcher=registry) is True

    def test_behind(self, make_package, registry):
        d = make_package(manifest="0.9.0", changelog="0.9.0", tag="0.9.0")
        with pytest.raises(BehindPublishedError):
            is_version_prepared(d, fetcher=registry)


class TestIsPublished:
    def test_published(self, make_package, registry):
        assert is_published(make_package(), fetcher=registry) is True

    def test_not_published(self, make_package, registry):
        d = make_package(name="brand_new")
        assert is_published(d, fetcher=registry) is False
