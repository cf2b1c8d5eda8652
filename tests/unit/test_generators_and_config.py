"""Tests for UUID providers and Settings validation."""

import pytest
from pydantic import ValidationError

from attachments.core.config import Settings
from attachments.domain.exceptions import ConfigurationException
from attachments.shared.utils.generators import (
    UUID_PROVIDERS,
    generate_cuid,
    get_uuid_provider,
)

_KEYS = {"secret_key": "s", "encryption_salt": "t"}


@pytest.mark.parametrize("name", sorted(UUID_PROVIDERS))
def test_every_provider_generates_unique_non_empty_values(name: str) -> None:
    provider = get_uuid_provider(name)
    values = {provider.generate() for _ in range(50)}
    assert len(values) == 50
    assert all(values)
    assert provider.name == name


def test_provider_lookup_is_case_insensitive() -> None:
    assert get_uuid_provider(" UUID4 ").name == "uuid4"


def test_unknown_provider_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationException) as exc_info:
        get_uuid_provider("sequential")
    assert exc_info.value.error_code == "CONFIGURATION_ERROR"
    assert exc_info.value.details == {"setting": "uuid_provider"}


@pytest.mark.parametrize("name", ["", None])
def test_missing_provider_raises_configuration_error(name) -> None:
    with pytest.raises(ConfigurationException, match="Missing UUID provider"):
        get_uuid_provider(name)


def test_generate_cuid_returns_string() -> None:
    assert isinstance(generate_cuid(), str)
    assert generate_cuid() != generate_cuid()


class TestSettings:
    def test_unknown_uuid_provider_rejected_at_load(self) -> None:
        with pytest.raises(ValidationError, match="uuid_provider"):
            Settings(uuid_provider="sequential", **_KEYS)

    def test_secret_key_required(self) -> None:
        with pytest.raises(ValidationError, match="SECRET_KEY"):
            Settings(secret_key="", encryption_salt="t")

    def test_encryption_salt_required(self) -> None:
        with pytest.raises(ValidationError, match="ENCRYPTION_SALT"):
            Settings(secret_key="s", encryption_salt="")

    def test_remote_default_disk_requires_bucket(self) -> None:
        with pytest.raises(ValidationError, match="s3_bucket"):
            Settings(default_disk="s3", s3_bucket=None, **_KEYS)

    def test_negative_cleanup_window_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(cleanup_since_minutes=-1, **_KEYS)

    def test_attach_attribute_list(self) -> None:
        settings = Settings(attach_attributes=" key, title ,,group", **_KEYS)
        assert settings.attach_attribute_list == ["key", "title", "group"]

    def test_storage_prefix_normalized(self) -> None:
        assert Settings(storage_prefix="/files/", **_KEYS).storage_prefix == "files"

    def test_download_url_root(self) -> None:
        settings = Settings(download_base_url="https://cdn.test/", api_prefix="/api/v1", **_KEYS)
        assert settings.download_url_root == "https://cdn.test/api/v1"

    def test_defaults(self) -> None:
        settings = Settings(**_KEYS)
        assert settings.default_disk == "local"
        assert settings.cascade_delete is True
        assert settings.cleanup_since_minutes == 1440
        assert settings.storage_prefix == "attachments"

    def test_log_level_normalized_and_validated(self) -> None:
        assert Settings(log_level="debug", **_KEYS).log_level == "DEBUG"
        with pytest.raises(ValidationError, match="log_level"):
            Settings(log_level="chatty", **_KEYS)
