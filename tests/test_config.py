"""Tests for configuration helpers."""

from artwork_sessions.config import (
    StorageConfig,
    parse_content_types,
    storage_config_from_settings,
)


def test_storage_config_absent_without_credentials(settings) -> None:
    assert storage_config_from_settings(settings) is None

    partial = settings.model_copy(update={"storage_bucket_name": "art-bucket"})
    assert storage_config_from_settings(partial) is None


def test_storage_config_from_complete_settings(settings) -> None:
    configured = settings.model_copy(
        update={
            "storage_bucket_name": "art-bucket",
            "storage_region": "eu-west-1",
            "storage_access_key_id": "AKIDEXAMPLE",
            "storage_secret_access_key": "secret",
            "storage_endpoint": "  ",
        }
    )

    assert storage_config_from_settings(configured) == StorageConfig(
        bucket_name="art-bucket",
        region="eu-west-1",
        access_key_id="AKIDEXAMPLE",
        secret_access_key="secret",
        endpoint=None,
    )


def test_upload_limits(settings) -> None:
    assert settings.max_upload_bytes == 10 * 1024 * 1024
    assert parse_content_types(settings.allowed_content_types) == {
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/gif",
    }
    assert parse_content_types(" image/PNG, ,image/gif ") == {"image/png", "image/gif"}
