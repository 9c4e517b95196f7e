"""
Blogstack Backend — Settings Tests
=====================================

What:  Storage backend selection and the startup configuration check.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.config import DEFAULT_JWT_SECRET, Settings

SECRET = "a-long-random-secret-for-tests-0123456789"

S3_CREDENTIALS = dict(
    aws_access_key_id="AKIA",
    aws_secret_access_key="secret",
    aws_bucket_name="blog-bucket",
    aws_region="eu-west-1",
)

CLOUDINARY_CREDENTIALS = dict(
    cloudinary_cloud_name="demo",
    cloudinary_api_key="key",
    cloudinary_api_secret="secret",
)


class TestMissingStorageSettings:

    def test_local_needs_nothing(self):
        assert Settings(storage_backend="local").missing_storage_settings() == []

    def test_s3_lists_every_missing_variable(self):
        config = Settings(
            storage_backend="s3",
            aws_access_key_id="",
            aws_secret_access_key="",
            aws_bucket_name="",
            aws_region="",
        )
        assert config.missing_storage_settings() == [
            "AWS_ACCESS_KEY_ID",
            "AWS_SECRET_ACCESS_KEY",
            "AWS_BUCKET_NAME",
            "AWS_REGION",
        ]

    def test_s3_partial(self):
        config = Settings(storage_backend="s3", **{**S3_CREDENTIALS, "aws_region": ""})
        assert config.missing_storage_settings() == ["AWS_REGION"]

    def test_cloudinary(self):
        config = Settings(
            storage_backend="cloudinary",
            **{**CLOUDINARY_CREDENTIALS, "cloudinary_api_secret": ""},
        )
        assert config.missing_storage_settings() == ["CLOUDINARY_API_SECRET"]

    def test_backend_name_normalized_and_checked(self):
        assert Settings(storage_backend="S3", **S3_CREDENTIALS).storage_backend == "s3"
        with pytest.raises(PydanticValidationError):
            Settings(storage_backend="ftp")


class TestValidateRequiredForProduction:

    def test_complete_s3_config_passes(self):
        Settings(storage_backend="s3", jwt_secret=SECRET, **S3_CREDENTIALS).validate_required_for_production()

    def test_complete_cloudinary_config_passes(self):
        config = Settings(storage_backend="cloudinary", jwt_secret=SECRET, **CLOUDINARY_CREDENTIALS)
        config.validate_required_for_production()

    def test_missing_cloudinary_credentials(self):
        config = Settings(
            storage_backend="cloudinary",
            jwt_secret=SECRET,
            cloudinary_cloud_name="",
            cloudinary_api_key="",
            cloudinary_api_secret="",
        )
        with pytest.raises(ValueError, match="Missing required cloudinary environment variables"):
            config.validate_required_for_production()

    def test_default_secret_and_missing_s3_reported_together(self):
        config = Settings(
            storage_backend="s3",
            jwt_secret=DEFAULT_JWT_SECRET,
            **{**S3_CREDENTIALS, "aws_bucket_name": ""},
        )
        with pytest.raises(ValueError) as exc_info:
            config.validate_required_for_production()

        message = str(exc_info.value)
        assert "JWT_SECRET" in message
        assert "AWS_BUCKET_NAME" in message
