# app/infra/s3_client.py

import boto3
from botocore.config import Config

from app.core.logging_config import get_logger
from app.core.settings import Settings

logger = get_logger(__name__)


def build_s3_config(settings: Settings) -> Config:
    # Geen interne retries: retry-policy ligt bij de caller
    return Config(
        signature_version="s3v4",
        s3={"addressing_style": "path" if settings.S3_ENDPOINT_URL else "virtual"},
        retries={"max_attempts": 1, "mode": "standard"},
        connect_timeout=settings.S3_CONNECT_TIMEOUT,
        read_timeout=settings.S3_READ_TIMEOUT,
    )


def build_s3_client(settings: Settings):
    """
    One client per process. Built in the app lifespan and handed to every
    component that talks to the object store.
    """
    kwargs = {
        "region_name": settings.S3_REGION,
        "config": build_s3_config(settings),
    }
    if settings.S3_ENDPOINT_URL:
        kwargs["endpoint_url"] = settings.S3_ENDPOINT_URL
    if settings.S3_ACCESS_KEY_ID and settings.S3_SECRET_ACCESS_KEY:
        kwargs["aws_access_key_id"] = settings.S3_ACCESS_KEY_ID
        kwargs["aws_secret_access_key"] = settings.S3_SECRET_ACCESS_KEY

    client = boto3.client("s3", **kwargs)
    logger.info(
        "s3_client_initialized",
        region=settings.S3_REGION,
        bucket=settings.S3_BUCKET,
        endpoint=settings.S3_ENDPOINT_URL,
    )
    return client
