import os

# Dummy env zodat boto3/moto niet zeurt
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")

import boto3
import pytest
from botocore.config import Config
from fastapi.testclient import TestClient
from moto import mock_aws

from app.aws.s3_ops import ObjectStore
from app.core.settings import Settings
from app.db import create_tables, make_engine, make_session_factory
from app.main import create_app

BUCKET = "test-session-files"


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        S3_BUCKET=BUCKET,
        S3_REGION="us-east-1",
        LOG_JSON=False,
        LOG_LEVEL="WARNING",
        MAX_UPLOAD_MB=100,
    )


@pytest.fixture
def s3():
    with mock_aws():
        client = boto3.client(
            "s3", region_name="us-east-1", config=Config(signature_version="s3v4")
        )
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def store(s3):
    return ObjectStore(s3, BUCKET)


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = make_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(settings, s3, engine):
    app = create_app(settings, s3_client=s3, engine=engine)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def put_object(s3):
    """Simuleer de directe upload van de client naar de object store."""

    def _put(key: str, body: bytes, content_type: str = "application/octet-stream"):
        s3.put_object(Bucket=BUCKET, Key=key, Body=body, ContentType=content_type)
        return key

    return _put
