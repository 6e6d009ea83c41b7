# app/aws/s3_ops.py
from dataclasses import dataclass
from typing import Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from app.aws.s3_errors import map_s3_error
from app.core.errors import AppError, NotFound, StorageUnavailable
from app.core.logging_config import get_logger

logger = get_logger(__name__)


def _write_failure(e: Exception, key: str, op: str) -> AppError:
    # Bij writes betekent NoSuchBucket e.d. geen NotFound: de bytes-status is onbekend
    mapped = map_s3_error(e, key=key, op=op)
    if isinstance(mapped, NotFound):
        return StorageUnavailable(
            f"Object store {op} failed: {mapped.details.get('code')}",
            details=mapped.details,
        )
    return mapped


@dataclass
class StoredObject:
    key: str
    body: bytes
    content_type: Optional[str] = None


class ObjectStore:
    """
    Thin wrapper om de S3 client: alle boto-fouten worden hier vertaald naar
    NotFound / StorageUnavailable. Bytes are never cached here.
    """

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def presign_put(
        self,
        key: str,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
        expires_in: int = 600,
    ) -> str:
        params = {"Bucket": self.bucket, "Key": key, "ContentType": content_type}
        if metadata:
            params["Metadata"] = metadata
        try:
            return self.client.generate_presigned_url(
                ClientMethod="put_object",
                Params=params,
                ExpiresIn=expires_in,
                HttpMethod="PUT",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("s3_presign_failed", key=key, exc=type(e).__name__)
            raise map_s3_error(e, key=key, op="presign") from e

    def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        params = {"Bucket": self.bucket, "Key": key, "Body": body, "ContentType": content_type}
        if metadata:
            params["Metadata"] = metadata
        try:
            self.client.put_object(**params)
        except (BotoCoreError, ClientError) as e:
            logger.error("s3_put_failed", key=key, exc=type(e).__name__)
            raise _write_failure(e, key, "put") from e
        logger.info("s3_object_written", key=key, size=len(body))

    def get_object(self, key: str, byte_range: Optional[str] = None) -> StoredObject:
        params = {"Bucket": self.bucket, "Key": key}
        if byte_range:
            params["Range"] = byte_range
        try:
            resp = self.client.get_object(**params)
            body = resp["Body"].read()
        except (BotoCoreError, ClientError) as e:
            logger.warning("s3_get_failed", key=key, range=byte_range, exc=type(e).__name__)
            raise map_s3_error(e, key=key, op="get") from e

        return StoredObject(key=key, body=body, content_type=resp.get("ContentType"))

    def head_object(self, key: str) -> Dict:
        try:
            return self.client.head_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise map_s3_error(e, key=key, op="head") from e

    def delete_object(self, key: str) -> None:
        # S3 delete is idempotent: een ontbrekende key is geen fout
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("s3_delete_failed", key=key, exc=type(e).__name__)
            raise _write_failure(e, key, "delete") from e
        logger.info("s3_object_deleted", key=key)
