# app/aws/s3_errors.py
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from app.core.errors import AppError, NotFound, StorageUnavailable

_NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404", "NoSuchBucket"}


def client_error_code(e: ClientError) -> str:
    return (e.response.get("Error", {}) or {}).get("Code", "") or ""


def is_not_found(e: Exception) -> bool:
    if not isinstance(e, ClientError):
        return False
    if client_error_code(e) in _NOT_FOUND_CODES:
        return True
    meta = e.response.get("ResponseMetadata", {}) or {}
    return meta.get("HTTPStatusCode") == 404


def map_s3_error(e: Exception, *, key: Optional[str] = None, op: str = "s3") -> AppError:
    """Vertaal een boto-exceptie naar onze error-taxonomie."""
    if isinstance(e, ClientError):
        code = client_error_code(e)
        msg = (e.response.get("Error", {}) or {}).get("Message", "") or str(e)
        meta = e.response.get("ResponseMetadata", {}) or {}
        details = {
            "op": op,
            "key": key,
            "code": code,
            "aws_request_id": meta.get("RequestId"),
            "aws_http": meta.get("HTTPStatusCode"),
        }
        if is_not_found(e):
            return NotFound("File not found in storage", details=details)
        return StorageUnavailable(f"Object store {op} failed: {code or msg}", details=details)

    if isinstance(e, BotoCoreError):
        # Netwerk/endpoint/credentials problemen
        return StorageUnavailable(
            f"Object store {op} failed: {type(e).__name__}",
            details={"op": op, "key": key},
        )

    return StorageUnavailable(f"Object store {op} failed: {e}", details={"op": op, "key": key})
