from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from botocore.exceptions import NoCredentialsError

from app.core.errors import StorageUnavailable, ValidationError
from app.services.grants import GrantIssuer


@pytest.fixture
def issuer(store):
    return GrantIssuer(store, expires_in=600, max_upload_bytes=10 * 1024 * 1024)


def _issue(issuer, **overrides):
    params = {
        "file_name": "worksheet.pdf",
        "mime_type": "application/pdf",
        "size_bytes": 1024,
        "session_id": "sess-1",
    }
    params.update(overrides)
    return issuer.issue(**params)


# -------------------------
# 1) HAPPY PATH
# -------------------------
def test_grant_scoped_to_session_key(issuer):
    grant = _issue(issuer)

    assert grant.storage_key == f"sessions/sess-1/{grant.file_id}_worksheet.pdf"
    assert grant.headers == {"Content-Type": "application/pdf"}

    url = urlparse(grant.presigned_url)
    assert url.path.endswith(grant.storage_key)
    query = parse_qs(url.query)
    assert query["X-Amz-Expires"] == ["600"]


def test_grant_expires_after_600_seconds(issuer):
    before = datetime.now(timezone.utc)
    grant = _issue(issuer)
    after = datetime.now(timezone.utc)

    assert grant.expires_in == 600
    assert before + timedelta(seconds=600) <= grant.expires_at <= after + timedelta(seconds=600)


def test_grant_embeds_audit_metadata(issuer, monkeypatch):
    calls = []

    def fake_presign(**kwargs):
        calls.append(kwargs)
        return "https://example.invalid/upload"

    monkeypatch.setattr(issuer.store.client, "generate_presigned_url", fake_presign)
    grant = _issue(issuer)

    assert len(calls) == 1
    call = calls[0]
    assert call["ClientMethod"] == "put_object"
    assert call["HttpMethod"] == "PUT"
    assert call["ExpiresIn"] == 600
    assert call["Params"]["Key"] == grant.storage_key
    assert call["Params"]["ContentType"] == "application/pdf"
    assert call["Params"]["Metadata"] == {
        "session-id": "sess-1",
        "original-name": "worksheet.pdf",
        "file-id": grant.file_id,
    }


def test_storage_keys_unique_for_identical_requests(issuer):
    keys = {_issue(issuer).storage_key for _ in range(25)}
    assert len(keys) == 25


# -------------------------
# 2) VALIDATIE
# -------------------------
@pytest.mark.parametrize("field", ["file_name", "mime_type", "session_id"])
def test_missing_field_rejected(issuer, field):
    with pytest.raises(ValidationError):
        _issue(issuer, **{field: ""})


def test_missing_size_rejected(issuer):
    with pytest.raises(ValidationError):
        _issue(issuer, size_bytes=None)


def test_too_large_rejected(issuer):
    with pytest.raises(ValidationError):
        _issue(issuer, size_bytes=11 * 1024 * 1024)


# -------------------------
# 3) STORAGE FAILURES
# -------------------------
def test_signing_failure_is_storage_unavailable(issuer, monkeypatch):
    def boom(**kwargs):
        raise NoCredentialsError()

    monkeypatch.setattr(issuer.store.client, "generate_presigned_url", boom)
    with pytest.raises(StorageUnavailable):
        _issue(issuer)


@pytest.mark.parametrize("session_id", ["a/b", "c\\b", ".."])
def test_session_id_with_path_rejected(issuer, session_id):
    # anders delen a/b en c/b dezelfde sessions/b/ prefix
    with pytest.raises(ValidationError):
        _issue(issuer, session_id=session_id)
