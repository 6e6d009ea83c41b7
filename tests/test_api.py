from urllib.parse import quote

# -------------------------
# 1) UPLOAD FLOW
# -------------------------


def _grant(client, **overrides):
    body = {
        "fileName": "lesson notes.pdf",
        "fileType": "application/pdf",
        "fileSize": 12,
        "sessionId": "sess-42",
    }
    body.update(overrides)
    return client.post("/uploads/grant", json=body)


def _finalize(client, grant, **overrides):
    body = {
        "fileId": grant["fileId"],
        "fileName": "lesson notes.pdf",
        "fileType": "application/pdf",
        "fileSize": 12,
        "sessionId": "sess-42",
        "r2Key": grant["storageKey"],
    }
    body.update(overrides)
    return client.post("/uploads/finalize", json=body)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["X-Request-ID"]


def test_full_upload_lifecycle(client, put_object):
    r = _grant(client)
    assert r.status_code == 200, r.text
    grant = r.json()
    assert grant["storageKey"] == f"sessions/sess-42/{grant['fileId']}_lesson notes.pdf"
    assert grant["expiresIn"] == 600
    assert grant["method"] == "PUT"
    assert grant["presignedUrl"].startswith("https://")

    # client uploadt direct naar de bucket
    put_object(grant["storageKey"], b"%PDF-1.4 abc", "application/pdf")

    r = _finalize(client, grant)
    assert r.status_code == 200, r.text
    record = r.json()
    record_id = record["id"]
    assert record_id != grant["fileId"]
    assert record["type"] == "pdf"
    assert record["isActive"] is True
    assert record["url"] == f"/files/{record_id}/view"
    assert record["downloadUrl"] == f"/files/{record_id}/download"

    r = client.get("/files/sess-42")
    assert [f["id"] for f in r.json()] == [record_id]

    r = client.get(f"/files/{record_id}/info")
    assert r.json()["name"] == "lesson notes.pdf"

    r = client.get(f"/files/{record_id}/view")
    assert r.status_code == 200
    assert r.content == b"%PDF-1.4 abc"
    assert r.headers["content-type"] == "application/pdf"
    assert r.headers["content-disposition"] == "inline"
    assert r.headers["x-content-type-options"] == "nosniff"

    r = client.get(f"/files/{record_id}/download")
    assert r.status_code == 200
    assert r.headers["content-disposition"] == 'attachment; filename="lesson notes.pdf"'

    r = client.get(f"/files/proxy/{quote(grant['storageKey'])}")
    assert r.status_code == 200
    assert r.content == b"%PDF-1.4 abc"
    assert r.headers["cache-control"] == "public, max-age=31536000, immutable"

    r = client.delete(f"/files/{record_id}")
    assert r.status_code == 200
    assert r.json() == {"message": "File deleted successfully", "id": record_id}

    # metadata blijft, bytes en listing niet
    r = client.get(f"/files/{record_id}/info")
    assert r.status_code == 200
    assert r.json()["isActive"] is False

    r = client.get(f"/files/{record_id}/view")
    assert r.status_code == 404
    assert r.json()["error"]["type"] == "NotFound"

    assert client.get("/files/sess-42").json() == []
    inactive = client.get("/files/sess-42", params={"includeInactive": "true"}).json()
    assert [f["id"] for f in inactive] == [record_id]

    # tweede delete is een no-op
    assert client.delete(f"/files/{record_id}").status_code == 200


def test_video_range_request(client, put_object):
    grant = _grant(client, fileName="clip.mp4", fileType="video/mp4", fileSize=100).json()
    body = bytes(range(100))
    put_object(grant["storageKey"], body, "video/mp4")
    record_id = _finalize(
        client, grant, fileName="clip.mp4", fileType="video/mp4", fileSize=100
    ).json()["id"]

    r = client.get(f"/files/{record_id}/view", headers={"Range": "bytes=0-9"})
    assert r.status_code == 206
    assert r.content == body[:10]
    assert r.headers["content-range"] == "bytes 0-9/100"

    r = client.get(f"/files/{record_id}/view", headers={"Range": "bytes=500-"})
    assert r.status_code == 416
    assert r.headers["content-range"] == "bytes */100"
    assert r.json()["error"]["type"] == "RangeNotSatisfiable"


# -------------------------
# 2) ERRORS
# -------------------------
def test_grant_missing_fields_is_400(client):
    r = client.post("/uploads/grant", json={"fileName": "a.pdf"})
    assert r.status_code == 400
    body = r.json()
    assert body["ok"] is False
    assert body["error"]["type"] == "ValidationError"
    assert body["error"]["retryable"] is False


def test_grant_too_large_is_400(client):
    r = _grant(client, fileSize=101 * 1024 * 1024)
    assert r.status_code == 400


def test_finalize_missing_key_is_400(client):
    r = client.post(
        "/uploads/finalize",
        json={"fileId": "x", "fileName": "a.pdf", "fileType": "application/pdf", "fileSize": 1, "sessionId": "s"},
    )
    assert r.status_code == 400


def test_unknown_file_is_404(client):
    assert client.get("/files/nope/info").status_code == 404
    assert client.get("/files/nope/download").status_code == 404
    assert client.delete("/files/nope").status_code == 404


def test_view_missing_bytes_is_404(client):
    grant = _grant(client).json()
    record_id = _finalize(client, grant).json()["id"]
    r = client.get(f"/files/{record_id}/view")
    assert r.status_code == 404


def test_storage_outage_is_502(client, s3, monkeypatch):
    from botocore.exceptions import EndpointConnectionError

    def unreachable(**kwargs):
        raise EndpointConnectionError(endpoint_url="https://storage.invalid")

    monkeypatch.setattr(s3, "get_object", unreachable)
    r = client.get("/files/proxy/sessions/s/abc_x.pdf")
    assert r.status_code == 502
    assert r.json()["error"]["retryable"] is True


# -------------------------
# 3) FOLDERS
# -------------------------
def test_folder_endpoints(client):
    r = client.post("/folders", json={"studentId": "stu-1", "name": "Week 1"})
    assert r.status_code == 201, r.text
    first = r.json()
    assert first["isActive"] is True

    second = client.post("/folders", json={"studentId": "stu-1", "name": "Week 2"}).json()
    assert second["isActive"] is True

    active = client.get("/folders/active", params={"studentId": "stu-1"}).json()
    assert active["id"] == second["id"]

    r = client.post(f"/folders/{first['id']}/activate")
    assert r.status_code == 200
    assert r.json()["isActive"] is True

    listing = client.get("/folders", params={"studentId": "stu-1"}).json()
    assert listing["stats"] == {
        "totalFolders": 2,
        "activeFolders": 1,
        "inactiveFolders": 1,
        "activeFolderId": first["id"],
    }
    assert {f["id"] for f in listing["folders"]} == {first["id"], second["id"]}

    assert client.get(f"/folders/{second['id']}").json()["isActive"] is False

    # paginering: stats tellen alle folders, de lijst alleen de pagina
    page = client.get("/folders", params={"studentId": "stu-1", "limit": 1, "offset": 1}).json()
    assert len(page["folders"]) == 1
    assert page["limit"] == 1
    assert page["offset"] == 1
    assert page["stats"]["totalFolders"] == 2
    assert client.get("/folders", params={"studentId": "stu-1", "limit": 0}).status_code == 400


def test_folder_errors(client):
    assert client.post("/folders", json={"studentId": "stu-1"}).status_code == 400
    assert client.post("/folders", json={"studentId": "stu-1", "name": "x"}).status_code == 400
    assert client.get("/folders/nope").status_code == 404
    assert client.get("/folders").status_code == 400
    assert client.get("/folders/active", params={"studentId": "nobody"}).json() is None

    folder = client.post("/folders", json={"studentId": "stu-1", "name": "Mine"}).json()
    r = client.post(f"/folders/{folder['id']}/activate", params={"studentId": "stu-2"})
    assert r.status_code == 404


def test_folder_conflict_is_409(client, monkeypatch):
    from app.services import folders as folders_module

    assert client.post("/folders", json={"studentId": "stu-1", "name": "Week 1"}).status_code == 201

    # deactivatie die nooit iets raakt: elke insert botst op de unieke index
    monkeypatch.setattr(folders_module, "_deactivate_others", lambda *args, **kwargs: 0)
    r = client.post("/folders", json={"studentId": "stu-1", "name": "Week 2"})

    assert r.status_code == 409
    error = r.json()["error"]
    assert error["type"] == "Conflict"
    assert error["retryable"] is True


# -------------------------
# 4) SIMPLE UPLOAD
# -------------------------
def test_simple_upload_stores_bytes_and_record(client, s3, store):
    r = client.post(
        "/uploads/simple",
        files={"file": ("week 3 notes.pdf", b"%PDF-1.7 small", "application/pdf")},
        data={"sessionId": "sess-7"},
    )
    assert r.status_code == 200, r.text
    record = r.json()
    assert record["name"] == "week 3 notes.pdf"
    assert record["type"] == "pdf"
    assert record["size"] == len(b"%PDF-1.7 small")
    assert record["sessionId"] == "sess-7"

    r = client.get(record["url"])
    assert r.status_code == 200
    assert r.content == b"%PDF-1.7 small"

    listed = client.get("/files/sess-7").json()
    assert [f["id"] for f in listed] == [record["id"]]

    keys = [o["Key"] for o in s3.list_objects_v2(Bucket=store.bucket, Prefix="sessions/sess-7/")["Contents"]]
    assert len(keys) == 1
    assert keys[0].endswith("_week 3 notes.pdf")
    head = s3.head_object(Bucket=store.bucket, Key=keys[0])
    assert head["ContentType"] == "application/pdf"
    assert head["Metadata"]["session-id"] == "sess-7"
    assert head["Metadata"]["original-name"] == "week%203%20notes.pdf"


def test_simple_upload_requires_file_and_session(client):
    r = client.post("/uploads/simple", data={"sessionId": "sess-7"})
    assert r.status_code == 400

    r = client.post("/uploads/simple", files={"file": ("a.pdf", b"x", "application/pdf")})
    assert r.status_code == 400


def test_nested_session_id_rejected(client):
    r = _grant(client, sessionId="a/b")
    assert r.status_code == 400
    assert r.json()["error"]["type"] == "ValidationError"

    r = client.post(
        "/uploads/simple",
        files={"file": ("a.pdf", b"x", "application/pdf")},
        data={"sessionId": "c/b"},
    )
    assert r.status_code == 400
