from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from api import dependencies as deps
from core.config import settings
from main import app
from shared.codes import BusinessCode


@pytest.fixture
def client(uow_factory, asset_store, video_store, media_tool):
    app.dependency_overrides[deps.get_uow_factory] = lambda: uow_factory
    app.dependency_overrides[deps.get_asset_storage_port] = lambda: asset_store
    app.dependency_overrides[deps.get_video_storage_port] = lambda: video_store
    app.dependency_overrides[deps.get_media_tool] = lambda: media_tool
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    return uuid4()


def _auth(user_id):
    token = deps.get_token_service().create_access_token(user_id)
    return {"Authorization": f"Bearer {token}"}


def _create_video(client, user_id, title="Boots"):
    resp = client.post("/api/v1/videos", json={"title": title, "description": "demo"}, headers=_auth(user_id))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}


def test_requests_without_token_are_unauthorized(client):
    resp = client.post("/api/v1/videos", json={"title": "x"})
    assert resp.status_code == 401
    body = resp.json()
    assert body["code"] == BusinessCode.UNAUTHORIZED
    assert body["message"] == "Couldn't find JWT"
    assert resp.headers["WWW-Authenticate"] == "Bearer"
    assert resp.headers["X-Request-ID"]


def test_invalid_token_is_unauthorized(client):
    resp = client.get("/api/v1/videos", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Couldn't validate JWT"


def test_video_id_must_be_a_uuid(client, user_id):
    resp = client.get("/api/v1/videos/not-a-uuid", headers=_auth(user_id))
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "InvalidInput"


def test_create_get_and_list(client, user_id):
    video_id = _create_video(client, user_id)

    resp = client.get(f"/api/v1/videos/{video_id}", headers=_auth(user_id))
    assert resp.status_code == 200
    assert resp.json()["data"]["title"] == "Boots"

    resp = client.get("/api/v1/videos", params={"page": 1, "size": 10}, headers=_auth(user_id))
    data = resp.json()["data"]
    assert data["total"] == 1
    assert [item["id"] for item in data["items"]] == [video_id]


def test_other_users_video_is_unauthorized(client, user_id):
    video_id = _create_video(client, user_id)
    resp = client.get(f"/api/v1/videos/{video_id}", headers=_auth(uuid4()))
    assert resp.status_code == 401
    assert resp.json()["error"]["type"] == "NotVideoOwner"


def test_unknown_video_is_not_found(client, user_id):
    resp = client.get(f"/api/v1/videos/{uuid4()}", headers=_auth(user_id))
    assert resp.status_code == 404


def test_upload_thumbnail(client, user_id, asset_store, samples):
    video_id = _create_video(client, user_id)
    resp = client.post(
        f"/api/v1/videos/{video_id}/thumbnail",
        files={"thumbnail": ("thumb.png", samples["image/png"], "image/png")},
        headers=_auth(user_id),
    )
    assert resp.status_code == 200, resp.text
    [key] = asset_store.objects
    assert resp.json()["data"]["thumbnail_url"] == f"{settings.media.assets_base_url.rstrip('/')}/{key}"


def test_spoofed_thumbnail_is_rejected(client, user_id, asset_store, samples):
    video_id = _create_video(client, user_id)
    resp = client.post(
        f"/api/v1/videos/{video_id}/thumbnail",
        files={"thumbnail": ("thumb.jpg", samples["image/png"], "image/jpeg")},
        headers=_auth(user_id),
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "ContentTypeMismatch"
    assert asset_store.objects == {}


def test_missing_form_field(client, user_id, samples):
    video_id = _create_video(client, user_id)
    resp = client.post(
        f"/api/v1/videos/{video_id}/thumbnail",
        files={"image": ("thumb.png", samples["image/png"], "image/png")},
        headers=_auth(user_id),
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Unable to parse form file"


def test_upload_by_non_owner_is_rejected_before_parsing(client, user_id, asset_store, samples):
    video_id = _create_video(client, user_id)
    resp = client.post(
        f"/api/v1/videos/{video_id}/thumbnail",
        files={"thumbnail": ("thumb.png", samples["image/png"], "image/png")},
        headers=_auth(uuid4()),
    )
    assert resp.status_code == 401
    assert asset_store.objects == {}


def test_upload_video_returns_signed_url(client, user_id, video_store, samples):
    video_id = _create_video(client, user_id)
    resp = client.post(
        f"/api/v1/videos/{video_id}/video",
        files={"video": ("clip.mp4", samples["video/mp4"], "video/mp4")},
        headers=_auth(user_id),
    )
    assert resp.status_code == 200, resp.text
    [key] = video_store.objects
    assert key.startswith("landscape/")
    assert resp.json()["data"]["video_url"].startswith(f"http://cdn.test/tubely-videos/{key}?")


def test_processing_failure_hides_details(client, user_id, video_store, media_tool, samples):
    media_tool.fail_remux = True
    video_id = _create_video(client, user_id)
    resp = client.post(
        f"/api/v1/videos/{video_id}/video",
        files={"video": ("clip.mp4", samples["video/mp4"], "video/mp4")},
        headers=_auth(user_id),
    )
    assert resp.status_code == 500
    body = resp.json()
    assert body["message"] == "Could not process video for fast start"
    assert body["error"]["details"] is None
    assert video_store.objects == {}


def test_declared_oversized_upload_is_rejected_up_front(client):
    resp = client.post(
        f"/api/v1/videos/{uuid4()}/video",
        content=b"x",
        headers={"Content-Length": str(settings.media.video_max_bytes * 2), "Content-Type": "multipart/form-data; boundary=x"},
    )
    assert resp.status_code == 413
    assert resp.json()["code"] == BusinessCode.PAYLOAD_TOO_LARGE
