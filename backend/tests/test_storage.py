import pytest

from conftest import auth_headers
from propertyhub.core.errors import BadRequestError
from propertyhub.services.storage import (
    build_object_name, file_url_for, object_name_from_url, sanitize_file_name,
)


def test_object_names():
    assert sanitize_file_name("leak photo (1).jpg") == "leak_photo__1_.jpg"
    assert build_object_name("receipt.pdf", False, timestamp_ms=1700000000000) == (
        "private/attachments/1700000000000-receipt.pdf"
    )
    assert build_object_name("tap.png", True, timestamp_ms=1).startswith("public/attachments/")


def test_object_name_round_trips_through_file_url():
    url = file_url_for("private/attachments/1-receipt.pdf")
    assert url == "http://localhost:9000/property-management/private/attachments/1-receipt.pdf"
    assert object_name_from_url(url) == "private/attachments/1-receipt.pdf"

    with pytest.raises(BadRequestError):
        object_name_from_url("https://elsewhere.example.com/bucket/file.pdf")


async def test_upload_and_download_urls(client, make_user):
    user = await make_user("CUSTOMER")

    upload = await client.post("/api/v1/files/upload-url", headers=auth_headers(user), json={
        "file_name": "geyser leak.jpg", "file_type": "image/jpeg",
    })
    assert upload.status_code == 200
    body = upload.json()
    assert body["object_name"].startswith("private/attachments/")
    assert body["object_name"].endswith("-geyser_leak.jpg")
    assert "X-Amz-Signature" in body["presigned_url"]

    download = await client.post("/api/v1/files/download-url", headers=auth_headers(user),
                                 json={"file_url": body["file_url"]})
    assert "X-Amz-Signature" in download.json()["url"]

    public_url = file_url_for("public/attachments/1-logo.png")
    public = await client.post("/api/v1/files/download-url", headers=auth_headers(user),
                               json={"file_url": public_url})
    assert public.json()["url"] == public_url

    foreign = await client.post("/api/v1/files/download-url", headers=auth_headers(user),
                                json={"file_url": "https://elsewhere.example.com/x.png"})
    assert foreign.status_code == 400


async def test_file_urls_need_login(client):
    response = await client.post("/api/v1/files/upload-url", json={"file_name": "a.jpg", "file_type": "image/jpeg"})
    assert response.status_code == 401
