"""
Tests for shared images and the expiry sweep.
"""
import base64
import os
import time
from datetime import datetime, timedelta, timezone

from conftest import auth_headers
from chemo_order.core.storage import shared_image_dir, shared_page_dir
from chemo_order.share.cleanup import remove_expired_shared_images
from chemo_order.share.service import (
    build_share_page_html,
    create_shared_image_file_name,
    resolve_extension,
    save_shared_image,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()

DAY = 24 * 60 * 60


def test_resolve_extension():
    assert resolve_extension("image/jpeg") == ".jpg"
    assert resolve_extension("image/png") == ".png"
    assert resolve_extension("image/webp") == ".png"


def test_file_name_is_sanitised():
    name = create_shared_image_file_name("My Order #1!", ".png")
    assert name.startswith("myorder1-")
    assert name.endswith(".png")
    assert create_shared_image_file_name("!!!", ".jpg").startswith("shared-image-")


def test_page_escapes_url():
    page = build_share_page_html('http://host/a.png"><script>')
    assert "<script>" not in page
    assert 'property="og:image"' in page
    assert 'http-equiv="refresh"' in page


def test_share_image(client, nurse):
    before = datetime.now(timezone.utc)
    response = client.post(
        "/api/share/images",
        json={"imageBase64": PNG_DATA_URI, "fileName": "order-summary"},
        headers=auth_headers(nurse),
    )
    assert response.status_code == 201
    data = response.json()

    assert data["ttlDays"] == 15
    assert data["fileName"].startswith("order-summary-")
    assert data["imageUrl"] == f"/public/shared-images/{data['fileName']}"
    assert data["directImageUrl"].endswith(data["imageUrl"])
    expires_at = datetime.fromisoformat(data["expiresAt"].replace("Z", "+00:00"))
    assert before + timedelta(days=15) <= expires_at <= datetime.now(timezone.utc) + timedelta(days=15)

    assert client.get(data["imageUrl"]).content == PNG_BYTES
    page = client.get(data["shareUrl"])
    assert page.status_code == 200
    assert data["directImageUrl"] in page.text


def test_share_image_rejects_bad_input(client, nurse):
    headers = auth_headers(nurse)
    for body in (
        {},
        {"imageBase64": "not a data uri"},
        {"imageBase64": "data:text/plain;base64,aGVsbG8="},
        {"imageBase64": "data:image/png;base64,@@@"},
    ):
        response = client.post("/api/share/images", json=body, headers=headers)
        assert response.status_code == 400, body


def test_share_image_requires_login(client):
    response = client.post("/api/share/images", json={"imageBase64": PNG_DATA_URI})
    assert response.status_code == 401


def test_sweep_removes_expired_image_and_page():
    old = save_shared_image(PNG_DATA_URI, "old", "http://testserver")
    fresh = save_shared_image(PNG_DATA_URI, "fresh", "http://testserver")
    old_image = shared_image_dir() / old["file_name"]
    old_page = shared_page_dir() / f"{old_image.stem}.html"
    sixteen_days_ago = time.time() - 16 * DAY
    os.utime(old_image, (sixteen_days_ago, sixteen_days_ago))

    removed = remove_expired_shared_images()

    assert old["file_name"] in removed
    assert fresh["file_name"] not in removed
    assert not old_image.exists()
    assert not old_page.exists()
    assert (shared_image_dir() / fresh["file_name"]).exists()


def test_sweep_keeps_images_within_ttl():
    saved = save_shared_image(PNG_DATA_URI, "recent", "http://testserver")
    removed = remove_expired_shared_images(now=time.time() + 14 * DAY)
    assert saved["file_name"] not in removed
    assert (shared_image_dir() / saved["file_name"]).exists()


def test_expiry_is_ttl_after_now():
    now = datetime(2024, 10, 5, 8, 30, tzinfo=timezone.utc)
    saved = save_shared_image(PNG_DATA_URI, "fixed", "http://testserver/", now=now)
    assert saved["expires_at"] == datetime(2024, 10, 20, 8, 30, tzinfo=timezone.utc)
    assert saved["share_url"].startswith("http://testserver/public/shared-pages/fixed-")
