"""
Tests for cadeala.qr_codes and its routes.
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

from cadeala.qr_codes import QRCodeService


def test_class_signup_link():
    assert QRCodeService.class_signup_link("BIZ0001", "CLASS000123") == "/signup?b=BIZ0001&c=CLASS000123"


def test_referral_link():
    assert QRCodeService.referral_link("BC0042", "BIZ0001") == "/signup?ref=BC0042&b=BIZ0001"


def test_image_url_encodes_the_whole_link():
    qr = QRCodeService(base_url="https://qr.example/render", size=300).generate_class_qr_code("BIZ0001", "CLASS000123")

    assert qr.data == "/signup?b=BIZ0001&c=CLASS000123"
    assert qr.image_url == (
        "https://qr.example/render?size=300x300&data=%2Fsignup%3Fb%3DBIZ0001%26c%3DCLASS000123"
    )
    parsed = parse_qs(urlparse(qr.image_url).query)
    assert parsed["data"] == [qr.data]


def test_default_service():
    qr = QRCodeService().generate_referral_qr_code("BC0042", "BIZ0001")
    assert qr.image_url.startswith("https://api.qrserver.com/v1/create-qr-code/?size=500x500&data=")


def test_class_route(client):
    resp = client.get("/api/qr-codes/class", params={"businessId": "BIZ0001", "classId": "CLASS000001"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["data"] == "/signup?b=BIZ0001&c=CLASS000001"
    assert "size=500x500" in body["imageUrl"]


def test_referral_route_requires_params(client):
    resp = client.get("/api/qr-codes/referral", params={"customerId": "BC0042"})
    assert resp.status_code == 400
    assert resp.json()["details"][0]["path"] == ["businessId"]
