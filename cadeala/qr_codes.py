"""
QR code links for class signups and customer referrals.

Links are relative paths so the same code works on any domain the web
app is served from. Images are rendered by an external QR service; the
returned URL is used directly and nothing is stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urlencode

from cadeala.config import settings


@dataclass(frozen=True)
class QRCode:
    data: str
    image_url: str

    def to_dict(self) -> dict[str, str]:
        return {"data": self.data, "imageUrl": self.image_url}


class QRCodeService:
    def __init__(self, base_url: str | None = None, size: int | None = None) -> None:
        self.base_url = base_url or settings.qr_service_url
        self.size = size or settings.qr_code_size

    @staticmethod
    def class_signup_link(business_id: str, class_id: str) -> str:
        return f"/signup?{urlencode({'b': business_id, 'c': class_id})}"

    @staticmethod
    def referral_link(customer_id: str, business_id: str) -> str:
        return f"/signup?{urlencode({'ref': customer_id, 'b': business_id})}"

    def image_url(self, data: str) -> str:
        # encodeURIComponent semantics, so "/" and "?" are escaped too
        return f"{self.base_url}?size={self.size}x{self.size}&data={quote(data, safe='')}"

    def generate_class_qr_code(self, business_id: str, class_id: str) -> QRCode:
        link = self.class_signup_link(business_id, class_id)
        return QRCode(data=link, image_url=self.image_url(link))

    def generate_referral_qr_code(self, customer_id: str, business_id: str) -> QRCode:
        link = self.referral_link(customer_id, business_id)
        return QRCode(data=link, image_url=self.image_url(link))


qr_codes = QRCodeService()
