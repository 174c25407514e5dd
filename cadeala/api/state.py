from __future__ import annotations

from dataclasses import dataclass, field

from cadeala.notifications import PushSender
from cadeala.qr_codes import QRCodeService
from cadeala.repository import DocumentStore, IdentityProvider


@dataclass
class AppState:
    store: DocumentStore
    identity: IdentityProvider
    push_sender: PushSender | None = None
    qr: QRCodeService = field(default_factory=QRCodeService)
