"""
QR code generation service
"""

import io
import re
from urllib.parse import parse_qs, urlparse

import qrcode

from whispqr.core.config import settings
from whispqr.services.errors import ValidationError

EVENT_ID_PATTERN = re.compile(r"^[a-zA-Z0-9]{10,30}$")

class QRService:
    """Service for generating and reading event QR codes"""

    @staticmethod
    def event_url(event_id: str) -> str:
        """Deep link encoded in the QR code"""
        return f"{settings.DEEP_LINK_SCHEME}://event/{event_id}"

    @staticmethod
    def is_valid_event_id(event_id: str) -> bool:
        return isinstance(event_id, str) and bool(EVENT_ID_PATTERN.match(event_id))

    @staticmethod
    def parse_event_url(url: str) -> str:
        """Extract the event id from a scanned QR payload.

        Understands the app deep link as well as web links that carry the id
        in an ``event`` query parameter or as the last path segment.
        """
        url = (url or "").strip()
        prefix = f"{settings.DEEP_LINK_SCHEME}://event/"
        if url.startswith(prefix):
            event_id = url[len(prefix):].strip("/")
        else:
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https"):
                raise ValidationError("Invalid event URL format")
            event_id = parse_qs(parsed.query).get("event", [""])[0]
            if not event_id:
                event_id = parsed.path.rstrip("/").split("/")[-1]

        if not QRService.is_valid_event_id(event_id):
            raise ValidationError("Invalid event URL format")
        return event_id

    @staticmethod
    def share_text(event_name: str, event_id: str) -> str:
        return f'Join "{event_name}" on whispqr! Scan this QR code or visit: {QRService.event_url(event_id)}'

    @staticmethod
    def generate_event_qr(event_id: str, format: str = 'PNG') -> bytes:
        """Generate QR code image for an event"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(QRService.event_url(event_id))
        qr.make(fit=True)

        # Create QR code image
        img = qr.make_image(fill_color="black", back_color="white")

        # Convert to bytes
        buffer = io.BytesIO()
        img.save(buffer, format=format)

        return buffer.getvalue()
