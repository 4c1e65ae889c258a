"""
QR code generation service
"""

import base64
import io
import qrcode

from app.core.config import settings

class QRService:
    """Service for generating check-in and registration QR codes"""

    @staticmethod
    def checkin_url(attendee_id: str) -> str:
        """Get the URL an attendee's QR code points to"""
        return f"{settings.BASE_URL}/checkin/{attendee_id}"

    @staticmethod
    def registration_url(event_id: str) -> str:
        """Get the URL an event's registration QR code points to"""
        return f"{settings.BASE_URL}/register/{event_id}"

    @staticmethod
    def generate_png(data: str, format: str = 'PNG') -> bytes:
        """Render arbitrary text as a QR code image"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format=format)

        return buffer.getvalue()

    @staticmethod
    def to_data_url(data: str) -> str:
        """Render text as a QR code and wrap it as a PNG data URL"""
        encoded = base64.b64encode(QRService.generate_png(data)).decode("ascii")
        return f"data:image/png;base64,{encoded}"

    @staticmethod
    def generate_checkin_qr(attendee_id: str) -> str:
        return QRService.to_data_url(QRService.checkin_url(attendee_id))

    @staticmethod
    def generate_registration_qr(event_id: str) -> str:
        return QRService.to_data_url(QRService.registration_url(event_id))
