"""Emergency QR — PNG data URLs pointing first responders at the emergency page.

Invariants:
    - emergency_url is {frontend_url}/emergency/{qr_token}, nothing else encoded
    - Error correction H: the code survives a scratched card or sticker

Design Decisions:
    - qrcode + Pillow, rendered in VIDA blue on white
    - Data URL returned inline; nothing written to disk
"""

import base64
from dataclasses import dataclass
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_H

VIDA_BLUE = "#1E40AF"
BOX_SIZE = 10
BORDER = 2


@dataclass(frozen=True)
class EmergencyQR:
    qr_token: str
    emergency_url: str
    qr_data_url: str


def emergency_url_for(qr_token: str, frontend_url: str) -> str:
    return f"{frontend_url.rstrip('/')}/emergency/{qr_token}"


def render_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_H,
        box_size=BOX_SIZE,
        border=BORDER,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color=VIDA_BLUE, back_color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_emergency_qr(qr_token: str, frontend_url: str) -> EmergencyQR:
    url = emergency_url_for(qr_token, frontend_url)
    encoded = base64.b64encode(render_png(url)).decode("ascii")
    return EmergencyQR(
        qr_token=qr_token,
        emergency_url=url,
        qr_data_url=f"data:image/png;base64,{encoded}",
    )
