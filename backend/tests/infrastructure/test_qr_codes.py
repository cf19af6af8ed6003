"""Emergency QR — verifies the encoded URL and PNG data URL."""

import base64

from vida.infrastructure.qr_codes import emergency_url_for, generate_emergency_qr

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def test_emergency_url_strips_trailing_slash():
    assert emergency_url_for("tok", "https://vida.mx/") == "https://vida.mx/emergency/tok"


def test_generate_returns_png_data_url():
    qr = generate_emergency_qr("abc123", "http://localhost:5173")
    assert qr.emergency_url == "http://localhost:5173/emergency/abc123"
    prefix = "data:image/png;base64,"
    assert qr.qr_data_url.startswith(prefix)
    assert base64.b64decode(qr.qr_data_url[len(prefix):]).startswith(PNG_MAGIC)
