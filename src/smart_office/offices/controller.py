from __future__ import annotations

import io

import qrcode
from flask import Flask, send_file

from ..core.exceptions import NotFoundError
from ..container import Container


def render_qr_png(data: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def register(app: Flask, container: Container) -> None:
    @app.route("/api/offices/<int:office_id>/tokens/<code>/qr.png", methods=["GET"], endpoint="api_office_token_qr")
    def api_office_token_qr(office_id: int, code: str):
        """Printable QR image for a registered office token."""
        office = container.offices_repo.get(office_id)
        if not office:
            raise NotFoundError("Office does not exist")
        token = office.find_token(code)
        if token is None or not token.is_active:
            raise NotFoundError("Token does not exist")
        return send_file(render_qr_png(token.code), mimetype="image/png")
