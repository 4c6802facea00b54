from __future__ import annotations

import base64
import io
import logging
import secrets
from urllib.parse import urlencode

import qrcode
from qrcode.image.svg import SvgPathImage

from .errors import ValidationError
from .models import DiningTable
from .store import Store

logger = logging.getLogger(__name__)

MAX_TOKEN_ATTEMPTS = 20


def generate_token() -> str:
    return f"t-{secrets.token_hex(6)}"


def create_table(store: Store, number: str) -> DiningTable:
    """Register a table under a token no other table holds."""
    number = str(number).strip()
    if not number:
        raise ValidationError("Table number is required")
    for _ in range(MAX_TOKEN_ATTEMPTS):
        token = generate_token()
        if store.get_table_by_token(token) is None:
            table = store.create_table(number, token)
            logger.info("Registered table %s", table.number)
            return table
    raise ValidationError("Could not allocate a unique table token")


def table_url(base_url: str, table: DiningTable) -> str:
    query = urlencode({"table": table.number, "token": table.token})
    return f"{base_url.rstrip('/')}/?{query}"


def qr_data_url(url: str) -> str:
    image = qrcode.make(url, image_factory=SvgPathImage)
    buffer = io.BytesIO()
    image.save(buffer)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"
