"""
Opaque pagination cursors

A cursor is URL-safe base64 over ``{"offset": int, "issued_at": epoch_ms}``.
It is client-held state only; anything undecodable maps back to offset 0.
"""
from typing import Optional
import base64
import binascii
import json
import time


def encode_cursor(offset: int, issued_at_ms: Optional[int] = None) -> str:
    payload = {
        "offset": int(offset),
        "issued_at": issued_at_ms if issued_at_ms is not None else int(time.time() * 1000),
    }
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_cursor(cursor: Optional[str]) -> int:
    """Offset carried by the cursor; 0 when absent or malformed"""
    if not cursor:
        return 0
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, ValueError, UnicodeError):
        return 0
    if not isinstance(payload, dict):
        return 0
    offset = payload.get("offset")
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        return 0
    return offset
