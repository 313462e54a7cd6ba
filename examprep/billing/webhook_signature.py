from __future__ import annotations

import hashlib
import hmac
import time
from dataclasses import dataclass

from examprep.billing.constants import PAYMONGO_SIGNATURE_TOLERANCE_SECONDS


@dataclass(frozen=True, slots=True)
class ParsedSignature:
    timestamp: str
    test_signature: str | None
    live_signature: str | None


def parse_signature_header(header: str | None) -> ParsedSignature | None:
    """Parses ``t=<unix ts>,te=<hex>,li=<hex>``; returns ``None`` when malformed."""
    if not header:
        return None

    parts: dict[str, str] = {}
    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            return None
        parts[key] = value

    timestamp = parts.get("t")
    if not timestamp or not timestamp.isdigit():
        return None
    return ParsedSignature(
        timestamp=timestamp,
        test_signature=parts.get("te") or None,
        live_signature=parts.get("li") or None,
    )


def compute_signature(*, secret: str, timestamp: str, raw_body: bytes) -> str:
    message = timestamp.encode("utf-8") + b"." + raw_body
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def is_valid_signature(
    *,
    header: str | None,
    raw_body: bytes,
    secret: str,
    live_mode: bool,
    now: float | None = None,
    tolerance_seconds: int = PAYMONGO_SIGNATURE_TOLERANCE_SECONDS,
) -> bool:
    if not secret:
        return False

    parsed = parse_signature_header(header)
    if parsed is None:
        return False

    received = parsed.live_signature if live_mode else parsed.test_signature
    if not received:
        return False

    current = time.time() if now is None else now
    if abs(current - int(parsed.timestamp)) > tolerance_seconds:
        return False

    expected = compute_signature(secret=secret, timestamp=parsed.timestamp, raw_body=raw_body)
    return hmac.compare_digest(expected, received)
