"""Decoding of the advisory x-payment-response settlement header."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Optional

from .protocol import SettlementRecord

logger = logging.getLogger(__name__)


def parse_settlement(header_value: Optional[str]) -> Optional[SettlementRecord]:
    """Return the settlement record, or None if absent or unparseable."""
    if not header_value:
        return None
    try:
        decoded = base64.b64decode(header_value, validate=True)
        return SettlementRecord.from_dict(json.loads(decoded))
    except (binascii.Error, UnicodeDecodeError, ValueError, TypeError) as e:
        logger.warning("Failed to parse settlement response: %s", e)
        return None


def encode_settlement(record: SettlementRecord) -> str:
    encoded = json.dumps(record.to_dict(), separators=(",", ":"))
    return base64.b64encode(encoded.encode()).decode("ascii")
