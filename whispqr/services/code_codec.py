"""
Event string codes

A string code is a 6-character value typed by guests instead of scanning the
QR code. It is derived from the event id, so it is stable but not unique.
"""

from whispqr.services.errors import ValidationError

CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
CODE_LENGTH = 6
CODE_STEP = 7


def string_hash(value: str) -> int:
    """Signed 32-bit rolling hash (h * 31 + unit) over UTF-16 code units."""
    h = 0
    data = value.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def derive(event_id: str) -> str:
    """Derive the string code for an event id."""
    base = abs(string_hash(event_id))
    return "".join(
        CODE_ALPHABET[(base + i * CODE_STEP) % len(CODE_ALPHABET)]
        for i in range(CODE_LENGTH)
    )


def normalize(code: str) -> str:
    """Clean up a typed code, raising ValidationError if it cannot be one."""
    cleaned = (code or "").strip().upper()
    if len(cleaned) != CODE_LENGTH or any(c not in CODE_ALPHABET for c in cleaned):
        raise ValidationError("Invalid code format. Please enter a 6-character code.")
    return cleaned
