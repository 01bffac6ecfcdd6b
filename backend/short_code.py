"""
backend/short_code.py

URL-safe Base62 short codes for projects (shareable links that do not reveal the slug).
"""

from __future__ import annotations

import secrets

BASE62_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

# 62 * 4 = 248 is the largest multiple of 62 below 256; bytes >= 248 are rejected to avoid modulo bias
_MAX_UNBIASED_BYTE = 248


def generate_short_code(length: int = 10) -> str:
    """
    Generate a random Base62 code of the given length.

    Raises:
        ValueError: If length is not a positive integer
    """
    if not isinstance(length, int) or length <= 0:
        raise ValueError(f"Invalid short code length: {length}")

    out: list[str] = []
    while len(out) < length:
        for byte in secrets.token_bytes(max(16, length)):
            if byte >= _MAX_UNBIASED_BYTE:
                continue
            out.append(BASE62_ALPHABET[byte % 62])
            if len(out) == length:
                break
    return "".join(out)
