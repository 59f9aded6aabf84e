"""
mdsnips: Snippet Id & Update Key Derivation
=============================================

What:  Derives the two short opaque tokens every snippet gets at creation.
How:   CRC-32 over the content plus the current nanosecond-of-second,
       rendered as lowercase hex (at most 8 characters, no padding).

    snippet id  = crc32(title + body + salt₁)
    update key  = crc32(body + salt₂)        salt₂ is a separate clock read

Properties:
    - Short and URL-friendly.
    - Unique in practice because of the salt, NOT because of the checksum;
      the snippets primary key rejects the rare collision.
    - Not cryptographic. A 32-bit update key is a bearer capability for a
      snippet, not a password. Swapping in a longer token (e.g.
      secrets.token_hex) is the hardening path if the service ever needs it;
      it changes id/key length and collision behaviour.
"""

import time
import zlib


def _nanosecond_salt() -> str:
    return str(time.time_ns() % 1_000_000_000)


def _checksum_hex(content: str) -> str:
    return format(zlib.crc32(content.encode("utf-8")) & 0xFFFFFFFF, "x")


def generate_snippet_id(title: str, body: str) -> str:
    """Fresh snippet id for a create. Never reuse the result."""
    return _checksum_hex(title + body + _nanosecond_salt())


def generate_update_key(body: str) -> str:
    """Fresh update key for a create, independent of the id's salt draw."""
    return _checksum_hex(body + _nanosecond_salt())
