"""리프 해싱과 다이제스트 비트/바이트/hex 변환. 비트 순서는 바이트별 MSB 먼저."""

import hashlib
import os
import re

from zkmerkle.gadgets.digest import DIGEST_SIZE

_HEX_RE = re.compile(r"[0-9a-f]*")


def bytes_to_bits(data):
    return [(byte >> (7 - i)) & 1 for byte in data for i in range(8)]


def bits_to_hex(bits):
    """소문자 hex, 길이는 len(bits) / 4."""
    bits = list(bits)
    if len(bits) % 4:
        raise ValueError(f"bit length {len(bits)} is not a multiple of 4")
    return "".join(
        "%x" % int("".join(str(b) for b in bits[i:i + 4]), 2)
        for i in range(0, len(bits), 4)
    )


def hex_to_bits(text, digest_size=DIGEST_SIZE):
    """root.txt 한 줄 → 비트 리스트. 길이와 소문자 hex 여부를 검사한다."""
    text = text.strip()
    if len(text) * 4 != digest_size:
        raise ValueError(
            f"expected {digest_size // 4} hex characters, got {len(text)}"
        )
    if not _HEX_RE.fullmatch(text):
        raise ValueError("root must be lowercase hexadecimal")
    return [(int(ch, 16) >> (3 - i)) & 1 for ch in text for i in range(4)]


def hash_leaf(raw, digest_size=DIGEST_SIZE):
    """SHA-256(raw)의 앞 digest_size 비트.

    str은 os.fsencode로 명령줄 인자의 원래 바이트로 되돌린다.
    """
    if isinstance(raw, str):
        raw = os.fsencode(raw)
    bits = bytes_to_bits(hashlib.sha256(raw).digest())
    if digest_size > len(bits):
        raise ValueError(f"digest size {digest_size} exceeds SHA-256 output")
    return bits[:digest_size]
