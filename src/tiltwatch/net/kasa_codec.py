from __future__ import annotations

# Smart-plug "autokey" framing. Each output byte becomes the key for the next
# one, in both directions, so the key always follows the ciphertext stream.
# This is obfuscation for compatibility with the device, not encryption.
KEY_SEED = 0xAB


def encode(text: str) -> bytes:
    key = KEY_SEED
    out = bytearray()
    for b in text.encode("utf-8"):
        o = b ^ key
        out.append(o)
        key = o
    return bytes(out)


def decode(payload: bytes) -> str:
    key = KEY_SEED
    out = bytearray()
    for o in payload:
        out.append(o ^ key)
        key = o
    return out.decode("utf-8")
