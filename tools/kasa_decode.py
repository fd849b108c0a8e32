#!/usr/bin/env python3
"""
Decode a captured smart-outlet payload (hex) back into its JSON text.

Examples:
  python tools/kasa_decode.py "d0 f2 81 f8"
"""
import sys
from tiltwatch.net.kasa_codec import decode


def parse_hex(s: str) -> bytes:
    s = s.strip().replace(" ", "").replace("-", "").replace(":", "")
    if s.startswith("0x"):
        s = s[2:]
    return bytes.fromhex(s)


def main():
    if len(sys.argv) < 2:
        raise SystemExit("usage: kasa_decode.py HEX")
    print(decode(parse_hex(" ".join(sys.argv[1:]))))


if __name__ == "__main__":
    main()
