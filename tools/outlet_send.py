#!/usr/bin/env python3
"""
Switch a smart outlet relay by hand, the same way the monitor does.

Examples:
  python tools/outlet_send.py on
  python tools/outlet_send.py off --address 192.168.1.42
  python tools/outlet_send.py on --dry-run

Notes:
- The outlet never answers. "[ok]" only means the datagram was sent.
"""
import argparse
from tiltwatch.net.outlet import BROADCAST_ADDR, OUTLET_PORT, OutletClient


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("state", choices=["on", "off"])
    ap.add_argument("--address", default=BROADCAST_ADDR)
    ap.add_argument("--port", type=int, default=OUTLET_PORT)
    ap.add_argument("--dry-run", action="store_true", help="print the encoded payload and exit")
    args = ap.parse_args()

    client = OutletClient(args.address, args.port)
    on = args.state == "on"
    payload = client.payload(on)
    print(f"[udp] {args.address}:{args.port}  len={len(payload)}  hex={payload.hex()}")
    if args.dry_run:
        return
    client.set_relay(on)
    print("[ok] sent")


if __name__ == "__main__":
    main()
