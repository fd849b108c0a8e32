#!/usr/bin/env python3
"""
Print live accelerometer samples with their tilt against the first one.

Handy for picking monitor.tilt_angle_threshold and
activity.engine_noise_threshold before arming the real monitor.

Examples:
  python tools/accel_watch.py --mac F8:FE:92:31:12:E3
  python tools/accel_watch.py --mac F8:FE:92:31:12:E3 --window_ms 1000
"""
import asyncio, argparse, datetime as dt, math
from tiltwatch.ble.witmotion_bt50 import Bt50Accelerometer, DEFAULT_NOTIFY_UUID
from tiltwatch.sampling import acquire
from tiltwatch.vecmath import angle_between, format_vector, peak_to_peak_max

def now(): return dt.datetime.now().isoformat(timespec="milliseconds")

async def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--adapter", default="hci0")
    ap.add_argument("--mac", required=True)
    ap.add_argument("--uuid", default=DEFAULT_NOTIFY_UUID)
    ap.add_argument("--window_ms", type=int, default=500, help="noise window per printed line")
    args = ap.parse_args()

    acc = Bt50Accelerometer(args.adapter, args.mac, args.uuid, log_status=print)
    await acc.start()
    ref = None
    try:
        async with acquire(acc) as bridge:
            print("[watch] first sample is the reference (Ctrl+C to stop)")
            while True:
                window = []
                loop = asyncio.get_running_loop()
                end = loop.time() + args.window_ms / 1000.0
                while loop.time() < end:
                    window.append(await bridge.get(timeout=5.0))
                v = window[-1]
                if ref is None:
                    ref = v
                tilt = math.degrees(angle_between(ref, v))
                print(f"{now()} v={format_vector(v)} tilt={tilt:5.1f}deg "
                      f"noise={peak_to_peak_max(window):.3f} n={len(window)}")
    finally:
        await acc.stop()

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
