import asyncio, argparse
from tiltwatch.monitor import run

def main():
    ap = argparse.ArgumentParser(description="Tilt monitor driving a smart-outlet siren")
    ap.add_argument("--config", required=True)
    ap.add_argument("--duration", type=int, default=None,
                    help="stop after this many seconds (overrides monitor.work_duration_sec)")
    args = ap.parse_args()
    asyncio.run(run(args.config, args.duration))

if __name__ == "__main__":
    main()
