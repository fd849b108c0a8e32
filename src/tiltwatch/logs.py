from __future__ import annotations
import os, json, time, pathlib, uuid
from typing import Optional, IO, Iterable


class NdjsonLogger:
    """Status/event log, one JSON object per line, rotated daily.

    With dual_file enabled every record also goes to a full debug file under
    `dir/debug_subdir`; in 'regular' mode the main file drops records of
    type 'debug' unless their msg is whitelisted.
    """
    def __init__(self, directory: str, file_prefix: str, *, dual_file: bool = False,
                 debug_subdir: Optional[str] = None, mode: Optional[str] = None,
                 verbose_whitelist: Optional[Iterable[str]] = None, echo: bool = False):
        self.dir = pathlib.Path(directory)
        self.dir.mkdir(parents=True, exist_ok=True)
        self.prefix = file_prefix
        self.dual_file = bool(dual_file)
        self.debug_subdir = debug_subdir or "debug"
        self.echo = echo
        self.seq = 0
        self._fh: Optional[IO[str]] = None
        self._debug_fh: Optional[IO[str]] = None
        self._rot_day: Optional[str] = None
        self.path: Optional[pathlib.Path] = None
        self.debug_path: Optional[pathlib.Path] = None
        self.mode: str = mode or os.getenv("LOG_MODE", "regular")
        if verbose_whitelist is None:
            wl = os.getenv("LOG_VERBOSE_WHITELIST", "")
            verbose_whitelist = [s.strip() for s in wl.split(",") if s.strip()]
        self.verbose_whitelist = set(verbose_whitelist)
        self.session_id: str = os.getenv("SESSION_ID") or uuid.uuid4().hex[:12]
        self.pid: int = os.getpid()
        self.rotate()

    def rotate(self):
        self.close()
        stamp = time.strftime("%Y%m%d_%H%M%S")
        self.path = self.dir / f"{self.prefix}_{stamp}.ndjson"
        self._fh = open(self.path, "a", buffering=1, encoding="utf-8")
        if self.dual_file:
            debug_dir = self.dir / self.debug_subdir
            debug_dir.mkdir(parents=True, exist_ok=True)
            self.debug_path = debug_dir / f"{self.prefix}_debug_{stamp}.ndjson"
            self._debug_fh = open(self.debug_path, "a", buffering=1, encoding="utf-8")
        self._rot_day = stamp[:8]

    def _keep_in_main(self, obj: dict) -> bool:
        if self.mode != "regular":
            return True
        if obj.get("type") == "debug":
            return obj.get("msg") in self.verbose_whitelist
        return True

    def write(self, obj: dict):
        self.seq += 1
        now = time.time()
        msec = int((now % 1.0) * 1000)
        obj.setdefault("hms", time.strftime("%H:%M:%S", time.localtime(now)) + f".{msec:03d}")
        obj.setdefault("seq", self.seq)
        obj.setdefault("schema", "v1")
        obj.setdefault("session_id", self.session_id)
        obj.setdefault("pid", self.pid)
        if time.strftime("%Y%m%d") != self._rot_day:
            self.rotate()

        line = json.dumps(obj) + "\n"
        if self._debug_fh:
            self._debug_fh.write(line)
        if self._fh and self._keep_in_main(obj):
            self._fh.write(line)
        if self.echo and obj.get("type") != "debug":
            print(f"[{obj['hms']}] {obj.get('msg')}", flush=True)

    def status(self, msg: str, **data):
        """Plain status line, the only logging surface the monitor core sees."""
        self.write({"type": "status", "msg": msg, "data": data})

    def debug(self, msg: str, **data):
        self.write({"type": "debug", "msg": msg, "data": data})

    def close(self):
        for fh in (self._fh, self._debug_fh):
            if fh:
                try:
                    fh.close()
                except OSError:
                    pass
        self._fh = None
        self._debug_fh = None
