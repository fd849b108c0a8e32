import json
from pathlib import Path

from tiltwatch.logs import NdjsonLogger


def _read(files):
    out = []
    for f in files:
        for line in f.read_text(encoding="utf-8").splitlines():
            if line.strip():
                out.append(json.loads(line))
    return out


def test_status_record_fields(tmp_path: Path):
    logger = NdjsonLogger(str(tmp_path), "tw")
    logger.status("Alarm ON")
    logger.close()
    entries = _read(tmp_path.glob("tw_*.ndjson"))
    assert len(entries) == 1
    e = entries[0]
    assert e["type"] == "status"
    assert e["msg"] == "Alarm ON"
    assert e["seq"] == 1
    for key in ("hms", "schema", "session_id", "pid"):
        assert key in e


def test_dual_file_filters_debug_from_main(tmp_path: Path):
    base = tmp_path / "logs"
    logger = NdjsonLogger(str(base), "tw", dual_file=True, debug_subdir="debug", mode="regular",
                          verbose_whitelist=[])
    logger.status("u=[0.00,0.00,9.80]")
    logger.debug("noise", value=0.01)
    logger.close()

    main = _read(base.glob("tw_*.ndjson"))
    assert [e["msg"] for e in main] == ["u=[0.00,0.00,9.80]"]
    debug = _read((base / "debug").glob("tw_debug_*.ndjson"))
    assert [e["msg"] for e in debug] == ["u=[0.00,0.00,9.80]", "noise"]


def test_whitelisted_debug_kept(tmp_path: Path):
    logger = NdjsonLogger(str(tmp_path), "tw", mode="regular", verbose_whitelist=["noise"])
    logger.debug("noise", value=0.3)
    logger.debug("chatter")
    logger.close()
    assert [e["msg"] for e in _read(tmp_path.glob("tw_*.ndjson"))] == ["noise"]


def test_verbose_mode_keeps_everything(tmp_path: Path):
    logger = NdjsonLogger(str(tmp_path), "tw", mode="verbose")
    logger.debug("chatter")
    logger.close()
    assert len(_read(tmp_path.glob("tw_*.ndjson"))) == 1


def test_echo_prints_status(tmp_path: Path, capsys):
    logger = NdjsonLogger(str(tmp_path), "tw", echo=True)
    logger.status("Wifi ON")
    logger.debug("hidden")
    logger.close()
    out = capsys.readouterr().out
    assert "Wifi ON" in out
    assert "hidden" not in out
