import time

import pytest

from autoocr.main import Supervisor, main, parse_args, settings_overrides
from autoocr.utils.helpers import parse_file_mode


def test_parse_args_only_reports_given_flags():
    args = parse_args(["-i", "scans", "--delay", "2s", "--no-keep-original", "--permissions", "600"])

    assert settings_overrides(args) == {
        "input_dir": "scans",
        "delay": "2s",
        "keep_original": False,
        "out_permissions": "600",
    }


def test_parse_args_defaults_are_empty():
    assert settings_overrides(parse_args([])) == {}


def test_parse_args_rejects_unknown_log_format():
    with pytest.raises(SystemExit):
        parse_args(["--log-format", "xml"])


def test_main_rejects_invalid_settings(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert main(["--delay", "0s"]) == 2


def test_main_fails_when_input_cannot_be_watched(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    code = main(["-i", str(tmp_path / "missing"), "-o", str(tmp_path / "out")])

    assert code == 1
    assert (tmp_path / "out").is_dir()


def test_main_creates_output_with_dir_permissions(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = tmp_path / "out"

    main(["-i", str(tmp_path / "missing"), "-o", str(out), "--dir-permissions", "700"])

    assert out.stat().st_mode & 0o777 == parse_file_mode("700")


def test_supervisor_processes_leftover_files(make_settings, dirs):
    input_dir, output_dir = dirs
    (input_dir / "left.pdf").write_bytes(b"%PDF leftover")

    supervisor = Supervisor(make_settings())
    supervisor.start()
    try:
        deadline = time.monotonic() + 5
        while not (output_dir / "left.pdf").exists() and time.monotonic() < deadline:
            time.sleep(0.05)
        assert (output_dir / "left.pdf").exists()
    finally:
        supervisor.stop()
        assert supervisor.wait(timeout=2)


def test_supervisor_processes_new_files(make_settings, dirs):
    input_dir, output_dir = dirs

    supervisor = Supervisor(make_settings())
    supervisor.start()
    try:
        time.sleep(0.5)
        (input_dir / "new.pdf").write_bytes(b"%PDF incoming")

        deadline = time.monotonic() + 5
        while not (output_dir / "new.pdf.backup").exists() and time.monotonic() < deadline:
            time.sleep(0.05)
        assert (output_dir / "new.pdf.backup").read_bytes() == b"%PDF incoming"
    finally:
        supervisor.stop()
        assert supervisor.wait(timeout=2)

    assert not supervisor.watcher.is_alive()
    assert not supervisor.processor.is_alive()
