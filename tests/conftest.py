import os
import stat
import sys

import pytest

from autoocr.utils.config import Settings

# Stand-in for pdfsandwich: "-o OUT -lang LANG -rgb IN".
# Files named fail* exit non-zero, nooutput* succeed without writing output,
# slow* take a while. Every call is appended to calls.log next to the script.
FAKE_PDFSANDWICH = """#!/bin/sh
out="$2"
lang="$4"
in="$6"
here="$(dirname "$0")"
marker=no
[ -e "$in.processing" ] && marker=yes
echo "$* marker=$marker" >> "$here/calls.log"
echo "pdfsandwich: converting $in ($lang)"
echo "pdfsandwich: some warning" >&2
case "$(basename "$in")" in
    fail*) exit 3 ;;
    nooutput*) exit 0 ;;
    slow*) sleep 0.6 ;;
esac
cp "$in" "$out"
"""


@pytest.fixture
def dirs(tmp_path):
    input_dir = tmp_path / "input"
    output_dir = tmp_path / "output"
    input_dir.mkdir()
    output_dir.mkdir()
    return input_dir, output_dir


@pytest.fixture
def fake_pdfsandwich(tmp_path):
    if sys.platform == "win32":
        pytest.skip("fake pdfsandwich is a shell script")

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "pdfsandwich"
    script.write_text(FAKE_PDFSANDWICH)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def calls(fake_pdfsandwich):
    """Return a function that reads the recorded pdfsandwich invocations."""
    log = fake_pdfsandwich.parent / "calls.log"

    def read() -> list[str]:
        if not log.exists():
            return []
        return log.read_text().splitlines()

    return read


@pytest.fixture
def make_settings(dirs, fake_pdfsandwich, monkeypatch):
    for key in list(os.environ):
        if key.startswith("AUTOOCR_"):
            monkeypatch.delenv(key)

    input_dir, output_dir = dirs

    def factory(**overrides) -> Settings:
        values = {
            "input_dir": input_dir,
            "output_dir": output_dir,
            "pdf_sandwich": str(fake_pdfsandwich),
            "languages": "deu+eng",
            "delay": 0.2,
            "keep_original": True,
            "out_permissions": 0o640,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory
