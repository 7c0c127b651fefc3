# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for gsbackup tests.

Provides fake archive tools, settings wired to them and a factory for
fake managed instances.
"""

import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from helpers import FakeInstance, write_script

from gsbackup.config import DaemonSettings


# Zip helper stand-in: same flags as the real binary, backed by zipfile.
# FAKE_ZIP_SLEEP writes a partial archive then sleeps; FAKE_ZIP_EXIT fails.
FAKE_ZIP_TOOL = '''
import os
import sys
import time
import zipfile

args = {}
files = []
for arg in sys.argv[1:]:
    key, _, value = arg.lstrip("-").partition("=")
    if key == "file":
        files.append(value)
    else:
        args[key] = value

if os.environ.get("FAKE_ZIP_EXIT"):
    sys.stderr.write("fake zip failure\\n")
    sys.exit(int(os.environ["FAKE_ZIP_EXIT"]))

if args["mode"] == "1":
    if os.environ.get("FAKE_ZIP_SLEEP"):
        with open(args["zipPath"], "wb") as f:
            f.write(b"PK\\x03\\x04partial")
        time.sleep(float(os.environ["FAKE_ZIP_SLEEP"]))
    with zipfile.ZipFile(args["zipPath"], "w", zipfile.ZIP_DEFLATED) as zf:
        for item in files:
            if os.path.isdir(item):
                for dirpath, _, filenames in os.walk(item):
                    for name in filenames:
                        full = os.path.join(dirpath, name)
                        zf.write(full, os.path.relpath(full, ".").replace(os.sep, "/"))
            else:
                zf.write(item, item)
    print("compressed", len(files))
elif args["mode"] == "2":
    with zipfile.ZipFile(args["zipPath"]) as zf:
        zf.extractall(args["distDirPath"])
    print("extracted")
else:
    sys.exit(2)
'''

# 7-Zip stand-in: prints FAKE_7Z_OUTPUT verbatim when set, otherwise
# really extracts with zipfile and reports success.
FAKE_SEVEN_ZIP = '''
import os
import sys
import zipfile

if os.environ.get("FAKE_7Z_STDERR"):
    sys.stderr.write(os.environ["FAKE_7Z_STDERR"])

if os.environ.get("FAKE_7Z_OUTPUT"):
    print(os.environ["FAKE_7Z_OUTPUT"])
    sys.exit(2)

archive = sys.argv[2]
dest = [a for a in sys.argv[3:] if a.startswith("-o")][0][2:]
with zipfile.ZipFile(archive) as zf:
    zf.extractall(dest)
print("7-Zip (fake)")
print("Everything is Ok")
'''


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_zip_tool(temp_dir: Path) -> Path:
    return write_script(temp_dir / "bin" / "file_zip", FAKE_ZIP_TOOL)


@pytest.fixture
def fake_seven_zip(temp_dir: Path) -> Path:
    return write_script(temp_dir / "bin" / "7z", FAKE_SEVEN_ZIP)


@pytest.fixture
def settings(temp_dir: Path, fake_zip_tool: Path) -> DaemonSettings:
    """Settings using the fake zip helper and no 7-Zip."""
    return DaemonSettings(
        data_dir=temp_dir / "data",
        zip_tool_path=fake_zip_tool,
        seven_zip_path=None,
        zip_timeout_seconds=30,
        cold_stop_timeout_seconds=2.0,
        restart_delay_seconds=0.0,
        scratch_dir=temp_dir / "scratch",
    )


@pytest.fixture
def instance_dir(temp_dir: Path) -> Path:
    """A small server directory with a metadata folder."""
    root = temp_dir / "servers" / "survival-01"
    files = {
        "server.properties": b"motd=hello\n",
        "world/level.dat": b"\x00\x01level",
        "world/region/r.0.0.mca": b"region-data" * 100,
        "logs/latest.log": b"[INFO] started\n",
        ".mcsm/instance.json": b"{}",
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return root


@pytest.fixture
def make_instance(instance_dir: Path) -> Callable[..., FakeInstance]:
    """Factory for fake instances rooted at instance_dir."""

    def factory(**kwargs) -> FakeInstance:
        kwargs.setdefault("cwd", instance_dir)
        return FakeInstance(**kwargs)

    return factory
