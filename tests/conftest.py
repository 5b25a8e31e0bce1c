from __future__ import annotations

import json
import stat
import sys
import time
from pathlib import Path

import pytest

from s5cmdfs.filesystem import S5cmdFileSystem
from s5cmdfs.settings import Settings, UploaderSettings
from s5cmdfs.storage.local import LocalStorage

# Stand-in for s5cmd: records its argv and the staged bytes, then copies the
# source into STUB_ROOT/<bucket>/<key>. Behaviour is steered by STUB_* env vars.
STUB_SOURCE = """
import json
import os
import sys
import time

argv = sys.argv[1:]
assert argv[0] == "cp", argv
rest = argv[1:]
concurrency = None
if rest[:1] == ["--concurrency"]:
    concurrency = rest[1]
    rest = rest[2:]
src, dst, extra = rest[0], rest[1], rest[2:]

with open(src, "rb") as fp:
    data = fp.read()
with open(os.environ["STUB_LOG"], "a", encoding="utf-8") as fp:
    fp.write(json.dumps({
        "argv": sys.argv,
        "concurrency": concurrency,
        "src": src,
        "dst": dst,
        "extra": extra,
        "content": data.hex(),
        "pid": os.getpid(),
    }) + "\\n")

started = os.environ.get("STUB_STARTED")
if started:
    open(started, "w").close()

chatter = int(os.environ.get("STUB_OUTPUT_BYTES", "0"))
line = ("x" * 99 + "\\n").encode()
while chatter > 0:
    sys.stdout.buffer.write(line)
    chatter -= len(line)
sys.stdout.flush()

if os.environ.get("STUB_STDERR"):
    sys.stderr.write(os.environ["STUB_STDERR"] + "\\n")
    sys.stderr.flush()

time.sleep(float(os.environ.get("STUB_SLEEP", "0")))

code = int(os.environ.get("STUB_EXIT", "0"))
if code == 0:
    scheme, _, path = dst.partition("://")
    target = os.path.join(os.environ["STUB_ROOT"], *path.split("/"))
    os.makedirs(os.path.dirname(target), exist_ok=True)
    with open(target, "wb") as fp:
        fp.write(data)
    print("cp " + src + " " + dst)
sys.exit(code)
"""


class StubUploader:
    def __init__(self, root: Path) -> None:
        self.script = root / "fake-s5cmd"
        self.remote = root / "remote"
        self.log = root / "uploader-calls.jsonl"
        self.started = root / "uploader-started"
        self.remote.mkdir(parents=True, exist_ok=True)
        self.script.write_text(f"#!{sys.executable}\n{STUB_SOURCE}", encoding="utf-8")
        self.script.chmod(self.script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    def calls(self) -> list[dict]:
        if not self.log.exists():
            return []
        lines = self.log.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line.strip()]

    def wait_started(self, timeout: float = 10.0) -> None:
        deadline = time.monotonic() + timeout
        while not self.started.exists():
            if time.monotonic() > deadline:
                raise AssertionError("stub uploader did not start")
            time.sleep(0.01)


@pytest.fixture
def stub_uploader(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> StubUploader:
    if sys.platform.startswith("win"):
        pytest.skip("stub uploader relies on a shebang script")
    stub = StubUploader(tmp_path / "stub")
    monkeypatch.setenv("STUB_ROOT", str(stub.remote))
    monkeypatch.setenv("STUB_LOG", str(stub.log))
    monkeypatch.setenv("STUB_STARTED", str(stub.started))
    for name in ("STUB_EXIT", "STUB_SLEEP", "STUB_STDERR", "STUB_OUTPUT_BYTES"):
        monkeypatch.delenv(name, raising=False)
    return stub


@pytest.fixture
def stage_dir(tmp_path: Path) -> Path:
    path = tmp_path / "stage"
    path.mkdir()
    return path


@pytest.fixture
def make_fs(stub_uploader: StubUploader, stage_dir: Path):
    def _make(**uploader_overrides) -> S5cmdFileSystem:
        options = {"path": str(stub_uploader.script), "temp_dir": str(stage_dir)}
        options.update(uploader_overrides)
        settings = Settings(uploader=UploaderSettings(**options))
        return S5cmdFileSystem(LocalStorage(stub_uploader.remote), settings)

    return _make
