from __future__ import annotations

import json

from loguru import logger

from s5cmdfs.logging_config import JSONFormatter, get_logger, setup_logging


def test_json_log_file(tmp_path):
    log_file = tmp_path / "logs" / "s5cmdfs.log"
    setup_logging(level="INFO", json_format=True, log_file=log_file)
    try:
        get_logger("uploader").info("Uploading {} to {}", "/tmp/stage {x}", "s3://b/k")
        logger.complete()
    finally:
        logger.remove()

    record = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert record["level"] == "INFO"
    assert record["message"] == "Uploading /tmp/stage {x} to s3://b/k"
    assert record["name"] == "uploader"


def test_json_formatter_escapes_braces():
    formatter = JSONFormatter()

    class _Level:
        name = "WARNING"

    class _Time:
        def isoformat(self):
            return "2026-01-01T00:00:00"

    rendered = formatter({"time": _Time(), "level": _Level(), "message": "{}", "extra": {}})

    assert rendered.endswith("\n")
    assert json.loads(rendered.replace("{{", "{").replace("}}", "}"))["message"] == "{}"


def test_write_path_binds_uri_and_stage(tmp_path, make_fs):
    log_file = tmp_path / "upload.log"
    setup_logging(level="INFO", json_format=True, log_file=log_file)
    try:
        fs = make_fs()
        with fs.open_for_write("s3://b/logged") as out:
            out.write(b"x")
        logger.complete()
    finally:
        logger.remove()

    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    created = next(record for record in records if record["message"].startswith("Created temp file"))
    uploaded = next(record for record in records if record["message"].startswith("Successfully uploaded"))
    assert created["uri"] == "s3://b/logged"
    assert created["stage"] == str(out.stage_path)
    assert uploaded["uri"] == "s3://b/logged"
    assert uploaded["stage"] == str(out.stage_path)
