"""Command line entry point for staged uploads."""

from __future__ import annotations

import argparse
import shutil
import sys
from pathlib import Path

from .exceptions import S5cmdFsError
from .filesystem import S5cmdFileSystem
from .logging_config import get_logger, setup_logging
from .settings import Settings
from .storage import build_storage

log = get_logger("s5cmdfs.cli")


def _load_settings(path: Path | None) -> Settings:
    if path is None:
        return Settings()
    return Settings.load(path)


def _put(fs: S5cmdFileSystem, args: argparse.Namespace) -> None:
    overwrite = not args.no_overwrite
    if args.src == "-":
        with fs.open_for_write(args.uri, overwrite=overwrite) as out:
            shutil.copyfileobj(sys.stdin.buffer, out)
        log.info("Uploaded stdin to {}", args.uri)
        return
    uri = fs.put_file(args.uri, Path(args.src), overwrite=overwrite)
    log.info("Uploaded {} to {}", args.src, uri)


def _cat(fs: S5cmdFileSystem, args: argparse.Namespace) -> None:
    with fs.open(args.uri, "rb") as src:
        shutil.copyfileobj(src, sys.stdout.buffer)
    sys.stdout.buffer.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="s5cmdfs", description="Stage writes locally and upload them with s5cmd")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log records")
    commands = parser.add_subparsers(dest="command", required=True)

    put = commands.add_parser("put", help="Upload a local file (or - for stdin) to an object URI")
    put.add_argument("src", help="Local file path, or - to read stdin")
    put.add_argument("uri", help="Destination URI, e.g. s3://bucket/key")
    put.add_argument("--no-overwrite", action="store_true", help="Fail if the destination already exists")
    put.set_defaults(handler=_put)

    cat = commands.add_parser("cat", help="Write an object to stdout")
    cat.add_argument("uri", help="Source URI")
    cat.set_defaults(handler=_cat)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, json_format=args.json_logs)

    try:
        settings = _load_settings(args.config)
        fs = S5cmdFileSystem(build_storage(settings.storage), settings)
        args.handler(fs, args)
    except (S5cmdFsError, OSError) as exc:
        log.error("{}: {}", type(exc).__name__, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
