from __future__ import annotations

import pytest

from s5cmdfs.exceptions import ObjectExistsError
from s5cmdfs.session import WriteSession


def test_existing_object_without_overwrite_is_rejected(make_fs, stub_uploader, stage_dir):
    target = stub_uploader.remote / "b" / "k3"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"old")
    fs = make_fs()

    with pytest.raises(ObjectExistsError) as info:
        fs.open_for_write("s3://b/k3", overwrite=False)

    assert info.value.details == {"uri": "s3://b/k3"}
    assert list(stage_dir.iterdir()) == []
    assert stub_uploader.calls() == []
    assert target.read_bytes() == b"old"


def test_existing_object_with_overwrite_is_replaced(make_fs, stub_uploader):
    target = stub_uploader.remote / "b" / "k3"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"old")
    fs = make_fs()

    fs.put_bytes("s3://b/k3", b"new", overwrite=True)

    assert target.read_bytes() == b"new"


def test_creation_hints_are_ignored(make_fs, stub_uploader):
    fs = make_fs()

    session = fs.open_for_write(
        "s3://b/hints",
        overwrite=True,
        buffer_size=4096,
        replication=3,
        block_size=128 * 1024 * 1024,
        permission=0o644,
        progress=lambda: None,
    )
    session.write(b"ok")
    session.close()

    assert isinstance(session, WriteSession)
    assert fs.read_bytes("s3://b/hints") == b"ok"


def test_write_then_read_round_trip(make_fs):
    fs = make_fs(multipart_threshold=1024)
    payload = bytes(range(256)) * 16

    uri = fs.put_bytes("s3://b/round/trip.bin", payload)

    assert uri == "s3://b/round/trip.bin"
    assert fs.exists(uri)
    assert fs.read_bytes(uri) == payload
    assert fs.info(uri)["size"] == len(payload)


def test_put_file_streams_local_file(make_fs, stub_uploader, tmp_path):
    src = tmp_path / "local.csv"
    src.write_text("a,b\n1,2\n", encoding="utf-8")
    fs = make_fs()

    fs.put_file("s3://b/data/local.csv", src)

    assert (stub_uploader.remote / "b" / "data" / "local.csv").read_text(encoding="utf-8") == "a,b\n1,2\n"


def test_open_routes_by_mode(make_fs, stub_uploader):
    fs = make_fs()

    with fs.open("s3://b/modes", "wb") as out:
        out.write(b"via open")
    with fs.open("s3://b/modes", "rb") as src:
        assert src.read() == b"via open"
    with pytest.raises(ObjectExistsError):
        fs.open("s3://b/modes", "xb")


def test_other_operations_are_delegated(make_fs):
    fs = make_fs()
    fs.put_bytes("s3://b/dir/one", b"1")
    fs.put_bytes("s3://b/dir/two", b"2")

    assert fs.list("s3://b/dir/") == ["s3://b/dir/one", "s3://b/dir/two"]

    fs.delete("s3://b/dir/one")

    assert not fs.exists("s3://b/dir/one")
    assert fs.list("s3://b/dir/") == ["s3://b/dir/two"]
    with pytest.raises(AttributeError):
        fs.no_such_operation


def test_failed_write_keeps_existing_object(make_fs, stub_uploader, stage_dir):
    target = stub_uploader.remote / "b" / "kept"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"previous version")
    fs = make_fs()

    with pytest.raises(RuntimeError):
        with fs.open_for_write("s3://b/kept") as out:
            out.write(b"HALF-")
            raise RuntimeError("producer failed")

    assert target.read_bytes() == b"previous version"
    assert stub_uploader.calls() == []
    assert list(stage_dir.iterdir()) == []


def test_put_file_with_unreadable_source_uploads_nothing(make_fs, stub_uploader, stage_dir, tmp_path):
    fs = make_fs()

    with pytest.raises(OSError):
        fs.put_file("s3://b/dir-source", tmp_path)

    assert stub_uploader.calls() == []
    assert not (stub_uploader.remote / "b" / "dir-source").exists()
    assert list(stage_dir.iterdir()) == []
