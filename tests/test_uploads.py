"""Attachment storage on disk."""
import io
from unittest import mock

import pytest
from PIL import Image

from threadboard.config import BoardConfig, DatabaseConfig, DiskConfig, S3Config
from threadboard.media import MediaKind
from botocore.exceptions import ClientError

from threadboard.uploads import (
    DiskMediaStorage,
    S3MediaStorage,
    open_media_storage,
    public_url,
    stored_name,
    thumb_name,
)


def _png(width, height):
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 10, 10)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def disk(tmp_path):
    return DiskMediaStorage(DiskConfig(upload_dir=str(tmp_path / "up"), url_prefix="/static/uploads/"))


def test_stored_name_keeps_extension():
    name = stored_name("holiday photo.jpeg")
    assert name.endswith(".jpeg")
    assert stored_name("holiday photo.jpeg") != name


def test_stored_name_without_extension():
    name = stored_name("blob")
    assert name.endswith(".tmp")
    assert "blob" not in name


def test_thumb_name():
    assert thumb_name("abc.jpeg") == "abc_thumb.jpg"
    assert thumb_name("abc.gif") == "abc_thumb.png"


def test_save_writes_file(disk):
    stored = disk.save("song.mp3", b"ID3data")
    assert stored.kind is MediaKind.AUDIO
    assert stored.mime_type == "audio/mpeg"
    assert stored.size == 7
    assert stored.thumbnail is None
    assert (disk.root / stored.filename).read_bytes() == b"ID3data"


def test_large_image_gets_thumbnail(disk):
    stored = disk.save("big.png", _png(800, 400))
    assert stored.thumbnail is not None
    with Image.open(disk.root / stored.thumbnail) as thumb:
        assert max(thumb.size) == 200


def test_small_image_has_no_thumbnail(disk):
    assert disk.save("small.png", _png(50, 50)).thumbnail is None


def test_broken_image_is_still_stored(disk):
    stored = disk.save("fake.png", b"not a png")
    assert stored.thumbnail is None
    assert (disk.root / stored.filename).exists()


def test_url_for(disk):
    assert disk.url_for("a.png") == "/static/uploads/a.png"


def test_open_media_storage(tmp_path):
    cfg = BoardConfig(db=DatabaseConfig(), s3=S3Config(), disk=DiskConfig(upload_dir=str(tmp_path)))
    assert isinstance(open_media_storage(cfg), DiskMediaStorage)

    with mock.patch("threadboard.uploads.boto3") as boto:
        s3 = open_media_storage(BoardConfig(
            db=DatabaseConfig(), s3=S3Config(bucket="b"), disk=DiskConfig(upload_dir=str(tmp_path)),
            media_driver="s3",
        ))
        stored = s3.save("clip.webm", b"webm")
    boto.client.return_value.put_object.assert_called_once_with(
        Bucket="b", Key=stored.filename, Body=b"webm", ContentType="video/webm",
    )
    assert s3.url_for("x.png") == "http://localhost:9000/b/x.png"

    with pytest.raises(ValueError):
        open_media_storage(BoardConfig(db=DatabaseConfig(), s3=S3Config(), media_driver="ftp"))


def test_thumbnail_for_on_disk(disk):
    big = disk.save("big.png", _png(800, 400))
    small = disk.save("small.png", _png(20, 20))
    song = disk.save("song.mp3", b"ID3")
    assert disk.thumbnail_for(big.filename) == big.thumbnail
    assert disk.thumbnail_for(small.filename) is None
    assert disk.thumbnail_for(song.filename) is None


def test_thumbnail_for_on_s3():
    with mock.patch("threadboard.uploads.boto3") as boto:
        s3 = S3MediaStorage(S3Config(bucket="b"))
        client = boto.client.return_value
        assert s3.thumbnail_for("abc.jpeg") == "abc_thumb.jpg"
        client.head_object.assert_called_once_with(Bucket="b", Key="abc_thumb.jpg")

        client.head_object.side_effect = ClientError({"Error": {"Code": "404"}}, "HeadObject")
        assert s3.thumbnail_for("def.png") is None
        assert s3.thumbnail_for("notes.pdf") is None
        assert client.head_object.call_count == 2


def test_public_url_needs_no_client():
    disk_cfg = BoardConfig(
        db=DatabaseConfig(), s3=S3Config(), disk=DiskConfig(url_prefix="/media/")
    )
    s3_cfg = BoardConfig(
        db=DatabaseConfig(), s3=S3Config(bucket="b"), disk=DiskConfig(), media_driver="s3"
    )
    with mock.patch("threadboard.uploads.boto3") as boto:
        assert public_url(disk_cfg, "a.png") == "/media/a.png"
        assert public_url(s3_cfg, "a.png") == "http://localhost:9000/b/a.png"
    boto.client.assert_not_called()
