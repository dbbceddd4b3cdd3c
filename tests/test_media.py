"""Attachment classification."""
import pytest

from threadboard.media import ACCEPTED_EXTENSIONS, MediaKind, classify, extension, mime_type


@pytest.mark.parametrize("name,kind", [
    ("a.jpg", MediaKind.IMAGE),
    ("a.jpeg", MediaKind.IMAGE),
    ("a.png", MediaKind.IMAGE),
    ("a.gif", MediaKind.IMAGE),
    ("a.webp", MediaKind.IMAGE),
    ("clip.mp4", MediaKind.VIDEO),
    ("clip.webm", MediaKind.VIDEO),
    ("song.mp3", MediaKind.AUDIO),
    ("notes.txt", MediaKind.OTHER),
    ("archive.tar.gz", MediaKind.OTHER),
    ("README", MediaKind.OTHER),
    ("", MediaKind.OTHER),
    ("photo.JPG", MediaKind.OTHER),
    ("song.mp3.exe", MediaKind.OTHER),
])
def test_classify(name, kind):
    assert classify(name) is kind


def test_every_name_gets_exactly_one_kind():
    corpus = ["x.jpg", "x.mp4", "x.mp3", "x.bin", "noext", ".hidden", "x."]
    for name in corpus:
        assert classify(name) in set(MediaKind)


def test_extension():
    assert extension("a/b/c.png") == ".png"
    assert extension("noext") == ""
    assert extension(".hidden") == ""


def test_mime_type():
    assert mime_type("a.jpg") == "image/jpeg"
    assert mime_type("a.webm") == "video/webm"
    assert mime_type("a.mp3") == "audio/mpeg"
    assert mime_type("a.xyz") == "application/octet-stream"


def test_accepted_extensions_are_all_embeddable():
    for ext in ACCEPTED_EXTENSIONS:
        assert classify(f"upload{ext}") is not MediaKind.OTHER
