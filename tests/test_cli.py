"""Command line interface."""
import io

import pytest
from click.testing import CliRunner
from PIL import Image

from threadboard.cli import cli
from threadboard.forms import Submission


@pytest.fixture
def run(board, cfg):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, list(args), obj={"board": board, "cfg": cfg})

    return invoke


def test_post_and_list(run, board):
    result = run("post", "--title", "hello", "--message", "world")
    assert result.exit_code == 0, result.output
    assert "Created thread" in result.output

    op_id = board.page(0).posts[0].id
    result = run("list")
    assert result.exit_code == 0
    assert "hello" in result.output
    assert board.thread(op_id).op.title == "hello"


def test_reply_and_thread(run, board):
    op_id = board.submit(Submission("op", "the op"), now=1)
    result = run("post", "--title", "re", "--message", "a reply", "--reply-to", op_id)
    assert result.exit_code == 0, result.output
    assert op_id in result.output

    result = run("thread", op_id)
    assert result.exit_code == 0
    assert "the op" in result.output
    assert "a reply" in result.output


def test_post_with_file(run, board, tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00\x00")
    result = run("post", "--title", "vid", "--message", "m", "--file", str(path))
    assert result.exit_code == 0, result.output
    assert board.page(0).posts[0].file.endswith(".mp4")


def test_invalid_post(run):
    result = run("post", "--title", "x" * 40, "--message", "m")
    assert result.exit_code == 2
    assert "Invalid title" in result.output


def test_thread_not_found(run):
    result = run("thread", "missing")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_list_navigation(run, board):
    for i in range(4):
        board.submit(Submission(f"t{i}", "m"), now=i)
    result = run("list")
    assert "next: --page 1" in result.output
    result = run("list", "--page", "1")
    assert "previous: --page 0" in result.output


def test_classify():
    result = CliRunner().invoke(cli, ["--store", "memory", "classify", "a.png", "b.mp3", "c.txt"])
    assert result.exit_code == 0
    assert "image" in result.output
    assert "audio" in result.output
    assert "other" in result.output


def test_check_reports_unreadable_records(run, store):
    store.put("bad", b"garbage")
    result = run("check")
    assert result.exit_code == 1
    assert "could not be read" in result.output


def test_check_clean_store(run, board):
    board.submit(Submission("t", "m"), now=1)
    result = run("check")
    assert result.exit_code == 0, result.output


def test_thread_shows_thumbnail(run, board):
    buf = io.BytesIO()
    Image.new("RGB", (500, 500), color=(10, 10, 10)).save(buf, format="PNG")
    op_id = board.submit(Submission("pic", "m", filename="big.png"), buf.getvalue(), now=1)
    result = run("thread", op_id)
    assert result.exit_code == 0, result.output
    assert "thumbnail:" in result.output
    assert "_thumb.png" in result.output
