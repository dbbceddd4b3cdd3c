"""CLI entry-point for the board."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .board import Board
from .config import BoardConfig, DatabaseConfig, DiskConfig, S3Config
from .forms import Submission, SubmissionError
from .media import classify
from .models import Post
from .store import PostgresStore, StoreWriteError

console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )
    # Suppress noisy libraries
    logging.getLogger("psycopg").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


def _print_stats(stats: dict) -> None:
    table = Table(title="Board Summary", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")
    for key, val in stats.items():
        table.add_row(key.capitalize(), str(val))
    console.print(table)


def _fmt_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _attachment(post: Post) -> str:
    if not post.file:
        return ""
    return f"{post.file} ({post.media_kind.value})" if post.media_kind else post.file


@click.group()
@click.option("--store", "store_driver", envvar="STORE_DRIVER", default="postgres",
              type=click.Choice(["postgres", "memory"]), help="Post store backend")
@click.option("--media", "media_driver", envvar="MEDIA_DRIVER", default="disk",
              type=click.Choice(["disk", "s3"]), help="Attachment storage backend")
@click.option("--db-host", envvar="DB_HOST", default="localhost", help="PostgreSQL host")
@click.option("--db-port", envvar="DB_PORT", default=5432, type=int, help="PostgreSQL port")
@click.option("--db-name", envvar="DB_NAME", default="threadboard", help="PostgreSQL database name")
@click.option("--db-user", envvar="DB_USER", default="threadboard", help="PostgreSQL user")
@click.option("--db-password", envvar="DB_PASSWORD", default="threadboard", help="PostgreSQL password")
@click.option("--upload-dir", envvar="UPLOAD_DIR", default="./static/uploads", help="Directory for disk attachments")
@click.option("--s3-endpoint", envvar="S3_ENDPOINT", default="http://localhost:9000", help="MinIO/S3 endpoint URL")
@click.option("--s3-access-key", envvar="S3_ACCESS_KEY", default="minioadmin", help="S3 access key")
@click.option("--s3-secret-key", envvar="S3_SECRET_KEY", default="minioadmin", help="S3 secret key")
@click.option("--s3-bucket", envvar="S3_BUCKET", default="threadboard", help="S3 bucket name")
@click.option("--page-size", envvar="PAGE_SIZE", default=30, type=click.IntRange(min=1), help="Threads per page")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, **kwargs: object) -> None:
    """Threadboard – a minimal threaded discussion board.

    Create threads and replies, browse the bump-ordered listing and
    inspect the post store.
    """
    _setup_logging(bool(kwargs.pop("verbose")))
    ctx.ensure_object(dict)
    ctx.obj.setdefault("cfg", BoardConfig(
        db=DatabaseConfig(
            host=kwargs["db_host"],  # type: ignore[arg-type]
            port=kwargs["db_port"],  # type: ignore[arg-type]
            dbname=kwargs["db_name"],  # type: ignore[arg-type]
            user=kwargs["db_user"],  # type: ignore[arg-type]
            password=kwargs["db_password"],  # type: ignore[arg-type]
        ),
        s3=S3Config(
            endpoint=kwargs["s3_endpoint"],  # type: ignore[arg-type]
            access_key=kwargs["s3_access_key"],  # type: ignore[arg-type]
            secret_key=kwargs["s3_secret_key"],  # type: ignore[arg-type]
            bucket=kwargs["s3_bucket"],  # type: ignore[arg-type]
        ),
        disk=DiskConfig(upload_dir=kwargs["upload_dir"]),  # type: ignore[arg-type]
        store_driver=kwargs["store_driver"],  # type: ignore[arg-type]
        media_driver=kwargs["media_driver"],  # type: ignore[arg-type]
        page_size=kwargs["page_size"],  # type: ignore[arg-type]
    ))


@contextmanager
def _open_board(ctx: click.Context) -> Iterator[Board]:
    """Yield the board injected into ctx.obj, or open one from the config."""
    board = ctx.obj.get("board")
    if board is not None:
        yield board
        return
    with Board(ctx.obj["cfg"]) as b:
        yield b


# ─── Commands ────────────────────────────────────────────────────


@cli.command(name="init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the posts table in PostgreSQL."""
    cfg: BoardConfig = ctx.obj["cfg"]
    with PostgresStore(cfg.db) as store:
        store.ensure_schema()
    console.print(f"[green]✓[/green] Schema ready in [cyan]{cfg.db.dbname}[/cyan]")


@cli.command()
@click.option("--title", required=True, help="Post title")
@click.option("--message", required=True, help="Post body")
@click.option("--reply-to", "parent_id", default=None, help="Id of the thread to reply to")
@click.option("--file", "file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="Attachment to upload")
@click.pass_context
def post(ctx: click.Context, title: str, message: str, parent_id: str | None, file_path: Path | None) -> None:
    """Create a thread, or a reply with --reply-to.

    Example: threadboard post --title hello --message "first post"
    """
    submission = Submission(
        title=title,
        message=message,
        parent_id=parent_id,
        filename=file_path.name if file_path else None,
    )
    upload = file_path.read_bytes() if file_path else None
    with _open_board(ctx) as board:
        try:
            target = board.submit(submission, upload)
        except SubmissionError as exc:
            console.print(f"[red]✗[/red] Invalid {exc.field}: {exc.message}")
            sys.exit(2)
        except StoreWriteError as exc:
            console.print(f"[red]✗[/red] Could not save post: {exc}")
            sys.exit(1)
        if parent_id:
            console.print(f"[green]✓[/green] Replied in thread [cyan]{target}[/cyan]")
        else:
            console.print(f"[green]✓[/green] Created thread [cyan]{target}[/cyan]")


@cli.command()
@click.argument("post_id")
@click.pass_context
def thread(ctx: click.Context, post_id: str) -> None:
    """Show a thread with its replies, oldest first.

    Example: threadboard thread 0b6f...
    """
    with _open_board(ctx) as board:
        result = board.thread(post_id)
        if result is None:
            console.print(f"[red]✗[/red] Thread {post_id} not found")
            sys.exit(1)
        op = result.op
        console.print(f"[bold]{op.title}[/bold]  [dim]{op.id} · {_fmt_ts(op.timestamp)}[/dim]")
        console.print(op.message)
        if op.file:
            console.print(f"[dim]attachment:[/dim] {board.media_url(op.file)} ({op.media_kind.value})")
            thumb = board.thumb_url(op.file)
            if thumb:
                console.print(f"[dim]thumbnail:[/dim] {thumb}")

        table = Table(title=f"{len(result.replies)} replies", show_header=True, header_style="bold cyan")
        table.add_column("#", justify="right")
        table.add_column("Posted")
        table.add_column("Message", max_width=60)
        table.add_column("Attachment")
        for n, reply in enumerate(result.replies, start=1):
            table.add_row(str(n), _fmt_ts(reply.timestamp), reply.message, _attachment(reply))
        console.print(table)


@cli.command(name="list")
@click.option("--page", default=0, type=int, help="Page number, starting at 0")
@click.pass_context
def list_threads(ctx: click.Context, page: int) -> None:
    """List threads, most recently bumped first.

    Example: threadboard list --page 1
    """
    with _open_board(ctx) as board:
        result = board.page(page)
        table = Table(title=f"Threads – page {result.page}", show_header=True, header_style="bold cyan")
        table.add_column("Id", style="bold")
        table.add_column("Title", max_width=20)
        table.add_column("Bumped")
        table.add_column("Attachment")
        for op in result.posts:
            table.add_row(op.id, op.title, _fmt_ts(op.timestamp), _attachment(op))
        console.print(table)

        nav = []
        if result.prev_page is not None:
            nav.append(f"previous: --page {result.prev_page}")
        if result.next_page is not None:
            nav.append(f"next: --page {result.next_page}")
        if nav:
            console.print("[dim]" + " · ".join(nav) + "[/dim]")


@cli.command(name="classify")
@click.argument("filenames", nargs=-1, required=True)
def classify_files(filenames: tuple[str, ...]) -> None:
    """Show how attachments would be rendered.

    Example: threadboard classify cat.png song.mp3
    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("File", style="bold")
    table.add_column("Kind")
    for name in filenames:
        table.add_row(name, classify(name).value)
    console.print(table)


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Scan the whole store and report unreadable records."""
    with _open_board(ctx) as board:
        before = board.stats["skipped"]
        posts = board.repo.reindex()
        skipped = board.stats["skipped"] - before
        console.print(f"Scanned {posts + skipped} records")
        _print_stats({"posts": posts, "skipped": skipped})
        if skipped:
            console.print(f"[yellow]![/yellow] {skipped} records could not be read")
            sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
