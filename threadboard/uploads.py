"""Attachment storage – write uploaded files to disk or S3/MinIO."""

from __future__ import annotations

import io
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from PIL import Image

from .config import BoardConfig, DiskConfig, S3Config
from .media import MediaKind, classify, extension, mime_type

logger = logging.getLogger("threadboard.uploads")


@dataclass(frozen=True)
class StoredMedia:
    filename: str
    kind: MediaKind
    mime_type: str
    size: int
    thumbnail: str | None = None


def stored_name(original_name: str) -> str:
    """Fresh unique name keeping the client's extension.

    Names without an extension get ".tmp". The first version of the board
    reused the whole client name as the extension instead ("blob" became
    "<uuid>.blob"); stored files from that era keep their names.
    """
    ext = extension(original_name) or ".tmp"
    return f"{uuid.uuid4()}{ext}"


def disk_url(cfg: DiskConfig, filename: str) -> str:
    return f"{cfg.url_prefix.rstrip('/')}/{filename}"


def s3_url(cfg: S3Config, filename: str) -> str:
    return f"{cfg.endpoint}/{cfg.bucket}/{filename}"


def public_url(cfg: BoardConfig, filename: str) -> str:
    """URL of a stored file, built from config alone (no storage client)."""
    if cfg.media_driver == "s3":
        return s3_url(cfg.s3, filename)
    return disk_url(cfg.disk, filename)


def thumb_name(filename: str) -> str:
    ext = extension(filename)
    thumb_ext = ".jpg" if ext in (".jpg", ".jpeg") else ".png"
    return f"{filename[: len(filename) - len(ext)]}_thumb{thumb_ext}"


class MediaStorage(ABC):
    """Shared upload logic; subclasses decide where the bytes go."""

    def __init__(self, *, thumb_max: int = 200, generate_thumbs: bool = True) -> None:
        self.thumb_max = thumb_max
        self.generate_thumbs = generate_thumbs

    # ── thumbnail generation ────────────────────────────────────

    def make_thumbnail(self, data: bytes, filename: str) -> bytes | None:
        """Shrink an image to fit thumb_max.

        Returns None for non-images, images already small enough, or when
        Pillow cannot read the data.
        """
        if classify(filename) is not MediaKind.IMAGE:
            return None
        try:
            img = Image.open(io.BytesIO(data))
            if img.width <= self.thumb_max and img.height <= self.thumb_max:
                return None
            img.thumbnail((self.thumb_max, self.thumb_max), Image.Resampling.LANCZOS)
            buf = io.BytesIO()
            if extension(filename) in (".jpg", ".jpeg"):
                img.convert("RGB").save(buf, format="JPEG")
            else:
                img.save(buf, format="PNG")
            return buf.getvalue()
        except Exception as exc:
            logger.warning("Thumbnail generation failed for %s: %s", filename, exc)
            return None

    # ── upload ───────────────────────────────────────────────────

    def save(self, original_name: str, data: bytes) -> StoredMedia:
        """Store an uploaded file under a fresh name and return what was written."""
        filename = stored_name(original_name)
        mime = mime_type(filename)
        self._write(filename, data, mime)

        thumbnail: str | None = None
        if self.generate_thumbs:
            thumb_data = self.make_thumbnail(data, filename)
            if thumb_data:
                thumbnail = thumb_name(filename)
                self._write(thumbnail, thumb_data, mime_type(thumbnail))

        logger.info("Stored %s (%d bytes) as %s", original_name, len(data), filename)
        return StoredMedia(
            filename=filename,
            kind=classify(filename),
            mime_type=mime,
            size=len(data),
            thumbnail=thumbnail,
        )

    @abstractmethod
    def _write(self, filename: str, data: bytes, mime: str) -> None:
        """Persist ``data`` under ``filename``."""

    def thumbnail_for(self, filename: str) -> str | None:
        """Name of the thumbnail stored next to ``filename``, if one was made."""
        if classify(filename) is not MediaKind.IMAGE:
            return None
        name = thumb_name(filename)
        return name if self._exists(name) else None

    @abstractmethod
    def _exists(self, filename: str) -> bool:
        """Whether ``filename`` has been stored."""

    @abstractmethod
    def url_for(self, filename: str) -> str:
        """Public URL of a stored file."""

    def close(self) -> None:
        pass


class DiskMediaStorage(MediaStorage):
    """Write uploads into a local directory served as static files."""

    def __init__(
        self, cfg: DiskConfig | None = None, *, thumb_max: int = 200, generate_thumbs: bool = True
    ) -> None:
        super().__init__(thumb_max=thumb_max, generate_thumbs=generate_thumbs)
        self.cfg = cfg or DiskConfig.from_env()
        self.root = Path(self.cfg.upload_dir)
        self.root.mkdir(parents=True, exist_ok=True)

    def _write(self, filename: str, data: bytes, mime: str) -> None:
        (self.root / filename).write_bytes(data)

    def _exists(self, filename: str) -> bool:
        return (self.root / filename).is_file()

    def url_for(self, filename: str) -> str:
        return disk_url(self.cfg, filename)


class S3MediaStorage(MediaStorage):
    """Upload attachments to MinIO / S3."""

    def __init__(
        self, cfg: S3Config | None = None, *, thumb_max: int = 200, generate_thumbs: bool = True
    ) -> None:
        super().__init__(thumb_max=thumb_max, generate_thumbs=generate_thumbs)
        self.cfg = cfg or S3Config.from_env()
        self._s3 = boto3.client(
            "s3",
            endpoint_url=self.cfg.endpoint,
            aws_access_key_id=self.cfg.access_key,
            aws_secret_access_key=self.cfg.secret_key,
            config=BotoConfig(signature_version="s3v4"),
            use_ssl=self.cfg.use_ssl,
        )
        self._ensure_bucket()

    def _ensure_bucket(self) -> None:
        try:
            self._s3.head_bucket(Bucket=self.cfg.bucket)
        except Exception:
            try:
                self._s3.create_bucket(Bucket=self.cfg.bucket)
                logger.info("Created bucket: %s", self.cfg.bucket)
            except Exception as exc:
                logger.warning("Could not ensure bucket %s exists: %s", self.cfg.bucket, exc)

    def _write(self, filename: str, data: bytes, mime: str) -> None:
        self._s3.put_object(
            Bucket=self.cfg.bucket,
            Key=filename,
            Body=data,
            ContentType=mime,
        )

    def _exists(self, filename: str) -> bool:
        try:
            self._s3.head_object(Bucket=self.cfg.bucket, Key=filename)
        except ClientError:
            return False
        return True

    def url_for(self, filename: str) -> str:
        return s3_url(self.cfg, filename)


def open_media_storage(cfg: BoardConfig) -> MediaStorage:
    """Build the attachment driver selected by ``cfg.media_driver``."""
    if cfg.media_driver == "disk":
        return DiskMediaStorage(
            cfg.disk, thumb_max=cfg.thumbnail_max_size, generate_thumbs=cfg.generate_thumbnails
        )
    if cfg.media_driver == "s3":
        return S3MediaStorage(
            cfg.s3, thumb_max=cfg.thumbnail_max_size, generate_thumbs=cfg.generate_thumbnails
        )
    raise ValueError(f"unknown media driver: {cfg.media_driver!r}")
