"""Configuration and environment settings for the board."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseConfig:
    host: str = "localhost"
    port: int = 5432
    dbname: str = "threadboard"
    user: str = "threadboard"
    password: str = "threadboard"

    @property
    def dsn(self) -> str:
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.dbname}"

    @classmethod
    def from_env(cls) -> DatabaseConfig:
        return cls(
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "5432")),
            dbname=os.getenv("DB_NAME", "threadboard"),
            user=os.getenv("DB_USER", "threadboard"),
            password=os.getenv("DB_PASSWORD", "threadboard"),
        )


@dataclass(frozen=True)
class S3Config:
    endpoint: str = "http://localhost:9000"
    access_key: str = "minioadmin"
    secret_key: str = "minioadmin"
    bucket: str = "threadboard"
    use_ssl: bool = False

    @classmethod
    def from_env(cls) -> S3Config:
        return cls(
            endpoint=os.getenv("S3_ENDPOINT", "http://localhost:9000"),
            access_key=os.getenv("S3_ACCESS_KEY", "minioadmin"),
            secret_key=os.getenv("S3_SECRET_KEY", "minioadmin"),
            bucket=os.getenv("S3_BUCKET", "threadboard"),
            use_ssl=os.getenv("S3_USE_SSL", "false").lower() == "true",
        )


@dataclass(frozen=True)
class DiskConfig:
    """Local upload directory, served by the web layer under ``url_prefix``."""
    upload_dir: str = "./static/uploads"
    url_prefix: str = "/static/uploads"

    @classmethod
    def from_env(cls) -> DiskConfig:
        return cls(
            upload_dir=os.getenv("UPLOAD_DIR", "./static/uploads"),
            url_prefix=os.getenv("UPLOAD_URL_PREFIX", "/static/uploads"),
        )


@dataclass(frozen=True)
class BoardConfig:
    db: DatabaseConfig = field(default_factory=DatabaseConfig.from_env)
    s3: S3Config = field(default_factory=S3Config.from_env)
    disk: DiskConfig = field(default_factory=DiskConfig.from_env)
    store_driver: str = "postgres"  # "postgres" | "memory"
    media_driver: str = "disk"  # "disk" | "s3"
    page_size: int = 30
    title_max_length: int = 15
    message_max_length: int = 100_000
    generate_thumbnails: bool = True
    thumbnail_max_size: int = 200

    @classmethod
    def from_env(cls) -> BoardConfig:
        return cls(
            store_driver=os.getenv("STORE_DRIVER", "postgres"),
            media_driver=os.getenv("MEDIA_DRIVER", "disk"),
            page_size=int(os.getenv("PAGE_SIZE", "30")),
        )
