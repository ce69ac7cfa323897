# backend/opsdesk/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///opsdesk.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Session lifetime (hours)
    SESSION_ABSOLUTE_HOURS = _int_env("SESSION_ABSOLUTE_HOURS", 168)
    SESSION_IDLE_HOURS = _int_env("SESSION_IDLE_HOURS", 24)

    # Media quota: uploads each salesperson is expected to make per day
    MEDIA_DAILY_TARGET = _int_env("MEDIA_DAILY_TARGET", 5)
    MEDIA_MAX_BYTES = _int_env("MEDIA_MAX_BYTES", 100 * 1024 * 1024)
    MERCHANT_IMAGE_MAX_BYTES = _int_env("MERCHANT_IMAGE_MAX_BYTES", 10 * 1024 * 1024)

    # Object storage (Aliyun OSS)
    OSS_ACCESS_KEY_ID = os.environ.get("OSS_ACCESS_KEY_ID", "")
    OSS_ACCESS_KEY_SECRET = os.environ.get("OSS_ACCESS_KEY_SECRET", "")
    OSS_ENDPOINT = os.environ.get("OSS_ENDPOINT", "https://oss-cn-hangzhou.aliyuncs.com")
    OSS_BUCKET = os.environ.get("OSS_BUCKET", "opsdesk-assets")
    SIGNED_READ_TTL = _int_env("SIGNED_READ_TTL", 3600)
    SIGNED_WRITE_TTL = _int_env("SIGNED_WRITE_TTL", 300)

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]
