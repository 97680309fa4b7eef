from __future__ import annotations

import os


def _env_flag(name: str, default: str = "0") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///adhivakta.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

    TASKS_EAGER = _env_flag("TASKS_EAGER")
    TASK_WORKERS = int(os.getenv("TASK_WORKERS", "4"))

    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
    STORAGE_ROOT = os.getenv("STORAGE_ROOT")
    S3_BUCKET_NAME = os.getenv("S3_BUCKET_NAME", "")
    AWS_REGION = os.getenv("AWS_REGION", "ap-south-1")
    SIGNED_URL_EXPIRES = int(os.getenv("SIGNED_URL_EXPIRES", "3600"))

    NOTIFY_EMAIL_PROVIDER = os.getenv("NOTIFY_EMAIL_PROVIDER", "dev")
    SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS = _env_flag("SMTP_USE_TLS", "1")
    MAIL_FROM = os.getenv("MAIL_FROM", "no-reply@adhivakta.local")

    NOTIFY_SMS_PROVIDER = os.getenv("NOTIFY_SMS_PROVIDER", "dev")
    TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "")
    TWILIO_FROM_NUMBER = os.getenv("TWILIO_FROM_NUMBER", "")

    APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:3000")
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100
    UPCOMING_HEARING_DAYS = 30
    DEFAULT_TIMEZONE = "Asia/Kolkata"
