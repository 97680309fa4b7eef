from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from flask import Flask, current_app, url_for
from itsdangerous import BadSignature, URLSafeTimedSerializer

from adhivakta.core.errors import Forbidden, NotFound, StorageError

logger = logging.getLogger(__name__)

EXTENSION_KEY = "blob_store"
_TOKEN_SALT = "adhivakta-document-blob"


class BlobStore(ABC):
    """Minimal contract the document service relies on."""

    @abstractmethod
    def upload(self, data: bytes, path: str, mime_type: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def delete(self, path: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def signed_url(self, path: str, expires_in: int | None = None) -> str:
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    """Files under a local root; downloads go through a signed, expiring token."""

    def __init__(self, root: Path | str, secret_key: str, expires_in: int = 3600) -> None:
        self.root = Path(root)
        self.expires_in = expires_in
        self._serializer = URLSafeTimedSerializer(secret_key, salt=_TOKEN_SALT)

    def _absolute(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageError("Invalid storage path")
        return target

    def upload(self, data: bytes, path: str, mime_type: str) -> str:
        target = self._absolute(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            logger.error("Failed to store %s: %s", path, exc)
            raise StorageError() from exc
        return path

    def delete(self, path: str) -> None:
        try:
            self._absolute(path).unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to delete %s: %s", path, exc)
            raise StorageError() from exc

    def signed_url(self, path: str, expires_in: int | None = None) -> str:
        token = self._serializer.dumps({"path": path, "ttl": expires_in or self.expires_in})
        return url_for("cases.download_blob", token=token)

    def resolve_token(self, token: str) -> Path:
        try:
            data, signed_at = self._serializer.loads(token, return_timestamp=True)
        except BadSignature as exc:
            raise Forbidden("Invalid download link") from exc
        age = (datetime.now(timezone.utc) - signed_at).total_seconds()
        if age > int(data.get("ttl") or self.expires_in):
            raise Forbidden("Download link has expired")
        target = self._absolute(data["path"])
        if not target.is_file():
            raise NotFound("File not found")
        return target


class S3BlobStore(BlobStore):
    def __init__(self, bucket: str, region: str, expires_in: int = 3600, client=None) -> None:
        self.bucket = bucket
        self.region = region
        self.expires_in = expires_in
        self.client = client or boto3.client("s3", region_name=region)

    def upload(self, data: bytes, path: str, mime_type: str) -> str:
        try:
            self.client.put_object(Bucket=self.bucket, Key=path, Body=data, ContentType=mime_type)
        except (ClientError, BotoCoreError) as exc:
            logger.error("Failed to upload %s to s3: %s", path, exc)
            raise StorageError() from exc
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{path}"

    def delete(self, path: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=path)
        except (ClientError, BotoCoreError) as exc:
            logger.error("Failed to delete %s from s3: %s", path, exc)
            raise StorageError() from exc

    def signed_url(self, path: str, expires_in: int | None = None) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": path},
                ExpiresIn=expires_in or self.expires_in,
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("Failed to sign download url for %s: %s", path, exc)
            raise StorageError() from exc


def init_storage(app: Flask) -> BlobStore:
    backend = (app.config.get("STORAGE_BACKEND") or "local").lower()
    expires_in = int(app.config.get("SIGNED_URL_EXPIRES", 3600))
    if backend == "s3":
        store: BlobStore = S3BlobStore(
            bucket=app.config["S3_BUCKET_NAME"],
            region=app.config["AWS_REGION"],
            expires_in=expires_in,
        )
    else:
        root = app.config.get("STORAGE_ROOT") or str(Path(app.instance_path) / "storage")
        store = LocalBlobStore(root, app.config["SECRET_KEY"], expires_in=expires_in)
    app.extensions[EXTENSION_KEY] = store
    return store


def get_blob_store() -> BlobStore:
    return current_app.extensions[EXTENSION_KEY]
