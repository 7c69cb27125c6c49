from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError
import io
import logging
import time
from functools import lru_cache
from greendata.core.config import settings
from typing import Optional

logger = logging.getLogger(__name__)

# S3 error codes that mean the key does not resolve to an object
NOT_FOUND_CODES = {"NoSuchKey", "NoSuchObject", "NoSuchBucket"}


class StorageError(Exception):
    """An object storage call failed; the message is suitable for showing to the user."""


class ObjectNotFoundError(StorageError):
    pass


def build_object_key(user_id, filename: str, now_ms: Optional[int] = None) -> str:
    """Storage key ``{user_id}/{unix_millis}-{filename}``; the filename is used as given."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{user_id}/{now_ms}-{filename}"


class MinIOService:
    def __init__(self):
        self.client = Minio(
            settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE,
            region=settings.MINIO_REGION  # Explicit region to avoid lookup
        )
        self.bucket = settings.MINIO_BUCKET
        self._ensure_bucket()

    def _ensure_bucket(self):
        try:
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)
        except (S3Error, HTTPError) as exc:
            logger.warning("MinIO bucket check failed: %s", exc)

    def upload(self, object_name: str, content: bytes, content_type: Optional[str] = None) -> str:
        try:
            self.client.put_object(
                self.bucket, object_name, io.BytesIO(content),
                length=len(content),
                content_type=content_type or "application/octet-stream",
            )
        except S3Error as exc:
            raise StorageError(exc.message or str(exc)) from exc
        except HTTPError as exc:
            raise StorageError(str(exc)) from exc
        return object_name

    def download(self, object_name: str) -> bytes:
        response = None
        try:
            response = self.client.get_object(self.bucket, object_name)
            return response.read()
        except S3Error as exc:
            if exc.code in NOT_FOUND_CODES:
                raise ObjectNotFoundError("Object not found") from exc
            raise StorageError(exc.message or str(exc)) from exc
        except HTTPError as exc:
            raise StorageError(str(exc)) from exc
        finally:
            if response is not None:
                response.close()
                response.release_conn()

    def remove(self, object_name: str):
        try:
            self.client.remove_object(self.bucket, object_name)
        except S3Error as exc:
            raise StorageError(exc.message or str(exc)) from exc
        except HTTPError as exc:
            raise StorageError(str(exc)) from exc


@lru_cache
def get_storage() -> MinIOService:
    return MinIOService()
