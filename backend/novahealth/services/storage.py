import os
from io import BytesIO

from minio import Minio


def _minio_endpoint() -> str:
    return os.environ.get("MINIO_ENDPOINT", "minio:9000")


def _minio_secure() -> bool:
    return os.environ.get("MINIO_SECURE", "false").lower() == "true"


def _minio_client() -> Minio:
    access_key = os.environ.get("MINIO_ACCESS_KEY", "minio")
    secret_key = os.environ.get("MINIO_SECRET_KEY", "minio12345")
    return Minio(endpoint=_minio_endpoint(), access_key=access_key, secret_key=secret_key, secure=_minio_secure())


def _bucket() -> str:
    return os.environ.get("MINIO_BUCKET", "lab-tests")


def ensure_bucket(client: Minio) -> None:
    bucket = _bucket()
    if not client.bucket_exists(bucket_name=bucket):
        client.make_bucket(bucket_name=bucket)


def object_url(object_name: str) -> str:
    scheme = "https" if _minio_secure() else "http"
    return f"{scheme}://{_minio_endpoint()}/{_bucket()}/{object_name}"


def put_object(object_name: str, content: bytes, content_type: str | None = None) -> str:
    """Store raw lab test file and return its URL."""
    client = _minio_client()
    ensure_bucket(client)
    client.put_object(
        bucket_name=_bucket(),
        object_name=object_name,
        data=BytesIO(content),
        length=len(content),
        content_type=content_type or "application/octet-stream",
    )
    return object_url(object_name)
