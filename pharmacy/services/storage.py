import io, uuid
from typing import Tuple
from minio import Minio
from pharmacy.core.config import settings

def _host() -> str:
    return settings.S3_ENDPOINT.replace('http://', '').replace('https://', '')

def _client() -> Minio:
    return Minio(_host(), access_key=settings.S3_ACCESS_KEY, secret_key=settings.S3_SECRET_KEY, secure=settings.S3_SECURE)

def ensure_bucket(c: Minio) -> None:
    if not c.bucket_exists(settings.S3_BUCKET):
        c.make_bucket(settings.S3_BUCKET)

def upload_bytes(data: bytes, content_type: str, ext: str = '') -> Tuple[str, str]:
    """Store a product image; returns (object_key, public_url)."""
    c = _client()
    ensure_bucket(c)
    key = f"products/{uuid.uuid4().hex}{ext}"
    c.put_object(settings.S3_BUCKET, key, io.BytesIO(data), length=len(data), content_type=content_type)
    scheme = 'https' if settings.S3_SECURE else 'http'
    return key, f"{scheme}://{_host()}/{settings.S3_BUCKET}/{key}"
