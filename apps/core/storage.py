"""Storage helpers for image assets: content hashing and bucket paths."""
import hashlib

from django.utils import timezone


def compute_content_hash(content: bytes) -> str:
    """SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(content).hexdigest()


def image_upload_path(instance, filename: str) -> str:
    """Generate S3 path: images/<year>/<hash_prefix>/<filename>."""
    hash_prefix = instance.file_hash[:8] if instance.file_hash else "unknown"
    year = (instance.created_at or timezone.now()).year
    return f"images/{year}/{hash_prefix}/{filename}"
