"""
Image-asset operations used by the catalog.

The catalog stores only an asset id. Bytes are written here after the
external moderator has returned its verdict, and replaced assets are
purged by a Celery task once the catalog transaction commits.
"""
import logging
import uuid
from dataclasses import dataclass, field

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.files.base import ContentFile
from django.db import transaction

from apps.catalog.exceptions import ValidationError
from apps.core.storage import compute_content_hash

from .models import ImageAsset
from .moderation import get_moderator

logger = logging.getLogger(__name__)

# content type -> (file extension, magic prefix)
ALLOWED_TYPES = {
    "image/jpeg": ("jpg", b"\xff\xd8\xff"),
    "image/png": ("png", b"\x89PNG\r\n\x1a\n"),
}


@dataclass
class ModeratedImage:
    asset_id: uuid.UUID
    approved: bool
    content_type: str
    labels: list = field(default_factory=list)


def _check_content(content: bytes, content_type: str) -> str:
    content_type = (content_type or "").split(";")[0].strip().lower()
    if not content:
        raise ValidationError("image is empty", field="image")
    if len(content) > settings.CATALOG_IMAGE_MAX_BYTES:
        raise ValidationError(
            f"image exceeds {settings.CATALOG_IMAGE_MAX_BYTES} bytes", field="image"
        )
    if content_type not in ALLOWED_TYPES:
        raise ValidationError(f"unsupported image type {content_type!r}", field="image")
    extension, magic = ALLOWED_TYPES[content_type]
    if not content.startswith(magic):
        raise ValidationError(f"image content is not {extension.upper()}", field="image")
    return content_type


def store_moderated_image(
    owner,
    content: bytes,
    content_type: str,
    approved: bool,
    labels: list | None = None,
    max_confidence: float = 0.0,
    entity_type: str = ImageAsset.EntityType.CATALOG,
) -> ModeratedImage:
    """Persist an image with the moderator's verdict."""
    content_type = _check_content(content, content_type)
    file_hash = compute_content_hash(content)
    extension, _ = ALLOWED_TYPES[content_type]

    asset = ImageAsset(
        owner=owner if getattr(owner, "pk", None) else None,
        entity_type=entity_type,
        file_hash=file_hash,
        content_type=content_type,
        file_size=len(content),
        status=ImageAsset.Status.APPROVED if approved else ImageAsset.Status.REJECTED,
        moderation_labels=labels or [],
        moderation_max_confidence=max_confidence,
    )
    asset.file.save(f"{file_hash[:12]}.{extension}", ContentFile(content), save=False)
    asset.save()

    logger.info(
        "Image asset %s stored (%s, %d bytes, %s)",
        asset.pk, content_type, len(content), asset.status,
    )
    return ModeratedImage(
        asset_id=asset.pk,
        approved=asset.is_approved,
        content_type=content_type,
        labels=asset.moderation_labels,
    )


def moderate_and_store(
    owner, content: bytes, content_type: str, entity_type: str = ImageAsset.EntityType.CATALOG
) -> ModeratedImage:
    """Validate an upload, ask the moderator for a verdict, then persist both."""
    content_type = _check_content(content, content_type)
    decision = get_moderator().moderate(content, content_type)
    if not decision.approved:
        logger.info(
            "Upload from %s rejected by moderation: %s",
            getattr(owner, "pk", None), decision.reason or decision.labels,
        )
    return store_moderated_image(
        owner,
        content,
        content_type,
        decision.approved,
        labels=decision.labels,
        max_confidence=decision.max_confidence,
        entity_type=entity_type,
    )


def get_approved_asset(asset_id, owner=None) -> ImageAsset:
    """
    Fetch an asset that may be attached to a catalog item.

    When ``owner`` is given the asset must belong to that user.
    """
    try:
        asset = ImageAsset.objects.get(pk=asset_id)
    except (ImageAsset.DoesNotExist, DjangoValidationError, ValueError, TypeError):
        raise ValidationError(f"image asset not found: {asset_id}", field="imageId")

    if not asset.is_approved:
        raise ValidationError("image was rejected by moderation", field="imageId")
    if owner is not None and asset.owner_id != owner.pk:
        raise ValidationError("image belongs to another user", field="imageId")
    return asset


def delete_asset(asset_id) -> bool:
    """Remove the asset row and its file. Returns False if already gone."""
    asset = ImageAsset.objects.filter(pk=asset_id).first()
    if asset is None:
        return False
    if asset.file:
        asset.file.delete(save=False)
    asset.delete()
    logger.info("Image asset %s deleted", asset_id)
    return True


def release_asset(asset_id):
    """Schedule purge of a replaced or cleared asset after commit."""
    if not asset_id:
        return
    from .tasks import purge_replaced_image

    transaction.on_commit(lambda: purge_replaced_image.delay(str(asset_id)))
