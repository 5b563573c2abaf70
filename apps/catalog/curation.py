"""Image/description curation state machine.

Image:        missing -> scanned -> approved   (admins may go missing -> approved)
Description:  missing -> approved

Crowd image submissions take a row lock so the "already approved?" check
and the write happen atomically against a concurrent admin approval.
Functions that replace or clear an image return the previous asset id so
the caller can release it with the image-asset collaborator.
"""
import logging
import uuid

from django.db import transaction
from django.utils import timezone

from .exceptions import ImageAlreadyCurated, ImageMissing, NotFound, ValidationError
from .models import CatalogItem

logger = logging.getLogger(__name__)

_IMAGE_FIELDS = [
    "image_asset_id", "image_type", "image_status",
    "image_curated_by", "image_curated_at", "updated_at",
]


def _lock_item(item_id) -> CatalogItem:
    item = CatalogItem.objects.select_for_update().lookup(item_id)
    if item is None:
        raise NotFound(f"catalog item not found: {item_id}", id=str(item_id))
    return item


def _as_uuid(image_ref) -> uuid.UUID:
    if isinstance(image_ref, uuid.UUID):
        return image_ref
    try:
        return uuid.UUID(str(image_ref))
    except ValueError:
        raise ValidationError(f"invalid image reference {image_ref!r}", field="imageRef")


# ── Image ──────────────────────────────────────────────


def submit_user_image(item_id, image_ref, image_type: str = "") -> uuid.UUID | None:
    """Attach a moderated crowd image; it stays ``scanned`` until an admin approves it."""
    image_ref = _as_uuid(image_ref)
    with transaction.atomic():
        item = _lock_item(item_id)
        if item.image_status == CatalogItem.ImageStatus.APPROVED:
            logger.info("Rejected user image for %s: image already curated", item.pk)
            raise ImageAlreadyCurated(id=str(item.pk))

        previous = item.image_asset_id
        item.image_asset_id = image_ref
        item.image_type = image_type
        item.image_status = CatalogItem.ImageStatus.SCANNED
        item.image_curated_by = None
        item.image_curated_at = None
        item.save(update_fields=_IMAGE_FIELDS)

    logger.info("User image %s stored for %s (scanned)", image_ref, item.pk)
    return previous


def approve_image(item_id, admin) -> CatalogItem:
    """Approve the current image. No-op when it is already approved."""
    with transaction.atomic():
        item = _lock_item(item_id)
        if not item.has_image:
            raise ImageMissing(id=str(item.pk))
        if item.image_status == CatalogItem.ImageStatus.APPROVED:
            return item

        item.image_status = CatalogItem.ImageStatus.APPROVED
        item.image_curated_by = admin
        item.image_curated_at = timezone.now()
        item.save(update_fields=_IMAGE_FIELDS)

    logger.info("Image approved for %s by %s", item.pk, getattr(admin, "pk", None))
    return item


def set_admin_image(item_id, admin, image_ref, image_type: str = "") -> uuid.UUID | None:
    """Admin upload: replaces any image and is approved immediately."""
    image_ref = _as_uuid(image_ref)
    with transaction.atomic():
        item = _lock_item(item_id)
        previous = item.image_asset_id
        item.image_asset_id = image_ref
        item.image_type = image_type
        item.image_status = CatalogItem.ImageStatus.APPROVED
        item.image_curated_by = admin
        item.image_curated_at = timezone.now()
        item.save(update_fields=_IMAGE_FIELDS)

    logger.info("Admin image %s set for %s", image_ref, item.pk)
    return previous


def clear_image(item_id) -> uuid.UUID | None:
    with transaction.atomic():
        item = _lock_item(item_id)
        previous = item.image_asset_id
        item.image_asset_id = None
        item.image_type = ""
        item.image_status = CatalogItem.ImageStatus.MISSING
        item.image_curated_by = None
        item.image_curated_at = None
        item.save(update_fields=_IMAGE_FIELDS)

    logger.info("Image cleared for %s", item.pk)
    return previous


def apply_image_status(item: CatalogItem, admin, image_status: str):
    """Explicit admin override of ``image_status`` on an unsaved item."""
    if image_status != CatalogItem.ImageStatus.MISSING and not item.has_image:
        raise ImageMissing(id=str(item.pk))
    item.image_status = image_status
    if image_status == CatalogItem.ImageStatus.APPROVED:
        item.image_curated_by = admin
        item.image_curated_at = timezone.now()
    else:
        item.image_curated_by = None
        item.image_curated_at = None


def promote_scanned_image(item: CatalogItem, admin) -> bool:
    """Publishing counts as a final review of a scanned image."""
    if item.image_status != CatalogItem.ImageStatus.SCANNED or not item.has_image:
        return False
    item.image_status = CatalogItem.ImageStatus.APPROVED
    item.image_curated_by = admin
    item.image_curated_at = timezone.now()
    return True


# ── Description ────────────────────────────────────────


def apply_description(item: CatalogItem, admin, text: str | None):
    """Set (approve) or clear the description on an unsaved item."""
    text = (text or "").strip()
    item.description = text
    if text:
        item.description_status = CatalogItem.DescriptionStatus.APPROVED
        item.description_curated_by = admin
        item.description_curated_at = timezone.now()
    else:
        item.description_status = CatalogItem.DescriptionStatus.MISSING
        item.description_curated_by = None
        item.description_curated_at = None


def set_description(item_id, admin, text: str | None):
    """Descriptions need no lock: one UPDATE statement decides and writes."""
    text = (text or "").strip()
    if not text:
        clear_description(item_id)
        return
    updated = CatalogItem.objects.filter_id(item_id).update(
        description=text,
        description_status=CatalogItem.DescriptionStatus.APPROVED,
        description_curated_by=admin,
        description_curated_at=timezone.now(),
        updated_at=timezone.now(),
    )
    if not updated:
        raise NotFound(f"catalog item not found: {item_id}", id=str(item_id))
    logger.info("Description approved for %s", item_id)


def clear_description(item_id):
    updated = CatalogItem.objects.filter_id(item_id).update(
        description="",
        description_status=CatalogItem.DescriptionStatus.MISSING,
        description_curated_by=None,
        description_curated_at=None,
        updated_at=timezone.now(),
    )
    if not updated:
        raise NotFound(f"catalog item not found: {item_id}", id=str(item_id))
    logger.info("Description cleared for %s", item_id)
