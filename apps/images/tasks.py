"""Celery tasks: image asset cleanup."""
import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from apps.catalog.models import CatalogItem

from .models import ImageAsset
from .services import delete_asset

logger = logging.getLogger(__name__)


@shared_task(bind=True, queue="images", max_retries=3, default_retry_delay=60)
def purge_replaced_image(self, asset_id: str):
    """Delete an asset that a catalog item no longer points at."""
    if CatalogItem.objects.filter(image_asset_id=asset_id).exists():
        logger.info("Image asset %s is still referenced, keeping it", asset_id)
        return False
    try:
        return delete_asset(asset_id)
    except Exception as exc:
        logger.error("Failed to purge image asset %s: %s", asset_id, exc)
        raise self.retry(exc=exc)


@shared_task(queue="images")
def purge_orphan_images():
    """Periodic: remove catalog assets that no item references after the grace period."""
    cutoff = timezone.now() - timedelta(hours=settings.CATALOG_IMAGE_ORPHAN_GRACE_HOURS)
    referenced = CatalogItem.objects.filter(image_asset_id__isnull=False).values(
        "image_asset_id"
    )
    orphans = ImageAsset.objects.filter(
        entity_type=ImageAsset.EntityType.CATALOG, created_at__lt=cutoff
    ).exclude(pk__in=referenced)

    purged = 0
    for asset_id in orphans.values_list("pk", flat=True).iterator():
        try:
            if delete_asset(asset_id):
                purged += 1
        except Exception as exc:
            logger.warning("Orphan purge failed for %s: %s", asset_id, exc)

    logger.info("Orphan image purge: %d assets removed", purged)
    return purged
