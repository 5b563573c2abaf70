"""Stored image bytes plus the external moderation verdict."""
from django.conf import settings
from django.db import models

from apps.core.models import TimeStampedModel
from apps.core.storage import image_upload_path


class ImageAsset(TimeStampedModel):
    """An uploaded image that passed (or failed) content moderation."""

    class EntityType(models.TextChoices):
        CATALOG = "catalog", "Catalog item"
        OTHER = "other", "Other"

    class Status(models.TextChoices):
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="image_assets",
    )
    entity_type = models.CharField(
        "Entity type", max_length=20, choices=EntityType.choices, default=EntityType.OTHER
    )
    file = models.FileField("File", upload_to=image_upload_path)
    file_hash = models.CharField("SHA-256", max_length=64, db_index=True)
    content_type = models.CharField("Content type", max_length=50)
    file_size = models.PositiveIntegerField("Size (bytes)", default=0)

    status = models.CharField("Moderation", max_length=20, choices=Status.choices)
    moderation_labels = models.JSONField("Moderation labels", default=list, blank=True)
    moderation_max_confidence = models.FloatField("Max label confidence", default=0.0)

    class Meta:
        verbose_name = "Image asset"
        verbose_name_plural = "Image assets"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.pk} ({self.status})"

    @property
    def is_approved(self) -> bool:
        return self.status == self.Status.APPROVED
