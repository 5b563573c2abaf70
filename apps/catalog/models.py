"""Catalog domain models: canonical gear items and their curation state."""
from django.conf import settings
from django.contrib.postgres.fields import ArrayField
from django.contrib.postgres.indexes import GinIndex
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models

from apps.core.models import TimeStampedModel
from apps.core.utils import build_canonical_key, normalize_text


class CatalogItemQuerySet(models.QuerySet):
    def published(self):
        return self.filter(status=CatalogItem.Status.PUBLISHED)

    def with_usage(self):
        """Annotate ``usage_count`` from the inventory items pointing here."""
        return self.annotate(usage_count=models.Count("inventory_items", distinct=True))

    def filter_id(self, item_id):
        try:
            return self.filter(pk=item_id)
        except (DjangoValidationError, ValueError, TypeError):
            return self.none()

    def lookup(self, item_id):
        """Return the item or None; malformed ids count as missing."""
        return self.filter_id(item_id).first()


class CatalogItem(TimeStampedModel):
    """Canonical gear item shared by every pilot's inventory."""

    class GearType(models.TextChoices):
        MOTOR = "motor", "Motor"
        ESC = "esc", "ESC"
        FC = "fc", "Flight Controller"
        AIO = "aio", "AIO"
        FRAME = "frame", "Frame"
        VTX = "vtx", "Video Transmitter"
        RECEIVER = "receiver", "Receiver"
        ANTENNA = "antenna", "Antenna"
        BATTERY = "battery", "Battery"
        PROP = "prop", "Propeller"
        RADIO = "radio", "Radio"
        CAMERA = "camera", "Camera"
        OTHER = "other", "Other"

    class Source(models.TextChoices):
        USER_SUBMITTED = "user-submitted", "User submitted"
        ADMIN = "admin", "Admin"
        IMPORT = "import", "Import"
        MIGRATION = "migration", "Migration"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        PUBLISHED = "published", "Published"
        FLAGGED = "flagged", "Flagged"
        REJECTED = "rejected", "Rejected"

    class ImageStatus(models.TextChoices):
        MISSING = "missing", "Missing"
        SCANNED = "scanned", "Scanned"
        APPROVED = "approved", "Approved"

    class DescriptionStatus(models.TextChoices):
        MISSING = "missing", "Missing"
        APPROVED = "approved", "Approved"

    # Identity
    canonical_key = models.TextField(
        "Canonical key", unique=True,
        help_text="gear_type|brand|model[|variant], normalized",
    )
    gear_type = models.CharField(
        "Gear type", max_length=20, choices=GearType.choices, db_index=True
    )
    brand = models.CharField("Brand", max_length=200)
    model = models.CharField("Model", max_length=200)
    variant = models.CharField("Variant", max_length=200, blank=True, default="")
    normalized_brand = models.TextField(editable=False, db_index=True)
    normalized_model = models.TextField(editable=False)

    # Descriptive
    specs = models.JSONField("Specs", default=dict, blank=True)
    best_for = ArrayField(
        models.CharField(max_length=50),
        verbose_name="Best for",
        help_text="Drone types: freestyle, long-range, cinematic...",
        default=list,
        blank=True,
    )
    msrp = models.DecimalField(
        "MSRP", max_digits=10, decimal_places=2, null=True, blank=True
    )
    description = models.TextField("Description", blank=True, default="")

    # Provenance
    source = models.CharField(
        "Source", max_length=20, choices=Source.choices, default=Source.USER_SUBMITTED
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="catalog_items",
    )

    # Moderation
    status = models.CharField(
        "Status", max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True
    )

    # Image curation (bytes live with the image-asset collaborator)
    image_asset_id = models.UUIDField("Image asset", null=True, blank=True)
    image_type = models.CharField("Image content type", max_length=50, blank=True, default="")
    image_status = models.CharField(
        "Image status", max_length=20,
        choices=ImageStatus.choices, default=ImageStatus.MISSING, db_index=True,
    )
    image_curated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    image_curated_at = models.DateTimeField("Image curated at", null=True, blank=True)

    # Description curation
    description_status = models.CharField(
        "Description status", max_length=20,
        choices=DescriptionStatus.choices, default=DescriptionStatus.MISSING,
    )
    description_curated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    description_curated_at = models.DateTimeField(
        "Description curated at", null=True, blank=True
    )

    objects = CatalogItemQuerySet.as_manager()

    class Meta:
        verbose_name = "Catalog item"
        verbose_name_plural = "Catalog items"
        ordering = ["brand", "model"]
        indexes = [
            models.Index(fields=["gear_type", "status"], name="idx_catalog_type_status"),
            models.Index(
                fields=["image_status", "description_status"], name="idx_catalog_curation"
            ),
            GinIndex(
                fields=["normalized_brand", "normalized_model"],
                opclasses=["gin_trgm_ops", "gin_trgm_ops"],
                name="idx_catalog_trgm",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(image_status="approved") | models.Q(image_asset_id__isnull=False),
                name="catalog_approved_image_has_asset",
            ),
            models.CheckConstraint(
                condition=~models.Q(description_status="approved") | ~models.Q(description=""),
                name="catalog_approved_description_not_empty",
            ),
        ]

    def __str__(self):
        return f"[{self.get_gear_type_display()}] {self.display_name}"

    @property
    def display_name(self) -> str:
        name = f"{self.brand} {self.model}"
        if self.variant:
            name += f" {self.variant}"
        return name.strip()

    @property
    def has_image(self) -> bool:
        return self.image_asset_id is not None

    def compute_canonical_key(self) -> str:
        return build_canonical_key(self.gear_type, self.brand, self.model, self.variant)

    def refresh_identity(self):
        """Re-derive the canonical key and normalized match columns."""
        self.canonical_key = self.compute_canonical_key()
        self.normalized_brand = normalize_text(self.brand)
        self.normalized_model = normalize_text(self.model)

    def save(self, *args, **kwargs):
        self.refresh_identity()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and {"brand", "model", "variant", "gear_type"} & set(update_fields):
            kwargs["update_fields"] = set(update_fields) | {
                "canonical_key", "normalized_brand", "normalized_model",
            }
        super().save(*args, **kwargs)
