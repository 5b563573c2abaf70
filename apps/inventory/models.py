"""Pilot inventory rows, optionally linked to a canonical catalog item."""
from django.conf import settings
from django.db import models

from apps.core.models import TimeStampedModel


class InventoryItem(TimeStampedModel):
    """A piece of gear a pilot owns."""

    class Category(models.TextChoices):
        FRAMES = "frames", "Frames"
        VTX = "vtx", "VTX"
        FLIGHT_CONTROLLERS = "flight_controllers", "Flight controllers"
        ESC = "esc", "ESC"
        AIO = "aio", "AIO"
        MOTORS = "motors", "Motors"
        PROPELLERS = "propellers", "Propellers"
        RECEIVERS = "receivers", "Receivers"
        BATTERIES = "batteries", "Batteries"
        CAMERAS = "cameras", "Cameras"
        ANTENNAS = "antennas", "Antennas"
        ACCESSORIES = "accessories", "Accessories"

    # Category -> catalog gear type; anything else maps to "other".
    GEAR_TYPES = {
        Category.FRAMES: "frame",
        Category.VTX: "vtx",
        Category.FLIGHT_CONTROLLERS: "fc",
        Category.ESC: "esc",
        Category.AIO: "aio",
        Category.MOTORS: "motor",
        Category.PROPELLERS: "prop",
        Category.RECEIVERS: "receiver",
        Category.BATTERIES: "battery",
        Category.CAMERAS: "camera",
        Category.ANTENNAS: "antenna",
    }

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="inventory_items"
    )
    name = models.CharField("Name", max_length=300)
    manufacturer = models.CharField("Manufacturer", max_length=200, blank=True, default="")
    category = models.CharField(
        "Category", max_length=30, choices=Category.choices, default=Category.ACCESSORIES
    )
    quantity = models.PositiveIntegerField("Quantity", default=1)
    specs = models.JSONField("Specs", default=dict, blank=True)
    notes = models.TextField("Notes", blank=True, default="")
    catalog_item = models.ForeignKey(
        "catalog.CatalogItem",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="inventory_items",
    )

    class Meta:
        verbose_name = "Inventory item"
        verbose_name_plural = "Inventory items"
        ordering = ["-created_at"]

    def __str__(self):
        return self.name

    @property
    def gear_type(self) -> str:
        return self.GEAR_TYPES.get(self.category, "other")
