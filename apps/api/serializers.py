"""DRF serializers: catalog items out, catalog commands in (camelCase on the wire)."""
from django.urls import reverse
from rest_framework import serializers

from apps.catalog.models import CatalogItem
from apps.catalog.params import AdminPatch, CatalogSubmission
from apps.inventory.models import InventoryItem


class CatalogItemSerializer(serializers.ModelSerializer):
    """
    Read shape of a catalog item.

    ``imageUrl`` points at an approved image; with ``show_scanned_images``
    in the context (admins, the submitting contributor) scanned images are
    linked too.
    """

    gearType = serializers.CharField(source="gear_type", read_only=True)
    bestFor = serializers.ListField(source="best_for", read_only=True)
    createdByUserId = serializers.ReadOnlyField(source="created_by_id")
    canonicalKey = serializers.CharField(source="canonical_key", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    imageStatus = serializers.CharField(source="image_status", read_only=True)
    imageCuratedByUserId = serializers.ReadOnlyField(source="image_curated_by_id")
    imageCuratedAt = serializers.DateTimeField(source="image_curated_at", read_only=True)
    descriptionStatus = serializers.CharField(source="description_status", read_only=True)
    descriptionCuratedByUserId = serializers.ReadOnlyField(source="description_curated_by_id")
    descriptionCuratedAt = serializers.DateTimeField(source="description_curated_at", read_only=True)
    displayName = serializers.CharField(source="display_name", read_only=True)
    usageCount = serializers.SerializerMethodField()
    imageUrl = serializers.SerializerMethodField()

    class Meta:
        model = CatalogItem
        fields = [
            "id", "gearType", "brand", "model", "variant", "displayName",
            "specs", "bestFor", "msrp", "source", "createdByUserId", "status",
            "canonicalKey", "description", "createdAt", "updatedAt",
            "imageStatus", "imageCuratedByUserId", "imageCuratedAt",
            "descriptionStatus", "descriptionCuratedByUserId", "descriptionCuratedAt",
            "usageCount", "imageUrl",
        ]
        read_only_fields = fields

    def get_usageCount(self, obj) -> int:
        return getattr(obj, "usage_count", 0) or 0

    def get_imageUrl(self, obj) -> str | None:
        if not obj.has_image:
            return None
        visible = [CatalogItem.ImageStatus.APPROVED]
        if self.context.get("show_scanned_images"):
            visible.append(CatalogItem.ImageStatus.SCANNED)
        if obj.image_status not in visible:
            return None
        stamp = obj.image_curated_at or obj.updated_at
        version = int(stamp.timestamp() * 1000) if stamp else 0
        return f"{reverse('api:catalog-image', args=[obj.pk])}?v={version}"


class CatalogSubmissionSerializer(serializers.Serializer):
    gearType = serializers.CharField()
    brand = serializers.CharField(allow_blank=True)
    model = serializers.CharField(allow_blank=True)
    variant = serializers.CharField(required=False, allow_blank=True, default="")
    specs = serializers.JSONField(required=False, default=dict)
    bestFor = serializers.ListField(
        child=serializers.CharField(allow_blank=True), required=False, default=list
    )
    msrp = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    description = serializers.CharField(required=False, allow_blank=True, default="")

    def to_submission(self) -> CatalogSubmission:
        data = self.validated_data
        return CatalogSubmission(
            gear_type=data["gearType"],
            brand=data["brand"],
            model=data["model"],
            variant=data["variant"],
            specs=data["specs"],
            best_for=data["bestFor"],
            msrp=data["msrp"],
            description=data["description"],
        )


class NearMatchQuerySerializer(serializers.Serializer):
    gearType = serializers.CharField()
    brand = serializers.CharField(allow_blank=True)
    model = serializers.CharField(allow_blank=True)
    threshold = serializers.FloatField(required=False, allow_null=True, default=None)


class AdminPatchSerializer(serializers.Serializer):
    """Only keys present in the payload are applied; ``msrp: null`` clears the price."""

    gearType = serializers.CharField(required=False)
    brand = serializers.CharField(required=False, allow_blank=True)
    model = serializers.CharField(required=False, allow_blank=True)
    variant = serializers.CharField(required=False, allow_blank=True)
    specs = serializers.JSONField(required=False)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    msrp = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    bestFor = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False)
    status = serializers.CharField(required=False)
    imageStatus = serializers.CharField(required=False)

    def to_patch(self) -> AdminPatch:
        data = self.validated_data
        patch = AdminPatch(
            gear_type=data.get("gearType"),
            brand=data.get("brand"),
            model=data.get("model"),
            variant=data.get("variant"),
            specs=data.get("specs"),
            best_for=data.get("bestFor"),
            status=data.get("status"),
            image_status=data.get("imageStatus"),
        )
        if "description" in data:
            patch.description = data["description"] or ""
        if "msrp" in data:
            if data["msrp"] in (None, ""):
                patch.clear_msrp = True
            else:
                patch.msrp = data["msrp"]
        return patch


class BulkDeleteSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.CharField(allow_blank=True), allow_empty=True)


class ImageUploadSerializer(serializers.Serializer):
    image = serializers.FileField()


class ImageRefSerializer(serializers.Serializer):
    imageId = serializers.UUIDField()


class DescriptionSerializer(serializers.Serializer):
    description = serializers.CharField(allow_blank=True)


class FlagSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class InventoryItemSerializer(serializers.ModelSerializer):
    catalogItemId = serializers.UUIDField(source="catalog_item_id", read_only=True, allow_null=True)
    gearType = serializers.CharField(source="gear_type", read_only=True)

    class Meta:
        model = InventoryItem
        fields = [
            "id", "name", "manufacturer", "category", "gearType", "quantity",
            "specs", "notes", "catalogItemId", "created_at",
        ]
