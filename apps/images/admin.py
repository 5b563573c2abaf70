from django.contrib import admin

from .models import ImageAsset


@admin.register(ImageAsset)
class ImageAssetAdmin(admin.ModelAdmin):
    list_display = ["id", "owner", "entity_type", "content_type", "file_size", "status", "created_at"]
    list_filter = ["status", "entity_type", "content_type"]
    readonly_fields = ["file_hash", "moderation_labels", "moderation_max_confidence"]
    raw_id_fields = ["owner"]
