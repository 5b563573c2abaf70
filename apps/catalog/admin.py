from django.contrib import admin, messages

from . import curation, repository
from .exceptions import CatalogError
from .models import CatalogItem
from .params import AdminPatch


@admin.register(CatalogItem)
class CatalogItemAdmin(admin.ModelAdmin):
    """
    Identity, status and curation fields are read-only here: they change
    only through the actions below, which run the catalog services.
    """

    list_display = [
        "display_name", "gear_type", "status", "image_status",
        "description_status", "source", "created_at",
    ]
    list_filter = ["gear_type", "status", "image_status", "description_status", "source"]
    search_fields = ["brand", "model", "variant", "canonical_key"]
    readonly_fields = [
        "canonical_key", "gear_type", "brand", "model", "variant",
        "normalized_brand", "normalized_model", "source", "created_by", "status",
        "image_asset_id", "image_type", "image_status", "image_curated_by", "image_curated_at",
        "description", "description_status", "description_curated_by", "description_curated_at",
    ]
    date_hierarchy = "created_at"
    actions = ["approve_images", "publish", "reject"]

    def has_add_permission(self, request):
        # New items go through create-or-get so duplicates are merged.
        return False

    @admin.display(description="Item")
    def display_name(self, obj):
        return obj.display_name

    def _apply(self, request, queryset, action, verb):
        done = 0
        for item_id in queryset.values_list("pk", flat=True):
            try:
                action(item_id)
                done += 1
            except CatalogError as e:
                self.message_user(request, f"{item_id}: {e.message}", messages.WARNING)
        self.message_user(request, f"{done} item(s) {verb}.")

    @admin.action(description="Approve image of selected items")
    def approve_images(self, request, queryset):
        self._apply(
            request, queryset,
            lambda item_id: curation.approve_image(item_id, request.user),
            "with image approved",
        )

    @admin.action(description="Publish selected items")
    def publish(self, request, queryset):
        patch = AdminPatch(status=CatalogItem.Status.PUBLISHED)
        self._apply(
            request, queryset,
            lambda item_id: repository.admin_update(item_id, patch, request.user),
            "published",
        )

    @admin.action(description="Reject selected items")
    def reject(self, request, queryset):
        patch = AdminPatch(status=CatalogItem.Status.REJECTED)
        self._apply(
            request, queryset,
            lambda item_id: repository.admin_update(item_id, patch, request.user),
            "rejected",
        )
