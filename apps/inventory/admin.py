from django.contrib import admin

from .models import InventoryItem


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ["name", "manufacturer", "category", "owner", "catalog_item"]
    list_filter = ["category"]
    search_fields = ["name", "manufacturer"]
    raw_id_fields = ["owner", "catalog_item"]
