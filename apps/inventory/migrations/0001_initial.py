import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                ("name", models.CharField(max_length=300, verbose_name="Name")),
                ("manufacturer", models.CharField(blank=True, default="", max_length=200, verbose_name="Manufacturer")),
                ("category", models.CharField(choices=[("frames", "Frames"), ("vtx", "VTX"), ("flight_controllers", "Flight controllers"), ("esc", "ESC"), ("aio", "AIO"), ("motors", "Motors"), ("propellers", "Propellers"), ("receivers", "Receivers"), ("batteries", "Batteries"), ("cameras", "Cameras"), ("antennas", "Antennas"), ("accessories", "Accessories")], default="accessories", max_length=30, verbose_name="Category")),
                ("quantity", models.PositiveIntegerField(default=1, verbose_name="Quantity")),
                ("specs", models.JSONField(blank=True, default=dict, verbose_name="Specs")),
                ("notes", models.TextField(blank=True, default="", verbose_name="Notes")),
                ("catalog_item", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="inventory_items", to="catalog.catalogitem")),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="inventory_items", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Inventory item",
                "verbose_name_plural": "Inventory items",
                "ordering": ["-created_at"],
            },
        ),
    ]
