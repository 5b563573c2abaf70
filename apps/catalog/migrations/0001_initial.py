import uuid

import django.contrib.postgres.fields
import django.contrib.postgres.indexes
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_pg_trgm_extension"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CatalogItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                ("canonical_key", models.TextField(help_text="gear_type|brand|model[|variant], normalized", unique=True, verbose_name="Canonical key")),
                ("gear_type", models.CharField(choices=[("motor", "Motor"), ("esc", "ESC"), ("fc", "Flight Controller"), ("aio", "AIO"), ("frame", "Frame"), ("vtx", "Video Transmitter"), ("receiver", "Receiver"), ("antenna", "Antenna"), ("battery", "Battery"), ("prop", "Propeller"), ("radio", "Radio"), ("camera", "Camera"), ("other", "Other")], db_index=True, max_length=20, verbose_name="Gear type")),
                ("brand", models.CharField(max_length=200, verbose_name="Brand")),
                ("model", models.CharField(max_length=200, verbose_name="Model")),
                ("variant", models.CharField(blank=True, default="", max_length=200, verbose_name="Variant")),
                ("normalized_brand", models.TextField(db_index=True, editable=False)),
                ("normalized_model", models.TextField(editable=False)),
                ("specs", models.JSONField(blank=True, default=dict, verbose_name="Specs")),
                ("best_for", django.contrib.postgres.fields.ArrayField(base_field=models.CharField(max_length=50), blank=True, default=list, help_text="Drone types: freestyle, long-range, cinematic...", size=None, verbose_name="Best for")),
                ("msrp", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name="MSRP")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("source", models.CharField(choices=[("user-submitted", "User submitted"), ("admin", "Admin"), ("import", "Import"), ("migration", "Migration")], default="user-submitted", max_length=20, verbose_name="Source")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("published", "Published"), ("flagged", "Flagged"), ("rejected", "Rejected")], db_index=True, default="pending", max_length=20, verbose_name="Status")),
                ("image_asset_id", models.UUIDField(blank=True, null=True, verbose_name="Image asset")),
                ("image_type", models.CharField(blank=True, default="", max_length=50, verbose_name="Image content type")),
                ("image_status", models.CharField(choices=[("missing", "Missing"), ("scanned", "Scanned"), ("approved", "Approved")], db_index=True, default="missing", max_length=20, verbose_name="Image status")),
                ("image_curated_at", models.DateTimeField(blank=True, null=True, verbose_name="Image curated at")),
                ("description_status", models.CharField(choices=[("missing", "Missing"), ("approved", "Approved")], default="missing", max_length=20, verbose_name="Description status")),
                ("description_curated_at", models.DateTimeField(blank=True, null=True, verbose_name="Description curated at")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="catalog_items", to=settings.AUTH_USER_MODEL)),
                ("image_curated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("description_curated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Catalog item",
                "verbose_name_plural": "Catalog items",
                "ordering": ["brand", "model"],
                "indexes": [
                    models.Index(fields=["gear_type", "status"], name="idx_catalog_type_status"),
                    models.Index(fields=["image_status", "description_status"], name="idx_catalog_curation"),
                    django.contrib.postgres.indexes.GinIndex(
                        fields=["normalized_brand", "normalized_model"],
                        name="idx_catalog_trgm",
                        opclasses=["gin_trgm_ops", "gin_trgm_ops"],
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("image_status", "approved"), _negated=True) | models.Q(("image_asset_id__isnull", False)), name="catalog_approved_image_has_asset"),
                    models.CheckConstraint(condition=models.Q(("description_status", "approved"), _negated=True) | models.Q(("description", ""), _negated=True), name="catalog_approved_description_not_empty"),
                ],
            },
        ),
    ]
