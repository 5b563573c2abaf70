import uuid

import apps.core.storage
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ImageAsset",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                ("entity_type", models.CharField(choices=[("catalog", "Catalog item"), ("other", "Other")], default="other", max_length=20, verbose_name="Entity type")),
                ("file", models.FileField(upload_to=apps.core.storage.image_upload_path, verbose_name="File")),
                ("file_hash", models.CharField(db_index=True, max_length=64, verbose_name="SHA-256")),
                ("content_type", models.CharField(max_length=50, verbose_name="Content type")),
                ("file_size", models.PositiveIntegerField(default=0, verbose_name="Size (bytes)")),
                ("status", models.CharField(choices=[("approved", "Approved"), ("rejected", "Rejected")], max_length=20, verbose_name="Moderation")),
                ("moderation_labels", models.JSONField(blank=True, default=list, verbose_name="Moderation labels")),
                ("moderation_max_confidence", models.FloatField(default=0.0, verbose_name="Max label confidence")),
                ("owner", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="image_assets", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Image asset",
                "verbose_name_plural": "Image assets",
                "ordering": ["-created_at"],
            },
        ),
    ]
