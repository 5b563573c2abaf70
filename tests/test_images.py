"""Tests for the image-asset services and cleanup tasks."""
import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone

from apps.catalog import curation
from apps.catalog.exceptions import ValidationError
from apps.images import services
from apps.images.models import ImageAsset
from apps.images.tasks import purge_orphan_images, purge_replaced_image

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


class TestStoreModeratedImage:
    def test_stores_approved_png(self, pilot):
        moderated = services.store_moderated_image(pilot, PNG_BYTES, "image/png", approved=True)

        asset = ImageAsset.objects.get(pk=moderated.asset_id)
        assert moderated.approved is True
        assert asset.owner == pilot
        assert asset.status == ImageAsset.Status.APPROVED
        assert asset.file_size == len(PNG_BYTES)
        assert len(asset.file_hash) == 64
        assert asset.file.name.endswith(".png")

    def test_stores_rejection(self, pilot):
        moderated = services.store_moderated_image(
            pilot, JPEG_BYTES, "image/jpeg; charset=binary", approved=False,
            labels=[{"name": "Violence", "confidence": 97.1}], max_confidence=97.1,
        )
        asset = ImageAsset.objects.get(pk=moderated.asset_id)
        assert moderated.approved is False
        assert asset.content_type == "image/jpeg"
        assert asset.moderation_max_confidence == pytest.approx(97.1)

    @pytest.mark.parametrize(
        "content, content_type",
        [
            (b"", "image/png"),
            (b"GIF89a" + b"\x00" * 10, "image/gif"),
            (JPEG_BYTES, "image/png"),
        ],
    )
    def test_rejects_bad_content(self, pilot, content, content_type):
        with pytest.raises(ValidationError):
            services.store_moderated_image(pilot, content, content_type, approved=True)
        assert ImageAsset.objects.count() == 0

    def test_rejects_oversized(self, pilot, settings):
        settings.CATALOG_IMAGE_MAX_BYTES = 16
        with pytest.raises(ValidationError, match="exceeds"):
            services.store_moderated_image(
                pilot, JPEG_BYTES + b"\x00" * 32, "image/jpeg", approved=True
            )


class TestModerateAndStore:
    def test_default_moderator_approves(self, pilot):
        result = services.moderate_and_store(pilot, PNG_BYTES, "image/png")
        assert result.approved is True
        assert ImageAsset.objects.get(pk=result.asset_id).owner == pilot

    def test_bad_content_never_reaches_moderator(self, pilot):
        with patch("apps.images.services.get_moderator") as get_moderator:
            with pytest.raises(ValidationError):
                services.moderate_and_store(pilot, b"not an image", "image/png")
        get_moderator.assert_not_called()

class TestGetApprovedAsset:
    def test_owner_must_match(self, image_asset, admin_user):
        with pytest.raises(ValidationError):
            services.get_approved_asset(image_asset.asset_id, owner=admin_user)

    def test_rejected_asset(self, pilot):
        moderated = services.store_moderated_image(pilot, PNG_BYTES, "image/png", approved=False)
        with pytest.raises(ValidationError):
            services.get_approved_asset(moderated.asset_id, owner=pilot)

    @pytest.mark.parametrize("asset_id", [uuid.uuid4(), "nope"])
    def test_missing(self, db, asset_id):
        with pytest.raises(ValidationError):
            services.get_approved_asset(asset_id)


class TestCleanup:
    def test_release_schedules_purge_on_commit(
        self, image_asset, django_capture_on_commit_callbacks
    ):
        with patch("apps.images.tasks.purge_replaced_image.delay") as delay:
            with django_capture_on_commit_callbacks(execute=True):
                services.release_asset(image_asset.asset_id)
        delay.assert_called_once_with(str(image_asset.asset_id))

    def test_release_nothing(self, db, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks() as callbacks:
            services.release_asset(None)
        assert callbacks == []

    def test_purge_replaced_deletes_unreferenced(self, image_asset):
        assert purge_replaced_image(str(image_asset.asset_id)) is True
        assert not ImageAsset.objects.filter(pk=image_asset.asset_id).exists()

    def test_purge_replaced_keeps_referenced(self, image_asset, motor):
        curation.submit_user_image(motor.pk, image_asset.asset_id)
        assert purge_replaced_image(str(image_asset.asset_id)) is False
        assert ImageAsset.objects.filter(pk=image_asset.asset_id).exists()

    def test_purge_orphans(self, image_asset, other_image_asset, motor):
        curation.submit_user_image(motor.pk, image_asset.asset_id)
        ImageAsset.objects.update(created_at=timezone.now() - timedelta(days=2))

        assert purge_orphan_images() == 1
        assert list(ImageAsset.objects.values_list("pk", flat=True)) == [image_asset.asset_id]

    def test_purge_orphans_grace_period(self, other_image_asset):
        assert purge_orphan_images() == 0
        assert ImageAsset.objects.count() == 1
