"""Integration tests for the catalog API."""
import uuid
from unittest.mock import patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from apps.catalog import curation
from apps.catalog.models import CatalogItem
from apps.images.models import ImageAsset
from apps.images.moderation import ModerationDecision, ModerationUnavailable
from apps.inventory.models import InventoryItem

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _post(client, url, payload):
    return client.post(url, payload, content_type="application/json")


class TestPublicCatalog:
    def test_search_is_public_and_published_only(self, client, motor, make_item):
        make_item(model="Pending thing")

        resp = client.get(reverse("api:catalog-list"))

        assert resp.status_code == 200
        body = resp.json()
        assert body["totalCount"] == 1
        item = body["items"][0]
        assert item["id"] == str(motor.pk)
        assert item["canonicalKey"] == "motor|tmotor|f80 pro|1900kv"
        assert item["gearType"] == "motor"
        assert item["usageCount"] == 0
        assert item["imageUrl"] is None

    def test_search_rejects_bad_params(self, client, db):
        assert client.get(reverse("api:catalog-list"), {"gearType": "boat"}).status_code == 400
        assert client.get(reverse("api:catalog-list"), {"limit": "ten"}).status_code == 400

    def test_create_requires_login(self, client, db):
        resp = _post(client, reverse("api:catalog-list"), {
            "gearType": "motor", "brand": "EMAX", "model": "ECO II",
        })
        assert resp.status_code == 403

    def test_create_then_get(self, auth_client, pilot):
        payload = {"gearType": "motor", "brand": "EMAX", "model": "ECO II", "variant": "2207"}

        created = _post(auth_client, reverse("api:catalog-list"), payload)
        again = _post(auth_client, reverse("api:catalog-list"), {**payload, "brand": "emax "})

        assert created.status_code == 201
        assert created.json()["existing"] is False
        assert created.json()["item"]["createdByUserId"] == pilot.pk
        assert again.status_code == 200
        assert again.json()["existing"] is True
        assert again.json()["item"]["id"] == created.json()["item"]["id"]

    def test_create_validation_error(self, auth_client):
        resp = _post(auth_client, reverse("api:catalog-list"), {
            "gearType": "motor", "brand": "  ", "model": "ECO II",
        })
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"
        assert resp.json()["details"]["field"] == "brand"

    def test_retrieve_missing(self, client, db):
        resp = client.get(reverse("api:catalog-detail", args=[uuid.uuid4()]))
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    def test_near_matches(self, client, motor):
        resp = _post(client, reverse("api:catalog-near-matches"), {
            "gearType": "motor", "brand": "T-Motor", "model": "F80-Pro",
        })
        assert resp.status_code == 200
        matches = resp.json()["matches"]
        assert matches[0]["item"]["id"] == str(motor.pk)
        assert matches[0]["similarity"] >= 0.3

    def test_popular(self, client, motor):
        resp = client.get(reverse("api:catalog-popular"), {"gearType": "motor"})
        assert resp.status_code == 200
        assert [i["id"] for i in resp.json()["items"]] == [str(motor.pk)]

    def test_flag(self, auth_client, motor):
        resp = _post(auth_client, reverse("api:catalog-flag", args=[motor.pk]), {"reason": "dupe"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "flagged"


class TestImageSubmission:
    def test_submit_and_view_scanned(self, auth_client, client, motor, image_asset):
        url = reverse("api:catalog-image", args=[motor.pk])

        resp = _post(auth_client, url, {"imageId": str(image_asset.asset_id)})

        assert resp.status_code == 200
        body = resp.json()
        assert body["imageStatus"] == "scanned"
        assert body["imageUrl"].startswith(url)
        # Public readers never see a scanned image.
        assert client.get(url).status_code == 404
        public = client.get(reverse("api:catalog-detail", args=[motor.pk])).json()
        assert public["imageUrl"] is None

    def test_cannot_use_someone_elses_asset(self, auth_client, motor, other_image_asset):
        resp = _post(
            auth_client,
            reverse("api:catalog-image", args=[motor.pk]),
            {"imageId": str(other_image_asset.asset_id)},
        )
        assert resp.status_code == 400

    def test_approved_image_conflict(
        self, auth_client, motor, image_asset, admin_user, django_capture_on_commit_callbacks
    ):
        curation.set_admin_image(motor.pk, admin_user, uuid.uuid4())

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            resp = _post(
                auth_client,
                reverse("api:catalog-image", args=[motor.pk]),
                {"imageId": str(image_asset.asset_id)},
            )

        assert resp.status_code == 409
        assert resp.json()["error"] == "image_already_curated"
        # The rejected upload is purged right away.
        assert len(callbacks) == 1
        assert not ImageAsset.objects.filter(pk=image_asset.asset_id).exists()

    def test_unknown_item_purges_upload(
        self, auth_client, image_asset, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            resp = _post(
                auth_client,
                reverse("api:catalog-image", args=[uuid.uuid4()]),
                {"imageId": str(image_asset.asset_id)},
            )

        assert resp.status_code == 404
        assert not ImageAsset.objects.filter(pk=image_asset.asset_id).exists()

    def test_serves_approved_image(self, client, motor, other_image_asset, admin_user):
        curation.set_admin_image(motor.pk, admin_user, other_image_asset.asset_id, "image/jpeg")

        resp = client.get(reverse("api:catalog-image", args=[motor.pk]))

        assert resp.status_code == 200
        assert resp["Content-Type"] == "image/jpeg"
        assert b"".join(resp.streaming_content).startswith(b"\xff\xd8\xff")


def _png(name="frame.png"):
    return SimpleUploadedFile(name, PNG_BYTES, content_type="image/png")


class TestImageUpload:
    def test_requires_login(self, client, db):
        resp = client.post(reverse("api:images-list"), {"image": _png()})
        assert resp.status_code == 403

    def test_upload_then_submit(self, auth_client, pilot, motor):
        resp = auth_client.post(reverse("api:images-list"), {"image": _png()})

        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "approved"
        asset = ImageAsset.objects.get(pk=body["imageId"])
        assert asset.owner == pilot
        assert asset.content_type == "image/png"

        resp = _post(
            auth_client, reverse("api:catalog-image", args=[motor.pk]), {"imageId": body["imageId"]}
        )
        assert resp.status_code == 200
        assert resp.json()["imageStatus"] == "scanned"

    def test_rejected_upload_cannot_be_attached(self, auth_client, motor):
        verdict = ModerationDecision(approved=False, labels=["Violence"], max_confidence=97.5)
        with patch("apps.images.services.get_moderator") as get_moderator:
            get_moderator.return_value.moderate.return_value = verdict
            resp = auth_client.post(reverse("api:images-list"), {"image": _png()})

        assert resp.status_code == 201
        assert resp.json()["status"] == "rejected"
        assert resp.json()["labels"] == ["Violence"]

        resp = _post(
            auth_client,
            reverse("api:catalog-image", args=[motor.pk]),
            {"imageId": resp.json()["imageId"]},
        )
        assert resp.status_code == 400

    def test_moderator_unavailable(self, auth_client):
        with patch("apps.images.services.get_moderator") as get_moderator:
            get_moderator.return_value.moderate.side_effect = ModerationUnavailable("timeout")
            resp = auth_client.post(reverse("api:images-list"), {"image": _png()})

        assert resp.status_code == 503
        assert resp.json()["error"] == "moderation_unavailable"
        assert ImageAsset.objects.count() == 0

    def test_rejects_unsupported_type(self, auth_client):
        gif = SimpleUploadedFile("a.gif", b"GIF89a" + b"\x00" * 10, content_type="image/gif")
        resp = auth_client.post(reverse("api:images-list"), {"image": gif})
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "image"

    def test_rejects_oversized(self, auth_client, settings):
        settings.CATALOG_IMAGE_MAX_BYTES = 16
        resp = auth_client.post(reverse("api:images-list"), {"image": _png()})
        assert resp.status_code == 400

    def test_missing_file(self, auth_client):
        resp = auth_client.post(reverse("api:images-list"), {})
        assert resp.status_code == 400

class TestAdminCatalog:
    def test_requires_staff(self, auth_client, db):
        assert auth_client.get(reverse("api:admin-catalog-list")).status_code == 403

    def test_needs_work_queue(self, admin_client, motor):
        resp = admin_client.get(reverse("api:admin-catalog-list"))
        assert resp.status_code == 200
        assert [i["id"] for i in resp.json()["items"]] == [str(motor.pk)]

    def test_patch_publish_promotes_image(self, admin_client, make_item, admin_user):
        item = make_item(image_asset_id=uuid.uuid4(), image_status="scanned")

        resp = admin_client.patch(
            reverse("api:admin-catalog-detail", args=[item.pk]),
            {"status": "published", "msrp": None},
            content_type="application/json",
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "published"
        assert body["imageStatus"] == "approved"
        assert body["imageCuratedByUserId"] == admin_user.pk

    def test_patch_key_conflict(self, admin_client, make_item):
        a = make_item(model="F60")
        make_item(model="F80")

        resp = admin_client.patch(
            reverse("api:admin-catalog-detail", args=[a.pk]),
            {"model": "F80"},
            content_type="application/json",
        )

        assert resp.status_code == 409
        assert resp.json()["error"] == "key_conflict"

    def test_approve_without_image(self, admin_client, motor):
        resp = admin_client.post(reverse("api:admin-catalog-approve-image", args=[motor.pk]))
        assert resp.status_code == 422
        assert resp.json()["error"] == "image_missing"

    def test_put_and_clear_image(
        self, admin_client, motor, other_image_asset, django_capture_on_commit_callbacks
    ):
        url = reverse("api:admin-catalog-image", args=[motor.pk])

        resp = admin_client.put(
            url, {"imageId": str(other_image_asset.asset_id)}, content_type="application/json"
        )
        assert resp.status_code == 200
        assert resp.json()["imageStatus"] == "approved"

        with django_capture_on_commit_callbacks(execute=True):
            resp = admin_client.delete(url)

        assert resp.status_code == 200
        assert resp.json()["imageStatus"] == "missing"
        assert not ImageAsset.objects.filter(pk=other_image_asset.asset_id).exists()

    def test_description(self, admin_client, motor):
        url = reverse("api:admin-catalog-description", args=[motor.pk])

        resp = admin_client.put(url, {"description": "Smooth."}, content_type="application/json")
        assert resp.status_code == 200
        assert resp.json()["descriptionStatus"] == "approved"
        assert CatalogItem.objects.get(pk=motor.pk).description == "Smooth."

        resp = admin_client.delete(url)
        assert resp.status_code == 200
        assert resp.json()["descriptionStatus"] == "missing"

    def test_admin_near_matches_include_pending(self, admin_client, make_item):
        pending = make_item(brand="iFlight", model="XING2")
        resp = _post(admin_client, reverse("api:admin-catalog-near-matches"), {
            "gearType": "motor", "brand": "iFlight", "model": "XING2",
        })
        assert [m["item"]["id"] for m in resp.json()["matches"]] == [str(pending.pk)]

    def test_delete(self, admin_client, motor):
        resp = admin_client.delete(reverse("api:admin-catalog-detail", args=[motor.pk]))
        assert resp.status_code == 204
        assert not CatalogItem.objects.filter(pk=motor.pk).exists()

    def test_bulk_delete(self, admin_client, motor):
        missing = str(uuid.uuid4())
        resp = _post(admin_client, reverse("api:admin-catalog-bulk-delete"), {
            "ids": [str(motor.pk), missing, " "],
        })
        assert resp.status_code == 200
        assert resp.json() == {
            "deletedIds": [str(motor.pk)],
            "notFoundIds": [missing],
            "failedIds": [],
        }

    @pytest.mark.parametrize("ids", [[], ["bad-id"]])
    def test_bulk_delete_validation(self, admin_client, db, ids):
        resp = _post(admin_client, reverse("api:admin-catalog-bulk-delete"), {"ids": ids})
        assert resp.status_code == 400


class TestInventory:
    def test_lists_own_items_filtered(self, auth_client, pilot, admin_user):
        mine = InventoryItem.objects.create(
            owner=pilot, name="F80 Pro 1900KV", manufacturer="TMotor",
            category=InventoryItem.Category.MOTORS,
        )
        InventoryItem.objects.create(owner=pilot, name="Nano RX", category="receivers")
        InventoryItem.objects.create(owner=admin_user, name="F60 Pro", category="motors")

        resp = auth_client.get(reverse("api:inventory-list"), {"category": "motors"})

        assert resp.status_code == 200
        results = resp.json()["results"]
        assert [r["id"] for r in results] == [str(mine.pk)]
        assert results[0]["gearType"] == "motor"

    def test_link_reuses_catalog_entry(self, auth_client, pilot, motor):
        inv = InventoryItem.objects.create(
            owner=pilot, name="F80 Pro 1900KV", manufacturer="TMotor",
            category=InventoryItem.Category.MOTORS,
        )

        resp = auth_client.post(reverse("api:inventory-link", args=[inv.pk]))

        assert resp.status_code == 200
        body = resp.json()
        assert body["existing"] is True
        assert body["catalogItem"]["id"] == str(motor.pk)
        assert body["inventoryItem"]["catalogItemId"] == str(motor.pk)

    def test_cannot_link_someone_elses_item(self, auth_client, admin_user):
        inv = InventoryItem.objects.create(owner=admin_user, name="DJI O3 Air Unit")
        resp = auth_client.post(reverse("api:inventory-link", args=[inv.pk]))
        assert resp.status_code == 404
