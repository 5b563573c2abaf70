"""Tests for the Django admin moderation actions."""
import uuid

import pytest
from django.test import Client as HttpClient
from django.urls import reverse

from apps.catalog.models import CatalogItem

CHANGELIST = "admin:catalog_catalogitem_changelist"


@pytest.fixture
def superuser_client(db, django_user_model):
    django_user_model.objects.create_superuser(
        username="root", email="root@example.com", password="testpass123"
    )
    client = HttpClient()
    client.login(username="root", password="testpass123")
    return client


def _run_action(client, action, *items):
    return client.post(
        reverse(CHANGELIST),
        {"action": action, "_selected_action": [str(i.pk) for i in items]},
    )


class TestCatalogItemAdmin:
    def test_publish_promotes_scanned_image(self, superuser_client, make_item):
        item = make_item(
            image_asset_id=uuid.uuid4(), image_status=CatalogItem.ImageStatus.SCANNED
        )

        resp = _run_action(superuser_client, "publish", item)

        assert resp.status_code == 302
        item.refresh_from_db()
        assert item.status == CatalogItem.Status.PUBLISHED
        assert item.image_status == CatalogItem.ImageStatus.APPROVED
        assert item.image_curated_by.username == "root"
        assert item.image_curated_at is not None

    def test_publish_without_image_keeps_missing(self, superuser_client, make_item):
        item = make_item()

        _run_action(superuser_client, "publish", item)

        item.refresh_from_db()
        assert item.status == CatalogItem.Status.PUBLISHED
        assert item.image_status == CatalogItem.ImageStatus.MISSING

    def test_reject(self, superuser_client, motor):
        _run_action(superuser_client, "reject", motor)
        motor.refresh_from_db()
        assert motor.status == CatalogItem.Status.REJECTED

    def test_approve_images_skips_items_without_image(self, superuser_client, make_item):
        scanned = make_item(
            model="F60", image_asset_id=uuid.uuid4(),
            image_status=CatalogItem.ImageStatus.SCANNED,
        )
        bare = make_item(model="F40")

        resp = _run_action(superuser_client, "approve_images", scanned, bare)

        assert resp.status_code == 302
        scanned.refresh_from_db()
        bare.refresh_from_db()
        assert scanned.image_status == CatalogItem.ImageStatus.APPROVED
        assert bare.image_status == CatalogItem.ImageStatus.MISSING

    def test_change_form_cannot_edit_identity(self, superuser_client, make_item):
        a = make_item(model="F60")
        make_item(model="F80")
        url = reverse("admin:catalog_catalogitem_change", args=[a.pk])

        resp = superuser_client.post(url, {
            "model": "F80", "status": "published",
            "specs": "{}", "best_for": "", "msrp": "",
        })

        assert resp.status_code == 302
        a_after = CatalogItem.objects.get(pk=a.pk)
        assert (a_after.model, a_after.canonical_key) == ("F60", a.canonical_key)
        assert a_after.status == CatalogItem.Status.PENDING

    def test_add_is_disabled(self, superuser_client):
        resp = superuser_client.get(reverse("admin:catalog_catalogitem_add"))
        assert resp.status_code == 403
