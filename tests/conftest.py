"""Shared fixtures for tests."""
import pytest
from django.test import Client as HttpClient

from apps.catalog.models import CatalogItem
from apps.catalog.params import CatalogSubmission
from apps.catalog.repository import create_or_get
from apps.images.services import store_moderated_image

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


@pytest.fixture
def pilot(db, django_user_model):
    return django_user_model.objects.create_user(username="pilot", password="testpass123")


@pytest.fixture
def admin_user(db, django_user_model):
    return django_user_model.objects.create_user(
        username="moderator", password="testpass123", is_staff=True
    )


@pytest.fixture
def auth_client(pilot):
    """Authenticated HTTP client (contributor)."""
    client = HttpClient()
    client.login(username="pilot", password="testpass123")
    return client


@pytest.fixture
def admin_client(admin_user):
    """Authenticated HTTP client (staff)."""
    client = HttpClient()
    client.login(username="moderator", password="testpass123")
    return client


@pytest.fixture
def make_item(db):
    """Factory: create a catalog item through create-or-get, then force fields."""

    def _make(gear_type="motor", brand="TMotor", model="F80 Pro", variant="", **fields):
        item, _ = create_or_get(
            CatalogSubmission(gear_type=gear_type, brand=brand, model=model, variant=variant)
        )
        if fields:
            CatalogItem.objects.filter(pk=item.pk).update(**fields)
            item.refresh_from_db()
        return item

    return _make


@pytest.fixture
def motor(make_item):
    """Published T-Motor motor, no image, no description."""
    return make_item(
        brand="TMotor", model="F80 Pro", variant="1900KV",
        status=CatalogItem.Status.PUBLISHED,
    )


@pytest.fixture
def image_asset(pilot):
    """Moderation-approved PNG owned by ``pilot``."""
    return store_moderated_image(pilot, PNG_BYTES, "image/png", approved=True)


@pytest.fixture
def other_image_asset(admin_user):
    return store_moderated_image(admin_user, JPEG_BYTES, "image/jpeg", approved=True)
