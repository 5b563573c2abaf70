"""Concurrent create-or-get and image submission against a real database."""
import threading
import uuid

import pytest
from django.db import connections

from apps.catalog import curation
from apps.catalog.exceptions import AlreadyCurated
from apps.catalog.models import CatalogItem
from apps.catalog.params import CatalogSubmission
from apps.catalog.repository import create_or_get

WORKERS = 8


def _run_concurrently(target, count):
    barrier = threading.Barrier(count)
    results, errors = [], []

    def worker(index):
        try:
            barrier.wait()
            results.append(target(index))
        except Exception as exc:
            errors.append(exc)
        finally:
            connections.close_all()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


@pytest.mark.django_db(transaction=True)
class TestConcurrentCreate:
    def test_equivalent_submissions_converge(self):
        spellings = ["T-Motor", "t motor", "T_MOTOR", "  T.Motor "]

        def submit(index):
            return create_or_get(
                CatalogSubmission(
                    gear_type="motor", brand=spellings[index % len(spellings)], model="F60 Pro IV"
                )
            )

        results, errors = _run_concurrently(submit, WORKERS)

        assert errors == []
        assert CatalogItem.objects.count() == 1
        ids = {item.pk for item, _ in results}
        assert len(ids) == 1
        assert sorted(existing for _, existing in results) == [False] + [True] * (WORKERS - 1)


@pytest.mark.django_db(transaction=True)
class TestConcurrentImageCuration:
    def test_submission_never_overwrites_approval(self, django_user_model):
        admin = django_user_model.objects.create_user(username="mod", is_staff=True)
        item, _ = create_or_get(
            CatalogSubmission(gear_type="vtx", brand="DJI", model="O3 Air Unit")
        )
        curation.submit_user_image(item.pk, uuid.uuid4())

        def race(index):
            if index == 0:
                return curation.approve_image(item.pk, admin)
            try:
                return curation.submit_user_image(item.pk, uuid.uuid4())
            except AlreadyCurated:
                return "rejected"

        _, errors = _run_concurrently(race, WORKERS)
        assert errors == []

        final = CatalogItem.objects.get(pk=item.pk)
        assert final.image_status == CatalogItem.ImageStatus.APPROVED
        assert final.image_curated_by_id == admin.pk
        assert final.image_asset_id is not None
