"""Celery configuration for GearCatalog."""
import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.development")

app = Celery("gearcatalog")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# ── Named queues ────────────────────────────────────────
app.conf.task_routes = {
    "apps.images.tasks.*": {"queue": "images"},
}

# ── Beat schedule (periodic tasks) ─────────────────────
app.conf.beat_schedule = {
    # Orphaned catalog images: daily 04:00 UTC
    "purge-orphan-images": {
        "task": "apps.images.tasks.purge_orphan_images",
        "schedule": crontab(hour=4, minute=0),
        "options": {"queue": "images"},
    },
}
