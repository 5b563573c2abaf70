"""Development settings: local volume for images, chatty catalog logs."""
from .base import *  # noqa: F401,F403
from .base import STORAGES, env

DEBUG = True
ALLOWED_HOSTS = ["*"]

# MinIO is optional locally; IMAGE_STORAGE=s3 uses the bucket from base.
if env("IMAGE_STORAGE", default="filesystem") == "filesystem":
    STORAGES = {
        **STORAGES,
        "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    }

# shell_plus (django-extensions) preloads the catalog services.
SHELL_PLUS_IMPORTS = [
    "from apps.catalog import curation, matching, repository",
    "from apps.core.utils import build_canonical_key, normalize_text",
]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "[{asctime}] {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {"handlers": ["console"], "level": "INFO"},
    "loggers": {
        "apps.catalog": {"level": "DEBUG"},
        "apps.images": {"level": "DEBUG"},
    },
}
