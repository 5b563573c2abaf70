"""
Base settings for GearCatalog.
"""
from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve().parent.parent.parent

env = environ.Env()
env.read_env(BASE_DIR / ".env")

SECRET_KEY = env("DJANGO_SECRET_KEY", default="insecure-change-me")
DEBUG = env.bool("DJANGO_DEBUG", default=False)
ALLOWED_HOSTS = env.list("DJANGO_ALLOWED_HOSTS", default=["localhost", "127.0.0.1"])
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=[])

# ── Apps ────────────────────────────────────────────────
DJANGO_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django.contrib.postgres",
]

THIRD_PARTY_APPS = [
    "rest_framework",
    "django_filters",
    "django_extensions",
    "django_celery_beat",
    "django_celery_results",
    "storages",
]

LOCAL_APPS = [
    "apps.core",
    "apps.catalog",
    "apps.images",
    "apps.inventory",
    "apps.api",
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

# ── Middleware ──────────────────────────────────────────
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

# ── Database (PostgreSQL + pg_trgm) ────────────────────
# Accepts DATABASE_URL or individual POSTGRES_* vars (local Docker)
if env("DATABASE_URL", default=""):
    DATABASES = {"default": env.db("DATABASE_URL")}
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": env("POSTGRES_DB", default="gearcatalog"),
            "USER": env("POSTGRES_USER", default="gearcatalog"),
            "PASSWORD": env("POSTGRES_PASSWORD", default="gearcatalog_secret"),
            "HOST": env("POSTGRES_HOST", default="localhost"),
            "PORT": env("POSTGRES_PORT", default="5432"),
        }
    }

# ── Auth ────────────────────────────────────────────────
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
]

# ── i18n ────────────────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ── Static / Media ─────────────────────────────────────
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

MEDIA_URL = "/media/"
MEDIA_ROOT = BASE_DIR / "mediafiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Image storage (S3-compatible bucket) ───────────────
# Catalog images live in their own bucket; the catalog rows only hold asset ids.
IMAGE_BUCKET = env("IMAGE_BUCKET", default="gear-images")
IMAGE_BUCKET_ENDPOINT = env("IMAGE_BUCKET_ENDPOINT", default="http://localhost:9000")

AWS_ACCESS_KEY_ID = env("IMAGE_BUCKET_ACCESS_KEY", default="minioadmin")
AWS_SECRET_ACCESS_KEY = env("IMAGE_BUCKET_SECRET_KEY", default="minioadmin")
AWS_STORAGE_BUCKET_NAME = IMAGE_BUCKET
AWS_S3_ENDPOINT_URL = IMAGE_BUCKET_ENDPOINT
AWS_S3_REGION_NAME = env("IMAGE_BUCKET_REGION", default=None)
AWS_DEFAULT_ACL = None
AWS_S3_FILE_OVERWRITE = False
# Images are streamed through /api/catalog/{id}/image/, never linked directly.
AWS_QUERYSTRING_AUTH = True
AWS_S3_SIGNATURE_VERSION = "s3v4"
AWS_S3_OBJECT_PARAMETERS = {"CacheControl": "private, max-age=86400"}

STORAGES = {
    "default": {
        "BACKEND": "storages.backends.s3boto3.S3Boto3Storage",
    },
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage",
    },
}

# ── Redis ───────────────────────────────────────────────
REDIS_URL = env("REDIS_URL", default="redis://localhost:6379/0")

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": REDIS_URL,
    }
}

# ── Celery ──────────────────────────────────────────────
CELERY_BROKER_URL = env("CELERY_BROKER_URL", default="redis://localhost:6379/1")
CELERY_RESULT_BACKEND = "django-db"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 300
CELERY_TASK_SOFT_TIME_LIMIT = 240

# ── DRF ─────────────────────────────────────────────────
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_FILTER_BACKENDS": [
        "django_filters.rest_framework.DjangoFilterBackend",
    ],
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 25,
    "EXCEPTION_HANDLER": "apps.api.exceptions.catalog_exception_handler",
}

# ── Gear catalog ───────────────────────────────────────
CATALOG_NEAR_MATCH_THRESHOLD = env.float("CATALOG_NEAR_MATCH_THRESHOLD", default=0.3)
CATALOG_NEAR_MATCH_LIMIT = env.int("CATALOG_NEAR_MATCH_LIMIT", default=10)
CATALOG_SEARCH_DEFAULT_LIMIT = env.int("CATALOG_SEARCH_DEFAULT_LIMIT", default=20)
CATALOG_SEARCH_MAX_LIMIT = env.int("CATALOG_SEARCH_MAX_LIMIT", default=100)
CATALOG_BULK_DELETE_MAX = env.int("CATALOG_BULK_DELETE_MAX", default=500)
CATALOG_RECENTLY_CURATED_HOURS = env.int("CATALOG_RECENTLY_CURATED_HOURS", default=24)
CATALOG_TRIGRAM_ENABLED = env.bool("CATALOG_TRIGRAM_ENABLED", default=True)
CATALOG_IMAGE_ORPHAN_GRACE_HOURS = env.int("CATALOG_IMAGE_ORPHAN_GRACE_HOURS", default=24)
CATALOG_IMAGE_MAX_BYTES = env.int("CATALOG_IMAGE_MAX_BYTES", default=3 * 1024 * 1024)
IMAGE_MODERATOR = env("IMAGE_MODERATOR", default="apps.images.moderation.ApproveAllModerator")
