"""
Near-match lookup for duplicate detection before a contributor creates an item.

Two scorers:
  - trigram: pg_trgm similarity of "normalized_brand normalized_model"
    against the normalized query, OR an exact brand, OR a model substring;
  - fallback (no pg_trgm): fixed heuristic, 0.5 base, +0.25 brand match,
    +0.25 model substring.

The trigram path is used when enabled in settings and the extension is
installed; a database error from it falls back within the same request.
"""
import logging

from django.conf import settings
from django.contrib.postgres.search import TrigramSimilarity
from django.db import ProgrammingError, connection, transaction
from django.db.models import Case, CharField, ExpressionWrapper, FloatField, Q, Value, When
from django.db.models.functions import Coalesce, Concat

from apps.core.utils import normalize_text

from .exceptions import ValidationError
from .models import CatalogItem
from .params import NearMatch, parse_gear_type

logger = logging.getLogger(__name__)

FALLBACK_BASE_SCORE = 0.5
FALLBACK_BRAND_BONUS = 0.25
FALLBACK_MODEL_BONUS = 0.25


def trigram_available() -> bool:
    if not settings.CATALOG_TRIGRAM_ENABLED:
        return False
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1 FROM pg_extension WHERE extname = 'pg_trgm'")
        return cursor.fetchone() is not None


def _match_filters(brand: str, model: str) -> tuple[Q, Q]:
    """Brand equality and model containment, on raw and normalized columns."""
    brand_q = Q(brand__iexact=brand)
    model_q = Q(model__icontains=model)
    normalized_brand = normalize_text(brand)
    normalized_model = normalize_text(model)
    if normalized_brand:
        brand_q |= Q(normalized_brand=normalized_brand)
    if normalized_model:
        model_q |= Q(normalized_model__contains=normalized_model)
    return brand_q, model_q


def _trigram_matches(qs, brand, model, threshold, limit) -> list[NearMatch]:
    target = f"{normalize_text(brand)} {normalize_text(model)}"
    identity = Concat("normalized_brand", Value(" "), "normalized_model", output_field=CharField())
    brand_q, model_q = _match_filters(brand, model)

    rows = (
        qs.annotate(
            similarity=Coalesce(
                TrigramSimilarity(identity, target), Value(0.0), output_field=FloatField()
            )
        )
        .filter(Q(similarity__gte=threshold) | brand_q | model_q)
        .order_by("-similarity", "brand", "model")[:limit]
    )
    return [NearMatch(item=row, similarity=float(row.similarity)) for row in rows]


def _fallback_matches(qs, brand, model, limit) -> list[NearMatch]:
    brand_q, model_q = _match_filters(brand, model)
    score = (
        Value(FALLBACK_BASE_SCORE)
        + Case(When(brand_q, then=Value(FALLBACK_BRAND_BONUS)), default=Value(0.0))
        + Case(When(model_q, then=Value(FALLBACK_MODEL_BONUS)), default=Value(0.0))
    )
    rows = (
        qs.filter(brand_q | model_q)
        .annotate(similarity=ExpressionWrapper(score, output_field=FloatField()))
        .order_by("-similarity", "brand", "model")[:limit]
    )
    return [NearMatch(item=row, similarity=float(row.similarity)) for row in rows]


def find_near_matches(
    gear_type,
    brand: str,
    model: str,
    threshold: float | None = None,
    *,
    include_all_statuses: bool = False,
) -> list[NearMatch]:
    """Up to ``CATALOG_NEAR_MATCH_LIMIT`` similar items of the same gear type."""
    gear_type = parse_gear_type(gear_type)
    brand = (brand or "").strip()
    model = (model or "").strip()
    if not brand:
        raise ValidationError("brand is required", field="brand")
    if not model:
        raise ValidationError("model is required", field="model")
    if threshold is None or threshold <= 0:
        threshold = settings.CATALOG_NEAR_MATCH_THRESHOLD
    limit = settings.CATALOG_NEAR_MATCH_LIMIT

    qs = CatalogItem.objects.with_usage().filter(gear_type=gear_type)
    if not include_all_statuses:
        qs = qs.published()

    if trigram_available():
        try:
            with transaction.atomic():
                return _trigram_matches(qs, brand, model, threshold, limit)
        except ProgrammingError:
            logger.warning("Trigram similarity failed; using fallback near-match scoring")

    return _fallback_matches(qs, brand, model, limit)


def find_near_matches_admin(gear_type, brand: str, model: str, threshold: float | None = None):
    """Same as ``find_near_matches`` but across every status."""
    return find_near_matches(gear_type, brand, model, threshold, include_all_statuses=True)
