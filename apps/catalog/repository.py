"""Catalog persistence: create-or-get, search, admin edits and deletes.

Every function runs in its own transaction (or joins the caller's). Store
errors propagate unchanged; catalog rule violations are raised as
``apps.catalog.exceptions`` types.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.postgres.search import SearchQuery, SearchRank, SearchVector
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import CharField, Q, Value
from django.db.models.functions import Concat
from django.utils import timezone

from apps.core.utils import build_canonical_key

from . import curation
from .exceptions import KeyConflict, NotFound
from .models import CatalogItem
from .names import extract_brand_model
from .params import (
    IMAGE_FILTER_ALL,
    IMAGE_FILTER_RECENTLY_CURATED,
    AdminPatch,
    AdminSearchParams,
    BulkDeleteResult,
    CatalogSubmission,
    SearchParams,
    SearchResult,
    normalize_status,
    parse_description_status,
    parse_gear_type,
    parse_image_status,
    parse_item_ids,
)

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    cause = exc.__cause__
    code = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    return code == UNIQUE_VIOLATION


def _page(limit: int, offset: int) -> tuple[int, int]:
    if limit <= 0:
        limit = settings.CATALOG_SEARCH_DEFAULT_LIMIT
    limit = min(limit, settings.CATALOG_SEARCH_MAX_LIMIT)
    return limit, max(offset, 0)


def _search_text():
    return Concat(
        "brand", Value(" "), "model", Value(" "), "variant", output_field=CharField()
    )


# ── Lookups ────────────────────────────────────────────


def find_by_key(canonical_key: str) -> CatalogItem | None:
    return CatalogItem.objects.with_usage().filter(canonical_key=canonical_key).first()


def get_item(item_id) -> CatalogItem:
    item = CatalogItem.objects.with_usage().lookup(item_id)
    if item is None:
        raise NotFound(f"catalog item not found: {item_id}", id=str(item_id))
    return item


def get_popular(gear_type: str | None = None, limit: int = 10) -> list[CatalogItem]:
    """Most used published items, optionally for one gear type."""
    if limit <= 0:
        limit = 10
    limit = min(limit, settings.CATALOG_SEARCH_MAX_LIMIT)
    qs = CatalogItem.objects.published().with_usage()
    if gear_type:
        qs = qs.filter(gear_type=parse_gear_type(gear_type))
    return list(qs.order_by("-usage_count", "brand", "model")[:limit])


# ── Create-or-get ──────────────────────────────────────


def create_or_get(
    submission: CatalogSubmission,
    user=None,
    source: str = CatalogItem.Source.USER_SUBMITTED,
) -> tuple[CatalogItem, bool]:
    """
    Create a catalog item, or return the one already owning its canonical key.

    Returns (item, existing). Concurrent submissions of the same product
    converge on one row: a losing insert hits the unique constraint and
    re-reads the winner. Only when that re-read also comes back empty is
    the original IntegrityError raised.
    """
    submission.clean()
    canonical_key = build_canonical_key(
        submission.gear_type, submission.brand, submission.model, submission.variant
    )

    existing = find_by_key(canonical_key)
    if existing:
        logger.debug("Catalog submission merged into %s (%s)", existing.pk, canonical_key)
        return existing, True

    item = CatalogItem(
        gear_type=submission.gear_type,
        brand=submission.brand,
        model=submission.model,
        variant=submission.variant,
        specs=submission.specs,
        best_for=submission.best_for,
        msrp=submission.msrp,
        description=submission.description,
        source=source,
        created_by=user if getattr(user, "pk", None) else None,
        status=CatalogItem.Status.PENDING,
        image_status=CatalogItem.ImageStatus.MISSING,
        description_status=(
            CatalogItem.DescriptionStatus.APPROVED
            if submission.description
            else CatalogItem.DescriptionStatus.MISSING
        ),
    )

    try:
        with transaction.atomic():
            item.save(force_insert=True)
    except IntegrityError as exc:
        if not _is_unique_violation(exc):
            raise
        winner = find_by_key(canonical_key)
        if winner is None:
            raise
        logger.info("Concurrent create for %s resolved to %s", canonical_key, winner.pk)
        return winner, True

    item.usage_count = 0
    logger.info("Catalog item created: %s [%s] source=%s", item.pk, canonical_key, source)
    return item, False


def link_inventory_item(inventory_item, user=None) -> tuple[CatalogItem, bool]:
    """Create-or-get the catalog entry for a free-text inventory row and link it."""
    brand, model, variant = extract_brand_model(
        inventory_item.name, inventory_item.manufacturer
    )
    if not brand:
        brand = "Unknown"
    if not model:
        model = inventory_item.name

    submission = CatalogSubmission(
        gear_type=inventory_item.gear_type or CatalogItem.GearType.OTHER,
        brand=brand,
        model=model,
        variant=variant,
        specs=inventory_item.specs or {},
    )
    with transaction.atomic():
        item, existing = create_or_get(
            submission, user=user, source=CatalogItem.Source.MIGRATION
        )
        inventory_item.catalog_item = item
        inventory_item.save(update_fields=["catalog_item", "updated_at"])
    return item, existing


# ── Search ─────────────────────────────────────────────


def search(params: SearchParams) -> SearchResult:
    """Public catalog search: published items only unless a status is given."""
    limit, offset = _page(params.limit, params.offset)
    status = normalize_status(params.status) if params.status else None
    gear_type = parse_gear_type(params.gear_type) if params.gear_type else None

    qs = CatalogItem.objects.with_usage()
    qs = qs.filter(status=status) if status else qs.published()
    if gear_type:
        qs = qs.filter(gear_type=gear_type)
    if params.brand:
        qs = qs.filter(brand__iexact=params.brand.strip())

    query = (params.query or "").strip()
    if query:
        vector = SearchVector("brand", "model", "variant", config="english")
        ts_query = SearchQuery(query, config="english")
        qs = (
            qs.annotate(
                document=vector,
                rank=SearchRank(vector, ts_query),
                search_text=_search_text(),
            )
            .filter(Q(document=ts_query) | Q(search_text__icontains=query))
            .order_by("-rank", "-usage_count", "brand", "model")
        )
    else:
        qs = qs.order_by("-usage_count", "brand", "model")

    total = qs.count()
    items = list(qs[offset:offset + limit])
    return SearchResult(items=items, total_count=total, query=query)


def admin_search(params: AdminSearchParams) -> SearchResult:
    """
    Moderation search across every status.

    Without an image/description filter this is the "needs work" queue:
    image missing or not yet approved, or description missing.
    """
    limit, offset = _page(params.limit, params.offset)
    status = normalize_status(params.status) if params.status else None
    gear_type = parse_gear_type(params.gear_type) if params.gear_type else None
    image_status = (
        parse_image_status(params.image_status, allow_filters=True)
        if params.image_status else None
    )
    description_status = (
        parse_description_status(params.description_status)
        if params.description_status else None
    )

    qs = CatalogItem.objects.with_usage()
    if gear_type:
        qs = qs.filter(gear_type=gear_type)
    if params.brand:
        qs = qs.filter(brand__icontains=params.brand.strip())
    if status:
        qs = qs.filter(status=status)

    order_by = ["-created_at"]
    if image_status == IMAGE_FILTER_RECENTLY_CURATED:
        since = timezone.now() - timedelta(hours=settings.CATALOG_RECENTLY_CURATED_HOURS)
        qs = qs.filter(image_curated_at__gte=since)
        order_by = ["-image_curated_at"]
    elif image_status and image_status != IMAGE_FILTER_ALL:
        qs = qs.filter(image_status=image_status)

    if description_status:
        qs = qs.filter(description_status=description_status)

    if not image_status and not description_status:
        qs = qs.filter(
            Q(image_status__in=[CatalogItem.ImageStatus.MISSING, CatalogItem.ImageStatus.SCANNED])
            | Q(description_status=CatalogItem.DescriptionStatus.MISSING)
        )

    query = (params.query or "").strip()
    if query:
        qs = qs.annotate(search_text=_search_text()).filter(search_text__icontains=query)

    qs = qs.order_by(*order_by)
    total = qs.count()
    items = list(qs[offset:offset + limit])
    return SearchResult(items=items, total_count=total, query=query)


# ── Admin edits ────────────────────────────────────────


def admin_update(item_id, patch: AdminPatch, admin) -> CatalogItem:
    """
    Apply an admin edit.

    Identity changes recompute the canonical key; a key already owned by
    another item raises KeyConflict and nothing is written. Publishing
    without an explicit image status promotes a scanned image to approved.
    """
    patch.clean()

    with transaction.atomic():
        item = CatalogItem.objects.select_for_update().lookup(item_id)
        if item is None:
            raise NotFound(f"catalog item not found: {item_id}", id=str(item_id))
        previous_key = item.canonical_key

        if patch.gear_type is not None:
            item.gear_type = patch.gear_type
        if patch.brand is not None:
            item.brand = patch.brand
        if patch.model is not None:
            item.model = patch.model
        if patch.variant is not None:
            item.variant = patch.variant

        if patch.changes_identity:
            item.refresh_identity()
            if item.canonical_key != previous_key and (
                CatalogItem.objects.filter(canonical_key=item.canonical_key)
                .exclude(pk=item.pk)
                .exists()
            ):
                logger.info(
                    "Rename of %s rejected: key %s already taken", item.pk, item.canonical_key
                )
                raise KeyConflict(
                    f"another item already exists with brand={item.brand!r} "
                    f"model={item.model!r} variant={item.variant!r}",
                    canonical_key=item.canonical_key,
                )

        if patch.specs is not None:
            item.specs = patch.specs
        if patch.clear_msrp:
            item.msrp = None
        elif patch.msrp is not None:
            item.msrp = patch.msrp
        if patch.best_for is not None:
            item.best_for = patch.best_for
        if patch.description is not None:
            curation.apply_description(item, admin, patch.description)

        if patch.status is not None:
            item.status = patch.status
            if patch.status == CatalogItem.Status.PUBLISHED and patch.image_status is None:
                if curation.promote_scanned_image(item, admin):
                    logger.info("Scanned image of %s approved on publish", item.pk)
        if patch.image_status is not None:
            curation.apply_image_status(item, admin, patch.image_status)

        try:
            with transaction.atomic():
                item.save()
        except IntegrityError as exc:
            # A concurrent rename took the key between our check and the write.
            if _is_unique_violation(exc):
                raise KeyConflict(canonical_key=item.canonical_key) from exc
            raise

    logger.info("Admin %s updated catalog item %s", getattr(admin, "pk", None), item.pk)
    return get_item(item.pk)


def flag_item(item_id, reason: str = "") -> CatalogItem:
    """Contributor report: move an item to the flagged state."""
    updated = CatalogItem.objects.filter_id(item_id).update(
        status=CatalogItem.Status.FLAGGED, updated_at=timezone.now()
    )
    if not updated:
        raise NotFound(f"catalog item not found: {item_id}", id=str(item_id))
    logger.info("Catalog item %s flagged: %s", item_id, reason)
    return get_item(item_id)


# ── Deletes ────────────────────────────────────────────


def delete_item(item_id):
    """
    Permanently delete an item. Inventory rows pointing at it are unlinked.

    Returns the removed image asset id (if any) for release.
    """
    with transaction.atomic():
        item = CatalogItem.objects.select_for_update().lookup(item_id)
        if item is None:
            raise NotFound(f"catalog item not found: {item_id}", id=str(item_id))
        image_ref = item.image_asset_id
        item.delete()

    logger.info("Catalog item %s deleted", item_id)
    return image_ref


def bulk_delete(raw_ids) -> BulkDeleteResult:
    """
    Delete many items, each in its own transaction.

    A failing id does not roll back ids already deleted; it is reported in
    ``failed_ids`` and the batch carries on.
    """
    ids = parse_item_ids(raw_ids, settings.CATALOG_BULK_DELETE_MAX)
    result = BulkDeleteResult(deleted_ids=[], not_found_ids=[])

    for item_id in ids:
        try:
            image_ref = delete_item(item_id)
        except NotFound:
            result.not_found_ids.append(item_id)
            continue
        except DatabaseError:
            logger.exception("Bulk delete failed for catalog item %s", item_id)
            result.failed_ids.append(item_id)
            continue
        result.deleted_ids.append(item_id)
        if image_ref:
            result.released_image_ids.append(image_ref)

    logger.info(
        "Bulk delete: %d deleted, %d not found, %d failed",
        len(result.deleted_ids), len(result.not_found_ids), len(result.failed_ids),
    )
    return result
