"""Input/output structures for catalog operations and their validation."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from .exceptions import ValidationError
from .models import CatalogItem

# Legacy status names still sent by older clients.
STATUS_ALIASES = {
    "active": CatalogItem.Status.PUBLISHED,
    "removed": CatalogItem.Status.REJECTED,
}

# Admin-only image filters that are not stored states.
IMAGE_FILTER_RECENTLY_CURATED = "recently-curated"
IMAGE_FILTER_ALL = "all"


def parse_gear_type(value) -> str:
    gear_type = str(value or "").strip().lower()
    if gear_type not in CatalogItem.GearType.values:
        raise ValidationError(f"invalid gearType {value!r}", field="gearType")
    return gear_type


def normalize_status(value) -> str:
    status = str(value or "").strip().lower()
    status = STATUS_ALIASES.get(status, status)
    if status not in CatalogItem.Status.values:
        raise ValidationError(f"invalid status {value!r}", field="status")
    return str(status)


def parse_image_status(value, *, allow_filters: bool = False) -> str:
    status = str(value or "").strip().lower()
    allowed = set(CatalogItem.ImageStatus.values)
    if allow_filters:
        allowed |= {IMAGE_FILTER_RECENTLY_CURATED, IMAGE_FILTER_ALL}
    if status not in allowed:
        raise ValidationError(f"invalid imageStatus {value!r}", field="imageStatus")
    return status


def parse_description_status(value) -> str:
    status = str(value or "").strip().lower()
    if status not in CatalogItem.DescriptionStatus.values:
        raise ValidationError(f"invalid descriptionStatus {value!r}", field="descriptionStatus")
    return status


def parse_msrp(value) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        msrp = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"invalid msrp {value!r}", field="msrp")
    if not msrp.is_finite() or msrp < 0:
        raise ValidationError(f"invalid msrp {value!r}", field="msrp")
    return msrp


def check_length(name: str, value: str) -> str:
    """Reject text longer than the ``CatalogItem`` column that stores it."""
    max_length = CatalogItem._meta.get_field(name).max_length
    if len(value) > max_length:
        raise ValidationError(f"{name} must be at most {max_length} characters", field=name)
    return value


def parse_best_for(values) -> list[str]:
    max_length = CatalogItem._meta.get_field("best_for").base_field.max_length
    tags = [t.strip() for t in values or [] if t and t.strip()]
    for tag in tags:
        if len(tag) > max_length:
            raise ValidationError(
                f"bestFor entries must be at most {max_length} characters", field="bestFor"
            )
    return tags


def parse_specs(value) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError("specs must be an object", field="specs")
    return value


def parse_item_ids(raw_ids, max_ids: int) -> list[str]:
    """Trim, dedupe (order kept) and validate a list of item ids."""
    ids: list[str] = []
    seen: set[str] = set()
    for raw in raw_ids or []:
        item_id = str(raw).strip()
        if not item_id:
            continue
        try:
            item_id = str(uuid.UUID(item_id))
        except ValueError:
            raise ValidationError(f"invalid id: {item_id}", field="ids")
        if item_id in seen:
            continue
        seen.add(item_id)
        ids.append(item_id)
    if not ids:
        raise ValidationError("ids is required", field="ids")
    if len(ids) > max_ids:
        raise ValidationError(f"too many ids (max {max_ids})", field="ids")
    return ids


@dataclass
class CatalogSubmission:
    """A contributor (or import) description of a product."""

    gear_type: str
    brand: str
    model: str
    variant: str = ""
    specs: dict = field(default_factory=dict)
    best_for: list[str] = field(default_factory=list)
    msrp: Decimal | None = None
    description: str = ""

    def clean(self) -> "CatalogSubmission":
        """Validate and trim in place; raises ValidationError."""
        self.gear_type = parse_gear_type(self.gear_type)
        self.brand = (self.brand or "").strip()
        self.model = (self.model or "").strip()
        self.variant = (self.variant or "").strip()
        if not self.brand:
            raise ValidationError("brand is required", field="brand")
        if not self.model:
            raise ValidationError("model is required", field="model")
        for name in ("brand", "model", "variant"):
            check_length(name, getattr(self, name))
        self.specs = parse_specs(self.specs)
        self.best_for = parse_best_for(self.best_for)
        self.msrp = parse_msrp(self.msrp)
        self.description = (self.description or "").strip()
        return self


@dataclass
class SearchParams:
    query: str = ""
    gear_type: str = ""
    brand: str = ""
    status: str = ""
    limit: int = 0
    offset: int = 0


@dataclass
class AdminSearchParams(SearchParams):
    image_status: str = ""
    description_status: str = ""


@dataclass
class SearchResult:
    items: list
    total_count: int
    query: str = ""


@dataclass
class AdminPatch:
    """Admin edit. ``None`` means "leave unchanged"."""

    gear_type: str | None = None
    brand: str | None = None
    model: str | None = None
    variant: str | None = None
    specs: dict | None = None
    description: str | None = None
    msrp: Decimal | None = None
    clear_msrp: bool = False
    best_for: list[str] | None = None
    status: str | None = None
    image_status: str | None = None

    @property
    def changes_identity(self) -> bool:
        return any(v is not None for v in (self.gear_type, self.brand, self.model, self.variant))

    def clean(self) -> "AdminPatch":
        if self.gear_type is not None:
            self.gear_type = parse_gear_type(self.gear_type)
        for name in ("brand", "model"):
            value = getattr(self, name)
            if value is not None:
                value = value.strip()
                if not value:
                    raise ValidationError(f"{name} cannot be empty", field=name)
                setattr(self, name, check_length(name, value))
        if self.variant is not None:
            self.variant = check_length("variant", self.variant.strip())
        if self.specs is not None:
            self.specs = parse_specs(self.specs)
        if self.msrp is not None:
            self.msrp = parse_msrp(self.msrp)
        if self.best_for is not None:
            self.best_for = parse_best_for(self.best_for)
        if self.status is not None:
            self.status = normalize_status(self.status)
        if self.image_status is not None:
            self.image_status = parse_image_status(self.image_status)
        return self


@dataclass
class NearMatch:
    item: CatalogItem
    similarity: float


@dataclass
class BulkDeleteResult:
    deleted_ids: list[str]
    not_found_ids: list[str]
    failed_ids: list[str] = field(default_factory=list)
    released_image_ids: list[uuid.UUID] = field(default_factory=list)
