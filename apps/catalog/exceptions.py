"""Catalog errors.

Caller mistakes (validation, conflicts, curation rules) are raised as
``CatalogError`` subclasses and surfaced unchanged. Store failures are
plain ``django.db.DatabaseError`` and are never wrapped here.
"""


class CatalogError(Exception):
    """Base class for catalog rule violations."""

    code = "catalog_error"
    default_message = "Catalog operation failed"

    def __init__(self, message: str | None = None, **details):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details


class NotFound(CatalogError):
    code = "not_found"
    default_message = "Catalog item not found"


class AlreadyCurated(CatalogError):
    code = "already_curated"
    default_message = "Catalog item is already curated"


class ImageAlreadyCurated(AlreadyCurated):
    code = "image_already_curated"
    default_message = "Catalog item already has a curated image"


class ImageMissing(CatalogError):
    code = "image_missing"
    default_message = "Catalog item has no image to approve"


class KeyConflict(CatalogError):
    code = "key_conflict"
    default_message = "Another catalog item already uses this brand/model/variant"


class ValidationError(CatalogError):
    code = "validation_error"
    default_message = "Invalid catalog input"
