"""Shared utilities: text normalization and canonical keys."""
import re
import unicodedata

_NON_WORD = re.compile(r"[^\w\s]|_")
_SPACES = re.compile(r"\s+")


def normalize_text(text: str | None) -> str:
    """Fold free text into a canonical token sequence.

    NFC, lowercase, punctuation/symbols to spaces, strip diacritics,
    collapse whitespace. Idempotent.
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFC", text)
    text = text.lower()
    text = _NON_WORD.sub(" ", text)
    text = unicodedata.normalize("NFD", text)
    text = "".join(ch for ch in text if unicodedata.category(ch) != "Mn")
    return _SPACES.sub(" ", text).strip()


def build_canonical_key(gear_type, brand: str, model: str, variant: str | None = "") -> str:
    """Dedup key: ``gear_type|brand|model[|variant]`` with normalized parts.

    The gear type is a code-controlled enum token and is not normalized.
    A blank variant is the same as no variant.
    """
    gear_type = getattr(gear_type, "value", gear_type)
    parts = [str(gear_type), normalize_text(brand), normalize_text(model)]
    variant = (variant or "").strip()
    if variant:
        parts.append(normalize_text(variant))
    return "|".join(parts)
