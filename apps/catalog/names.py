"""Split free-text product names into brand / model / variant."""
import re

# Trailing variant suffixes, tried in order.
VARIANT_PATTERNS = [
    re.compile(r"\s+(V\d+)$", re.IGNORECASE),
    re.compile(r"\s+(Pro|Lite|Mini|Max|Plus)$", re.IGNORECASE),
    re.compile(r"\s+(LR|HV|LV)$", re.IGNORECASE),
    re.compile(r"\s+(\d{4})$", re.IGNORECASE),
    re.compile(r"\s+(Mark\s*\d+|MK\d+)$", re.IGNORECASE),
    re.compile(r"\s+(Rev\s*[A-Z0-9]+)$", re.IGNORECASE),
    re.compile(r"\s+(\d+KV|\d+mAh)$", re.IGNORECASE),
]


def split_variant(text: str) -> tuple[str, str]:
    """Return (model, variant); variant is empty when no known suffix matches."""
    text = (text or "").strip()
    if not text:
        return "", ""
    for pattern in VARIANT_PATTERNS:
        match = pattern.search(text)
        if match:
            return text[:match.start()].strip(), match.group(1).strip()
    return text, ""


def extract_brand_model(name: str, manufacturer: str = "") -> tuple[str, str, str]:
    """
    Best-effort (brand, model, variant) from an inventory name.

    A known manufacturer is the brand and is stripped from the front of the
    name. Otherwise the first word is taken as the brand.

        >>> extract_brand_model("F80 Pro 1900KV", "TMotor")
        ('TMotor', 'F80 Pro', '1900KV')
        >>> extract_brand_model("TBS Crossfire Nano")
        ('TBS', 'Crossfire Nano', '')
    """
    name = (name or "").strip()
    manufacturer = (manufacturer or "").strip()

    if manufacturer:
        if name.lower().startswith(manufacturer.lower()):
            name = name[len(manufacturer):].strip()
        model, variant = split_variant(name)
        return manufacturer, model, variant

    parts = name.split()
    if not parts:
        return "", "", ""
    model, variant = split_variant(" ".join(parts[1:]))
    return parts[0], model, variant
