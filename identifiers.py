"""
Keys that address a project.

A project record carries two keys: the locale-scoped slug (``id``) built from
its title, and the cross-locale ``originalId`` shared with its sibling. Both
arrive through the same URL segment, so lookups classify a key by its shape
with :func:`looks_like_uuid`.
"""
import re
import uuid

LOCALES = ("tr", "en")

# Canonical 8-4-4-4-12 hex form, either case, whole string only.
# Braced, urn: and 32-digit compact forms are NOT treated as UUIDs.
UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)

_TURKISH_CHARS = str.maketrans({
    "ı": "i", "İ": "I",
    "ğ": "g", "Ğ": "G",
    "ü": "u", "Ü": "U",
    "ş": "s", "Ş": "S",
    "ö": "o", "Ö": "O",
    "ç": "c", "Ç": "C",
})


def other_locale(locale: str) -> str:
    return "en" if locale == "tr" else "tr"


def looks_like_uuid(key: str) -> bool:
    """True when ``key`` has the shape of an ``originalId``.

    Slugs come from human titles and practically never take this shape, so a
    match is read as a cross-locale id first. It is a heuristic: a slug can
    still be crafted to match.
    """
    if not key:
        return False
    return UUID_PATTERN.fullmatch(key) is not None


def new_original_id() -> str:
    return str(uuid.uuid4())


def slugify(text: str) -> str:
    """URL-safe slug with Turkish letters transliterated.

    >>> slugify("Porselen Tabak Çalışması")
    'porselen-tabak-calismasi'
    """
    if not text:
        return ""
    result = text.translate(_TURKISH_CHARS).lower().strip()
    result = re.sub(r"[^a-z0-9-]", "-", result)
    result = re.sub(r"-+", "-", result)
    return result.strip("-")
