# src/extraction/identifiers.py — v1
"""Identifier scheme normalization and value sniffing for OPF metadata.

The sniffing heuristics are intentionally loose: a 10-digit numeric code is
an ISBN, a 10-character value starting with "B" is an ASIN. Downstream
consumers rely on these exact rules.
"""

from __future__ import annotations

SCHEME_ALIASES: dict[str, str] = {
    "isbn": "isbn",
    "isbn-10": "isbn",
    "isbn-13": "isbn",
    "asin": "asin",
    "doi": "doi",
    "issn": "issn",
    "oclc": "oclc",
    "lccn": "lccn",
    "google": "google",
    "goodreads": "goodreads",
    "amazon": "amazon",
    "uri": "uri",
    "url": "uri",
}

# calibre meta names carrying identifiers; None means "not an identifier key"
META_NAME_KEYS: dict[str, str | None] = {
    "dc:identifier": None,
    "dtb:uid": None,
    "calibre:isbn": "isbn",
    "calibre:asin": "asin",
    "calibre:doi": "doi",
    "calibre:issn": "issn",
    "calibre:oclc": "oclc",
    "calibre:lccn": "lccn",
    "calibre:google_id": "google",
    "calibre:goodreads_id": "goodreads",
    "calibre:amazon_id": "amazon",
}

CALIBRE_PREFIX = "calibre:"
CALIBRE_ID_SUFFIX = "_id"

PROPERTY_KEYS: frozenset[str] = frozenset({"isbn", "doi", "issn", "oclc", "lccn"})


def normalize_identifier_key(scheme: str) -> str:
    """Map a scheme name to its canonical key; unknown schemes pass through lowercased."""
    scheme = scheme.strip().lower()
    return SCHEME_ALIASES.get(scheme, scheme)


def identifier_key_from_meta_name(name: str) -> str:
    """Identifier key for a legacy ``<meta name=... content=...>`` pair, or ""."""
    name = name.strip().lower()

    if name in META_NAME_KEYS:
        return META_NAME_KEYS[name] or ""

    if name.startswith(CALIBRE_PREFIX) and name.endswith(CALIBRE_ID_SUFFIX):
        ident_type = name[len(CALIBRE_PREFIX):-len(CALIBRE_ID_SUFFIX)]
        return normalize_identifier_key(ident_type)

    return ""


def identifier_key_from_property(prop: str) -> str:
    """Identifier key for an EPUB3 ``<meta property=...>`` element, or ""."""
    prop = prop.strip().lower()
    return prop if prop in PROPERTY_KEYS else ""


def detect_identifier_type(value: str) -> str:
    """Guess an identifier's scheme from its value; "" if nothing fits."""
    value = value.strip()
    clean = value.replace("-", "").replace(" ", "")

    if len(clean) in (10, 13):
        if is_numeric(clean) or (len(clean) == 10 and is_isbn10(clean)):
            return "isbn"

    if len(value) == 10 and value.upper().startswith("B"):
        return "asin"

    if value.startswith("10."):
        return "doi"

    lower = value.lower()
    if lower.startswith(("http://", "https://")):
        return "uri"

    if lower.startswith("urn:"):
        return "urn"

    return ""


def is_numeric(s: str) -> bool:
    """True if every character is an ASCII digit (vacuously true for "")."""
    return all("0" <= ch <= "9" for ch in s)


def is_isbn10(s: str) -> bool:
    """Nine digits followed by a digit or X check character."""
    if len(s) != 10:
        return False
    return is_numeric(s[:9]) and (is_numeric(s[9]) or s[9] in "Xx")
