# tests/unit/extraction/test_identifiers.py — v1
"""Tests for extraction/identifiers.py: scheme tables and value sniffing."""

from __future__ import annotations

import pytest

from epubsearch.extraction.identifiers import (
    detect_identifier_type,
    identifier_key_from_meta_name,
    identifier_key_from_property,
    is_isbn10,
    is_numeric,
    normalize_identifier_key,
)


class TestNormalizeIdentifierKey:
    @pytest.mark.parametrize(
        "scheme,key",
        [
            ("ISBN", "isbn"),
            ("isbn-10", "isbn"),
            (" ISBN-13 ", "isbn"),
            ("ASIN", "asin"),
            ("URL", "uri"),
            ("uri", "uri"),
            ("Goodreads", "goodreads"),
            ("MOBI-ASIN", "mobi-asin"),
            ("", ""),
        ],
    )
    def test_keys(self, scheme, key):
        assert normalize_identifier_key(scheme) == key


class TestDetectIdentifierType:
    @pytest.mark.parametrize(
        "value,key",
        [
            ("9780140437867", "isbn"),
            ("978-0-14-043786-7", "isbn"),
            ("0140437860", "isbn"),
            ("014043786X", "isbn"),
            ("1234567890", "isbn"),
            ("B00ABCDEFG", "asin"),
            ("10.1000/xyz123", "doi"),
            ("https://example.org/book", "uri"),
            ("HTTP://EXAMPLE.ORG", "uri"),
            ("urn:uuid:1234", "urn"),
            ("calibre-42", ""),
        ],
    )
    def test_detect(self, value, key):
        assert detect_identifier_type(value) == key


class TestMetaNames:
    @pytest.mark.parametrize(
        "name,key",
        [
            ("calibre:isbn", "isbn"),
            ("Calibre:ASIN", "asin"),
            ("calibre:google_id", "google"),
            ("calibre:amazon_id", "amazon"),
            ("calibre:barnesnoble_id", "barnesnoble"),
            ("calibre:url_id", "uri"),
            ("dc:identifier", ""),
            ("dtb:uid", ""),
            ("calibre:series", ""),
            ("cover", ""),
        ],
    )
    def test_meta_name(self, name, key):
        assert identifier_key_from_meta_name(name) == key

    @pytest.mark.parametrize(
        "prop,key",
        [("isbn", "isbn"), ("DOI", "doi"), ("lccn", "lccn"), ("asin", ""), ("dcterms:modified", "")],
    )
    def test_property(self, prop, key):
        assert identifier_key_from_property(prop) == key


class TestHelpers:
    def test_is_numeric(self):
        assert is_numeric("0123")
        assert not is_numeric("12a")
        assert is_numeric("")

    def test_is_isbn10(self):
        assert is_isbn10("080442957X")
        assert is_isbn10("0804429570")
        assert not is_isbn10("08044295XX")
        assert not is_isbn10("123")
