"""Tests for HtmlMetadataExtractor."""

import pytest

from link_preview.services.html_parser import HtmlMetadataExtractor, RawFields


@pytest.fixture
def extractor():
    return HtmlMetadataExtractor()


class TestTitle:
    def test_open_graph_wins(self, extractor):
        html = """
        <html><head>
          <title>Document title</title>
          <meta name="twitter:title" content="Twitter title">
          <meta property="og:title" content="OG title">
        </head></html>
        """
        assert extractor.extract(html).title == "OG title"

    def test_twitter_beats_document_title(self, extractor):
        html = """
        <head>
          <title>Document title</title>
          <meta name="twitter:title" content="Twitter title">
        </head>
        """
        assert extractor.extract(html).title == "Twitter title"

    def test_document_title_fallback(self, extractor):
        assert extractor.extract("<title>Plain</title>").title == "Plain"

    def test_blank_meta_is_skipped(self, extractor):
        html = '<meta property="og:title" content="   "><title>Real</title>'
        assert extractor.extract(html).title == "Real"

    def test_entities_and_whitespace_are_cleaned(self, extractor):
        html = "<title>\n  Tom &amp; Jerry\n\t Show  </title>"
        assert extractor.extract(html).title == "Tom & Jerry Show"

    def test_meta_keys_are_case_insensitive(self, extractor):
        html = '<meta property="OG:Title" content="Upper">'
        assert extractor.extract(html).title == "Upper"


class TestOtherFields:
    def test_description_priority(self, extractor):
        html = """
        <meta name="description" content="plain">
        <meta property="og:description" content="og">
        """
        assert extractor.extract(html).description == "og"

    def test_site_name_and_image(self, extractor):
        html = """
        <meta property="og:site_name" content="Example">
        <meta property="og:image" content="/img/card.png">
        """
        fields = extractor.extract(html, base_url="https://example.com/post/1")
        assert fields.site_name == "Example"
        assert fields.image == "https://example.com/img/card.png"

    def test_json_ld_fills_missing_fields(self, extractor):
        html = """
        <script type="application/ld+json">
          {"@context": "https://schema.org",
           "@graph": [{"@type": "Article",
                       "headline": "From JSON-LD",
                       "description": "LD description"}]}
        </script>
        """
        fields = extractor.extract(html)
        assert fields.title == "From JSON-LD"
        assert fields.description == "LD description"

    def test_json_ld_does_not_override_meta(self, extractor):
        html = """
        <meta property="og:title" content="Meta title">
        <script type="application/ld+json">{"name": "LD title"}</script>
        """
        assert extractor.extract(html).title == "Meta title"

    def test_invalid_json_ld_is_ignored(self, extractor):
        html = '<script type="application/ld+json">{not json</script><title>T</title>'
        assert extractor.extract(html).title == "T"


class TestIconHint:
    def test_relative_icon_is_resolved(self, extractor):
        html = '<link rel="shortcut icon" href="/favicon.ico">'
        fields = extractor.extract(html, base_url="https://example.com/a/b")
        assert fields.icon_hint == "https://example.com/favicon.ico"

    def test_apple_touch_icon(self, extractor):
        html = '<link rel="apple-touch-icon" href="https://cdn.test/icon.png">'
        assert extractor.extract(html).icon_hint == "https://cdn.test/icon.png"

    def test_data_uri_is_kept(self, extractor):
        html = '<link rel="icon" href="data:image/png;base64,AAAA">'
        assert extractor.extract(html).icon_hint == "data:image/png;base64,AAAA"

    def test_unrelated_links_ignored(self, extractor):
        html = '<link rel="stylesheet" href="/style.css">'
        assert extractor.extract(html, base_url="https://example.com").icon_hint is None


class TestMalformedInput:
    @pytest.mark.parametrize(
        "raw",
        [
            "",
            b"",
            "<<<>>>",
            "<html><head><title>Unclosed",
            b"\xff\xfe\x00garbage",
        ],
    )
    def test_never_raises(self, extractor, raw):
        assert isinstance(extractor.extract(raw), RawFields)

    def test_absent_fields_are_none(self, extractor):
        fields = extractor.extract("<html><body><p>Nothing here</p></body></html>")
        assert fields == RawFields()


class TestEncoding:
    def test_header_charset_is_used(self, extractor):
        raw = "<html><head><title>Привет, мир</title></head></html>".encode("cp1251")
        assert extractor.extract(raw, encoding="windows-1251").title == "Привет, мир"

    def test_text_input_ignores_encoding(self, extractor):
        assert extractor.extract("<title>Café</title>", encoding="latin-1").title == "Café"
