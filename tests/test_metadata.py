"""Unit tests for metadata extraction."""

from __future__ import annotations

from readerly.extractors.metadata import (
    extract_jsonld,
    extract_metadata,
    get_article_favicon,
    get_article_title,
    text_similarity,
)

ARTICLE_URL = "https://example.com/blog/reading-the-signal"


def _jsonld(body: str) -> str:
    return (
        "<html><head><title>Fallback title for the page</title>"
        f'<script type="application/ld+json">{body}</script>'
        "</head><body></body></html>"
    )


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------

class TestJsonLd:
    def test_article_fields(self, article_html, make_soup):
        data = extract_jsonld(make_soup(article_html))
        assert data["title"] == "Reading the Signal in Noisy Pages"
        assert data["byline"] == "Jane Smith"
        assert data["site_name"] == "Tech Blog"
        assert data["date_published"] == "2024-01-15T09:30:00Z"
        assert data["date_modified"] == "2024-02-01T12:00:00Z"

    def test_malformed_block_is_skipped(self, make_soup):
        assert extract_jsonld(make_soup(_jsonld("{not json"))) == {}

    def test_requires_schema_org_context(self, make_soup):
        body = '{"@context": "https://example.org", "@type": "Article", "headline": "X"}'
        assert extract_jsonld(make_soup(_jsonld(body))) == {}

    def test_ignores_non_article_types(self, make_soup):
        body = '{"@context": "https://schema.org", "@type": "Recipe", "name": "Soup"}'
        assert extract_jsonld(make_soup(_jsonld(body))) == {}

    def test_graph_lookup(self, make_soup):
        body = (
            '{"@context": "https://schema.org", "@graph": ['
            '{"@type": "WebSite", "name": "Site"},'
            '{"@type": "NewsArticle", "headline": "From the graph"}]}'
        )
        assert extract_jsonld(make_soup(_jsonld(body)))["title"] == "From the graph"

    def test_type_given_as_list(self, make_soup):
        body = '{"@context": "https://schema.org", "@type": ["NewsArticle"], "headline": "Alpha"}'
        assert extract_jsonld(make_soup(_jsonld(body)))["title"] == "Alpha"

    def test_type_list_without_article(self, make_soup):
        body = '{"@context": "https://schema.org", "@type": ["Recipe", "Thing"], "name": "Soup"}'
        assert extract_jsonld(make_soup(_jsonld(body))) == {}

    def test_differing_name_and_headline_are_stripped(self, make_soup):
        body = (
            '{"@context": "https://schema.org", "@type": "Article",'
            '"name": "  Site Name  ", "headline": "  Fallback title for the page  "}'
        )
        assert extract_jsonld(make_soup(_jsonld(body)))["title"] == "Fallback title for the page"

    def test_list_of_authors(self, make_soup):
        body = (
            '{"@context": "https://schema.org", "@type": "Article", "headline": "H",'
            '"author": [{"name": "Ann"}, {"name": "Bob"}]}'
        )
        assert extract_jsonld(make_soup(_jsonld(body)))["byline"] == "Ann, Bob"

    def test_cdata_wrapper(self, make_soup):
        body = '<![CDATA[{"@context": "https://schema.org", "@type": "Article", "headline": "Wrapped"}]]>'
        assert extract_jsonld(make_soup(_jsonld(body)))["title"] == "Wrapped"


# ---------------------------------------------------------------------------
# Merge and precedence
# ---------------------------------------------------------------------------

class TestExtractMetadata:
    def test_jsonld_beats_meta(self, make_soup):
        soup = make_soup(
            '<html><head><title>Gamma</title><meta property="og:title" content="Beta"></head></html>',
        )
        meta = extract_metadata(soup, {"title": "Alpha"})
        assert meta["title"] == "Alpha"

    def test_property_meta_beats_name_meta(self, make_soup):
        soup = make_soup(
            '<html><head><meta name="title" content="Name">'
            '<meta property="og:title" content="Property"></head></html>',
        )
        assert extract_metadata(soup)["title"] == "Property"

    def test_property_meta_beats_dublin_core_name(self, make_soup):
        soup = make_soup(
            '<html><head><meta property="og:title" content="Property">'
            '<meta name="dc.title" content="Name"></head></html>',
        )
        assert extract_metadata(soup)["title"] == "Property"

    def test_later_name_meta_does_not_overwrite_property(self, make_soup):
        soup = make_soup(
            '<html><head><meta property="og:title" content="Property">'
            '<meta name="og:title" content="Name"></head></html>',
        )
        assert extract_metadata(soup)["title"] == "Property"

    def test_property_description_beats_name_description(self, make_soup):
        soup = make_soup(
            '<html><head><meta property="twitter:description" content="Property">'
            '<meta name="description" content="Name"></head></html>',
        )
        assert extract_metadata(soup)["excerpt"] == "Property"

    def test_name_meta_used_without_property(self, make_soup):
        soup = make_soup(
            '<html><head><title>Gamma</title><meta name="dc.title" content="Name"></head></html>',
        )
        assert extract_metadata(soup)["title"] == "Name"

    def test_title_element_is_last_resort(self, make_soup):
        soup = make_soup("<html><head><title>Only the title element here</title></head></html>")
        assert extract_metadata(soup)["title"] == "Only the title element here"

    def test_missing_fields_are_empty(self, make_soup):
        meta = extract_metadata(make_soup("<html><body></body></html>"))
        assert meta["byline"] == ""
        assert meta["excerpt"] == ""
        assert meta["date_published"] == ""

    def test_article_author_url_is_not_a_byline(self, make_soup):
        soup = make_soup(
            '<html><head><meta property="article:author" content="https://facebook.com/jane">'
            "</head></html>",
        )
        assert extract_metadata(soup)["byline"] == ""

    def test_name_author(self, make_soup):
        soup = make_soup('<html><head><meta name="author" content="Jane Doe"></head></html>')
        assert extract_metadata(soup)["byline"] == "Jane Doe"

    def test_entities_unescaped(self, make_soup):
        soup = make_soup(
            '<html><head><meta property="og:title" content="Fish &amp;amp; Chips"></head></html>',
        )
        assert extract_metadata(soup)["title"] == "Fish & Chips"

    def test_image_resolved(self, article_html, make_soup):
        meta = extract_metadata(make_soup(article_html), page_url=ARTICLE_URL)
        assert meta["image"] == "https://example.com/images/cover.png"

    def test_published_time_from_meta(self, make_soup):
        soup = make_soup(
            '<html><head><meta property="article:published_time" content="2024-05-01">'
            "</head></html>",
        )
        assert extract_metadata(soup)["date_published"] == "2024-05-01"


# ---------------------------------------------------------------------------
# <title> heuristics and favicon
# ---------------------------------------------------------------------------

class TestArticleTitle:
    def test_strips_site_suffix(self, make_soup):
        soup = make_soup("<html><head><title>Reading the Signal in Noisy Pages | Tech Blog</title></head></html>")
        assert get_article_title(soup) == "Reading the Signal in Noisy Pages"

    def test_short_result_keeps_original(self, make_soup):
        soup = make_soup("<html><head><title>Home | Site</title></head></html>")
        assert get_article_title(soup) == "Home | Site"

    def test_colon_prefix(self, make_soup):
        soup = make_soup(
            "<html><head><title>Site: A Long Article Title Goes Here</title></head></html>",
        )
        assert get_article_title(soup) == "A Long Article Title Goes Here"

    def test_no_title(self, make_soup):
        assert get_article_title(make_soup("<html><body></body></html>")) == ""


class TestFavicon:
    def test_largest_square_png(self, article_html, make_soup):
        favicon = get_article_favicon(make_soup(article_html), ARTICLE_URL)
        assert favicon == "https://example.com/favicon-32.png"

    def test_no_png_icon(self, make_soup):
        soup = make_soup('<html><head><link rel="icon" href="/favicon.ico"></head></html>')
        assert get_article_favicon(soup, ARTICLE_URL) == ""


class TestTextSimilarity:
    def test_identical(self):
        assert text_similarity("Noisy Pages", "noisy pages") == 1.0

    def test_disjoint(self):
        assert text_similarity("alpha beta", "gamma delta") == 0.0

    def test_empty(self):
        assert text_similarity("", "anything") == 0.0
