"""Deterministic metadata extraction from HTML.

Priority chain per field (highest → lowest):
    JSON-LD → property-style <meta> (og:, dc:, article:, twitter:)
    → name-style <meta> → <title>

The result is independent of content scoring; the excerpt may still be
filled in later from the extracted content.
"""

from __future__ import annotations

import html
import json
import logging
import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from readerly.extractors.dom import inner_text, safe_str, text_content
from readerly.extractors.patterns import NORMALIZE_RE, TOKENIZE_RE
from readerly.extractors.urlnorm import to_absolute_url

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_CDATA_RE = re.compile(r"^\s*<!\[CDATA\[|\]\]>\s*$")
_SCHEMA_ORG_RE = re.compile(r"^https?://schema\.org/?$")
_FAVICON_SIZE_RE = re.compile(r"(\d+)x(\d+)", re.IGNORECASE)

# Title separators used by sites to append their name ("Post | Site").
_TITLE_SEPARATOR_RE = re.compile(r" [|\-\\/>»] ")
_TITLE_HIERARCHICAL_RE = re.compile(r" [\\/>»] ")
_TITLE_LAST_PART_RE = re.compile(r"(.*)[|\-\\/>»] .*")
_TITLE_FIRST_PART_RE = re.compile(r"[^|\-\\/>»]*[|\-\\/>»](.*)")
_TITLE_SEPARATORS_RE = re.compile(r"[|\-\\/>»]+")

# Headline/name similarity above which two titles are considered the same.
TITLE_SIMILARITY_THRESHOLD = 0.75

# property is a space-separated list of values
_PROPERTY_PATTERN = re.compile(
    r"\s*(article|dc|dcterm|og|twitter)\s*:\s*"
    r"(author|creator|description|published_time|modified_time|title|site_name|image\S*)\s*",
    re.IGNORECASE,
)
# name is a single value
_NAME_PATTERN = re.compile(
    r"^\s*(?:(dc|dcterm|og|twitter|parsely|weibo:(article|webpage))\s*[-.:]\s*)?"
    r"(author|creator|pub-date|description|title|site_name|image)\s*$",
    re.IGNORECASE,
)

_ARTICLE_TYPES_RE = re.compile(
    r"^Article|AdvertiserContentArticle|NewsArticle|AnalysisNewsArticle|"
    r"AskPublicNewsArticle|BackgroundNewsArticle|OpinionNewsArticle|"
    r"ReportageNewsArticle|ReviewNewsArticle|Report|SatiricalArticle|"
    r"ScholarlyArticle|MedicalScholarlyArticle|SocialMediaPosting|BlogPosting|"
    r"LiveBlogPosting|DiscussionForumPosting|TechArticle|APIReference$",
)


def _first(*values: Any) -> Any:
    """Return the first non-empty, non-None value."""
    for v in values:
        if v:
            return v
    return None


def text_similarity(text_a: str, text_b: str) -> float:
    """Share of the tokens of *text_b* that also appear in *text_a* (by length)."""
    tokens_a = [t for t in TOKENIZE_RE.split(text_a.lower()) if t]
    tokens_b = [t for t in TOKENIZE_RE.split(text_b.lower()) if t]
    if not tokens_a or not tokens_b:
        return 0.0
    uniq_b = [t for t in tokens_b if t not in tokens_a]
    distance_b = len(" ".join(uniq_b)) / len(" ".join(tokens_b))
    return 1 - distance_b


def _is_article_type(value: Any) -> bool:
    """True when ``@type`` (a string or a list of strings) names an article type."""
    if isinstance(value, list):
        return any(_is_article_type(v) for v in value)
    return isinstance(value, str) and bool(_ARTICLE_TYPES_RE.search(value))


# ---------------------------------------------------------------------------
# <title>
# ---------------------------------------------------------------------------

def _word_count(text: str) -> int:
    return len(re.split(r"\s+", text))


def get_article_title(soup: BeautifulSoup) -> str:
    """Best guess at the article title from the ``<title>`` element.

    Strips site names appended with a separator ("Post | Site"), handles
    "Site: Post" titles, and falls back to a lone ``<h1>`` when the title is
    implausibly short or long.
    """
    title_tag = soup.find("title")
    orig_title = text_content(title_tag).strip() if title_tag else ""
    cur_title = orig_title
    had_hierarchical_separators = False

    if _TITLE_SEPARATOR_RE.search(cur_title):
        had_hierarchical_separators = bool(_TITLE_HIERARCHICAL_RE.search(cur_title))
        cur_title = _TITLE_LAST_PART_RE.sub(r"\1", orig_title)
        if _word_count(cur_title) < 3:
            cur_title = _TITLE_FIRST_PART_RE.sub(r"\1", orig_title)
    elif ": " in cur_title:
        headings = soup.find_all(["h1", "h2"])
        trimmed = cur_title.strip()
        if not any(text_content(h).strip() == trimmed for h in headings):
            cur_title = orig_title[orig_title.rfind(":") + 1:]
            if _word_count(cur_title) < 3:
                cur_title = orig_title[orig_title.find(":") + 1:]
            elif _word_count(orig_title[:orig_title.find(":")]) > 5:
                cur_title = orig_title
    elif len(cur_title) > 150 or len(cur_title) < 15:
        h_ones = soup.find_all("h1")
        if len(h_ones) == 1:
            cur_title = inner_text(h_ones[0])

    cur_title = NORMALIZE_RE.sub(" ", cur_title.strip())
    word_count = _word_count(cur_title)
    if word_count <= 4 and (
        not had_hierarchical_separators
        or word_count != _word_count(_TITLE_SEPARATORS_RE.sub("", orig_title)) - 1
    ):
        cur_title = orig_title
    return cur_title


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------

def _find_article_node(parsed: Any) -> dict | None:
    if isinstance(parsed, list):
        parsed = next(
            (it for it in parsed if isinstance(it, dict) and _is_article_type(it.get("@type"))),
            None,
        )
    if not isinstance(parsed, dict):
        return None

    context = parsed.get("@context")
    if isinstance(context, dict):
        context = context.get("@vocab")
    if not isinstance(context, str) or not _SCHEMA_ORG_RE.match(context):
        return None

    if not parsed.get("@type") and isinstance(parsed.get("@graph"), list):
        parsed = next(
            (
                it for it in parsed["@graph"]
                if isinstance(it, dict) and _is_article_type(it.get("@type"))
            ),
            None,
        )
    if not isinstance(parsed, dict) or not _is_article_type(parsed.get("@type")):
        return None
    return parsed


def _author_from_jsonld(node: dict) -> str | None:
    author = node.get("author")
    if isinstance(author, dict) and isinstance(author.get("name"), str):
        return author["name"].strip()
    if isinstance(author, list) and author and isinstance(author[0], dict):
        names = [
            a["name"].strip() for a in author
            if isinstance(a, dict) and isinstance(a.get("name"), str)
        ]
        return ", ".join(names) or None
    return None


def extract_jsonld(soup: BeautifulSoup) -> dict[str, str]:
    """Read article metadata from the first schema.org JSON-LD article block.

    Must run before ``<script>`` elements are stripped.  Malformed blocks are
    skipped.
    """
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            content = _CDATA_RE.sub("", text_content(script) or script.string or "")
            parsed = json.loads(content)
        except (json.JSONDecodeError, TypeError) as exc:
            logger.debug("Skipping malformed JSON-LD block: %s", exc)
            continue

        node = _find_article_node(parsed)
        if node is None:
            continue

        metadata: dict[str, str] = {}
        name = node.get("name")
        headline = node.get("headline")
        if isinstance(name, str) and isinstance(headline, str) and name != headline:
            # Some sites put the site name in "name"; trust whichever agrees
            # with the <title>.
            title = get_article_title(soup)
            name_matches = text_similarity(name, title) > TITLE_SIMILARITY_THRESHOLD
            headline_matches = text_similarity(headline, title) > TITLE_SIMILARITY_THRESHOLD
            metadata["title"] = (headline if headline_matches and not name_matches else name).strip()
        elif isinstance(name, str):
            metadata["title"] = name.strip()
        elif isinstance(headline, str):
            metadata["title"] = headline.strip()

        byline = _author_from_jsonld(node)
        if byline:
            metadata["byline"] = byline
        if isinstance(node.get("description"), str):
            metadata["excerpt"] = node["description"].strip()
        publisher = node.get("publisher")
        if isinstance(publisher, dict) and isinstance(publisher.get("name"), str):
            metadata["site_name"] = publisher["name"].strip()
        if isinstance(node.get("datePublished"), str):
            metadata["date_published"] = node["datePublished"].strip()
        if isinstance(node.get("dateModified"), str):
            metadata["date_modified"] = node["dateModified"].strip()
        return metadata

    return {}


# ---------------------------------------------------------------------------
# <meta>
# ---------------------------------------------------------------------------

def extract_meta_values(soup: BeautifulSoup) -> tuple[dict[str, str], dict[str, str]]:
    """Collect ``<meta>`` values as ``(property_values, name_values)``.

    Property matches are keyed ``prefix:field`` (``og:title``); name matches
    keep their dotted form mapped to colons (``dc.title`` → ``dc:title``).
    The two kinds never overwrite each other.
    """
    property_values: dict[str, str] = {}
    name_values: dict[str, str] = {}
    for tag in soup.find_all("meta"):
        if not isinstance(tag, Tag):
            continue
        content = safe_str(tag.get("content")).strip()
        if not content:
            continue
        element_property = safe_str(tag.get("property"))
        element_name = safe_str(tag.get("name"))

        matched = False
        if element_property:
            for match in _PROPERTY_PATTERN.finditer(element_property):
                key = re.sub(r"\s", "", match.group(0).lower())
                property_values[key] = content
                matched = True
        if not matched and element_name and _NAME_PATTERN.match(element_name):
            key = re.sub(r"\s", "", element_name.lower()).replace(".", ":")
            name_values[key] = content
    return property_values, name_values


def _lookup(property_values: dict[str, str], name_values: dict[str, str], *keys: str) -> str | None:
    """First value for *keys*, trying every property-style key before any name-style one."""
    return _first(
        *(property_values.get(key) for key in keys),
        *(name_values.get(key) for key in keys),
    )


# ---------------------------------------------------------------------------
# Favicon
# ---------------------------------------------------------------------------

def get_article_favicon(soup: BeautifulSoup, page_url: str = "") -> str:
    """Return the largest square PNG icon declared with ``<link rel=icon>``."""
    favicon = ""
    favicon_size = -1
    for link in soup.find_all("link"):
        rel = safe_str(link.get("rel")).strip()
        link_type = safe_str(link.get("type")).strip()
        href = safe_str(link.get("href")).strip()
        sizes = safe_str(link.get("sizes")).strip()
        if not href or "icon" not in rel:
            continue
        if link_type != "image/png" and ".png" not in href:
            continue

        size = 0
        for location in (sizes, href):
            parts = _FAVICON_SIZE_RE.search(location)
            if parts and parts.group(1) == parts.group(2):
                size = int(parts.group(1))
                break
        if size > favicon_size:
            favicon_size = size
            favicon = href

    if not favicon:
        return ""
    return to_absolute_url(favicon, page_url)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_metadata(
    soup: BeautifulSoup,
    jsonld: dict[str, str] | None = None,
    page_url: str = "",
) -> dict[str, str]:
    """Merge JSON-LD, ``<meta>`` and ``<title>`` sources into one record.

    Args:
        soup:     Parsed document (scripts may already be removed).
        jsonld:   Output of :func:`extract_jsonld`, or None when disabled.
        page_url: Page URL used to resolve image and favicon links.

    Returns a dict with keys:
        title, byline, excerpt, site_name, image, favicon,
        date_published, date_modified  (missing values are "")
    """
    jsonld = jsonld or {}
    property_values, name_values = extract_meta_values(soup)
    article_author = property_values.get("article:author")
    if article_author and article_author.startswith(("http://", "https://")):
        del property_values["article:author"]

    def lookup(*keys: str) -> str | None:
        return _lookup(property_values, name_values, *keys)

    # ---- title ----
    title = _first(
        jsonld.get("title"),
        lookup(
            "dc:title",
            "dcterm:title",
            "og:title",
            "weibo:article:title",
            "weibo:webpage:title",
            "title",
            "twitter:title",
            "parsely-title",
        ),
    )
    if not title:
        title = get_article_title(soup)

    # ---- byline ----
    byline = _first(
        jsonld.get("byline"),
        lookup("dc:creator", "dcterm:creator", "author", "parsely-author", "article:author"),
    )

    # ---- excerpt ----
    excerpt = _first(
        jsonld.get("excerpt"),
        lookup(
            "dc:description",
            "dcterm:description",
            "og:description",
            "weibo:article:description",
            "weibo:webpage:description",
            "description",
            "twitter:description",
        ),
    )

    # ---- site name ----
    site_name = _first(jsonld.get("site_name"), lookup("og:site_name"))

    # ---- image ----
    image = lookup("og:image", "image", "twitter:image")
    if image:
        image = to_absolute_url(image, page_url)

    # ---- dates ----
    date_published = _first(
        jsonld.get("date_published"),
        lookup("article:published_time", "parsely-pub-date"),
    )
    date_modified = _first(jsonld.get("date_modified"), lookup("article:modified_time"))

    record = {
        "title": title,
        "byline": byline,
        "excerpt": excerpt,
        "site_name": site_name,
        "image": image,
        "favicon": get_article_favicon(soup, page_url),
        "date_published": date_published,
        "date_modified": date_modified,
    }
    return {key: html.unescape(value) if value else "" for key, value in record.items()}


def first_paragraph_text(content: Tag) -> str:
    """Trimmed text of the first ``<p>`` inside *content*, or ""."""
    paragraph = content.find("p")
    if paragraph is None:
        return ""
    return text_content(paragraph).strip()
