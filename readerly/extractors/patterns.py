"""Pattern and tag tables driving the extraction heuristics.

Class/id classification is a closed set of name fragments matched
case-insensitively against ``"<class> <id>"``.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Class / id fragments
# ---------------------------------------------------------------------------

UNLIKELY_CANDIDATES_RE = re.compile(
    r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|"
    r"extra|footer|gdpr|header|legends|menu|related|remark|replies|rss|shoutbox|"
    r"sidebar|skyscraper|social|sponsor|supplemental|ad-break|agegate|pagination|"
    r"pager|popup|yom-remote",
    re.IGNORECASE,
)
MAYBE_CANDIDATE_RE = re.compile(r"and|article|body|column|content|main|shadow", re.IGNORECASE)

POSITIVE_RE = re.compile(
    r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|"
    r"blog|story",
    re.IGNORECASE,
)
NEGATIVE_RE = re.compile(
    r"-ad-|hidden|^hid$| hid$| hid |^hid |banner|combx|comment|com-|contact|foot|"
    r"footer|footnote|gdpr|masthead|media|meta|outbrain|promo|related|scroll|share|"
    r"shoutbox|sidebar|skyscraper|sponsor|shopping|tags|tool|widget",
    re.IGNORECASE,
)
BYLINE_RE = re.compile(r"byline|author|dateline|writtenby|p-author", re.IGNORECASE)
SHARE_ELEMENTS_RE = re.compile(r"(\b|_)(share|sharedaddy)(\b|_)", re.IGNORECASE)

VIDEOS_RE = re.compile(
    r"//(www\.)?((dailymotion|youtube|youtube-nocookie|player\.vimeo|v\.qq)\.com|"
    r"(archive|upload\.wikimedia)\.org|player\.twitch\.tv)",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

NORMALIZE_RE = re.compile(r"\s{2,}")
TOKENIZE_RE = re.compile(r"\W+")
HASH_URL_RE = re.compile(r"^#.+")
# Comma variants across scripts (Latin, Arabic, CJK full-width, ...)
COMMAS_RE = re.compile("[\u002C\u060C\uFE50\uFE10\uFE11\u2E41\u2E34\u2E32\uFF0C]")
SENTENCE_END_RE = re.compile(r"\.( |$)")

# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

IMAGE_EXT_RE = re.compile(r"\.(jpg|jpeg|png|webp)", re.IGNORECASE)
SRCSET_CANDIDATE_RE = re.compile(r"\.(jpg|jpeg|png|webp)\s+\d")
SRC_CANDIDATE_RE = re.compile(r"^\s*\S+\.(jpg|jpeg|png|webp)\S*\s*$")
B64_DATA_URL_RE = re.compile(r"^data:\s*([^\s;,]+)\s*;\s*base64\s*,", re.IGNORECASE)
# Base64 payloads shorter than this are placeholders, not real images.
B64_PLACEHOLDER_MAX_LENGTH = 133

# ---------------------------------------------------------------------------
# Tag tables
# ---------------------------------------------------------------------------

UNLIKELY_ROLES: frozenset[str] = frozenset(
    {"menu", "menubar", "complementary", "navigation", "alert", "alertdialog", "dialog"},
)

TAGS_TO_SCORE: frozenset[str] = frozenset(
    {"section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre"},
)

DIV_TO_P_ELEMS: frozenset[str] = frozenset(
    {"blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul"},
)

ALTER_TO_DIV_EXCEPTIONS: frozenset[str] = frozenset(
    {"div", "article", "section", "p", "ol", "ul"},
)

PRESENTATIONAL_ATTRIBUTES: tuple[str, ...] = (
    "align",
    "background",
    "bgcolor",
    "border",
    "cellpadding",
    "cellspacing",
    "frame",
    "hspace",
    "rules",
    "style",
    "valign",
    "vspace",
)

DEPRECATED_SIZE_ATTRIBUTE_ELEMS: frozenset[str] = frozenset({"table", "th", "td", "hr", "pre"})

PHRASING_ELEMS: frozenset[str] = frozenset(
    {
        "abbr", "audio", "b", "bdo", "br", "button", "cite", "code", "data",
        "datalist", "dfn", "em", "embed", "i", "img", "input", "kbd", "label",
        "mark", "math", "meter", "noscript", "object", "output", "progress", "q",
        "ruby", "samp", "script", "select", "small", "span", "strong", "sub",
        "sup", "textarea", "time", "var", "wbr",
    },
)

HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")
EMBED_TAGS: tuple[str, ...] = ("object", "embed", "iframe")

# Elements whose class/id never disqualifies them as unlikely candidates.
_UNLIKELY_EXEMPT_TAGS: frozenset[str] = frozenset({"body", "a"})


def is_unlikely_candidate(tag_name: str, match: str) -> bool:
    """Return True if a ``"<class> <id>"`` string marks boilerplate.

    Ancestor checks (tables, code blocks) are the caller's job.
    """
    if tag_name in _UNLIKELY_EXEMPT_TAGS:
        return False
    return bool(UNLIKELY_CANDIDATES_RE.search(match)) and not MAYBE_CANDIDATE_RE.search(match)
