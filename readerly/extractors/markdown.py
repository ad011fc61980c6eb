"""Convert extracted article HTML to Markdown, preserving code blocks and tables."""

from __future__ import annotations

import re
from datetime import datetime

from markdownify import markdownify

_EXCESSIVE_BLANK_LINES_RE = re.compile(r"\n{3,}")
_TRAILING_WHITESPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)


def html_to_markdown(html: str) -> str:
    """Convert *html* to clean Markdown.

    Uses markdownify with ATX heading style.  Post-processes to:
    - Remove excessive blank lines (>2 consecutive)
    - Strip trailing whitespace from lines
    """
    if not html or not html.strip():
        return ""

    md = markdownify(
        html,
        heading_style="ATX",
        bullets="-",
        code_language_callback=_detect_lang,
    )
    md = _TRAILING_WHITESPACE_RE.sub("", md)
    md = _EXCESSIVE_BLANK_LINES_RE.sub("\n\n", md)
    return md.strip()


def _detect_lang(el: object) -> str:
    """Extract language hint from an element's class list for markdownify."""
    getter = getattr(el, "get", None)
    classes = (getter("class") if getter else None) or []
    if isinstance(classes, str):
        classes = classes.split()
    for cls in classes:
        if cls.startswith("language-"):
            return cls[len("language-"):]
    return ""


def format_markdown_article(
    title: str,
    byline: str | None,
    published_at: datetime | None,
    excerpt: str | None,
    content_markdown: str,
) -> str:
    """Render a complete article Markdown document with a small header."""
    lines: list[str] = []

    if title:
        lines.append(f"# {title}")
        lines.append("")

    meta_parts: list[str] = []
    if byline:
        meta_parts.append(f"**Author:** {byline}")
    if published_at:
        meta_parts.append(f"**Published:** {published_at.isoformat()}")

    if meta_parts:
        lines.extend(meta_parts)
        lines.append("")

    if excerpt:
        lines.append(f"> {excerpt}")
        lines.append("")

    lines.append("---")
    lines.append("")
    lines.append(content_markdown)

    return "\n".join(lines)
