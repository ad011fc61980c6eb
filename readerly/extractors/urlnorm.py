"""URL resolution helpers.

Pure string handling: nothing here performs network I/O.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

# One candidate of a srcset list: URL, optional descriptor, separator.
_SRCSET_URL_RE = re.compile(r"(\S+)(\s+[\d.]+[xw])?(\s*(?:,|$))")


def document_base_url(soup: BeautifulSoup, document_url: str) -> str:
    """Return the base for relative links: ``<base href>`` if present, else *document_url*."""
    base = soup.find("base", href=True)
    if isinstance(base, Tag):
        href = str(base.get("href") or "").strip()
        if href:
            return to_absolute_url(href, document_url)
    return document_url


def to_absolute_url(uri: str, base_url: str, document_url: str | None = None) -> str:
    """Resolve *uri* against *base_url*.

    In-page fragments (``#top``) stay relative when the base is the document
    itself.  Anything that cannot be resolved is returned unchanged.
    """
    if document_url is not None and base_url == document_url and uri.startswith("#"):
        return uri
    if not base_url:
        return uri
    try:
        return urljoin(base_url, uri)
    except ValueError:
        return uri


def resolve_srcset(srcset: str, base_url: str, document_url: str | None = None) -> str:
    """Resolve every URL in a ``srcset`` value, keeping descriptors and separators."""
    return _SRCSET_URL_RE.sub(
        lambda m: to_absolute_url(m.group(1), base_url, document_url)
        + (m.group(2) or "")
        + m.group(3),
        srcset,
    )
