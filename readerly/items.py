"""Pydantic models: extraction options and the extracted article."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from bs4 import Tag
from pydantic import BaseModel, ConfigDict, Field, field_validator

from readerly import settings

# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class ParserOptions(BaseModel):
    """Validated, immutable configuration for one :class:`readerly.Parser`."""

    model_config = ConfigDict(frozen=True)

    max_elems_to_parse: int = Field(default=settings.MAX_ELEMS_TO_PARSE, ge=0)
    nb_top_candidates: int = Field(default=settings.NB_TOP_CANDIDATES, ge=1)
    char_threshold: int = Field(default=settings.CHAR_THRESHOLD, ge=0)
    classes_to_preserve: tuple[str, ...] = ()
    keep_classes: bool = settings.KEEP_CLASSES
    disable_jsonld: bool = settings.DISABLE_JSONLD
    # Pattern of embed/iframe sources kept through cleaning (video players)
    allowed_video_regex: str | None = None

    @field_validator("classes_to_preserve", mode="before")
    @classmethod
    def split_classes(cls, v: Any) -> Any:
        if isinstance(v, str):
            return tuple(c for c in v.split() if c)
        return v

    @property
    def preserved_classes(self) -> frozenset[str]:
        return frozenset(settings.CLASSES_TO_PRESERVE) | frozenset(self.classes_to_preserve)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

class Article(BaseModel):
    """Readable content and metadata extracted from one document.

    ``node`` is the first element of the extracted content inside the
    parser's private working tree.  It stays valid for as long as the caller
    keeps the ``Article`` (which holds the reference); it is excluded from
    serialization.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    url: str = ""
    title: str = ""
    byline: str = ""
    content: str = ""
    text_content: str = ""
    length: int = 0
    excerpt: str = ""
    site_name: str = ""
    image: str = ""
    favicon: str = ""
    language: str = ""
    direction: str | None = None
    published_time: datetime | None = None
    modified_time: datetime | None = None

    node: Tag | None = Field(default=None, exclude=True, repr=False)

    @field_validator("title", "byline", "excerpt", "site_name", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v or ""

    @property
    def is_empty(self) -> bool:
        return self.length == 0

    def to_markdown(self) -> str:
        """Render :attr:`content` as Markdown (see :mod:`readerly.extractors.markdown`)."""
        from readerly.extractors.markdown import html_to_markdown
        return html_to_markdown(self.content)
