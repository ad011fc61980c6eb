"""Per-call extraction state.

A fresh :class:`ExtractionContext` is built for every parse call and never
shared, so independent documents can be processed from several threads.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple

from bs4 import Tag

if TYPE_CHECKING:
    from readerly.items import ParserOptions


@dataclass(frozen=True)
class Flags:
    """Heuristic switches active during one attempt."""

    strip_unlikelys: bool = True
    use_weight_classes: bool = True
    clean_conditionally: bool = True

    def relax(self, name: str) -> Flags:
        return dataclasses.replace(self, **{name: False})

    def relax_next(self, order: tuple[str, ...]) -> Flags | None:
        """Turn off the first still-active flag in *order*; None when all are off."""
        for name in order:
            if getattr(self, name):
                return self.relax(name)
        return None


class Attempt(NamedTuple):
    flags: Flags
    content: Tag | None
    text_length: int
    direction: str | None = None


@dataclass
class ExtractionContext:
    options: ParserOptions
    document_url: str = ""
    # Base for relative URLs: ``<base href>`` resolved against document_url.
    base_url: str = ""
    article_title: str = ""
    article_byline: str = ""
    article_lang: str = ""
    attempts: list[Attempt] = field(default_factory=list)
