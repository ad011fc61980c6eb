"""Extraction sub-package: deterministic, heuristic article extraction."""

from .attempts import run_attempts
from .dates import parse_date
from .heuristics import is_probably_readerable
from .markdown import html_to_markdown
from .metadata import extract_jsonld, extract_metadata
from .urlnorm import to_absolute_url

__all__ = [
    "extract_jsonld",
    "extract_metadata",
    "html_to_markdown",
    "is_probably_readerable",
    "parse_date",
    "run_attempts",
    "to_absolute_url",
]
