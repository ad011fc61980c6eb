"""CLI entry point: python -m readerly [FILE|-] [options]"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from readerly import settings
from readerly.extractors.heuristics import is_probably_readerable
from readerly.extractors.markdown import format_markdown_article
from readerly.items import Article
from readerly.parser import Parser, ReaderlyError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="readerly",
        description=(
            "Extract the readable article from an HTML document.\n"
            "Reads a local file or stdin; never touches the network."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("file", nargs="?", default="-", metavar="FILE",
                        help="HTML file to read, or '-' for stdin (default: stdin)")
    parser.add_argument("--url", default="", metavar="URL",
                        help="Original URL of the page, used to resolve relative links")
    parser.add_argument("--format", default="json",
                        choices=["json", "html", "text", "markdown"],
                        help="Output format (default: json)")
    parser.add_argument("--max-elems", type=int, default=settings.MAX_ELEMS_TO_PARSE, metavar="N",
                        help="Refuse documents with more than N elements (default: 0, unlimited)")
    parser.add_argument("--char-threshold", type=int, default=settings.CHAR_THRESHOLD,
                        metavar="N",
                        help=f"Minimum article length in characters (default: {settings.CHAR_THRESHOLD})")
    parser.add_argument("--keep-classes", action="store_true", default=False,
                        help="Keep class attributes in the extracted content")
    parser.add_argument("--disable-jsonld", action="store_true", default=False,
                        help="Ignore JSON-LD metadata")
    parser.add_argument("--check", action="store_true", default=False,
                        help="Only report whether the page looks readerable")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help="Logging level (default: WARNING)")
    return parser


def _read_input(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def _print_summary(article: Article, console: Console) -> None:
    published = article.published_time.isoformat() if article.published_time else "-"
    console.print(
        Panel.fit(
            f"[bold cyan]{article.title or '-'}[/bold cyan]\n"
            f"Byline:     [green]{article.byline or '-'}[/green]\n"
            f"Site:       {article.site_name or '-'}\n"
            f"Published:  [yellow]{published}[/yellow]\n"
            f"Length:     {article.length:,} chars",
            border_style="cyan" if article.length else "yellow",
            title="[bold]Article[/bold]",
        ),
    )


def _render(article: Article, fmt: str) -> str:
    if fmt == "html":
        return article.content
    if fmt == "text":
        return article.text_content
    if fmt == "markdown":
        return format_markdown_article(
            article.title,
            article.byline,
            article.published_time,
            article.excerpt,
            article.to_markdown(),
        )
    return json.dumps(article.model_dump(mode="json"), ensure_ascii=False, indent=2)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    console = Console(stderr=True)

    try:
        markup = _read_input(args.file)
    except OSError as exc:
        print(f"ERROR: Could not read {args.file}: {exc}", file=sys.stderr)
        return EXIT_USAGE

    if args.check:
        readerable = is_probably_readerable(markup)
        print("readerable" if readerable else "not readerable")
        return EXIT_OK

    try:
        article = Parser(
            max_elems_to_parse=args.max_elems,
            char_threshold=args.char_threshold,
            keep_classes=args.keep_classes,
            disable_jsonld=args.disable_jsonld,
        ).parse(markup, url=args.url)
    except ValueError as exc:
        print(f"ERROR: Invalid option: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except ReaderlyError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    _print_summary(article, console)
    sys.stdout.write(_render(article, args.format))
    sys.stdout.write("\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
