"""Unit tests for the content sanitizer."""

from __future__ import annotations

import pytest

from readerly.extractors.context import ExtractionContext, Flags
from readerly.extractors.nodes import NodeTable
from readerly.extractors.patterns import VIDEOS_RE
from readerly.extractors.sanitize import (
    clean,
    clean_classes,
    clean_conditionally,
    clean_styles,
    fix_lazy_images,
    fix_relative_uris,
    is_conditionally_junk,
    mark_data_tables,
    post_process_content,
    prep_article,
    simplify_nested_elements,
)
from readerly.items import ParserOptions

BASE = "https://example.com/blog/post"

LINKS_DIV = (
    '<div id="links"><a href="/a">One</a> <a href="/b">Two</a> '
    '<a href="/c">Six</a></div>'
)


@pytest.fixture
def root(make_soup):
    def _root(inner: str):
        soup = make_soup(f'<html><body><div id="root">{inner}</div></body></html>')
        return soup, soup.find(id="root")
    return _root


class TestCleanStyles:
    def test_presentational_attributes_removed(self, root):
        _, node = root('<p style="color: red" align="center" class="x">Text</p>')
        clean_styles(node)
        p = node.p
        assert "style" not in p.attrs
        assert "align" not in p.attrs
        assert p["class"] == ["x"]

    def test_size_attributes_on_tables(self, root):
        _, node = root('<table width="100" height="20"><tr><td width="5">x</td></tr></table>')
        clean_styles(node)
        assert "width" not in node.table.attrs
        assert "width" not in node.td.attrs

    def test_svg_untouched(self, root):
        _, node = root('<svg style="fill: red" width="10"><rect style="x"></rect></svg>')
        clean_styles(node)
        assert node.svg["style"] == "fill: red"


class TestDataTables:
    @pytest.mark.parametrize(
        ("markup", "expected"),
        [
            ("<table><tr><th>Head</th></tr><tr><td>1</td></tr></table>", True),
            ('<table summary="stats"><tr><td>1</td></tr></table>', True),
            ("<table><caption>Results</caption><tr><td>1</td></tr></table>", True),
            ('<table role="presentation"><tr><th>Head</th></tr></table>', False),
            ('<table datatable="0"><tr><th>Head</th></tr></table>', False),
            ("<table><tr><td>a</td><td>b</td></tr></table>", False),
            (
                "<table>" + "<tr><td>a</td><td>b</td></tr>" * 10 + "</table>",
                True,
            ),
            ("<table><tr>" + "<td>x</td>" * 5 + "</tr></table>", True),
        ],
    )
    def test_classification(self, root, markup, expected):
        _, node = root(markup)
        table = NodeTable()
        mark_data_tables(node, table)
        assert table.is_data_table(node.find("table")) is expected


class TestLazyImages:
    def test_data_src_promoted(self, root):
        soup, node = root('<img data-src="https://cdn.example.com/photo.jpg">')
        fix_lazy_images(soup, node)
        assert node.img["src"] == "https://cdn.example.com/photo.jpg"

    def test_data_srcset_promoted(self, root):
        soup, node = root('<img data-srcset="small.jpg 480w, large.jpg 1080w">')
        fix_lazy_images(soup, node)
        assert node.img["srcset"] == "small.jpg 480w, large.jpg 1080w"

    def test_tiny_base64_placeholder_dropped(self, root):
        soup, node = root(
            '<img src="data:image/gif;base64,R0lGODlhAQABAAAAACw=" data-src="real.png">',
        )
        fix_lazy_images(soup, node)
        assert node.img["src"] == "real.png"

    def test_image_with_src_left_alone(self, root):
        soup, node = root('<img src="real.png" data-src="other.png">')
        fix_lazy_images(soup, node)
        assert node.img["src"] == "real.png"

    def test_figure_gets_image(self, root):
        soup, node = root('<figure data-src="figure.webp"><figcaption>Cap</figcaption></figure>')
        fix_lazy_images(soup, node)
        assert node.figure.img["src"] == "figure.webp"


class TestConditionalCleaning:
    def test_link_farm_removed(self, root, ctx):
        _, node = root(LINKS_DIV)
        clean_conditionally(node, "div", Flags(), ctx, NodeTable())
        assert node.find(id="links") is None

    def test_flag_off_keeps_everything(self, root, ctx):
        _, node = root(LINKS_DIV)
        clean_conditionally(node, "div", Flags(clean_conditionally=False), ctx, NodeTable())
        assert node.find(id="links") is not None

    def test_negative_weight_removed(self, root, ctx):
        _, node = root(
            '<div class="widget"><p>Plenty of text, with commas, that would otherwise be kept '
            "because it reads like a real paragraph of prose.</p></div>",
        )
        clean_conditionally(node, "div", Flags(), ctx, NodeTable())
        assert node.find(class_="widget") is None

    def test_comma_rich_block_kept(self, root, ctx):
        _, node = root(
            '<div id="prose"><p>' + "one, two, " * 6 + '<a href="/x">a link</a></p></div>',
        )
        clean_conditionally(node, "div", Flags(), ctx, NodeTable())
        assert node.find(id="prose") is not None

    def test_link_heavy_prose_alone_is_not_junk(self, root):
        _, node = root(
            '<div id="prose"><p>' + "Plain words, " * 10
            + '<a href="/archive">a link to the archive of every earlier post on this blog</a></p></div>',
        )
        assert not is_conditionally_junk(node.find(id="prose"), "div", Flags(), NodeTable(), VIDEOS_RE)

    def test_two_of_four_signals_is_not_a_majority(self, root, ctx):
        _, node = root(
            '<div id="prose"><p>Readers come for the article and stay for the prose that follows it '
            '<a href="/archive">read the archive of earlier posts</a></p></div>',
        )
        prose = node.find(id="prose")
        assert not is_conditionally_junk(prose, "div", Flags(), NodeTable(), VIDEOS_RE)
        clean_conditionally(node, "div", Flags(), ctx, NodeTable())
        assert node.find(id="prose") is not None

    def test_three_of_four_signals_is_junk(self, root):
        _, node = root(LINKS_DIV + '<div id="ad"><iframe src="https://ads.example.com/x"></iframe></div>')
        assert is_conditionally_junk(node.find(id="links"), "div", Flags(), NodeTable(), VIDEOS_RE)
        assert is_conditionally_junk(node.find(id="ad"), "div", Flags(), NodeTable(), VIDEOS_RE)

    def test_inside_data_table_kept(self, root):
        _, node = root(
            '<table><tr><th>Head</th></tr><tr><td><div id="cell"><a href="/x">link only</a>'
            "</div></td></tr></table>",
        )
        table = NodeTable()
        cell = node.find(id="cell")
        assert is_conditionally_junk(cell, "div", Flags(), table, VIDEOS_RE)
        mark_data_tables(node, table)
        assert not is_conditionally_junk(cell, "div", Flags(), table, VIDEOS_RE)

    def test_allowed_video_embed_kept(self, root):
        _, node = root(
            '<div id="video"><iframe src="https://www.youtube.com/embed/xyz"></iframe></div>',
        )
        assert not is_conditionally_junk(node.find(id="video"), "div", Flags(), NodeTable(), VIDEOS_RE)

    def test_image_list_kept(self, root):
        _, node = root(
            '<ul id="gallery"><li><img src="a.jpg"></li><li><img src="b.jpg"></li>'
            '<li><img src="c.jpg"></li></ul>',
        )
        assert not is_conditionally_junk(node.find(id="gallery"), "ul", Flags(), NodeTable(), VIDEOS_RE)


class TestClean:
    def test_embeds_removed_unless_video(self, root, ctx):
        _, node = root(
            '<iframe src="https://ads.example.com/x"></iframe>'
            '<iframe src="https://player.vimeo.com/video/1"></iframe>',
        )
        clean(node, "iframe", ctx)
        assert [f["src"] for f in node.find_all("iframe")] == ["https://player.vimeo.com/video/1"]

    def test_custom_video_pattern(self, root):
        ctx = ExtractionContext(options=ParserOptions(allowed_video_regex=r"//videos\.example\.com"))
        _, node = root(
            '<iframe src="https://videos.example.com/1"></iframe>'
            '<iframe src="https://www.youtube.com/embed/xyz"></iframe>',
        )
        clean(node, "iframe", ctx)
        assert [f["src"] for f in node.find_all("iframe")] == ["https://videos.example.com/1"]


class TestPrepArticle:
    def test_structure_fixes(self, root, ctx):
        soup, node = root(
            "<h1>Heading</h1><p></p><p>Text<br></p>"
            "<table><tbody><tr><td>Only <b>cell</b></td></tr></tbody></table>"
            '<div><div class="share">Share this</div><p>Body text</p></div>'
            '<form><input name="q"></form>',
        )
        prep_article(soup, node, Flags(clean_conditionally=False), ctx, NodeTable())
        assert node.find("h1") is None
        assert node.find("h2").get_text() == "Heading"
        assert all(p.get_text() for p in node.find_all("p"))
        assert node.find("table") is None
        assert node.find("b").parent.name == "p"
        assert node.find(class_="share") is None
        assert node.find("input") is None

    def test_negative_headers_removed(self, root, ctx):
        soup, node = root('<h2 class="comment-title">Comments</h2><h2>Section</h2>')
        prep_article(soup, node, Flags(), ctx, NodeTable())
        assert [h.get_text() for h in node.find_all("h2")] == ["Section"]


class TestPostProcess:
    def test_links_made_absolute(self, root, ctx):
        _, node = root('<a href="../other">x</a><img src="/i.png" srcset="a.png 1x, b.png 2x">')
        ctx.base_url = ctx.document_url = BASE
        fix_relative_uris(node, ctx)
        assert node.a["href"] == "https://example.com/other"
        assert node.img["src"] == "https://example.com/i.png"
        assert node.img["srcset"] == "https://example.com/blog/a.png 1x, https://example.com/blog/b.png 2x"

    def test_fragment_kept_for_same_document(self, root, ctx):
        _, node = root('<a href="#section">x</a>')
        ctx.base_url = ctx.document_url = BASE
        fix_relative_uris(node, ctx)
        assert node.a["href"] == "#section"

    def test_fragment_resolved_with_base_element(self, root, ctx):
        _, node = root('<a href="#section">x</a>')
        ctx.document_url = BASE
        ctx.base_url = "https://cdn.example.com/"
        fix_relative_uris(node, ctx)
        assert node.a["href"] == "https://cdn.example.com/#section"

    def test_javascript_links_unwrapped(self, root, ctx):
        _, node = root(
            '<p><a href="javascript:void(0)">plain</a> and '
            '<a href="javascript:go()"><b>bold</b></a></p>',
        )
        fix_relative_uris(node, ctx)
        assert node.find("a") is None
        assert node.p.get_text() == "plain and bold"
        assert node.find("span").b is not None

    def test_nested_wrappers_collapsed(self, root):
        soup, _ = root('<div class="outer"><section><div id="inner"><p>Text</p></div></section></div>')
        simplify_nested_elements(soup.body)
        assert soup.find("section") is None
        assert len(soup.body.find_all("div")) == 1
        assert soup.body.div.p.get_text() == "Text"

    def test_empty_wrappers_removed(self, root):
        soup, _ = root('<div id="empty"> <br> </div><p>Text</p>')
        simplify_nested_elements(soup.body)
        assert soup.find(id="empty") is None
        assert soup.find("p").get_text() == "Text"

    def test_classes_stripped_except_preserved(self, root):
        _, node = root('<div class="page keep-me"><p class="lead">x</p></div>')
        clean_classes(node, frozenset({"page"}))
        assert node.div["class"] == ["page"]
        assert "class" not in node.p.attrs

    def test_keep_classes_option(self, root):
        ctx = ExtractionContext(options=ParserOptions(keep_classes=True))
        _, node = root('<p class="lead">x</p>')
        post_process_content(node, ctx)
        assert node.p["class"] == ["lead"]
