"""Unit tests for HTML and CSS reference rewriting."""

import pytest

from webcloner.models.capture import ResourceRole
from webcloner.rewrite.css_rewriter import is_stylesheet, rewrite_css_text, rewrite_stylesheets
from webcloner.rewrite.html_rewriter import (
    compile_url_pattern,
    is_local_reference,
    rewrite_html,
    substitute_remote_urls,
)
from webcloner.rewrite.repair import contains_corruption


PAGE_URL = "https://x.com/shop/"


@pytest.fixture
def assets_root(tmp_path):
    return tmp_path / "assets"


@pytest.fixture
def mapping(assets_root, record_factory):
    entries = [
        ("https://x.com/css/site.css", "css/site.css", ResourceRole.STYLESHEET),
        ("https://x.com/img/bg.png", "img/bg.png", ResourceRole.IMAGE),
        ("https://x.com/app.js", "app.js", ResourceRole.SCRIPT),
        ("https://x.com/app.js.map", "app.js.map", ResourceRole.OTHER),
        ("https://x.com/i.png?a=1&b=2", "i.png", ResourceRole.IMAGE),
        ("https://x.com/fonts/a.woff2", "fonts/a.woff2", ResourceRole.FONT),
    ]
    return {
        url: record_factory(url, assets_root.joinpath(*relative.split('/')), relative, role)
        for url, relative, role in entries
    }


class TestHtmlRewriter:
    """Tests for rewrite_html and helpers."""

    def test_is_local_reference(self):
        assert is_local_reference("/a.png")
        assert is_local_reference("./a.png")
        assert is_local_reference("../a.png")
        assert not is_local_reference("//cdn.com/a.png")
        assert not is_local_reference("a.png")
        assert not is_local_reference("https://x.com/a.png")

    def test_absolute_urls_replaced(self, mapping, assets_root):
        html = '<link rel="stylesheet" href="https://x.com/css/site.css"><script src="https://x.com/app.js"></script>'

        result = rewrite_html(html, mapping, assets_root, PAGE_URL)

        assert result == '<link rel="stylesheet" href="css/site.css"><script src="app.js"></script>'

    def test_longest_url_wins(self, mapping, assets_root):
        html = '//# sourceMappingURL=https://x.com/app.js.map'

        result = rewrite_html(html, mapping, assets_root, PAGE_URL)

        assert result == '//# sourceMappingURL=app.js.map'

    def test_prefix_of_longer_unmapped_url_untouched(self, mapping, assets_root):
        html = '<script src="https://x.com/app.js/extra.js"></script>'

        assert rewrite_html(html, mapping, assets_root, PAGE_URL) == html

    def test_html_escaped_ampersand(self, mapping, assets_root):
        html = '<img src="https://x.com/i.png?a=1&amp;b=2">'

        assert rewrite_html(html, mapping, assets_root, PAGE_URL) == '<img src="i.png">'

    def test_relative_attribute_references(self, mapping, assets_root):
        html = '<img src="/img/bg.png"><img data-src="../app.js"><a href="/unmapped.html">x</a>'

        result = rewrite_html(html, mapping, assets_root, PAGE_URL)

        assert result == '<img src="img/bg.png"><img data-src="app.js"><a href="/unmapped.html">x</a>'

    def test_unquoted_attribute_reference(self, mapping, assets_root):
        html = '<img src=/img/bg.png alt=logo>'

        result = rewrite_html(html, mapping, assets_root, PAGE_URL)

        assert result == '<img src="img/bg.png" alt="logo">'

    def test_srcset_candidates(self, mapping, assets_root):
        html = '<img srcset="/img/bg.png 1x, /missing.png 2x">'

        result = rewrite_html(html, mapping, assets_root, PAGE_URL)

        assert result == '<img srcset="img/bg.png 1x, /missing.png 2x">'

    def test_script_text_left_alone(self, mapping, assets_root):
        html = (
            '<script>var tpl = \'<img src="/img/bg.png">\'; var bg = "url(/img/bg.png)";</script>'
            '<p>Use src="/img/bg.png" in your markup</p>'
        )

        assert rewrite_html(html, mapping, assets_root, PAGE_URL) == html

    def test_script_text_kept_when_document_changes(self, mapping, assets_root):
        html = '<img src="/img/bg.png"><script>if (a < b && c) { x = "/app.js"; }</script>'

        result = rewrite_html(html, mapping, assets_root, PAGE_URL)

        assert result == '<img src="img/bg.png"><script>if (a < b && c) { x = "/app.js"; }</script>'

    def test_inline_style_url(self, mapping, assets_root):
        html = "<div style=\"background:url('/img/bg.png')\"></div>"

        result = rewrite_html(html, mapping, assets_root, PAGE_URL)

        assert result == "<div style=\"background:url('img/bg.png')\"></div>"

    def test_html_written_in_subdirectory(self, mapping, assets_root):
        html = '<img src="https://x.com/img/bg.png">'

        result = rewrite_html(html, mapping, assets_root / "pages", PAGE_URL)

        assert result == '<img src="../img/bg.png">'

    def test_corrupted_tokens_repaired(self, mapping, assets_root):
        html = '<style>.a{background:url(/img/bg.png)} .b{background:url([object Object])}</style>'

        result = rewrite_html(html, mapping, assets_root, PAGE_URL)

        assert not contains_corruption(result)
        assert result.count("url(img/bg.png)") == 2

    def test_every_mapped_url_is_rewritten(self, mapping, assets_root):
        html = " ".join(f'<a href="{url}">' for url in mapping if '&' not in url)

        result = rewrite_html(html, mapping, assets_root, PAGE_URL)

        for url in mapping:
            assert url not in result

    def test_substitution_is_single_pass(self):
        replacements = {"https://a.com/x": "https://a.com/y", "https://a.com/y": "z"}

        result, count = substitute_remote_urls("https://a.com/x https://a.com/y", replacements)

        assert result == "https://a.com/y z"
        assert count == 2

    def test_empty_pattern(self):
        assert compile_url_pattern([]) is None
        assert substitute_remote_urls("text", {}) == ("text", 0)


class TestCssRewriter:
    """Tests for stylesheet rewriting."""

    def test_is_stylesheet(self, mapping):
        assert is_stylesheet(mapping["https://x.com/css/site.css"])
        assert not is_stylesheet(mapping["https://x.com/img/bg.png"])

    def test_import_strings_rewritten(self, mapping, assets_root, record_factory):
        mapping["https://x.com/css/b.css"] = record_factory(
            "https://x.com/css/b.css", assets_root / "css" / "b.css", "css/b.css", ResourceRole.STYLESHEET
        )
        css = '@import "https://x.com/css/b.css";\n@import \'/css/b.css\';\n@import "missing.css";\nbody{}'

        result, count = rewrite_css_text(
            css, "https://x.com/css/site.css", assets_root / "css", mapping, PAGE_URL
        )

        assert result == '@import "b.css";\n@import \'b.css\';\n@import "missing.css";\nbody{}'
        assert count == 2
        assert "https://x.com/css/b.css" not in result

    def test_tokens_relative_to_stylesheet(self, mapping, assets_root):
        css = (
            ".a{background:url('/img/bg.png')}"
            ".b{background:url(../img/bg.png)}"
            "@font-face{src:url(\"https://x.com/fonts/a.woff2\")}"
        )

        result, count = rewrite_css_text(
            css, "https://x.com/css/site.css", assets_root / "css", mapping, PAGE_URL
        )

        assert result == (
            ".a{background:url('../img/bg.png')}"
            ".b{background:url(../img/bg.png)}"
            "@font-face{src:url(\"../fonts/a.woff2\")}"
        )
        assert count == 3

    def test_page_url_fallback(self, mapping, assets_root):
        css = ".a{background:url(../app.js)}"

        result, _ = rewrite_css_text(
            css, "https://cdn.example.net/deep/x/site.css", assets_root / "vendor" / "deep", mapping, PAGE_URL
        )

        assert result == ".a{background:url(../../app.js)}"

    def test_unmapped_and_inline_tokens_untouched(self, mapping, assets_root):
        css = (
            ".a{background:url(https://other.com/a.png)}"
            ".b{background:url(data:image/png;base64,AAAA)}"
            ".c{filter:url(#blur)}"
        )

        result, count = rewrite_css_text(
            css, "https://x.com/css/site.css", assets_root / "css", mapping, PAGE_URL
        )

        assert result == css
        assert count == 0

    def test_corrupted_font_token_repaired(self, mapping, assets_root):
        css = "@font-face{font-family:A;src:url(/fonts/a.woff2)} @font-face{font-family:B;src:url([object Object])}"

        result, _ = rewrite_css_text(
            css, "https://x.com/css/site.css", assets_root / "css", mapping, PAGE_URL
        )

        assert not contains_corruption(result)
        assert result.count("url(../fonts/a.woff2)") == 2

    @pytest.mark.asyncio
    async def test_rewrite_stylesheets_on_disk(self, mapping, assets_root):
        css_path = assets_root / "css" / "site.css"
        css_path.parent.mkdir(parents=True)
        css_path.write_text(".a{background:url(/img/bg.png)}", encoding="utf-8")

        stats = await rewrite_stylesheets(mapping, PAGE_URL)

        assert css_path.read_text(encoding="utf-8") == ".a{background:url(../img/bg.png)}"
        assert stats['stylesheets'] == 1
        assert stats['rewritten'] == 1
        assert stats['failed'] == 0

    @pytest.mark.asyncio
    async def test_missing_stylesheet_is_logged_not_raised(self, mapping):
        stats = await rewrite_stylesheets(mapping, PAGE_URL)

        assert stats['failed'] == 1
        assert stats['rewritten'] == 0
