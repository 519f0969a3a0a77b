"""Unit tests for URL helper utilities."""

import pytest

from webcloner.utils.url_normalizer import (
    URLNormalizationError,
    get_base_url,
    get_extension,
    get_hostname,
    is_data_url,
    is_valid_http_url,
    relative_path,
    resolve_reference,
)


class TestURLHelpers:
    """Test cases for URL helpers."""

    def test_url_validation(self):
        """Test URL validation."""
        assert is_valid_http_url("https://example.com")
        assert is_valid_http_url("http://example.com/path")
        assert not is_valid_http_url("ftp://example.com")
        assert not is_valid_http_url("not-a-url")
        assert not is_valid_http_url("")
        assert not is_valid_http_url(None)

    def test_data_url_detection(self):
        assert is_data_url("data:image/png;base64,AAAA")
        assert is_data_url("  DATA:text/plain,hi")
        assert not is_data_url("https://x.com/data:thing")

    def test_hostname(self):
        assert get_hostname("https://WWW.Example.com:8443/a") == "www.example.com"
        assert get_hostname("/relative/only") is None

    def test_base_url_extraction(self):
        """Test base URL extraction."""
        assert get_base_url("https://example.com/path/to/page?param=value") == "https://example.com"
        assert get_base_url("http://sub.example.com:8080/page") == "http://sub.example.com:8080"

        with pytest.raises(URLNormalizationError):
            get_base_url("/no/host")

    def test_resolve_reference(self):
        test_cases = [
            ("/img/a.png", "https://x.com/blog/post", "https://x.com/img/a.png"),
            ("../a.css", "https://x.com/blog/post/", "https://x.com/blog/a.css"),
            ("a.js#frag", "https://x.com/blog/post", "https://x.com/blog/a.js"),
            ("//cdn.x.com/lib.js", "https://x.com/", "https://cdn.x.com/lib.js"),
            ("  https://y.com/b.png ", "https://x.com/", "https://y.com/b.png"),
        ]

        for reference, base, expected in test_cases:
            assert resolve_reference(reference, base) == expected

    def test_resolve_reference_errors(self):
        with pytest.raises(URLNormalizationError):
            resolve_reference("", "https://x.com/")
        with pytest.raises(URLNormalizationError):
            resolve_reference("a.png", "not-a-base")

    def test_get_extension(self):
        assert get_extension("/css/Site.CSS") == ".css"
        assert get_extension("/v1.2/users") == ""
        assert get_extension("/") == ""

    def test_relative_path(self, tmp_path):
        assets = tmp_path / "assets"

        assert relative_path(assets / "img" / "a.png", assets) == "img/a.png"
        assert relative_path(assets / "img" / "a.png", assets / "css") == "../img/a.png"
