"""
Tests for URL validation and normalization of analysis targets
"""
import pytest

from app.platform.utils.url_validator import is_private_ip, normalize_url, validate_url


class TestNormalizeUrl:
    def test_adds_https_scheme(self):
        assert normalize_url("example.com") == ("https://example.com", True)

    def test_protocol_relative(self):
        assert normalize_url("//example.com/page") == ("https://example.com/page", True)

    def test_keeps_existing_scheme(self):
        assert normalize_url("  http://example.com  ") == ("http://example.com", False)


class TestValidateUrl:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://example.com", "https://example.com"),
            ("http://example.com/path?q=1", "http://example.com/path?q=1"),
            ("example.com", "https://example.com"),
            ("https://sub.example.co.uk:8443/", "https://sub.example.co.uk:8443/"),
            ("http://8.8.8.8", "http://8.8.8.8"),
        ],
    )
    def test_valid_urls(self, url, expected):
        assert validate_url(url) == (True, expected, "")

    def test_empty(self):
        assert validate_url("   ") == (False, "", "URL cannot be empty")

    def test_too_long(self):
        is_valid, _, error = validate_url("https://example.com/" + "a" * 2048)

        assert is_valid is False
        assert error == "URL exceeds maximum length of 2048 characters"

    def test_spaces(self):
        is_valid, _, error = validate_url("https://exa mple.com")

        assert is_valid is False
        assert "spaces" in error

    def test_unsupported_scheme(self):
        assert validate_url("ftp://example.com")[2] == "Invalid URL scheme: ftp (must be http or https)"

    def test_missing_domain(self):
        assert validate_url("https://")[2] == "Invalid URL format: missing domain"

    @pytest.mark.parametrize("url", ["http://localhost:8000", "http://127.0.0.1", "https://0.0.0.0"])
    def test_localhost_rejected(self, url):
        assert validate_url(url)[2] == "Localhost URLs are not allowed for security reasons"

    @pytest.mark.parametrize("url", ["http://192.168.1.1", "http://10.0.0.5", "http://172.16.4.2"])
    def test_private_ip_rejected(self, url):
        assert validate_url(url)[2] == "Private IP addresses are not allowed for security reasons"

    def test_bad_hostname(self):
        is_valid, _, error = validate_url("https://exa_mple.com")

        assert is_valid is False
        assert error.startswith("Invalid hostname format")

    def test_bad_port(self):
        is_valid, _, error = validate_url("https://example.com:99999")

        assert is_valid is False
        assert error.startswith("URL parsing error:")


class TestIsPrivateIp:
    def test_private_and_link_local(self):
        assert is_private_ip("192.168.0.1") is True
        assert is_private_ip("169.254.10.10") is True

    def test_public_and_hostnames(self):
        assert is_private_ip("8.8.8.8") is False
        assert is_private_ip("example.com") is False
