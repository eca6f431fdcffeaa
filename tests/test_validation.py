"""Tests for URL and hostname validation."""

import pytest

from ghttpping.core.errors import InvalidInputError
from ghttpping.core.validation import (
    ascii_hostname,
    effective_port,
    extract_hostname,
    validate_hostname,
    validate_url,
)


def test_validate_url_accepts_http_and_https() -> None:
    assert validate_url("http://example.com") == "http://example.com"
    assert validate_url("https://example.com/a?b=c") == "https://example.com/a?b=c"


@pytest.mark.parametrize(
    "url",
    ["", "ftp://bad", "example.com", "HTTPS://", "https:/example.com", "https://" + "a" * 2050],
)
def test_validate_url_rejects(url: str) -> None:
    with pytest.raises(InvalidInputError):
        validate_url(url)


def test_validate_url_length_limit_is_inclusive() -> None:
    url = "https://example.com/" + "a" * (2048 - len("https://example.com/"))

    assert len(url) == 2048
    assert validate_url(url) == url


@pytest.mark.parametrize("host", ["a;b", "a|b", "a&b", "$(id)", "a`b`", "a>b", "a<b"])
def test_validate_hostname_rejects_shell_metacharacters(host: str) -> None:
    with pytest.raises(InvalidInputError):
        validate_hostname(host)


def test_validate_hostname_rejects_empty_and_long() -> None:
    with pytest.raises(InvalidInputError):
        validate_hostname("")
    with pytest.raises(InvalidInputError):
        validate_hostname("a" * 256)

    assert validate_hostname("a" * 255) == "a" * 255


def test_extract_hostname() -> None:
    assert extract_hostname("https://Example.COM:8443/path") == "example.com"
    assert extract_hostname("http://[2001:db8::1]/") == "2001:db8::1"


@pytest.mark.parametrize(
    "url",
    ["https://", "https://exa;mple.com/", "https://example.com:99999/", "https://example.com:abc/"],
)
def test_extract_hostname_rejects(url: str) -> None:
    with pytest.raises(InvalidInputError):
        extract_hostname(url)


@pytest.mark.parametrize(
    ("url", "port"),
    [
        ("https://example.com/", 443),
        ("http://example.com/", 80),
        ("https://example.com:8443/", 8443),
        ("http://example.com:8080/x", 8080),
    ],
)
def test_effective_port(url: str, port: int) -> None:
    assert effective_port(url) == port


def test_ascii_hostname() -> None:
    assert ascii_hostname("example.com") == "example.com"
    assert ascii_hostname("bücher.example") == "xn--bcher-kva.example"
    assert ascii_hostname("例え.テスト") == "xn--r8jz45g.xn--zckzah"


def test_ascii_hostname_rejects_unencodable_label() -> None:
    with pytest.raises(InvalidInputError):
        ascii_hostname("ü" + "a" * 70 + ".example")
