from urllib.parse import urlsplit

from ghttpping.core.errors import InvalidInputError

MAX_URL_LENGTH = 2048
MAX_HOSTNAME_LENGTH = 255

# Characters a command interpreter would give meaning to
_DANGEROUS_CHARS = frozenset("$`|&;><()")


def validate_url(url: str) -> str:
    if not url or len(url) > MAX_URL_LENGTH:
        raise InvalidInputError("URL is empty or longer than 2048 characters")
    if not url.startswith(("http://", "https://")):
        raise InvalidInputError("URL must start with http:// or https://")
    return url


def validate_hostname(host: str) -> str:
    if not host or len(host) > MAX_HOSTNAME_LENGTH:
        raise InvalidInputError("Invalid hostname")
    if any(ch in _DANGEROUS_CHARS for ch in host):
        raise InvalidInputError("Hostname contains forbidden characters")
    return host


def extract_hostname(url: str) -> str:
    """Validate a probe URL and return its (validated) hostname."""
    validate_url(url)
    try:
        parts = urlsplit(url)
        # .port raises on out-of-range or non-numeric ports
        _ = parts.port
    except ValueError as exc:
        raise InvalidInputError(f"Invalid URL: {exc}") from exc
    if not parts.hostname:
        raise InvalidInputError("Could not extract a hostname from the URL")
    return validate_hostname(parts.hostname)


def ascii_hostname(host: str) -> str:
    """IDNA (punycode) form of ``host``; ASCII names are returned unchanged."""
    if host.isascii():
        return host
    try:
        return host.encode("idna").decode("ascii")
    except UnicodeError as exc:
        raise InvalidInputError(f"Invalid internationalized hostname: {exc}") from exc


def effective_port(url: str) -> int:
    parts = urlsplit(url)
    if parts.port is not None:
        return parts.port
    return 443 if parts.scheme == "https" else 80
