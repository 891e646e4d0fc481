import ipaddress
import re
from typing import Tuple
from urllib.parse import urlparse

from app.platform.config import settings

_HOSTNAME_RE = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
_LOCAL_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}


def normalize_url(url: str) -> Tuple[str, bool]:

    url = url.strip()

    parsed = urlparse(url)

    if not parsed.scheme:
        normalized = f"https://{url.lstrip('/')}"
        return normalized, True

    return url, False


def is_private_ip(hostname: str) -> bool:
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return address.is_private or address.is_link_local


def validate_url(url: str) -> Tuple[bool, str, str]:
    if not isinstance(url, str) or not url.strip():
        return False, "", "URL cannot be empty"

    if len(url.strip()) > settings.URL_MAX_LENGTH:
        return False, url.strip(), f"URL exceeds maximum length of {settings.URL_MAX_LENGTH} characters"

    if " " in url.strip():
        return False, url.strip(), "URL contains invalid spaces. URLs must not contain unencoded spaces."

    normalized_url, was_modified = normalize_url(url)

    try:
        parsed = urlparse(normalized_url)

        if parsed.scheme not in ['http', 'https']:
            return False, normalized_url, f"Invalid URL scheme: {parsed.scheme} (must be http or https)"

        hostname = parsed.hostname
        if not parsed.netloc or not hostname:
            return False, normalized_url, "Invalid URL format: missing domain"

        if hostname in _LOCAL_HOSTS:
            return False, normalized_url, "Localhost URLs are not allowed for security reasons"

        if is_private_ip(hostname):
            return False, normalized_url, "Private IP addresses are not allowed for security reasons"

        if not _HOSTNAME_RE.match(hostname) and ":" not in hostname:
            return False, normalized_url, (
                "Invalid hostname format. Hostname must contain only letters, numbers, dots, and hyphens."
            )

        # Accessing .port validates it
        parsed.port

        return True, normalized_url, ""

    except ValueError as e:
        return False, normalized_url, f"URL parsing error: {str(e)}"
