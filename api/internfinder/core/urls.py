import re
from urllib.parse import urlparse

APPLY_URL_SENTINEL = "#"

# Checked in order; the first matching pattern names the platform.
KNOWN_PLATFORM_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Internshala", re.compile(r"internshala\.com", re.IGNORECASE)),
    ("Unstop", re.compile(r"unstop\.com", re.IGNORECASE)),
    ("Microsoft", re.compile(r"careers\.microsoft\.com|microsoft\.com/career", re.IGNORECASE)),
)


def detect_apply_platform(apply_url: str | None) -> str | None:
    """Best-effort classification of the site an apply link points to."""
    if not apply_url or apply_url == APPLY_URL_SENTINEL:
        return None
    target = apply_url.strip()
    if urlparse(target).scheme.lower() not in {"http", "https", ""}:
        return None
    # Matches anywhere in the URL, redirect query strings included.
    for platform, pattern in KNOWN_PLATFORM_PATTERNS:
        if pattern.search(target):
            return platform
    return None


def company_slug(name: str) -> str:
    return re.sub(r"\s+", "-", name.lower())
