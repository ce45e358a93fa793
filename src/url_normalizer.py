from __future__ import annotations

import re
from urllib.parse import urlsplit

SHARED_URL_RE = re.compile(r"https?://\S+", re.IGNORECASE)

TRACKING_PARAM_MARKERS = ("si=", "igsh=", "utm_", "fbclid=", "s=")
CONTENT_PATH_MARKERS = (
    "youtube.com/shorts/",
    "youtu.be/",
    "instagram.com/reel/",
    "tiktok.com/",
)
SHARED_URL_TRAILING_CHARS = "/.,!?"


def is_http_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


def is_shareable_url(value: str) -> bool:
    """http(s) scheme plus a dotted host name; "http://badscheme" is rejected."""
    if not is_http_url(value):
        return False
    try:
        host = urlsplit(value).hostname
    except ValueError:
        return False
    return bool(host) and "." in host.strip(".")


def _has_tracking_query(url: str) -> bool:
    if "?" not in url:
        return False
    if not any(marker in url for marker in TRACKING_PARAM_MARKERS):
        return False
    return any(marker in url for marker in CONTENT_PATH_MARKERS)


def normalize(raw_url: str) -> str:
    """Canonical form of a shared link used for storage and duplicate checks.

    Only links to known short-video pages lose their query string, and only
    when it carries a tracking marker; any other query is kept as-is.
    Trailing slashes are dropped, so the result is a fixed point. Never raises.
    """
    trimmed = raw_url.strip()
    try:
        normalized = trimmed
        if _has_tracking_query(normalized):
            normalized = normalized.split("?", 1)[0]
        return normalized.rstrip("/")
    except Exception:  # noqa: BLE001
        return trimmed


def extract_shared_url(text: str) -> str | None:
    """First http(s) link in share-sheet text, minus trailing punctuation."""
    if not text:
        return None
    match = SHARED_URL_RE.search(text)
    if match is None:
        return None
    url = match.group(0).rstrip(SHARED_URL_TRAILING_CHARS)
    return url or None
