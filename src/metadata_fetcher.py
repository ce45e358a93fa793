from __future__ import annotations

from dataclasses import dataclass
import html
import logging
import re

import httpx

from config import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_SEC = 10.0
UNTITLED = "Untitled"

TITLE_TAG_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)


@dataclass(frozen=True)
class PageMetadata:
    title: str
    thumbnail: str | None


def _meta_patterns(key: str) -> tuple[re.Pattern[str], re.Pattern[str]]:
    # Key attribute before content, then content before key.
    key_attr = rf"""\b(?:property|name)\s*=\s*["']{re.escape(key)}["']"""
    # Quoted value cannot cross its closing quote, so a match stays inside one tag.
    content_attr = r"""\bcontent\s*=\s*(?:"([^"]*)"|'([^']*)')"""
    return (
        re.compile(rf"<meta\b[^>]*?{key_attr}[^>]*?{content_attr}", re.IGNORECASE | re.DOTALL),
        re.compile(rf"<meta\b[^>]*?{content_attr}[^>]*?{key_attr}", re.IGNORECASE | re.DOTALL),
    )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = html.unescape(value).strip()
    return cleaned or None


def extract_meta_tag(page: str, key: str) -> str | None:
    for pattern in _meta_patterns(key):
        match = pattern.search(page)
        if match is None:
            continue
        value = _clean(match.group(1) if match.group(1) is not None else match.group(2))
        if value:
            return value
    return None


def extract_title_tag(page: str) -> str | None:
    match = TITLE_TAG_RE.search(page)
    if match is None:
        return None
    return _clean(match.group(1))


def parse_metadata(page: str) -> PageMetadata:
    title = (
        extract_meta_tag(page, "og:title")
        or extract_meta_tag(page, "twitter:title")
        or extract_title_tag(page)
        or UNTITLED
    )
    thumbnail = extract_meta_tag(page, "og:image") or extract_meta_tag(page, "twitter:image")
    return PageMetadata(title=title, thumbnail=thumbnail)


class MetadataFetcher:
    """Best-effort title/thumbnail scraper for a single page.

    ``fetch`` never raises: transport errors, timeouts, non-200 responses
    and parse problems are logged and reported as ``None`` so the caller
    can fall back to a title derived from the URL.
    """

    def __init__(
        self,
        *,
        timeout_sec: float = DEFAULT_FETCH_TIMEOUT_SEC,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout_sec = max(1.0, float(timeout_sec))
        self.user_agent = user_agent
        self._client = client

    async def _get(self, url: str) -> httpx.Response:
        headers = {"User-Agent": self.user_agent, "Accept": "text/html,application/xhtml+xml"}
        if self._client is not None:
            return await self._client.get(url, headers=headers, timeout=self.timeout_sec, follow_redirects=True)

        timeout = httpx.Timeout(self.timeout_sec)
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            return await client.get(url, headers=headers)

    async def fetch(self, url: str) -> PageMetadata | None:
        try:
            response = await self._get(url)
            if response.status_code != 200:
                logger.warning("Metadata fetch rejected url=%s status=%s", url, response.status_code)
                return None
            metadata = parse_metadata(response.text)
        except httpx.TimeoutException:
            logger.warning("Metadata fetch timed out url=%s timeout=%.1fs", url, self.timeout_sec)
            return None
        except Exception as exc:  # noqa: BLE001
            logger.warning("Metadata fetch failed url=%s error=%s", url, exc)
            return None

        logger.debug("Metadata fetched url=%s title=%r thumbnail=%s", url, metadata.title, metadata.thumbnail)
        return metadata
