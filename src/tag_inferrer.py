from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Tag(StrEnum):
    INSTAGRAM = "Instagram"
    REELS = "Reels"
    TIKTOK = "TikTok"
    YOUTUBE = "YouTube"
    SHORTS = "Shorts"
    X = "X"
    FACEBOOK = "Facebook"
    SNAPCHAT = "Snapchat"


@dataclass(frozen=True)
class PlatformRule:
    tag: Tag
    domains: tuple[str, ...]
    content_tag: Tag | None = None
    content_paths: tuple[str, ...] = ()


PLATFORM_RULES: tuple[PlatformRule, ...] = (
    PlatformRule(Tag.INSTAGRAM, ("instagram.com", "instagr.am"), Tag.REELS, ("/reel/", "/reels/")),
    PlatformRule(Tag.TIKTOK, ("tiktok.com",)),
    PlatformRule(Tag.YOUTUBE, ("youtube.com", "youtu.be"), Tag.SHORTS, ("/shorts/",)),
    PlatformRule(Tag.X, ("twitter.com", "x.com")),
    PlatformRule(Tag.FACEBOOK, ("facebook.com", "fb.watch")),
    PlatformRule(Tag.SNAPCHAT, ("snapchat.com",)),
)


def infer_tags(url: str) -> list[str]:
    lowered = url.lower()
    tags: list[str] = []
    for rule in PLATFORM_RULES:
        if not any(domain in lowered for domain in rule.domains):
            continue
        tags.append(rule.tag.value)
        if rule.content_tag is not None and any(path in lowered for path in rule.content_paths):
            tags.append(rule.content_tag.value)
    return tags
