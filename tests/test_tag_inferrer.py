from __future__ import annotations

from tag_inferrer import Tag, infer_tags


def test_instagram_reel_gets_platform_and_content_tags() -> None:
    tags = infer_tags("https://www.instagram.com/reel/xyz")
    assert tags == ["Instagram", "Reels"]


def test_instagram_post_only_gets_platform_tag() -> None:
    assert infer_tags("https://instagr.am/p/abc") == [Tag.INSTAGRAM]


def test_youtube_shorts_and_plain_video() -> None:
    assert infer_tags("https://YouTube.com/Shorts/abc") == ["YouTube", "Shorts"]
    assert infer_tags("https://youtu.be/abc") == ["YouTube"]


def test_single_platform_tags() -> None:
    assert infer_tags("https://www.tiktok.com/@a/video/1") == ["TikTok"]
    assert infer_tags("https://twitter.com/u/status/1") == ["X"]
    assert infer_tags("https://x.com/u/status/1") == ["X"]
    assert infer_tags("https://fb.watch/abc") == ["Facebook"]
    assert infer_tags("https://www.snapchat.com/spotlight/abc") == ["Snapchat"]


def test_unknown_site_has_no_tags() -> None:
    assert infer_tags("https://plainsite.com/video") == []
