"""Tests for video resource / DOM snapshot matchers."""

from __future__ import annotations

import pytest

from visionlink.infrastructure.probing.matchers import (
    DEFAULT_USER_AGENT,
    is_video_resource,
    match_dom_snapshot,
)


class TestIsVideoResource:
    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.test/ep1.mp4",
            "https://cdn.test/hls/master.m3u8?token=abc",
            "https://video.sibnet.net/shell.php?videoid=1",
            "https://sendvid.com/embed/xyz",
        ],
    )
    def test_matches(self, url: str) -> None:
        assert is_video_resource(url)

    @pytest.mark.parametrize(
        "url",
        [
            "https://site.test/app.js",
            "https://site.test/poster.jpg",
            "https://cdn.test/VIDEO.MP4",  # case-sensitive
        ],
    )
    def test_ignores(self, url: str) -> None:
        assert not is_video_resource(url)


class TestMatchDomSnapshot:
    def test_video_src_wins_over_iframe(self) -> None:
        snap = {
            "video": "https://cdn.test/a.mp4",
            "frames": ["https://sendvid.com/embed/1"],
        }
        assert match_dom_snapshot(snap) == "https://cdn.test/a.mp4"

    def test_blob_video_src_ignored(self) -> None:
        snap = {"video": "blob:https://site.test/123", "frames": []}
        assert match_dom_snapshot(snap) is None

    def test_first_matching_iframe(self) -> None:
        snap = {
            "video": "",
            "frames": [
                "https://ads.test/banner",
                "https://video.sibnet.ru/shell.php?videoid=9",
                "https://myvi.top/embed/2",
            ],
        }
        assert match_dom_snapshot(snap) == "https://video.sibnet.ru/shell.php?videoid=9"

    def test_no_match(self) -> None:
        assert match_dom_snapshot({"video": "", "frames": ["https://x.test"]}) is None

    @pytest.mark.parametrize("snap", [None, "oops", 42, {"frames": "nope"}])
    def test_malformed_snapshot(self, snap: object) -> None:
        assert match_dom_snapshot(snap) is None


def test_user_agent_is_mobile_chrome() -> None:
    assert "Android" in DEFAULT_USER_AGENT
    assert "Chrome/116" in DEFAULT_USER_AGENT
