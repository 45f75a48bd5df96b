"""Heuristics that decide whether a page exposes a playable video.

Matching is plain case-sensitive substring search, no content-type
validation. The first hit wins.
"""

from __future__ import annotations

from typing import Any

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 13; Pixel 7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/116.0.0.0 Mobile Safari/537.36"
)

# Outbound request URLs containing one of these are taken as the video.
VIDEO_RESOURCE_MARKERS: tuple[str, ...] = (
    ".mp4",
    ".m3u8",
    "sibnet.net",
    "sendvid",
)

# Embedded players whose iframe src is playable as-is.
EMBED_HOST_MARKERS: tuple[str, ...] = (
    "sibnet",
    "sendvid",
    "myvi",
)

# Evaluated once per poll. Returns the first <video> source and every
# iframe src so matching stays on the Python side.
DOM_QUERY_SCRIPT = """() => {
  const v = document.querySelector('video');
  const frames = Array.from(document.querySelectorAll('iframe'))
    .map((f) => f.src || '');
  return { video: v ? (v.src || v.currentSrc || '') : '', frames: frames };
}"""


def is_video_resource(url: str) -> bool:
    return any(marker in url for marker in VIDEO_RESOURCE_MARKERS)


def match_dom_snapshot(snapshot: Any) -> str | None:
    """Pick a video URL out of a ``DOM_QUERY_SCRIPT`` result.

    A ``<video>`` with an absolute http(s) source beats any iframe.
    Malformed snapshots count as no match.
    """
    if not isinstance(snapshot, dict):
        return None

    video = snapshot.get("video")
    if isinstance(video, str) and video.startswith("http"):
        return video

    frames = snapshot.get("frames")
    if not isinstance(frames, list):
        return None
    for src in frames:
        if isinstance(src, str) and any(m in src for m in EMBED_HOST_MARKERS):
            return src
    return None
