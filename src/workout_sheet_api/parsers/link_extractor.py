"""Split an exercise name from a video URL pasted into the same cell."""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

# YouTube watch / shorts / youtu.be short links, followed by whitespace or end of text
VIDEO_URL_PATTERN = re.compile(
    r'(https?://(?:www\.|m\.)?(?:youtube\.com/(?:watch\?\S*|shorts/\S*)|youtu\.be/\S*))(?=\s|$)',
    re.IGNORECASE,
)
ANY_URL_PATTERN = re.compile(r'(https?://\S+)', re.IGNORECASE)

# The first capture group must be the video ID.
_YOUTUBE_ID_PATTERNS: List[re.Pattern] = [
    re.compile(r"youtube\.com/watch[^#\s]*[?&]v=([A-Za-z0-9_-]{11})"),
    re.compile(r"youtube\.com/(?:shorts|embed|v)/([A-Za-z0-9_-]{11})"),
    re.compile(r"youtu\.be/([A-Za-z0-9_-]{11})"),
]


def extract_name_and_link(raw: str) -> Tuple[str, str]:
    """
    Separate an exercise name from a URL glued to it.

    Examples:
    - "Supino https://youtu.be/xyz" -> ("Supino", "https://youtu.be/xyz")
    - "Remada https://example.com/v/1" -> ("Remada", "https://example.com/v/1")
    - "Agachamento" -> ("Agachamento", "")

    Never returns an empty name for non-empty input: when nothing precedes the
    URL, the whole trimmed text is used as the name.
    """
    name, link, _ = split_name_cell(raw)
    return name, link


def split_name_cell(raw: str) -> Tuple[str, str, str]:
    """
    Like extract_name_and_link, but also returns the text that follows the URL.

    "Supino https://youtu.be/xyz pegada aberta" -> ("Supino", "https://youtu.be/xyz", "pegada aberta")
    """
    text = raw if isinstance(raw, str) else ("" if raw is None else str(raw))

    for pattern in (VIDEO_URL_PATTERN, ANY_URL_PATTERN):
        match = pattern.search(text)
        if match:
            name = text[:match.start()].strip()
            if not name:
                return text.strip(), match.group(1), ""
            return name, match.group(1), text[match.end():].strip()

    return text.strip(), "", ""


def youtube_video_id(url: str) -> Optional[str]:
    """Extract the 11-character YouTube video ID from a URL."""
    if not url:
        return None
    for pattern in _YOUTUBE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def youtube_embed_url(url: str) -> Optional[str]:
    """Embeddable player URL for a YouTube link, or None for other hosts."""
    video_id = youtube_video_id(url)
    if video_id:
        return f"https://www.youtube.com/embed/{video_id}"
    return None
