"""
Video link discovery in retrieved chunk content.

Recognized shapes (scheme and ``www.`` optional, trailing query
parameters ignored):

- https://www.youtube.com/watch?v=VIDEO_ID
- https://youtube.com/watch?v=VIDEO_ID&t=123
- http://www.youtube.com/embed/VIDEO_ID
- https://youtu.be/VIDEO_ID

Every match is reported in the canonical ``watch?v=`` form.
"""

import re
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional

from ..core.logging_config import get_logger
from ..models.media import VideoLink


logger = get_logger(__name__, "link_extractor")

VIDEO_LINK_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.)?"
    r"(?:youtube\.com/(?:watch\?v=|embed/)|youtu\.be/)"
    r"([a-zA-Z0-9_-]{11})(?![a-zA-Z0-9_-])",
    re.IGNORECASE
)

CANONICAL_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"


def _chunk_content(chunk: Any) -> str:
    """Content of a mapping or object chunk; anything non-string counts as empty."""
    if isinstance(chunk, Mapping):
        content = chunk.get("content")
    else:
        content = getattr(chunk, "content", None)
    return content if isinstance(content, str) else ""


def canonical_url(video_id: str) -> str:
    return CANONICAL_URL_TEMPLATE.format(video_id=video_id)


def extract_links(chunks: Iterable[Any]) -> List[VideoLink]:
    """Collect unique video links across chunks in first-seen order."""
    found = {}

    for chunk in chunks:
        for match in VIDEO_LINK_PATTERN.finditer(_chunk_content(chunk)):
            video_id = match.group(1)
            if video_id not in found:
                found[video_id] = VideoLink(url=canonical_url(video_id), video_id=video_id)

    if found:
        logger.debug(
            f"Extracted {len(found)} video links",
            extra={"video_ids": list(found.keys())}
        )

    return list(found.values())


def contains_link(text: str) -> bool:
    """True if ``text`` contains at least one recognized video link."""
    if not isinstance(text, str):
        return False
    return VIDEO_LINK_PATTERN.search(text) is not None


def extract_id(url: str) -> Optional[str]:
    """Video identifier of the first link in ``url``, or ``None``."""
    if not isinstance(url, str):
        return None
    match = VIDEO_LINK_PATTERN.search(url)
    return match.group(1) if match else None
