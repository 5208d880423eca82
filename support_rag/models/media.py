"""Media reference models attached to chat answers."""

from typing import Any, Dict
from dataclasses import dataclass


@dataclass(frozen=True)
class VideoLink:
    """Container for a discovered video reference."""
    url: str
    video_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "video_id": self.video_id
        }
