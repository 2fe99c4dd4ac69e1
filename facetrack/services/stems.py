"""Deterministic stem selection.

Every category reads its own fixed slice of the MD5 digest of the track id.
The slice layout below is permanent: changing it, or reordering the
categories, changes the track of every past visitor.
"""
import hashlib
from typing import Dict, List, Optional, Sequence, Tuple

from facetrack.core.config import settings
from facetrack.domain.value_objects.audio import CategoryConfig, StemSelection

DIGEST_HEX_LENGTH = 32
SLICE_WIDTH = 5

DEFAULT_CATEGORIES: Tuple[CategoryConfig, ...] = (
    CategoryConfig(name="bass", prefix="b", count=5),
    CategoryConfig(name="pads", prefix="p", count=5),
    CategoryConfig(name="noise", prefix="n", count=5),
    CategoryConfig(name="arps", prefix="arp", count=8, foreground=True),
    CategoryConfig(name="vox", prefix="vx", count=8, foreground=True),
    CategoryConfig(name="leads", prefix="ld", count=3, foreground=True),
)


def digest_slices(count: int) -> List[Tuple[int, int]]:
    """Start and end offsets of the digest slice for each category position.

    Raises:
        ValueError: If ``count`` categories do not fit in the digest
    """
    if count * SLICE_WIDTH > DIGEST_HEX_LENGTH:
        raise ValueError(
            f"{count} categories need {count * SLICE_WIDTH} digest characters, "
            f"only {DIGEST_HEX_LENGTH} available"
        )
    return [(i * SLICE_WIDTH, (i + 1) * SLICE_WIDTH) for i in range(count)]


class StemSelector:
    """Maps a track id to one stem file per category.

    Example:
        ```python
        selector = StemSelector()
        stems = selector.select("abc1234567")
        stems["bass"]  # "https://.../bass/b3.wav"
        ```
    """

    def __init__(
        self,
        categories: Sequence[CategoryConfig] = DEFAULT_CATEGORIES,
        base_url: Optional[str] = None,
        extension: Optional[str] = None,
    ) -> None:
        names = [c.name for c in categories]
        if len(set(names)) != len(names):
            raise ValueError("Category names must be unique")
        self.categories = tuple(categories)
        self.base_url = (base_url or settings.STEM_BASE_URL).rstrip("/")
        self.extension = (extension or settings.STEM_FILE_EXTENSION).lstrip(".")
        self._slices = digest_slices(len(self.categories))

    def category(self, name: str) -> Optional[CategoryConfig]:
        """Look up a category by name."""
        for config in self.categories:
            if config.name == name:
                return config
        return None

    def select_indices(self, track_id: str) -> Dict[str, int]:
        """1-based stem number chosen for each category."""
        digest = hashlib.md5(track_id.encode("utf-8")).hexdigest()
        return {
            config.name: int(digest[start:end], 16) % config.count + 1
            for config, (start, end) in zip(self.categories, self._slices)
        }

    def stem_url(self, config: CategoryConfig, index: int) -> str:
        """Public URL of a stem in the ``{category}/{prefix}{n}.{ext}`` layout."""
        return f"{self.base_url}/{config.name}/{config.prefix}{index}.{self.extension}"

    def select(self, track_id: str) -> StemSelection:
        """Choose one stem URL per category for a track id."""
        indices = self.select_indices(track_id)
        return {
            config.name: self.stem_url(config, indices[config.name])
            for config in self.categories
        }
