"""
Display ordering for a product's images and videos.

Items are identified by URL. Every function returns a new list and leaves
its inputs untouched.
"""

from dataclasses import dataclass, asdict
from itertools import chain, zip_longest
from typing import Iterable, List, Optional, Sequence, Tuple

IMAGE = "image"
VIDEO = "video"


@dataclass(frozen=True)
class MediaItem:
    type: str
    url: str

    def to_dict(self) -> dict:
        return asdict(self)


def _items(kind: str, urls: Iterable[str]) -> List[MediaItem]:
    return [MediaItem(kind, url) for url in urls]


def auto_arrange(images: Sequence[str], videos: Sequence[str]) -> List[MediaItem]:
    """Alternate image, video, image, ... and finish with whichever list is longer."""
    pairs = zip_longest(_items(IMAGE, images), _items(VIDEO, videos))
    return [item for item in chain.from_iterable(pairs) if item is not None]


def manual_merge(
    previous: Sequence[MediaItem],
    images: Sequence[str],
    videos: Sequence[str],
) -> List[MediaItem]:
    """Keep the user's order for surviving items and append new ones at the end."""
    current = _items(IMAGE, images) + _items(VIDEO, videos)
    current_urls = {item.url for item in current}
    preserved = [item for item in previous if item.url in current_urls]
    seen = {item.url for item in preserved}
    added = [item for item in current if item.url not in seen]
    return preserved + added


def move_item(order: Sequence[MediaItem], index: int, direction: str) -> List[MediaItem]:
    """Swap the item at ``index`` with its left or right neighbour."""
    items = list(order)
    target = index - 1 if direction == "left" else index + 1
    if not 0 <= index < len(items) or not 0 <= target < len(items):
        return items
    items[index], items[target] = items[target], items[index]
    return items


def drag_item(order: Sequence[MediaItem], source: int, target: int) -> List[MediaItem]:
    """Move the item at ``source`` so it ends up at ``target``."""
    items = list(order)
    if not 0 <= source < len(items) or not 0 <= target < len(items):
        return items
    dragged = items.pop(source)
    items.insert(target, dragged)
    return items


def remove_at(order: Sequence[MediaItem], index: int) -> Tuple[List[MediaItem], Optional[MediaItem]]:
    items = list(order)
    if not 0 <= index < len(items):
        return items, None
    removed = items.pop(index)
    return items, removed


def validate_order(
    order: Sequence[MediaItem],
    images: Sequence[str],
    videos: Sequence[str],
) -> Optional[str]:
    """Return why ``order`` does not describe exactly the given media, or None."""
    expected = {(IMAGE, url) for url in images} | {(VIDEO, url) for url in videos}
    listed = [(item.type, item.url) for item in order]
    if any(kind not in (IMAGE, VIDEO) for kind, _ in listed):
        return "Media type must be image or video."
    if len(set(listed)) != len(listed):
        return "Media order lists an item twice."
    if set(listed) != expected:
        return "Media order must list every image and video exactly once."
    return None
