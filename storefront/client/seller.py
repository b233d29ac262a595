"""
Seller client - the add-product form and its media ordering.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from storefront.client.http import ApiClient, Outcome, StepResult
from storefront.models.schemas import PRODUCT_CATEGORIES
from storefront.utils import media_order
from storefront.utils.media_order import IMAGE, MediaItem


def _positive_number(value) -> bool:
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return False


def _whole_number(value) -> bool:
    try:
        return float(value).is_integer()
    except (TypeError, ValueError, OverflowError):
        return False


@dataclass
class ProductDraft:
    """
    In-progress product form.

    With ``auto_arrange`` on, the display order is always rebuilt by
    interleaving images and videos. With it off, the seller's order is
    kept and new media is appended; ``move`` and ``drag`` only apply then.
    """

    name: str = ""
    category: str = ""
    description: str = ""
    stock: Union[str, int] = ""
    price: Union[str, float] = ""
    delivery: str = ""
    images: List[str] = field(default_factory=list)
    videos: List[str] = field(default_factory=list)
    auto_arrange: bool = True
    media_order: List[MediaItem] = field(default_factory=list)

    def add_image(self, url: str):
        self._add(self.images, url)

    def add_video(self, url: str):
        self._add(self.videos, url)

    def set_auto_arrange(self, enabled: bool):
        self.auto_arrange = enabled
        self._refresh_order()

    def move(self, index: int, direction: str):
        if not self.auto_arrange:
            self.media_order = media_order.move_item(self.media_order, index, direction)

    def drag(self, source: int, target: int):
        if not self.auto_arrange:
            self.media_order = media_order.drag_item(self.media_order, source, target)

    def remove_at(self, index: int) -> Optional[MediaItem]:
        remaining, removed = media_order.remove_at(self.media_order, index)
        if removed is None:
            return None
        if removed.type == IMAGE:
            self.images = [url for url in self.images if url != removed.url]
        else:
            self.videos = [url for url in self.videos if url != removed.url]
        self.media_order = remaining
        self._refresh_order()
        return removed

    def final_order(self) -> List[MediaItem]:
        if self.auto_arrange:
            return media_order.auto_arrange(self.images, self.videos)
        return list(self.media_order)

    def validate(self, seller_id: Optional[str]) -> Optional[str]:
        if not seller_id:
            return "Login required."
        if not self.name.strip():
            return "Product name required."
        if not self.category or self.category not in PRODUCT_CATEGORIES:
            return "Category required."
        if not _positive_number(self.stock):
            return "Stock must be positive."
        if not _whole_number(self.stock):
            return "Stock must be a whole number."
        if not _positive_number(self.price):
            return "Price must be positive."
        return None

    def to_payload(self, seller_id: str) -> dict:
        merged = self.final_order()
        first_image = next((item.url for item in merged if item.type == IMAGE), "")
        return {
            "name": self.name.strip(),
            "category": self.category,
            "description": self.description,
            "stock": int(float(self.stock)),
            "price": float(self.price),
            "image": self.images[0] if self.images else first_image,
            "images": list(self.images),
            "videos": list(self.videos),
            "delivery": self.delivery,
            "sellerId": seller_id,
            "mediaOrder": [item.to_dict() for item in merged],
        }

    def reset(self):
        """Clear the form; the arrange mode is kept."""
        self.name = self.category = self.description = self.delivery = ""
        self.stock = self.price = ""
        self.images = []
        self.videos = []
        self.media_order = []

    def _add(self, urls: List[str], url: str):
        url = (url or "").strip()
        # Media is keyed by URL, so each one is listed once
        if url and url not in self.images and url not in self.videos:
            urls.append(url)
            self._refresh_order()

    def _refresh_order(self):
        if self.auto_arrange:
            self.media_order = media_order.auto_arrange(self.images, self.videos)
        else:
            self.media_order = media_order.manual_merge(self.media_order, self.images, self.videos)


class SellerClient(ApiClient):
    error_keys = ("error", "msg", "message")

    def upload(self, file: Union[str, Path, BinaryIO], content_type: str, filename: Optional[str] = None) -> StepResult:
        """Upload a media file; ``result.data["url"]`` is where it is served."""
        if isinstance(file, (str, Path)):
            path = Path(file)
            with path.open("rb") as handle:
                return self.upload(handle, content_type, filename or path.name)

        result = self._call(
            "POST",
            "/api/upload",
            fallback="Upload failed. Try again.",
            files={"file": (filename or "upload", file, content_type)},
            timeout=120.0,
        )
        if result.ok and not (result.data.get("url") or result.data.get("secure_url")):
            return StepResult(Outcome.REJECTED, "Upload failed. Try again.", result.data, result.status_code)
        return result

    def upload_into(self, draft: ProductDraft, file, content_type: str, filename: Optional[str] = None) -> StepResult:
        """Upload a file and add its URL to the draft as an image or video."""
        result = self.upload(file, content_type, filename)
        if result.ok:
            url = result.data.get("url") or result.data.get("secure_url")
            if content_type.startswith("video/"):
                draft.add_video(url)
            else:
                draft.add_image(url)
        return result

    def add_product(self, draft: ProductDraft) -> StepResult:
        """Submit the draft. A 401 means the seller session is gone, so it is cleared."""
        seller = self.session.read_user() or {}
        seller_id = seller.get("id")
        problem = draft.validate(seller_id)
        if problem:
            return StepResult.blocked(problem)

        result = self._call(
            "POST",
            "/api/sellers/products/with-stock",
            fallback="Submit failed.",
            success_message="Product added!",
            authenticated=True,
            json=draft.to_payload(seller_id),
        )
        if result.status_code == 401:
            self.session.clear()
        return result
