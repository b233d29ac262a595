"""
Product service - seller product persistence.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from loguru import logger

from storefront.services.database import DatabaseService, get_database
from storefront.utils.media_order import MediaItem


def _row_to_product(row) -> Dict[str, Any]:
    product = dict(row._mapping)
    for column in ("images", "videos", "media_order"):
        product[column] = json.loads(product[column] or "[]")
    return product


class ProductService:
    """Handles product database operations."""

    def __init__(self, db: Optional[DatabaseService] = None):
        self.db = db or get_database()

    def create_product(
        self,
        seller_id: str,
        name: str,
        category: str,
        description: str,
        stock: int,
        price: float,
        image: str,
        images: List[str],
        videos: List[str],
        delivery: str,
        media_order: List[MediaItem],
    ) -> Dict[str, Any]:
        """Insert a product with its opening stock and return it."""
        product_id = str(uuid.uuid4())
        with self.db.get_session() as session:
            session.execute(
                text("""
                INSERT INTO products (id, seller_id, name, category, description, stock, price,
                                      image, images, videos, delivery, media_order, created_at)
                VALUES (:id, :seller_id, :name, :category, :description, :stock, :price,
                        :image, :images, :videos, :delivery, :media_order, :created_at)
                """),
                {
                    "id": product_id,
                    "seller_id": seller_id,
                    "name": name,
                    "category": category,
                    "description": description,
                    "stock": stock,
                    "price": price,
                    "image": image,
                    "images": json.dumps(images),
                    "videos": json.dumps(videos),
                    "delivery": delivery,
                    "media_order": json.dumps([item.to_dict() for item in media_order]),
                    "created_at": datetime.now(timezone.utc).isoformat(),
                }
            )
            session.commit()

        logger.info(f"Product {product_id} created by seller {seller_id}: {name} x{stock}")
        return self.get_product(product_id)

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        with self.db.get_session() as session:
            row = session.execute(
                text("SELECT * FROM products WHERE id = :id"),
                {"id": product_id}
            ).fetchone()
            return _row_to_product(row) if row else None


_product_service = None


def get_product_service() -> ProductService:
    """Get or create product service instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
