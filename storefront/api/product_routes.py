"""
Seller routes - media upload and product creation.
"""

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from loguru import logger

from storefront.core.errors import ApiError
from storefront.middleware.auth import get_current_seller
from storefront.models.schemas import (
    PRODUCT_CATEGORIES,
    ProductCreate,
    ProductResponse,
    ProductOut,
    UploadResponse,
)
from storefront.services.product import ProductService, get_product_service
from storefront.services.uploads import UploadRejected, UploadStore, get_upload_store
from storefront.utils.media_order import IMAGE, MediaItem, auto_arrange, validate_order

router = APIRouter(prefix="/api", tags=["seller"])


@router.post("/upload", response_model=UploadResponse, summary="Upload an image or video")
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    store: UploadStore = Depends(get_upload_store),
) -> UploadResponse:
    """
    Upload a product image or video. Returns the public URL of the stored file.
    """
    try:
        stored_name = await run_in_threadpool(store.save, file.file, file.filename, file.content_type)
    except UploadRejected as e:
        raise ApiError(status.HTTP_400_BAD_REQUEST, str(e), key="error")
    finally:
        await file.close()

    url = f"{str(request.base_url).rstrip('/')}/uploads/{stored_name}"
    return UploadResponse(filename=stored_name, url=url, secure_url=url)


def _product_error(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> ApiError:
    return ApiError(status_code, message, key="error")


@router.post(
    "/sellers/products/with-stock",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product with its opening stock",
)
def create_product_with_stock(
    payload: ProductCreate,
    seller: dict = Depends(get_current_seller),
    product_service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    """
    Create a product for the authenticated seller.

    When `mediaOrder` is omitted the images and videos are auto-arranged
    (image, video, image, ...). A supplied `mediaOrder` must list every
    image and video exactly once.
    """
    if payload.seller_id and payload.seller_id != str(seller["id"]):
        raise _product_error("Seller mismatch.", status.HTTP_403_FORBIDDEN)

    name = payload.name.strip()
    if not name:
        raise _product_error("Product name required.")
    if payload.category not in PRODUCT_CATEGORIES:
        raise _product_error("Category required.")
    if payload.stock <= 0:
        raise _product_error("Stock must be positive.")
    if payload.price <= 0:
        raise _product_error("Price must be positive.")

    images = list(dict.fromkeys(url.strip() for url in payload.images if url.strip()))
    videos = list(dict.fromkeys(url.strip() for url in payload.videos if url.strip()))

    if payload.media_order is None:
        media_order = auto_arrange(images, videos)
    else:
        media_order = [MediaItem(item.type, item.url.strip()) for item in payload.media_order]
        problem = validate_order(media_order, images, videos)
        if problem:
            raise _product_error(problem)

    image = payload.image.strip() or (images[0] if images else "")
    if not image:
        image = next((item.url for item in media_order if item.type == IMAGE), "")

    product = product_service.create_product(
        seller_id=str(seller["id"]),
        name=name,
        category=payload.category,
        description=payload.description,
        stock=payload.stock,
        price=payload.price,
        image=image,
        images=images,
        videos=videos,
        delivery=payload.delivery,
        media_order=media_order,
    )
    logger.info(f"Seller {seller['email']} added product {product['id']}")
    return ProductResponse(product=ProductOut.model_validate(product))
