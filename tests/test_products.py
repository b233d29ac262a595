import io

import pytest

from conftest import auth_header

from storefront.client.http import Outcome
from storefront.client.seller import ProductDraft, SellerClient
from storefront.client.session import ClientSession
from storefront.services.uploads import CHUNK_SIZE, UploadRejected, UploadStore, safe_filename
from storefront.utils.media_order import IMAGE, VIDEO, MediaItem

CREATE = "/api/sellers/products/with-stock"


def product_body(seller_id, **overrides):
    body = {
        "name": "Linen Shirt",
        "category": "fashion",
        "description": "Breathable summer shirt",
        "stock": 10,
        "price": 799.0,
        "images": ["http://cdn/i1.jpg", "http://cdn/i2.jpg"],
        "videos": ["http://cdn/v1.mp4"],
        "delivery": "3-5 days",
        "sellerId": seller_id,
    }
    body.update(overrides)
    return body


@pytest.fixture
def seller_client(client, seller):
    session = ClientSession()
    session.write_token(seller["access_token"])
    session.write_user(seller["user"])
    return SellerClient(http=client, session=session)


def test_upload_stores_the_file(client, seller):
    response = client.post(
        "/api/upload",
        files={"file": ("front view.jpg", b"\xff\xd8fake-jpeg", "image/jpeg")},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["filename"].endswith("front_view.jpg")
    assert body["url"] == f"http://testserver/uploads/{body['filename']}"

    served = client.get(f"/uploads/{body['filename']}")
    assert served.status_code == 200
    assert served.content == b"\xff\xd8fake-jpeg"


def test_upload_rejects_other_content(client):
    response = client.post("/api/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Only image and video uploads are allowed."}


def test_upload_store_size_limit(tmp_path):
    store = UploadStore(directory=str(tmp_path), max_bytes=4)
    with pytest.raises(UploadRejected):
        store.save(io.BytesIO(b"too large"), "big.png", "image/png")
    assert list(tmp_path.iterdir()) == []


def test_safe_filename():
    assert safe_filename("../../etc/passwd") == "passwd"
    assert safe_filename("my photo (1).png") == "my_photo_1_.png"
    assert safe_filename(None) == "upload"
    assert safe_filename("...") == "upload"


def test_create_product_auto_arranges_media(client, seller):
    response = client.post(
        CREATE,
        headers=auth_header(seller["access_token"]),
        json=product_body(seller["user"]["id"]),
    )
    assert response.status_code == 201
    product = response.json()["product"]
    assert product["sellerId"] == seller["user"]["id"]
    assert product["image"] == "http://cdn/i1.jpg"
    assert product["mediaOrder"] == [
        {"type": "image", "url": "http://cdn/i1.jpg"},
        {"type": "video", "url": "http://cdn/v1.mp4"},
        {"type": "image", "url": "http://cdn/i2.jpg"},
    ]


def test_create_product_keeps_a_manual_order(client, seller):
    order = [
        {"type": "video", "url": "http://cdn/v1.mp4"},
        {"type": "image", "url": "http://cdn/i2.jpg"},
        {"type": "image", "url": "http://cdn/i1.jpg"},
    ]
    response = client.post(
        CREATE,
        headers=auth_header(seller["access_token"]),
        json=product_body(seller["user"]["id"], mediaOrder=order),
    )
    assert response.status_code == 201
    assert response.json()["product"]["mediaOrder"] == order


def test_create_product_rejects_an_incomplete_order(client, seller):
    response = client.post(
        CREATE,
        headers=auth_header(seller["access_token"]),
        json=product_body(seller["user"]["id"], mediaOrder=[{"type": "image", "url": "http://cdn/i1.jpg"}]),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Media order must list every image and video exactly once."


@pytest.mark.parametrize("overrides, message", [
    ({"name": "  "}, "Product name required."),
    ({"category": ""}, "Category required."),
    ({"category": "weapons"}, "Category required."),
    ({"stock": 0}, "Stock must be positive."),
    ({"price": -5}, "Price must be positive."),
])
def test_create_product_validation(client, seller, overrides, message):
    response = client.post(
        CREATE,
        headers=auth_header(seller["access_token"]),
        json=product_body(seller["user"]["id"], **overrides),
    )
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": message}


def test_only_sellers_can_add_products(client, user):
    response = client.post(
        CREATE,
        headers=auth_header(user["access_token"]),
        json=product_body(user["user"]["id"]),
    )
    assert response.status_code == 403
    assert response.json() == {"success": False, "error": "Seller account required"}


def test_seller_cannot_post_for_another_seller(client, seller):
    response = client.post(
        CREATE,
        headers=auth_header(seller["access_token"]),
        json=product_body("someone-else"),
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Seller mismatch."


def test_draft_auto_arrange():
    draft = ProductDraft()
    draft.add_image("i1")
    draft.add_video("v1")
    draft.add_image("i2")
    assert draft.media_order == [MediaItem(IMAGE, "i1"), MediaItem(VIDEO, "v1"), MediaItem(IMAGE, "i2")]

    # reordering is ignored while auto-arrange is on
    draft.move(0, "right")
    assert draft.media_order[0] == MediaItem(IMAGE, "i1")


def test_draft_manual_order_survives_new_media():
    draft = ProductDraft(auto_arrange=False)
    draft.add_image("i1")
    draft.add_image("i2")
    draft.add_video("v1")
    assert draft.media_order == [MediaItem(IMAGE, "i1"), MediaItem(IMAGE, "i2"), MediaItem(VIDEO, "v1")]

    draft.drag(2, 0)
    draft.move(1, "right")
    assert draft.media_order == [MediaItem(VIDEO, "v1"), MediaItem(IMAGE, "i2"), MediaItem(IMAGE, "i1")]

    draft.add_image("i3")
    assert draft.final_order()[-1] == MediaItem(IMAGE, "i3")
    assert draft.final_order()[:3] == [MediaItem(VIDEO, "v1"), MediaItem(IMAGE, "i2"), MediaItem(IMAGE, "i1")]


def test_draft_remove_drops_the_url():
    draft = ProductDraft()
    draft.add_image("i1")
    draft.add_video("v1")
    removed = draft.remove_at(1)
    assert removed == MediaItem(VIDEO, "v1")
    assert draft.videos == []
    assert draft.media_order == [MediaItem(IMAGE, "i1")]
    assert draft.remove_at(5) is None


def test_draft_validation():
    draft = ProductDraft(name="Mug", category="kitchen", stock="3", price="249")
    assert draft.validate(None) == "Login required."
    assert draft.validate("seller-1") is None
    draft.price = "abc"
    assert draft.validate("seller-1") == "Price must be positive."
    draft.category = "unknown"
    assert draft.validate("seller-1") == "Category required."


def test_draft_payload():
    draft = ProductDraft(name=" Mug ", category="kitchen", stock="3", price="249.5")
    draft.add_video("v1")
    draft.add_image("i1")
    payload = draft.to_payload("seller-1")
    assert payload["name"] == "Mug"
    assert payload["stock"] == 3
    assert payload["price"] == 249.5
    assert payload["image"] == "i1"
    assert payload["mediaOrder"] == [{"type": "image", "url": "i1"}, {"type": "video", "url": "v1"}]


def test_draft_reset_keeps_the_arrange_mode():
    draft = ProductDraft(name="Mug", auto_arrange=False)
    draft.add_image("i1")
    draft.reset()
    assert draft.name == ""
    assert draft.images == []
    assert draft.media_order == []
    assert draft.auto_arrange is False


def test_seller_client_upload_and_submit(seller_client, tmp_path):
    draft = ProductDraft(name="Clay Vase", category="furniture", stock=4, price=1200)

    picture = tmp_path / "vase.png"
    picture.write_bytes(b"\x89PNGfake")
    assert seller_client.upload_into(draft, picture, "image/png").ok
    assert seller_client.upload_into(draft, io.BytesIO(b"fake-mp4"), "video/mp4", "spin.mp4").ok
    assert len(draft.images) == 1 and len(draft.videos) == 1

    result = seller_client.add_product(draft)
    assert result.ok
    assert result.message == "Product added!"
    product = result.data["product"]
    assert [item["type"] for item in product["mediaOrder"]] == ["image", "video"]
    assert product["image"] == draft.images[0]


def test_seller_client_blocks_an_invalid_draft(seller_client):
    result = seller_client.add_product(ProductDraft(name="", category="toys", stock=1, price=1))
    assert result.outcome is Outcome.BLOCKED
    assert result.message == "Product name required."


def test_seller_client_upload_rejection(seller_client):
    result = seller_client.upload(io.BytesIO(b"text"), "text/plain", "notes.txt")
    assert result.outcome is Outcome.REJECTED
    assert result.message == "Only image and video uploads are allowed."


def test_seller_client_clears_an_expired_session(client, seller):
    session = ClientSession()
    session.write_token("expired-token")
    session.write_user(seller["user"])
    seller_client = SellerClient(http=client, session=session)

    result = seller_client.add_product(ProductDraft(name="Mug", category="kitchen", stock=1, price=10))
    assert result.status_code == 401
    assert not session.is_authenticated
    assert session.read_user() is None


def test_product_auth_failure_uses_the_error_key(client, seller):
    response = client.post(CREATE, json=product_body(seller["user"]["id"]))
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Not authenticated"}


class EndlessStream:
    """Readable that never ends, counting how much has been handed out."""

    def __init__(self, fail_after=None):
        self.served = 0
        self.fail_after = fail_after

    def read(self, size=-1):
        if self.fail_after is not None and self.served >= self.fail_after:
            raise OSError("connection reset")
        size = size if size and size > 0 else 1024
        self.served += size
        return b"x" * size


def test_upload_store_stops_reading_past_the_limit(tmp_path):
    stream = EndlessStream()
    store = UploadStore(directory=str(tmp_path), max_bytes=3 * CHUNK_SIZE)
    with pytest.raises(UploadRejected):
        store.save(stream, "huge.mp4", "video/mp4")
    assert stream.served <= 4 * CHUNK_SIZE
    assert list(tmp_path.iterdir()) == []


def test_upload_store_removes_a_partial_file(tmp_path):
    stream = EndlessStream(fail_after=CHUNK_SIZE)
    store = UploadStore(directory=str(tmp_path), max_bytes=10 * CHUNK_SIZE)
    with pytest.raises(OSError):
        store.save(stream, "clip.mp4", "video/mp4")
    assert list(tmp_path.iterdir()) == []


def test_draft_ignores_repeated_media():
    draft = ProductDraft()
    draft.add_image("http://cdn/a.png")
    draft.add_image("http://cdn/a.png ")
    draft.add_video("http://cdn/a.png")
    assert draft.images == ["http://cdn/a.png"]
    assert draft.videos == []
    assert draft.media_order == [MediaItem(IMAGE, "http://cdn/a.png")]


def test_draft_with_a_repeated_upload_is_accepted(seller_client):
    draft = ProductDraft(name="Tote Bag", category="fashion", stock=2, price=350)
    draft.add_image("http://cdn/tote.png")
    draft.add_image("http://cdn/tote.png")
    draft.add_video("http://cdn/tote.mp4")

    result = seller_client.add_product(draft)
    assert result.ok, result.message
    assert result.data["product"]["mediaOrder"] == [
        {"type": "image", "url": "http://cdn/tote.png"},
        {"type": "video", "url": "http://cdn/tote.mp4"},
    ]


@pytest.mark.parametrize("stock", ["0.5", "2.5", 1.5])
def test_draft_requires_whole_stock(stock):
    draft = ProductDraft(name="Mug", category="kitchen", stock=stock, price="249")
    assert draft.validate("seller-1") == "Stock must be a whole number."


def test_draft_accepts_whole_stock_written_as_decimal():
    draft = ProductDraft(name="Mug", category="kitchen", stock="3.0", price="249")
    assert draft.validate("seller-1") is None
    assert draft.to_payload("seller-1")["stock"] == 3
