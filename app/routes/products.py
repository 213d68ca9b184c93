from flask import Blueprint, jsonify, request

from backend.db import get_db
from backend.errors import ApiError, handles_errors
from backend.security import current_user_id, is_auth, require_owner
from backend.uploads import clear_image

from ..models import product_row_to_dict
from ..schemas import ProductIn, parse_payload
from ..services import shop
from . import get_int, pick_image, removed_on_error, settings, uploaded_image

bp = Blueprint("products", __name__, url_prefix="/products")


@bp.get("")
@is_auth
@handles_errors("Fetching products failed")
def list_products():
    page_arg = request.args.get("page")
    page = get_int(page_arg, 1) if page_arg is not None else None
    data = shop.list_products(get_db(), page, settings().products_per_page)
    return jsonify({"message": "Products fetched successfully", **data})


@bp.post("")
@is_auth
@handles_errors("Product creation failed")
def create_product():
    data = parse_payload(ProductIn)
    image_url = uploaded_image()
    if not image_url:
        raise ApiError(422, "No image provided")
    with removed_on_error(image_url):
        product = shop.create_product(get_db(), data, image_url, current_user_id())
    return jsonify({"message": "Product created successfully", "product": product}), 201


@bp.get("/<int:product_id>")
@is_auth
@handles_errors("Fetching product failed")
def get_product(product_id: int):
    row = shop.get_product_row(get_db(), product_id)
    return jsonify({"message": "Product fetched successfully", "product": product_row_to_dict(row)})


@bp.put("/<int:product_id>")
@is_auth
@handles_errors("Product update failed")
def update_product(product_id: int):
    conn = get_db()
    current = shop.get_product_row(conn, product_id)
    require_owner(current["creator_id"])
    data = parse_payload(ProductIn)
    image_url = pick_image(current["image_url"], data.image)
    if not image_url:
        raise ApiError(422, "No file picked")

    fresh = image_url if image_url != current["image_url"] else None
    with removed_on_error(fresh):
        product = shop.update_product(conn, product_id, data, image_url)
    if image_url != current["image_url"]:
        clear_image(current["image_url"])
    return jsonify({"message": "Product updated successfully", "product": product})


@bp.delete("/<int:product_id>")
@is_auth
@handles_errors("Product deletion failed")
def delete_product(product_id: int):
    conn = get_db()
    current = shop.get_product_row(conn, product_id)
    require_owner(current["creator_id"])
    shop.delete_product(conn, product_id)
    clear_image(current["image_url"])
    return jsonify({"message": "Product deleted successfully"})
