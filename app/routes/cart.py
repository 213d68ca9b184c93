from flask import Blueprint, jsonify

from backend.db import get_db
from backend.errors import handles_errors
from backend.security import current_user_id, is_auth

from ..schemas import CartItemIn, parse_payload
from ..services import shop

bp = Blueprint("cart", __name__, url_prefix="/cart")


@bp.get("")
@is_auth
@handles_errors("Fetching cart failed")
def get_cart():
    return jsonify({"message": "Cart fetched successfully", "cart": shop.get_cart(get_db(), current_user_id())})


@bp.post("")
@is_auth
@handles_errors("Adding to cart failed")
def add_to_cart():
    data = parse_payload(CartItemIn)
    cart = shop.add_to_cart(get_db(), current_user_id(), data.product_id, data.quantity)
    return jsonify({"message": "Product added to cart successfully", "cart": cart}), 201


@bp.delete("/<int:product_id>")
@is_auth
@handles_errors("Removing from cart failed")
def remove_from_cart(product_id: int):
    cart = shop.remove_from_cart(get_db(), current_user_id(), product_id)
    return jsonify({"message": "Product deleted from cart successfully", "cart": cart})
