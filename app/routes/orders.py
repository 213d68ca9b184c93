from flask import Blueprint, jsonify

from backend.db import get_db
from backend.errors import handles_errors
from backend.security import current_user_id, is_auth, require_owner

from ..services import shop

bp = Blueprint("orders", __name__, url_prefix="/orders")


@bp.get("")
@is_auth
@handles_errors("Fetching orders failed")
def list_orders():
    return jsonify({"message": "Orders fetched successfully", "orders": shop.list_orders(get_db(), current_user_id())})


@bp.get("/<int:order_id>")
@is_auth
@handles_errors("Fetching order failed")
def get_order(order_id: int):
    conn = get_db()
    row = shop.get_order_row(conn, order_id)
    require_owner(row["creator_id"])
    return jsonify({"message": "Order fetched successfully", "order": shop.order_detail(conn, row)})


@bp.post("")
@is_auth
@handles_errors("Order creation failed")
def create_order():
    order = shop.create_order(get_db(), current_user_id())
    return jsonify({"message": "Order created successfully", "order": order}), 201


@bp.delete("/<int:order_id>")
@is_auth
@handles_errors("Order deletion failed")
def delete_order(order_id: int):
    conn = get_db()
    row = shop.get_order_row(conn, order_id)
    require_owner(row["creator_id"])
    shop.delete_order(conn, order_id)
    return jsonify({"message": "Order deleted successfully"})
