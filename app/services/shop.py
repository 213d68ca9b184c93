from __future__ import annotations

import sqlite3
from typing import Dict, List, Optional

from backend.errors import ApiError

from ..models import product_row_to_dict
from ..schemas import ProductIn
from .common import page_offset, utc_now

# ── Products ────────────────────────────────────────────────────────────────


def get_product_row(conn: sqlite3.Connection, product_id: int) -> sqlite3.Row:
    row = conn.execute("SELECT * FROM products WHERE product_id = ?", (product_id,)).fetchone()
    if row is None:
        raise ApiError(404, f"Could not find the product with id: {product_id}")
    return row


def list_products(conn: sqlite3.Connection, page: Optional[int], per_page: int) -> Dict[str, object]:
    """All products, or a single page of them when ``page`` is given."""
    total = conn.execute("SELECT COUNT(*) AS cnt FROM products").fetchone()["cnt"]
    if page is None:
        rows = conn.execute("SELECT * FROM products ORDER BY product_id").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM products ORDER BY product_id LIMIT ? OFFSET ?",
            (per_page, page_offset(page, per_page)),
        ).fetchall()
    return {"products": [product_row_to_dict(row) for row in rows], "totalItems": total}


def create_product(conn: sqlite3.Connection, data: ProductIn, image_url: str, creator_id: int) -> dict:
    now = utc_now()
    cur = conn.execute(
        """
        INSERT INTO products (name, price, description, image_url, creator_id, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (data.name, data.price, data.description, image_url, creator_id, now, now),
    )
    conn.commit()
    return product_row_to_dict(get_product_row(conn, cur.lastrowid))


def update_product(conn: sqlite3.Connection, product_id: int, data: ProductIn, image_url: str) -> dict:
    conn.execute(
        """
        UPDATE products
        SET name = ?, price = ?, description = ?, image_url = ?, updated_at = ?
        WHERE product_id = ?
        """,
        (data.name, data.price, data.description, image_url, utc_now(), product_id),
    )
    conn.commit()
    return product_row_to_dict(get_product_row(conn, product_id))


def delete_product(conn: sqlite3.Connection, product_id: int) -> None:
    conn.execute("DELETE FROM products WHERE product_id = ?", (product_id,))
    conn.commit()


# ── Cart ────────────────────────────────────────────────────────────────────


def _cart_row(conn: sqlite3.Connection, user_id: int) -> Optional[sqlite3.Row]:
    return conn.execute("SELECT * FROM carts WHERE user_id = ?", (user_id,)).fetchone()


def _cart_to_dict(conn: sqlite3.Connection, cart: sqlite3.Row) -> dict:
    rows = conn.execute(
        """
        SELECT ci.quantity, p.*
        FROM cart_items ci
        JOIN products p ON p.product_id = ci.product_id
        WHERE ci.cart_id = ?
        ORDER BY ci.item_id
        """,
        (cart["cart_id"],),
    ).fetchall()
    return {
        "_id": cart["cart_id"],
        "user": cart["user_id"],
        "products": [{"product": product_row_to_dict(row), "quantity": row["quantity"]} for row in rows],
        "createdAt": cart["created_at"],
        "updatedAt": cart["updated_at"],
    }


def get_cart(conn: sqlite3.Connection, user_id: int) -> dict:
    cart = _cart_row(conn, user_id)
    if cart is None:
        raise ApiError(404, "Cart not found")
    return _cart_to_dict(conn, cart)


def add_to_cart(conn: sqlite3.Connection, user_id: int, product_id: int, quantity: int) -> dict:
    """Add ``quantity`` units of a product, creating the cart on first use."""
    get_product_row(conn, product_id)
    now = utc_now()

    cart = _cart_row(conn, user_id)
    if cart is None:
        cur = conn.execute(
            "INSERT INTO carts (user_id, created_at, updated_at) VALUES (?, ?, ?)",
            (user_id, now, now),
        )
        cart_id = cur.lastrowid
    else:
        cart_id = cart["cart_id"]

    updated = conn.execute(
        "UPDATE cart_items SET quantity = quantity + ? WHERE cart_id = ? AND product_id = ?",
        (quantity, cart_id, product_id),
    ).rowcount
    if not updated:
        conn.execute(
            "INSERT INTO cart_items (cart_id, product_id, quantity) VALUES (?, ?, ?)",
            (cart_id, product_id, quantity),
        )
    conn.execute("UPDATE carts SET updated_at = ? WHERE cart_id = ?", (now, cart_id))
    conn.commit()
    return get_cart(conn, user_id)


def remove_from_cart(conn: sqlite3.Connection, user_id: int, product_id: int) -> dict:
    cart = _cart_row(conn, user_id)
    if cart is None:
        raise ApiError(404, "Cart not found")
    removed = conn.execute(
        "DELETE FROM cart_items WHERE cart_id = ? AND product_id = ?",
        (cart["cart_id"], product_id),
    ).rowcount
    if not removed:
        raise ApiError(404, "Product not found in cart")
    conn.execute("UPDATE carts SET updated_at = ? WHERE cart_id = ?", (utc_now(), cart["cart_id"]))
    conn.commit()
    return get_cart(conn, user_id)


# ── Orders ──────────────────────────────────────────────────────────────────


def _order_to_dict(conn: sqlite3.Connection, order: sqlite3.Row) -> dict:
    rows = conn.execute(
        """
        SELECT oi.product_id, oi.name, oi.price, oi.quantity,
               p.description, p.image_url
        FROM order_items oi
        LEFT JOIN products p ON p.product_id = oi.product_id
        WHERE oi.order_id = ?
        ORDER BY oi.item_id
        """,
        (order["order_id"],),
    ).fetchall()
    order_list: List[dict] = []
    total = 0.0
    for row in rows:
        order_list.append(
            {
                "productItem": {
                    "_id": row["product_id"],
                    "name": row["name"],
                    "price": float(row["price"]),
                    "description": row["description"],
                    "imageUrl": row["image_url"],
                },
                "quantity": row["quantity"],
            }
        )
        total += float(row["price"]) * row["quantity"]
    return {
        "_id": order["order_id"],
        "creator": order["creator_id"],
        "orderList": order_list,
        "total": round(total, 2),
        "createdAt": order["created_at"],
        "updatedAt": order["updated_at"],
    }


def get_order_row(conn: sqlite3.Connection, order_id: int) -> sqlite3.Row:
    row = conn.execute("SELECT * FROM orders WHERE order_id = ?", (order_id,)).fetchone()
    if row is None:
        raise ApiError(404, "Order not found")
    return row


def order_detail(conn: sqlite3.Connection, order: sqlite3.Row) -> dict:
    return _order_to_dict(conn, order)


def list_orders(conn: sqlite3.Connection, user_id: int) -> List[dict]:
    rows = conn.execute(
        "SELECT * FROM orders WHERE creator_id = ? ORDER BY order_id DESC",
        (user_id,),
    ).fetchall()
    return [_order_to_dict(conn, row) for row in rows]


def create_order(conn: sqlite3.Connection, user_id: int) -> dict:
    """Turn the user's cart into an order and empty the cart."""
    cart = _cart_row(conn, user_id)
    if cart is None:
        raise ApiError(404, "Cart not found")
    lines = conn.execute(
        """
        SELECT ci.product_id, ci.quantity, p.name, p.price
        FROM cart_items ci
        JOIN products p ON p.product_id = ci.product_id
        WHERE ci.cart_id = ?
        ORDER BY ci.item_id
        """,
        (cart["cart_id"],),
    ).fetchall()
    if not lines:
        raise ApiError(400, "Cart is empty")

    now = utc_now()
    cur = conn.execute(
        "INSERT INTO orders (creator_id, created_at, updated_at) VALUES (?, ?, ?)",
        (user_id, now, now),
    )
    order_id = cur.lastrowid
    conn.executemany(
        "INSERT INTO order_items (order_id, product_id, name, price, quantity) VALUES (?, ?, ?, ?, ?)",
        [(order_id, line["product_id"], line["name"], line["price"], line["quantity"]) for line in lines],
    )
    conn.execute("DELETE FROM cart_items WHERE cart_id = ?", (cart["cart_id"],))
    conn.execute("UPDATE carts SET updated_at = ? WHERE cart_id = ?", (now, cart["cart_id"]))
    conn.commit()
    return _order_to_dict(conn, get_order_row(conn, order_id))


def delete_order(conn: sqlite3.Connection, order_id: int) -> None:
    conn.execute("DELETE FROM orders WHERE order_id = ?", (order_id,))
    conn.commit()
