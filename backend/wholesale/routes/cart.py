# Overview: Flask API routes for cart pricing and construction; the cart itself travels in the request.

# backend/wholesale/routes/cart.py
"""
Cart API Routes

The server keeps no cart state. Every request carries the current cart as
a list of lines and gets the new cart (or a quote) back:

    {"cart": [{"product_id": 1, "quantity": 50, "force_factory": false, "variant_id": "A"}]}
"""

from flask import Blueprint, request, jsonify, current_app

from ..services.cart_service import add_to_cart, cart_from_payload, quote_cart, remove_line
from ..services.fulfillment_service import CartValidationError
from ..services.order_service import OrderError, load_products, reorder


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


def _cart_response(cart):
    products = load_products(line.product_id for line in cart)
    return jsonify({
        "cart": [line.to_dict() for line in cart],
        "quote": quote_cart(cart, products),
    })


@cart_bp.post("/quote")
def quote_route():
    """Live pricing of a cart against current stock (nothing is stored)."""
    try:
        data = request.get_json(silent=True) or {}
        cart = cart_from_payload(data.get("cart"))
        return _cart_response(cart), 200
    except CartValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to quote cart")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.post("/add")
def add_route():
    """
    Request body:
    {
        "cart": [...],
        "product_id": 1,
        "quantity": 50,
        "force_factory": false,
        "variant_id": "A"
    }

    Returns:
        200: updated cart and quote
        400: MOQ / variant / factory MOQ violation
        404: unknown product
    """
    try:
        data = request.get_json(silent=True) or {}
        cart = cart_from_payload(data.get("cart"))

        product_id = data.get("product_id")
        quantity = data.get("quantity")
        if not isinstance(product_id, int) or not isinstance(quantity, int) or isinstance(quantity, bool):
            return jsonify({"error": "product_id and integer quantity required"}), 400

        product = load_products([product_id]).get(product_id)
        if product is None:
            return jsonify({"error": "Product not found"}), 404

        cart = add_to_cart(
            cart,
            product,
            quantity,
            force_factory=bool(data.get("force_factory", False)),
            variant_id=data.get("variant_id") or None,
        )
        return _cart_response(cart), 200
    except CartValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add to cart")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.post("/remove")
def remove_route():
    try:
        data = request.get_json(silent=True) or {}
        cart = cart_from_payload(data.get("cart"))
        product_id = data.get("product_id")
        if not isinstance(product_id, int):
            return jsonify({"error": "product_id required"}), 400
        cart = remove_line(cart, product_id, data.get("variant_id") or None)
        return _cart_response(cart), 200
    except CartValidationError as e:
        return jsonify({"error": str(e)}), 400


@cart_bp.post("/reorder/<int:order_id>")
def reorder_route(order_id: int):
    """Merge a past order's items into the cart; deleted products are skipped."""
    try:
        data = request.get_json(silent=True) or {}
        cart = reorder(order_id, cart_from_payload(data.get("cart")))
        return _cart_response(cart), 200
    except CartValidationError as e:
        return jsonify({"error": str(e)}), 400
    except OrderError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to reorder")
        return jsonify({"error": "Internal server error"}), 500
