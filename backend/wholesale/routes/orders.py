# Overview: Flask API routes for orders; checkout, status changes and cancellation.

# backend/wholesale/routes/orders.py
"""
Order API Routes

DESIGN:
- Checkout turns the submitted cart into an ORDERED order. An empty cart
  creates nothing and is reported as a 400.
- Admin status changes are unrestricted; stock moves follow the
  previous/new status pair.
- Client cancellation is only possible while the order is ORDERED.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import order_service
from ..services.order_service import OrderError
from ..services.concurrency import PersistenceError
from ..services.fulfillment_service import CartValidationError
from ..services.cart_service import cart_from_payload


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
def checkout_route():
    """
    Request body:
    {
        "client_id": 1,
        "cart": [{"product_id": 1, "quantity": 150, "force_factory": false}]
    }

    Returns:
        201: Order created
        400: Empty cart (nothing created), invalid cart or unknown client/product
        503: Storage unavailable after retries
    """
    try:
        data = request.get_json(silent=True) or {}
        client_id = data.get("client_id")
        if not isinstance(client_id, int):
            return jsonify({"error": "client_id required"}), 400

        cart = cart_from_payload(data.get("cart"))
        order = order_service.checkout(client_id, cart)
        if order is None:
            return jsonify({"error": "Cart is empty"}), 400

        return jsonify({"order": order.to_dict()}), 201

    except (CartValidationError, OrderError) as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError:
        current_app.logger.exception("Checkout could not be persisted")
        return jsonify({"error": "Storage unavailable"}), 503
    except Exception:
        current_app.logger.exception("Failed to checkout")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
def list_orders_route():
    """
    Query params:
    - client_id: int (optional)
    - status: str (optional)
    """
    client_id = request.args.get("client_id", type=int)
    status = request.args.get("status")
    orders = order_service.list_orders(client_id=client_id, status=status)
    return jsonify({"items": [o.to_dict() for o in orders], "count": len(orders)}), 200


@orders_bp.get("/<int:order_id>")
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id)
    except OrderError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"order": order.to_dict()}), 200


@orders_bp.post("/<int:order_id>/status")
def set_status_route(order_id: int):
    """
    Request body:
    {
        "status": "CONFIRMED"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        new_status = data.get("status")
        if not new_status:
            return jsonify({"error": "status required"}), 400

        order = order_service.set_order_status(order_id, new_status)
        return jsonify({"order": order.to_dict()}), 200

    except OrderError as e:
        status_code = 404 if "not found" in str(e) else 400
        return jsonify({"error": str(e)}), status_code
    except PersistenceError:
        current_app.logger.exception("Status change could not be persisted")
        return jsonify({"error": "Storage unavailable"}), 503
    except Exception:
        current_app.logger.exception("Failed to change order status")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/cancel")
def cancel_route(order_id: int):
    """
    Client self-service cancellation.

    Request body (optional):
    {
        "client_id": 1
    }

    Returns:
        200: Cancelled
        400: Order is not ORDERED (or belongs to another client)
    """
    try:
        data = request.get_json(silent=True) or {}
        cancelled = order_service.cancel_order(order_id, client_id=data.get("client_id"))
        if not cancelled:
            return jsonify({"error": "Order cannot be cancelled"}), 400

        order = order_service.get_order(order_id)
        return jsonify({"order": order.to_dict()}), 200

    except PersistenceError:
        current_app.logger.exception("Cancellation could not be persisted")
        return jsonify({"error": "Storage unavailable"}), 503
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500
