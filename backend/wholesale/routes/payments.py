# Overview: Flask API routes for payments operations; parses input and returns JSON responses.

# backend/wholesale/routes/payments.py
"""
Payment API Routes

DESIGN:
- Payments are recorded as proofs against an order (installments).
- Sending an existing proof id edits that proof in place.
- Invalid amounts are a no-op in the service; the route reports them as 400.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import payment_service
from ..services.payment_service import PaymentError
from ..services.order_service import OrderError, get_order
from ..services.concurrency import PersistenceError


payments_bp = Blueprint("payments", __name__, url_prefix="/api/orders")


@payments_bp.post("/<int:order_id>/payments")
def save_payment_route(order_id: int):
    """
    Add or edit a payment on an order.

    Request body:
    {
        "amount": 500,
        "method": "CASH",
        "payment_id": "PAY-...",   (optional, edit in place)
        "file_url": "https://...", (optional receipt)
        "file_name": "receipt.jpg" (optional)
    }

    Returns:
        200: Order with updated paid amount
        400: Invalid amount (nothing saved) or unknown method
        404: Order not found
    """
    try:
        data = request.get_json(silent=True) or {}

        order = payment_service.save_payment(
            order_id,
            data.get("amount"),
            data.get("method") or payment_service.METHOD_CASH,
            payment_id=data.get("payment_id"),
            file_url=data.get("file_url"),
            file_name=data.get("file_name"),
        )

        if order is None:
            return jsonify({"error": "Amount must be a positive number"}), 400

        return jsonify({
            "order": order.to_dict(),
            "summary": payment_service.get_payment_summary(order),
        }), 200

    except (PaymentError, OrderError) as e:
        status_code = 404 if "not found" in str(e) else 400
        return jsonify({"error": str(e)}), status_code
    except PersistenceError:
        current_app.logger.exception("Payment could not be persisted")
        return jsonify({"error": "Storage unavailable"}), 503
    except Exception:
        current_app.logger.exception("Failed to save payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/<int:order_id>/payments")
def list_payments_route(order_id: int):
    try:
        order = get_order(order_id)
    except OrderError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({
        "order_id": order.id,
        "payments": [p.to_dict() for p in order.payment_proofs],
        "summary": payment_service.get_payment_summary(order),
    }), 200
