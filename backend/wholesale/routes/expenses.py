# Overview: Flask API routes for operating expenses.

from flask import Blueprint, request
from ..services import catalog_service
from ..models import Expense
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_expense,
    ValidationError,
)

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"title", "amount", "category", "date", "receipt_url"},
    required_on_create={"title", "amount", "category"},
)

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
def list_expenses():
    items = catalog_service.list_expenses()
    return {"items": items, "count": len(items)}


@expenses_bp.post("")
def create_expense_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)
        enforce_rules_expense(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return catalog_service.create_expense(patch=patch), 201


@expenses_bp.delete("/<int:expense_id>")
def delete_expense_route(expense_id: int):
    if not catalog_service.delete_expense(expense_id):
        return {"error": "Expense not found"}, 404
    return {"ok": True}, 200
