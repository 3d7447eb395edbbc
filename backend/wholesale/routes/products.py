# Overview: Flask API routes for catalog products; parses input and returns JSON responses.

# backend/wholesale/routes/products.py
"""
Product catalog routes.

Variants are sent as a separate "variants" list on create/update and are
validated by the catalog service, not by the column policy.
"""
from flask import Blueprint, request
from ..services import catalog_service
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "title", "description", "type", "category", "price", "currency", "unit",
        "status", "moq", "factory_moq", "available_qty", "reserved_qty", "box_qty", "gsm",
        "width_cm", "supplier_name", "supplier_wechat", "purchase_price", "logistics_cost",
    },
    required_on_create={"sku", "title", "type", "price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _split_payload() -> tuple[dict, object]:
    payload = dict(request.get_json(silent=True) or {})
    variants = payload.pop("variants", None)
    return payload, variants


@products_bp.get("")
def list_products():
    """
    Query params:
    - type: FABRIC | HARDWARE (optional)
    - public: "true" hides supplier and cost fields
    """
    product_type = request.args.get("type")
    public = request.args.get("public", "false").lower() == "true"
    return catalog_service.list_products(product_type=product_type, include_internal=not public)


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    product = catalog_service.get_product(product_id)
    if product is None:
        return {"error": "Product not found"}, 404
    return product.to_dict()


@products_bp.post("")
def create_product_route():
    payload, variants = _split_payload()

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = catalog_service.create_product(patch=patch, variants=variants)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except ValueError as e:
        return {"error": str(e)}, 400

    return created, 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload, variants = _split_payload()

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = catalog_service.update_product(product_id=product_id, patch=patch, variants=variants)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except ValidationError as e:
        return {"error": str(e)}, 400

    if updated is None:
        return {"error": "Product not found"}, 404
    return updated


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    if not catalog_service.delete_product(product_id):
        return {"error": "Product not found"}, 404
    return {"ok": True}, 200
