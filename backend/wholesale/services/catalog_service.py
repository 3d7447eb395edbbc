# backend/wholesale/services/catalog_service.py
"""
Catalog, client and expense maintenance.

Product variants are replaced as a whole on every write that carries a
"variants" list; variant stock is clamped at zero. Deleting a product is a
hard delete: historical order items keep their snapshots, and reorder
skips product ids that no longer exist.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Client, Expense, Product, ProductVariant
from ..validation import ConflictError, ValidationError
from .concurrency import lock_for_update, run_with_retry
from ..time_utils import utcnow

PRODUCT_MUTABLE_FIELDS = {
    "sku", "title", "description", "type", "category", "price", "currency", "unit",
    "status", "moq", "factory_moq", "available_qty", "reserved_qty", "box_qty", "gsm",
    "width_cm", "supplier_name", "supplier_wechat", "purchase_price", "logistics_cost",
}
CLIENT_MUTABLE_FIELDS = {"telegram_id", "username", "name", "brand", "phone", "role"}
EXPENSE_MUTABLE_FIELDS = {"title", "amount", "category", "date", "receipt_url"}


def _apply_patch(obj, patch: dict, allowed: set[str]) -> None:
    for k, v in patch.items():
        if k not in allowed:
            continue
        setattr(obj, k, v)


# =============================================================================
# VARIANTS
# =============================================================================

def parse_variants(raw) -> list[dict]:
    """
    Validate a variants payload: [{"id": "A", "name": "Navy", "color": "#000080", "stock": 50}].

    Codes must be unique per product. Negative or missing stock becomes 0.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("variants must be a list")

    parsed = []
    seen = set()
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationError("variant must be an object")
        code = str(entry.get("id") or "").strip()
        name = str(entry.get("name") or "").strip()
        if not code or not name:
            raise ValidationError("variant id and name are required")
        if code in seen:
            raise ValidationError(f"Duplicate variant id: {code}")
        seen.add(code)

        stock = entry.get("stock", 0)
        if isinstance(stock, bool) or not isinstance(stock, (int, float)):
            raise ValidationError("variant stock must be a number")

        parsed.append({
            "code": code,
            "name": name,
            "color": entry.get("color"),
            "stock": max(0, int(stock)),
        })
    return parsed


def _replace_variants(product: Product, variants: list[dict]) -> None:
    by_code = {v.code: v for v in product.variants}
    keep = []
    for data in variants:
        variant = by_code.get(data["code"])
        if variant is None:
            variant = ProductVariant(code=data["code"])
        variant.name = data["name"]
        variant.color = data["color"]
        variant.stock = data["stock"]
        keep.append(variant)
    product.variants = keep


# =============================================================================
# PRODUCTS
# =============================================================================

def list_products(product_type: str | None = None, include_internal: bool = True) -> dict:
    query = db.session.query(Product)
    if product_type:
        query = query.filter_by(type=product_type)
    products = query.order_by(Product.id.asc()).all()
    return {
        "items": [p.to_dict(include_internal=include_internal) for p in products],
        "count": len(products),
    }


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def create_product(*, patch: dict, variants=None) -> dict:
    """
    Create a product from a validated patch.

    Raises:
        ConflictError: SKU already exists
    """
    sku = patch.get("sku")
    if sku is None:
        raise ValueError("sku is required")
    parsed_variants = parse_variants(variants)

    def _op():
        if db.session.query(Product.id).filter_by(sku=sku).first():
            raise ConflictError("SKU already exists.")

        p = Product()
        _apply_patch(p, patch, PRODUCT_MUTABLE_FIELDS)
        _replace_variants(p, parsed_variants)
        db.session.add(p)
        db.session.commit()
        return p.to_dict()

    return run_with_retry(_op)


def update_product(*, product_id: int, patch: dict, variants=None) -> dict | None:
    """
    Patch a product. variants=None leaves variants untouched; a list replaces them.

    Returns None when the product does not exist.
    """
    parsed_variants = parse_variants(variants) if variants is not None else None

    def _op():
        p = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if p is None:
            return None

        new_sku = patch.get("sku")
        if new_sku and new_sku != p.sku:
            if db.session.query(Product.id).filter_by(sku=new_sku).first():
                raise ConflictError("SKU already exists.")

        _apply_patch(p, patch, PRODUCT_MUTABLE_FIELDS)
        if parsed_variants is not None:
            _replace_variants(p, parsed_variants)
        p.updated_at = utcnow()
        db.session.commit()
        return p.to_dict()

    return run_with_retry(_op)


def delete_product(product_id: int) -> bool:
    def _op():
        p = db.session.get(Product, product_id)
        if p is None:
            return False
        db.session.delete(p)
        db.session.commit()
        return True

    return run_with_retry(_op)


# =============================================================================
# CLIENTS
# =============================================================================

def list_clients() -> list[dict]:
    return [c.to_dict() for c in db.session.query(Client).order_by(Client.id.asc()).all()]


def get_client(client_id: int) -> Client | None:
    return db.session.get(Client, client_id)


def create_client(*, patch: dict) -> dict:
    telegram_id = patch.get("telegram_id")

    def _op():
        if telegram_id and db.session.query(Client.id).filter_by(telegram_id=telegram_id).first():
            raise ConflictError("Client with this telegram_id already exists.")

        c = Client(balance=0.0)
        _apply_patch(c, patch, CLIENT_MUTABLE_FIELDS)
        db.session.add(c)
        db.session.commit()
        return c.to_dict()

    return run_with_retry(_op)


def update_client(*, client_id: int, patch: dict) -> dict | None:
    def _op():
        c = lock_for_update(db.session.query(Client).filter_by(id=client_id)).first()
        if c is None:
            return None
        _apply_patch(c, patch, CLIENT_MUTABLE_FIELDS)
        db.session.commit()
        return c.to_dict()

    return run_with_retry(_op)


# =============================================================================
# EXPENSES
# =============================================================================

def list_expenses() -> list[dict]:
    expenses = db.session.query(Expense).order_by(Expense.date.desc(), Expense.id.desc()).all()
    return [e.to_dict() for e in expenses]


def create_expense(*, patch: dict) -> dict:
    def _op():
        e = Expense()
        _apply_patch(e, patch, EXPENSE_MUTABLE_FIELDS)
        if e.date is None:
            e.date = utcnow()
        db.session.add(e)
        db.session.commit()
        return e.to_dict()

    return run_with_retry(_op)


def delete_expense(expense_id: int) -> bool:
    def _op():
        e = db.session.get(Expense, expense_id)
        if e is None:
            return False
        db.session.delete(e)
        db.session.commit()
        return True

    return run_with_retry(_op)
