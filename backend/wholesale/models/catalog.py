from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


PRODUCT_TYPE_FABRIC = "FABRIC"
PRODUCT_TYPE_HARDWARE = "HARDWARE"
PRODUCT_TYPES = [PRODUCT_TYPE_FABRIC, PRODUCT_TYPE_HARDWARE]

AVAILABILITY_IN_STOCK = "IN_STOCK"
AVAILABILITY_PREORDER = "PREORDER"
AVAILABILITY_OUT_OF_STOCK = "OUT_OF_STOCK"
AVAILABILITY_STATUSES = [AVAILABILITY_IN_STOCK, AVAILABILITY_PREORDER, AVAILABILITY_OUT_OF_STOCK]


class Product(db.Model):
    """
    Catalog product (fabric roll or hardware item).

    Stock semantics:
    - Without variants, sellable stock is available_qty - reserved_qty.
    - With variants, every variant owns its stock counter and the
      product-level quantity fields are ignored for saleability.

    Pricing fields are copied into each order item at checkout; later edits
    never reprice historical orders.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_type_category", "type", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), nullable=False, unique=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    type = db.Column(db.String(16), nullable=False, default=PRODUCT_TYPE_FABRIC)
    category = db.Column(db.String(64), nullable=True)

    # Selling price per unit at full (stock) rate
    price = db.Column(db.Float, nullable=False, default=0.0)
    currency = db.Column(db.String(8), nullable=False, default="USD")
    unit = db.Column(db.String(16), nullable=False, default="m")
    status = db.Column(db.String(16), nullable=False, default=AVAILABILITY_IN_STOCK)

    # Minimum order quantities (stock / factory)
    moq = db.Column(db.Integer, nullable=False, default=1)
    factory_moq = db.Column(db.Integer, nullable=True)

    available_qty = db.Column(db.Integer, nullable=False, default=0)
    reserved_qty = db.Column(db.Integer, nullable=False, default=0)

    # Fabric attributes
    box_qty = db.Column(db.Integer, nullable=True)
    gsm = db.Column(db.Integer, nullable=True)
    width_cm = db.Column(db.Float, nullable=True)

    # Internal (admin-only) fields
    supplier_name = db.Column(db.String(128), nullable=True)
    supplier_wechat = db.Column(db.String(128), nullable=True)
    purchase_price = db.Column(db.Float, nullable=True)
    logistics_cost = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    variants = db.relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.id",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r}>"

    @property
    def has_variants(self) -> bool:
        return bool(self.variants)

    def find_variant(self, code: str | None) -> "ProductVariant | None":
        if not code:
            return None
        for variant in self.variants:
            if variant.code == code:
                return variant
        return None

    def to_snapshot(self) -> dict:
        """Immutable copy stored on order items."""
        return {
            "id": self.id,
            "sku": self.sku,
            "title": self.title,
            "type": self.type,
            "category": self.category,
            "price": self.price,
            "currency": self.currency,
            "unit": self.unit,
            "moq": self.moq,
            "factory_moq": self.factory_moq,
            "gsm": self.gsm,
            "width_cm": self.width_cm,
            "supplier_name": self.supplier_name,
            "supplier_wechat": self.supplier_wechat,
            "purchase_price": self.purchase_price,
            "logistics_cost": self.logistics_cost,
            "variants": [v.to_dict() for v in self.variants],
        }

    def to_dict(self, include_internal: bool = True) -> dict:
        data = {
            "id": self.id,
            "sku": self.sku,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "category": self.category,
            "price": self.price,
            "currency": self.currency,
            "unit": self.unit,
            "status": self.status,
            "moq": self.moq,
            "factory_moq": self.factory_moq,
            "available_qty": self.available_qty,
            "reserved_qty": self.reserved_qty,
            "box_qty": self.box_qty,
            "gsm": self.gsm,
            "width_cm": self.width_cm,
            "variants": [v.to_dict() for v in self.variants],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_internal:
            data.update({
                "supplier_name": self.supplier_name,
                "supplier_wechat": self.supplier_wechat,
                "purchase_price": self.purchase_price,
                "logistics_cost": self.logistics_cost,
            })
        return data


class ProductVariant(db.Model):
    """Color/design variant with its own stock counter (code is e.g. "A")."""
    __tablename__ = "product_variants"
    __table_args__ = (
        db.UniqueConstraint("product_id", "code", name="uq_product_variants_product_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    code = db.Column(db.String(16), nullable=False)
    name = db.Column(db.String(128), nullable=False)
    color = db.Column(db.String(16), nullable=True)  # hex, e.g. "#000080"
    stock = db.Column(db.Integer, nullable=False, default=0)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    product = db.relationship("Product", back_populates="variants")
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.code,
            "name": self.name,
            "color": self.color,
            "stock": self.stock,
        }
