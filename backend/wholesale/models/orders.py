from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Order(db.Model):
    """
    Wholesale order document.

    total_amount is fixed at checkout. paid_amount always equals the sum of
    payment proof amounts and is rewritten on every payment mutation.
    Orders are never deleted; CANCELLED is a terminal status.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_client_status", "client_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "ORD-7F3K9Q2ZD")
    order_number = db.Column(db.String(32), nullable=False, unique=True)

    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)

    # Denormalized client contact at order time
    telegram_id = db.Column(db.String(64), nullable=True)
    username = db.Column(db.String(128), nullable=True)
    client_brand = db.Column(db.String(128), nullable=True)
    client_phone = db.Column(db.String(32), nullable=True)

    status = db.Column(db.String(24), nullable=False, default="ORDERED", index=True)

    total_amount = db.Column(db.Float, nullable=False, default=0.0)
    paid_amount = db.Column(db.Float, nullable=False, default=0.0)
    currency = db.Column(db.String(8), nullable=False, default="USD")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    status_updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    client = db.relationship("Client", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy=True,
    )
    payment_proofs = db.relationship(
        "PaymentProof",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="PaymentProof.id",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order {self.order_number} status={self.status}>"

    @property
    def remaining_amount(self) -> float:
        return (self.total_amount or 0.0) - (self.paid_amount or 0.0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "client_id": self.client_id,
            "telegram_id": self.telegram_id,
            "username": self.username,
            "client_brand": self.client_brand,
            "client_phone": self.client_phone,
            "status": self.status,
            "items": [item.to_dict() for item in self.items],
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "remaining_amount": self.remaining_amount,
            "currency": self.currency,
            "created_at": to_utc_z(self.created_at),
            "status_updated_at": to_utc_z(self.status_updated_at),
            "payment_proofs": [p.to_dict() for p in self.payment_proofs],
            "version_id": self.version_id,
        }


class OrderItem(db.Model):
    """
    Order line with its checkout-time fulfillment split.

    product_id intentionally has no foreign key: the snapshot keeps the
    line reportable after the product is edited or removed.
    """
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, nullable=False, index=True)
    variant_id = db.Column(db.String(16), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    force_factory = db.Column(db.Boolean, nullable=False, default=False)

    stock_qty = db.Column(db.Integer, nullable=False, default=0)
    factory_qty = db.Column(db.Integer, nullable=False, default=0)
    factory_discount_rate = db.Column(db.Float, nullable=False, default=0.03)

    product_snapshot = db.Column(db.JSON, nullable=True)

    order = db.relationship("Order", back_populates="items")

    @property
    def snapshot(self) -> dict:
        return self.product_snapshot or {}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "quantity": self.quantity,
            "force_factory": self.force_factory,
            "stock_qty": self.stock_qty,
            "factory_qty": self.factory_qty,
            "factory_discount_rate": self.factory_discount_rate,
            "product_snapshot": self.product_snapshot,
        }


class PaymentProof(db.Model):
    """
    Payment recorded against an order (cash, transfer or card).

    Proofs stay attached to an order after it is cancelled; balance
    computations exclude them together with the order.
    """
    __tablename__ = "payment_proofs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    proof_number = db.Column(db.String(32), nullable=False, unique=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    amount = db.Column(db.Float, nullable=False)
    method = db.Column(db.String(16), nullable=False, default="CASH")
    file_url = db.Column(db.Text, nullable=True)
    file_name = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="APPROVED")

    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order = db.relationship("Order", back_populates="payment_proofs")

    def to_dict(self) -> dict:
        return {
            "id": self.proof_number,
            "amount": self.amount,
            "method": self.method,
            "file_url": self.file_url,
            "file_name": self.file_name,
            "status": self.status,
            "timestamp": to_utc_z(self.timestamp),
        }
