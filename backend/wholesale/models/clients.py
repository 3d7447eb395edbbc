from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ROLE_USER = "USER"
ROLE_MANAGER = "MANAGER"
ROLE_ADMIN = "ADMIN"
VALID_ROLES = [ROLE_USER, ROLE_MANAGER, ROLE_ADMIN]


class Client(db.Model):
    """
    Wholesale client (brand account).

    balance is derived: sum(paid) - sum(total) over the client's
    non-cancelled orders. Negative means debt, positive means overpayment.
    It is only ever written by balance_service.sync_balance.
    """
    __tablename__ = "clients"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    telegram_id = db.Column(db.String(64), nullable=True, index=True)
    username = db.Column(db.String(128), nullable=True)
    name = db.Column(db.String(128), nullable=False)
    brand = db.Column(db.String(128), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    role = db.Column(db.String(16), nullable=False, default=ROLE_USER)

    balance = db.Column(db.Float, nullable=False, default=0.0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Client id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "telegram_id": self.telegram_id,
            "username": self.username,
            "name": self.name,
            "brand": self.brand,
            "phone": self.phone,
            "role": self.role,
            "balance": self.balance,
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }
