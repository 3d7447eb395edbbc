from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


EXPENSE_CATEGORIES = ["RENT", "UTILITIES", "SALARY", "LOGISTICS", "MARKETING", "OTHER"]

SEARCH_TYPE_TEXT = "TEXT"
SEARCH_TYPE_PHOTO = "PHOTO"


class Expense(db.Model):
    """Operating expense; feeds net-profit reporting only."""
    __tablename__ = "expenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    category = db.Column(db.String(16), nullable=False, default="OTHER")
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    receipt_url = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "amount": self.amount,
            "category": self.category,
            "date": to_utc_z(self.date),
            "receipt_url": self.receipt_url,
        }


class SearchLog(db.Model):
    __tablename__ = "search_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=True, index=True)
    client_name = db.Column(db.String(128), nullable=True)
    type = db.Column(db.String(8), nullable=False, default=SEARCH_TYPE_TEXT)
    search_query = db.Column("query", db.String(255), nullable=True)
    results_count = db.Column(db.Integer, nullable=False, default=0)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    details = db.Column(db.JSON, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "client_name": self.client_name,
            "type": self.type,
            "query": self.search_query,
            "results_count": self.results_count,
            "timestamp": to_utc_z(self.timestamp),
            "details": self.details,
        }
