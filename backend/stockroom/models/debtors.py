from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Debtor(db.Model):
    """
    Money owed to the business.

    Created unpaid; mutated by edits or by toggling is_paid; deleted explicitly.
    Not linked to any product.
    """
    __tablename__ = "debtors"
    __table_args__ = (
        db.Index("ix_debtors_is_paid", "is_paid"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    notes = db.Column(db.Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Debtor id={self.id} name={self.name!r} is_paid={self.is_paid}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "amount_cents": self.amount_cents,
            "date": to_utc_z(self.date),
            "is_paid": self.is_paid,
            "notes": self.notes,
        }
