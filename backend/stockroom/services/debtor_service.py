# Overview: Service-layer operations for debtors; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Debtor
from ..models.activity import ACTIVITY_DEBTOR
from ..validation import NotFoundError
from .activity_service import append_activity
from .role_service import require_manager
from stockroom.time_utils import utcnow

DEBTOR_MUTABLE_FIELDS = {"name", "amount_cents", "notes"}


def _get_or_raise(debtor_id: int) -> Debtor:
    debtor = db.session.query(Debtor).filter_by(id=debtor_id).first()
    if debtor is None:
        raise NotFoundError(f"Debtor {debtor_id} not found")
    return debtor


def list_debtors() -> list[dict]:
    """Newest first."""
    debtors = db.session.query(Debtor).order_by(Debtor.date.desc(), Debtor.id.desc()).all()
    return [d.to_dict() for d in debtors]


def create_debtor(*, patch: dict, actor) -> dict:
    """New debtors always start unpaid and dated now."""
    require_manager(actor)

    debtor = Debtor(is_paid=False, date=utcnow())
    for k, v in patch.items():
        if k in DEBTOR_MUTABLE_FIELDS:
            setattr(debtor, k, v)

    db.session.add(debtor)
    append_activity(ACTIVITY_DEBTOR, f"Added new debtor: {debtor.name}", actor)
    db.session.commit()
    return debtor.to_dict()


def update_debtor(*, debtor_id: int, patch: dict, actor) -> dict:
    require_manager(actor)
    debtor = _get_or_raise(debtor_id)

    for k, v in patch.items():
        if k in DEBTOR_MUTABLE_FIELDS:
            setattr(debtor, k, v)

    append_activity(ACTIVITY_DEBTOR, f"Updated info for debtor: {debtor.name}", actor)
    db.session.commit()
    return debtor.to_dict()


def toggle_debtor_status(*, debtor_id: int, actor) -> dict:
    require_manager(actor)
    debtor = _get_or_raise(debtor_id)

    debtor.is_paid = not debtor.is_paid
    status = "Paid" if debtor.is_paid else "Unpaid"
    append_activity(ACTIVITY_DEBTOR, f"Marked {debtor.name} as {status}", actor)
    db.session.commit()
    return debtor.to_dict()


def delete_debtor(*, debtor_id: int, actor) -> None:
    require_manager(actor)
    debtor = _get_or_raise(debtor_id)

    db.session.delete(debtor)
    append_activity(ACTIVITY_DEBTOR, f"Deleted debtor record: {debtor.name}", actor)
    db.session.commit()
