"""Per-user persistence for lab parameters."""
from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from labdash.models.lab_parameter import LabParameter
from labdash.services.errors import DuplicateParameterError


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == "23505":
        return True
    text = str(orig if orig is not None else exc).lower()
    return "unique" in text or "duplicate" in text


class LabParameterStore:
    """Every query is scoped to one ``user_id``."""

    def __init__(self, db: Session):
        self.db = db

    def find_one(self, user_id: str, **fields: Any) -> Optional[LabParameter]:
        qry = self.db.query(LabParameter).filter(LabParameter.user_id == str(user_id))
        for name, value in fields.items():
            qry = qry.filter(getattr(LabParameter, name) == value)
        try:
            return qry.first()
        except Exception:
            # a failed SELECT leaves Postgres transactions aborted
            self.db.rollback()
            raise

    def create(self, user_id: str, **fields: Any) -> LabParameter:
        item = LabParameter(user_id=str(user_id), **fields)
        self.db.add(item)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if _is_unique_violation(exc):
                raise DuplicateParameterError(str(exc.orig)) from exc
            raise
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(item)
        return item

    def list_for_user(self, user_id: str) -> List[LabParameter]:
        return (
            self.db.query(LabParameter)
            .filter(LabParameter.user_id == str(user_id))
            .order_by(LabParameter.test_date.desc(), LabParameter.created_at.desc())
            .all()
        )

    def delete_one(self, user_id: str, parameter_id: str) -> bool:
        item = self.find_one(user_id, id=parameter_id)
        if not item:
            return False
        self.db.delete(item)
        self.db.commit()
        return True

    def delete_many(self, user_id: str) -> int:
        count = (
            self.db.query(LabParameter)
            .filter(LabParameter.user_id == str(user_id))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return count


__all__ = ["LabParameterStore"]
