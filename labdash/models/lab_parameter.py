# labdash/models/lab_parameter.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from labdash.db.session import Base

STATUSES = ("Low", "Normal", "High")
UNKNOWN_SOURCE = "Unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LabParameter(Base):
    """One measured lab value for one user.

    Rows are never updated; the primary duplicate key is enforced by the
    unique constraint below and is the only guard between concurrent uploads.
    """

    __tablename__ = "lab_parameters"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "parameter_name", "value", "test_date", "unit",
            name="uq_lab_parameters_primary_key",
        ),
        Index("ix_lab_parameters_source_key", "user_id", "parameter_name", "source_file", "test_date"),
        Index("ix_lab_parameters_user_source", "user_id", "source_file"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )

    parameter_name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[str] = mapped_column(String(64), nullable=False)
    normal_range: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    test_date: Mapped[str] = mapped_column(String(10), nullable=False)
    source_file: Mapped[str] = mapped_column(String(255), nullable=False, default=UNKNOWN_SOURCE)

    extracted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    user = relationship("User", back_populates="lab_parameters")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "parameterName": self.parameter_name,
            "value": self.value,
            "unit": self.unit,
            "normalRange": self.normal_range,
            "status": self.status,
            "testDate": self.test_date,
            "sourceFile": self.source_file,
            "extractedAt": self.extracted_at.isoformat() if self.extracted_at else None,
        }
