# backend/inspection_engine/models.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


# -----------------------------
# Inspections
# -----------------------------
class InspectionRecord(Base):
    __tablename__ = "inspections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    property_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    total_unit_count: Mapped[int] = mapped_column(Integer, nullable=False)
    # Resolved once at start; never rewritten.
    sample_size: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="in_progress")
    catalog_version: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    observations: Mapped[List["ObservationRecord"]] = relationship(
        back_populates="inspection",
        cascade="all, delete-orphan",
        order_by="ObservationRecord.id",
    )


class ObservationRecord(Base):
    __tablename__ = "observations"
    __table_args__ = (
        UniqueConstraint(
            "inspection_id",
            "scope",
            "category_index",
            "item_index",
            "severity",
            "defect_index",
            name="uq_observation_per_key",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    inspection_id: Mapped[int] = mapped_column(
        ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Key columns: "common" | "unit-<n>", then catalog indexes.
    scope: Mapped[str] = mapped_column(String(20), nullable=False)
    category_index: Mapped[int] = mapped_column(Integer, nullable=False)
    item_index: Mapped[int] = mapped_column(Integer, nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    defect_index: Mapped[int] = mapped_column(Integer, nullable=False)

    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # JSON list of external media handles
    media_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    inspection: Mapped["InspectionRecord"] = relationship(back_populates="observations")
