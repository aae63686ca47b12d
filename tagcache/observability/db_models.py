"""
Tagcache — Metric Rows

One table, one row per recorded sample. Reads filter by name and order by
time, which the single composite index covers.
"""

import json
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class MetricRecord(Base):
    """A timer duration (ms) or counter increment, with its call tags as JSON."""

    __tablename__ = "metrics"
    __table_args__ = (Index("ix_metrics_name_recorded", "name", "recorded_at"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    value: Mapped[float]
    tags: Mapped[str] = mapped_column(Text, default="{}")
    recorded_at: Mapped[datetime]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "tags": json.loads(self.tags),
            "timestamp": self.recorded_at.isoformat(),
        }

    @classmethod
    def from_sample(cls, name: str, value: float, tags: dict[str, str], at: float) -> "MetricRecord":
        return cls(
            name=name,
            value=value,
            tags=json.dumps(tags, sort_keys=True),
            recorded_at=datetime.fromtimestamp(at, UTC),
        )
