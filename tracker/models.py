from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, UniqueConstraint
from datetime import datetime
from typing import FrozenSet, Optional
import json

from tracker.database import Base
from tracker.constants import Weekday, DEFAULT_FLEXIBILITY_MINUTES


def parse_specific_days(raw: Optional[str]) -> FrozenSet[Weekday]:
    """
    Parse a stored JSON day list into a set of Weekday values.

    Missing, malformed or unknown entries yield an empty set, which the
    scheduling rules treat as "never applicable".
    """
    if not raw:
        return frozenset()
    try:
        names = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return frozenset()
    if not isinstance(names, list):
        return frozenset()

    days = set()
    for name in names:
        if not isinstance(name, str):
            continue
        try:
            days.add(Weekday(name.strip().lower()))
        except ValueError:
            continue
    return frozenset(days)


def serialize_specific_days(days) -> Optional[str]:
    """Store weekdays as a JSON list in Monday..Sunday order"""
    if days is None:
        return None
    ordered = [d.value for d in Weekday if d in set(days)]
    return json.dumps(ordered)


class Discipline(Base):
    __tablename__ = "disciplines"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)  # "Wake up at 5 AM"
    description = Column(String, nullable=True)  # Why this matters

    # Schedule
    frequency = Column(String, nullable=False)  # DAILY, WEEKDAYS, WEEKENDS, SPECIFIC_DAYS, ALWAYS
    specific_days = Column(String, nullable=True)  # JSON: ["monday", "wednesday", "friday"]

    # Time-based disciplines
    target_time = Column(String, nullable=True)  # "05:00"
    flexibility_minutes = Column(Integer, default=DEFAULT_FLEXIBILITY_MINUTES)

    quarter = Column(String, nullable=True)  # YYYY-Qn or None for ongoing

    # Lifecycle
    status = Column(String, nullable=False, default="ACTIVE")  # ACTIVE, INGRAINED, EVOLVED, RETIRED
    started_at = Column(DateTime, nullable=False, default=datetime.now)
    ingrained_at = Column(DateTime, nullable=True)
    evolved_from_id = Column(Integer, nullable=True, index=True)  # Predecessor id, lookup only

    # Reflections
    ingrained_reflection = Column(String, nullable=True)
    retired_reason = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def weekdays(self) -> FrozenSet[Weekday]:
        return parse_specific_days(self.specific_days)


class DisciplineCheck(Base):
    __tablename__ = "discipline_checks"
    __table_args__ = (
        UniqueConstraint("discipline_id", "date", name="uq_discipline_check_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    discipline_id = Column(
        Integer,
        ForeignKey("disciplines.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    date = Column(Date, nullable=False, index=True)

    # Self-assessment: NAILED_IT, CLOSE, MISSED
    rating = Column(String, nullable=False)

    actual_time = Column(String, nullable=True)  # "05:12"
    note = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.now)
