from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, date
from typing import List, Optional
import json

from tracker.constants import (
    Frequency, Rating, Weekday,
    TIME_PATTERN, QUARTER_PATTERN, DEFAULT_FLEXIBILITY_MINUTES
)


def _normalize_weekdays(value):
    """Accept weekday names in any case, drop duplicates, keep Monday..Sunday order"""
    if value is None:
        return None
    if isinstance(value, str):
        value = json.loads(value)
    if not isinstance(value, (list, tuple)):
        raise ValueError("specific_days must be a list of weekday names")

    names = []
    for item in value:
        name = str(item).strip().lower()
        if name not in names:
            names.append(name)

    # Unknown names sort last and fail enum validation
    order = {d.value: i for i, d in enumerate(Weekday)}
    return sorted(names, key=lambda n: order.get(n, len(order)))


# Discipline schemas
class DisciplineBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    frequency: Frequency = Frequency.DAILY
    specific_days: Optional[List[Weekday]] = None
    target_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    flexibility_minutes: int = Field(default=DEFAULT_FLEXIBILITY_MINUTES, ge=0, le=240)
    quarter: Optional[str] = Field(None, pattern=QUARTER_PATTERN)

    @field_validator("specific_days", mode="before")
    @classmethod
    def normalize_specific_days(cls, value):
        return _normalize_weekdays(value)


class DisciplineCreate(DisciplineBase):
    started_at: Optional[datetime] = None

    @model_validator(mode="after")
    def require_days_for_specific_frequency(self):
        if self.frequency == Frequency.SPECIFIC_DAYS and not self.specific_days:
            raise ValueError("specific_days must list at least one day for SPECIFIC_DAYS")
        return self


class DisciplineUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    frequency: Optional[Frequency] = None
    specific_days: Optional[List[Weekday]] = None
    target_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    flexibility_minutes: Optional[int] = Field(None, ge=0, le=240)
    quarter: Optional[str] = Field(None, pattern=QUARTER_PATTERN)

    @field_validator("specific_days", mode="before")
    @classmethod
    def normalize_specific_days(cls, value):
        return _normalize_weekdays(value)

    # Omitted fields stay unchanged; an explicit null would clear a required column
    @field_validator("title", "frequency")
    @classmethod
    def reject_null_required_fields(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value

    @model_validator(mode="after")
    def reject_empty_specific_days(self):
        if self.frequency == Frequency.SPECIFIC_DAYS and self.specific_days == []:
            raise ValueError("specific_days must list at least one day for SPECIFIC_DAYS")
        return self


class DisciplineResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    frequency: str
    specific_days: Optional[List[str]] = None
    target_time: Optional[str] = None
    flexibility_minutes: Optional[int] = None
    quarter: Optional[str] = None
    status: str
    started_at: datetime
    ingrained_at: Optional[datetime] = None
    evolved_from_id: Optional[int] = None
    ingrained_reflection: Optional[str] = None
    retired_reason: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    # Populated by API
    frequency_label: Optional[str] = None

    @field_validator("specific_days", mode="before")
    @classmethod
    def decode_specific_days(cls, value):
        # Stored as JSON text; unreadable data is reported as no days
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                return []
        return value if isinstance(value, list) else None

    class Config:
        from_attributes = True


class GraduateRequest(BaseModel):
    reflection: str = Field(..., min_length=1, max_length=1000)


class RetireRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


# Discipline check schemas
class CheckInRequest(BaseModel):
    rating: Rating
    actual_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    note: Optional[str] = Field(None, max_length=1000)


class DisciplineCheckResponse(BaseModel):
    id: int
    discipline_id: int
    date: date
    rating: str
    actual_time: Optional[str] = None
    note: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Engine results
class DisciplineStats(BaseModel):
    streak: int = 0
    quarter_consistency: int = Field(default=0, ge=0, le=100)
    total_checks: int = 0
    nailed_it_count: int = 0
    close_count: int = 0
    missed_count: int = 0


class TodayDiscipline(BaseModel):
    discipline: DisciplineResponse
    is_applicable_today: bool
    today_check: Optional[DisciplineCheckResponse] = None
    streak: int = 0
    next_applicable_day: Optional[str] = None  # Weekday name, e.g. "Thursday"


class LimitWarningResponse(BaseModel):
    active_count: int
    should_warn: bool
