"""
Discipline service.
Scheduling rules, streaks and quarter consistency for recurring disciplines,
plus the check-in and lifecycle operations built on top of them.
"""
import logging
from datetime import datetime, date, timedelta
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tracker.models import Discipline, DisciplineCheck, serialize_specific_days
from tracker.schemas import (
    DisciplineCreate, DisciplineUpdate, DisciplineResponse, DisciplineCheckResponse,
    DisciplineStats, TodayDiscipline
)
from tracker.repositories.discipline_repository import (
    DisciplineRepository, DisciplineCheckRepository
)
from tracker.services.quarter_service import QuarterService
from tracker.exceptions import (
    DisciplineNotFoundException, DisciplineCheckNotFoundException,
    InvalidStatusTransitionException, InvalidScheduleException
)
from tracker.constants import (
    Frequency, DisciplineStatus, Rating, Weekday,
    WORKING_DAYS, WEEKEND_DAYS, FREQUENCY_LABELS, SPECIFIC_DAYS_FALLBACK_LABEL,
    NEXT_APPLICABLE_SCAN_DAYS, RECENT_CHECKS_WINDOW_DAYS, ACTIVE_DISCIPLINE_SOFT_LIMIT
)

logger = logging.getLogger("tracker.disciplines")


def _as_date(value) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


class DisciplineService:
    """Service for discipline scheduling, check-ins and lifecycle"""

    def __init__(self, db: Session):
        self.db = db
        self.discipline_repo = DisciplineRepository()
        self.check_repo = DisciplineCheckRepository()
        self.quarter_service = QuarterService()

    # ===== SCHEDULING RULES =====

    @staticmethod
    def is_applicable_on_date(discipline: Discipline, target_date: date) -> bool:
        """
        Check whether a discipline's schedule includes the given date.

        SPECIFIC_DAYS with no usable days and unknown frequencies are never applicable.
        """
        frequency = discipline.frequency

        if frequency in (Frequency.DAILY, Frequency.ALWAYS):
            return True

        weekday = Weekday.from_date(target_date)

        if frequency == Frequency.WEEKDAYS:
            return weekday in WORKING_DAYS
        if frequency == Frequency.WEEKENDS:
            return weekday in WEEKEND_DAYS
        if frequency == Frequency.SPECIFIC_DAYS:
            return weekday in discipline.weekdays

        return False

    @staticmethod
    def get_next_applicable_day(discipline: Discipline, from_date: date) -> Optional[date]:
        """
        Get the first applicable date on or after from_date.

        Scans at most one week ahead. Returns None when nothing in that
        window applies (e.g. an empty SPECIFIC_DAYS set).
        """
        for offset in range(0, NEXT_APPLICABLE_SCAN_DAYS + 1):
            candidate = from_date + timedelta(days=offset)
            if DisciplineService.is_applicable_on_date(discipline, candidate):
                return candidate
        return None

    @staticmethod
    def calculate_streak(
        discipline: Discipline,
        checks: List[DisciplineCheck],
        today: date
    ) -> int:
        """
        Count consecutive applicable days with a non-MISSED check, walking
        backward from today.

        Inapplicable days are skipped and never break the run. Today only
        counts once it has a successful check; an unchecked today is still
        open and does not break the run either. Checks dated after today
        are ignored.

        Args:
            discipline: Discipline whose schedule defines applicable days
            checks: Check history (any order)
            today: Reference date

        Returns:
            Streak length (>= 0)
        """
        successful_dates = {
            check.date for check in checks
            if check.rating != Rating.MISSED and check.date <= today
        }
        if not successful_dates:
            return 0

        earliest = min(successful_dates)
        current = today
        if current not in successful_dates:
            current -= timedelta(days=1)

        streak = 0
        while current >= earliest:
            if not DisciplineService.is_applicable_on_date(discipline, current):
                current -= timedelta(days=1)
                continue
            if current not in successful_dates:
                break
            streak += 1
            current -= timedelta(days=1)

        return streak

    @staticmethod
    def get_applicable_days_in_quarter(
        discipline: Discipline,
        quarter_key: str,
        today: date
    ) -> int:
        """
        Count applicable days of a quarter, from the later of quarter start and
        discipline start up to the earlier of quarter end and today.
        """
        quarter_start, quarter_end = QuarterService.quarter_date_range(quarter_key)

        started = _as_date(discipline.started_at)
        range_start = max(quarter_start, started) if started else quarter_start
        range_end = min(quarter_end, today)

        if range_start > range_end:
            return 0

        count = 0
        current = range_start
        while current <= range_end:
            if DisciplineService.is_applicable_on_date(discipline, current):
                count += 1
            current += timedelta(days=1)
        return count

    @staticmethod
    def calculate_quarter_consistency(
        discipline: Discipline,
        checks: List[DisciplineCheck],
        quarter_key: str,
        today: date
    ) -> int:
        """
        Percentage (0-100) of applicable quarter days covered by a non-MISSED check.

        Every non-MISSED check dated inside the quarter counts toward the
        numerator. Returns 0 while the quarter has no applicable days yet.
        """
        applicable_days = DisciplineService.get_applicable_days_in_quarter(
            discipline, quarter_key, today
        )
        if applicable_days == 0:
            return 0

        quarter_start, quarter_end = QuarterService.quarter_date_range(quarter_key)
        successful = sum(
            1 for check in checks
            if check.rating != Rating.MISSED and quarter_start <= check.date <= quarter_end
        )

        # Round half up
        percent = (200 * successful + applicable_days) // (2 * applicable_days)
        return min(100, percent)

    @staticmethod
    def get_frequency_label(discipline: Discipline) -> str:
        """Short schedule label, e.g. "Weekdays" or "Mon/Wed/Fri" """
        if discipline.frequency == Frequency.SPECIFIC_DAYS:
            days = [d for d in Weekday if d in discipline.weekdays]
            if not days:
                return SPECIFIC_DAYS_FALLBACK_LABEL
            return "/".join(d.value[:3].capitalize() for d in days)

        try:
            return FREQUENCY_LABELS[Frequency(discipline.frequency)]
        except (ValueError, KeyError):
            return str(discipline.frequency)

    # ===== STATS & TODAY =====

    def get_stats(
        self,
        discipline: Discipline,
        quarter_key: Optional[str] = None,
        today: Optional[date] = None
    ) -> DisciplineStats:
        """
        Aggregate a discipline's full check history.

        Quarter consistency is only computed when a quarter is given.
        """
        today = today or date.today()
        checks = self.check_repo.get_for_discipline(self.db, discipline.id)

        quarter_consistency = 0
        if quarter_key:
            quarter_consistency = self.calculate_quarter_consistency(
                discipline, checks, quarter_key, today
            )

        return DisciplineStats(
            streak=self.calculate_streak(discipline, checks, today),
            quarter_consistency=quarter_consistency,
            total_checks=len(checks),
            nailed_it_count=sum(1 for c in checks if c.rating == Rating.NAILED_IT),
            close_count=sum(1 for c in checks if c.rating == Rating.CLOSE),
            missed_count=sum(1 for c in checks if c.rating == Rating.MISSED),
        )

    def get_today_disciplines(self, today: Optional[date] = None) -> List[TodayDiscipline]:
        """
        Get active disciplines with today's status.

        Disciplines applicable today come first; within each group the
        creation order is kept.
        """
        today = today or date.today()
        rows = []

        for discipline in self.discipline_repo.get_active(self.db):
            is_applicable_today = self.is_applicable_on_date(discipline, today)
            today_check = self.check_repo.get_for_date(self.db, discipline.id, today)
            recent_checks = self.check_repo.get_recent(
                self.db, discipline.id, RECENT_CHECKS_WINDOW_DAYS, today
            )

            next_applicable_day = None
            if not is_applicable_today:
                next_date = self.get_next_applicable_day(discipline, today + timedelta(days=1))
                next_applicable_day = next_date.strftime("%A") if next_date else None

            rows.append((
                discipline,
                TodayDiscipline(
                    discipline=self.to_response(discipline),
                    is_applicable_today=is_applicable_today,
                    today_check=(
                        DisciplineCheckResponse.model_validate(today_check)
                        if today_check else None
                    ),
                    streak=self.calculate_streak(discipline, recent_checks, today),
                    next_applicable_day=next_applicable_day,
                )
            ))

        rows.sort(key=lambda row: (
            not row[1].is_applicable_today,
            row[0].created_at or datetime.min,
            row[0].id
        ))
        return [item for _, item in rows]

    def should_warn_about_limit(self) -> bool:
        """Soft limit: warn once the active discipline count reaches the cap"""
        return self.discipline_repo.get_active_count(self.db) >= ACTIVE_DISCIPLINE_SOFT_LIMIT

    def get_active_count(self) -> int:
        return self.discipline_repo.get_active_count(self.db)

    # ===== CHECK-INS =====

    def check_in(
        self,
        discipline_id: int,
        rating: Rating,
        actual_time: Optional[str] = None,
        note: Optional[str] = None,
        today: Optional[date] = None
    ) -> DisciplineCheck:
        """
        Record today's self-assessment for a discipline.
        A second check-in on the same day overwrites the first.
        """
        discipline = self._get_or_raise(discipline_id)
        today = today or date.today()

        check = self.check_repo.upsert(
            self.db, discipline.id, today, Rating(rating).value, actual_time, note
        )
        logger.info(f"Check-in for discipline {discipline.id} on {today}: {check.rating}")
        return check

    def get_checks(
        self,
        discipline_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[DisciplineCheck]:
        """Get checks for a discipline, optionally bounded by dates"""
        discipline = self._get_or_raise(discipline_id)
        if start_date is None and end_date is None:
            return self.check_repo.get_for_discipline(self.db, discipline.id)

        return self.check_repo.get_in_date_range(
            self.db,
            discipline.id,
            start_date or date.min,
            end_date or date.max
        )

    def delete_check(self, check_id: int) -> None:
        check = self.check_repo.get_by_id(self.db, check_id)
        if not check:
            raise DisciplineCheckNotFoundException(check_id)
        self.check_repo.delete(self.db, check)

    # ===== CRUD & LIFECYCLE =====

    def get_discipline(self, discipline_id: int) -> Discipline:
        return self._get_or_raise(discipline_id)

    def list_disciplines(self, status: Optional[DisciplineStatus] = None) -> List[Discipline]:
        """Get all disciplines, or only those in the given status"""
        if status is None:
            return self.discipline_repo.get_all(self.db)
        return self.discipline_repo.get_by_status(self.db, DisciplineStatus(status).value)

    def get_for_quarter(self, quarter_key: str) -> List[Discipline]:
        self.quarter_service.parse_quarter(quarter_key)
        return self.discipline_repo.get_for_quarter(self.db, quarter_key)

    def create_discipline(
        self,
        data: DisciplineCreate,
        evolved_from_id: Optional[int] = None
    ) -> Discipline:
        """Create a new active discipline"""
        frequency = Frequency(data.frequency)
        discipline = Discipline(
            title=data.title,
            description=data.description,
            frequency=frequency.value,
            specific_days=(
                serialize_specific_days(data.specific_days)
                if frequency == Frequency.SPECIFIC_DAYS else None
            ),
            target_time=data.target_time,
            flexibility_minutes=data.flexibility_minutes,
            quarter=data.quarter,
            status=DisciplineStatus.ACTIVE.value,
            started_at=data.started_at or datetime.now(),
            evolved_from_id=evolved_from_id,
        )
        discipline = self.discipline_repo.create(self.db, discipline)
        logger.info(f"Created discipline {discipline.id}: {discipline.title}")
        return discipline

    def update_discipline(self, discipline_id: int, update: DisciplineUpdate) -> Discipline:
        """
        Update discipline fields.

        Day lists only survive on SPECIFIC_DAYS disciplines.

        Raises:
            DisciplineNotFoundException: If the discipline does not exist
            InvalidScheduleException: If the result is SPECIFIC_DAYS without any day
        """
        discipline = self._get_or_raise(discipline_id)

        update_data = update.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if key == "frequency":
                value = Frequency(value).value
            elif key == "specific_days":
                value = serialize_specific_days(value)
            setattr(discipline, key, value)

        if discipline.frequency != Frequency.SPECIFIC_DAYS:
            discipline.specific_days = None
        elif not discipline.weekdays:
            self.db.rollback()
            raise InvalidScheduleException(
                discipline_id, "SPECIFIC_DAYS needs at least one day"
            )

        try:
            return self.discipline_repo.update(self.db, discipline)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update discipline {discipline_id}: {e}")
            raise

    def delete_discipline(self, discipline_id: int) -> None:
        discipline = self._get_or_raise(discipline_id)
        self.discipline_repo.delete(self.db, discipline)
        logger.info(f"Deleted discipline {discipline_id}")

    def graduate(self, discipline_id: int, reflection: str) -> Discipline:
        """Mark an active discipline as ingrained"""
        discipline = self._transition(discipline_id, DisciplineStatus.INGRAINED)
        discipline.ingrained_at = datetime.now()
        discipline.ingrained_reflection = reflection
        return self.discipline_repo.update(self.db, discipline)

    def retire(self, discipline_id: int, reason: Optional[str] = None) -> Discipline:
        """Stop tracking an active discipline"""
        discipline = self._transition(discipline_id, DisciplineStatus.RETIRED)
        discipline.retired_reason = reason or "No longer serving me"
        return self.discipline_repo.update(self.db, discipline)

    def evolve(self, discipline_id: int, data: DisciplineCreate) -> Discipline:
        """
        Replace an active discipline with a leveled-up successor.

        The predecessor is marked EVOLVED and the successor keeps its id in
        evolved_from_id.
        """
        predecessor = self._transition(discipline_id, DisciplineStatus.EVOLVED)
        self.discipline_repo.update(self.db, predecessor)
        return self.create_discipline(data, evolved_from_id=predecessor.id)

    def get_lineage(self, discipline_id: int) -> List[Discipline]:
        """Follow evolved_from_id links back to the original, newest first"""
        lineage = [self._get_or_raise(discipline_id)]
        seen = {discipline_id}

        previous_id = lineage[0].evolved_from_id
        while previous_id is not None and previous_id not in seen:
            previous = self.discipline_repo.get_by_id(self.db, previous_id)
            if previous is None:
                break
            lineage.append(previous)
            seen.add(previous_id)
            previous_id = previous.evolved_from_id

        return lineage

    def to_response(self, discipline: Discipline) -> DisciplineResponse:
        """Serialize a discipline with its schedule label"""
        response = DisciplineResponse.model_validate(discipline)
        response.frequency_label = self.get_frequency_label(discipline)
        return response

    def _transition(self, discipline_id: int, target: DisciplineStatus) -> Discipline:
        discipline = self._get_or_raise(discipline_id)
        if discipline.status != DisciplineStatus.ACTIVE:
            raise InvalidStatusTransitionException(discipline_id, discipline.status, target.value)

        discipline.status = target.value
        logger.info(f"Discipline {discipline_id} moved to {target.value}")
        return discipline

    def _get_or_raise(self, discipline_id: int) -> Discipline:
        discipline = self.discipline_repo.get_by_id(self.db, discipline_id)
        if not discipline:
            raise DisciplineNotFoundException(discipline_id)
        return discipline
