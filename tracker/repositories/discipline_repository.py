"""
Discipline repository - Data access layer for Discipline and DisciplineCheck models.
Handles all database queries related to disciplines and their check-ins.
"""
from datetime import date, timedelta
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_

from tracker.models import Discipline, DisciplineCheck
from tracker.constants import DisciplineStatus


class DisciplineRepository:
    """Repository for Discipline data access"""

    @staticmethod
    def get_by_id(db: Session, discipline_id: int) -> Optional[Discipline]:
        """Get discipline by ID"""
        return db.query(Discipline).filter(Discipline.id == discipline_id).first()

    @staticmethod
    def get_all(db: Session) -> List[Discipline]:
        """Get all disciplines, newest first"""
        return db.query(Discipline).order_by(Discipline.created_at.desc(), Discipline.id.desc()).all()

    @staticmethod
    def get_active(db: Session) -> List[Discipline]:
        """Get active disciplines in creation order"""
        return db.query(Discipline).filter(
            Discipline.status == DisciplineStatus.ACTIVE.value
        ).order_by(Discipline.created_at, Discipline.id).all()

    @staticmethod
    def get_by_status(db: Session, status: str) -> List[Discipline]:
        """Get disciplines with given status, newest first"""
        return db.query(Discipline).filter(
            Discipline.status == status
        ).order_by(Discipline.created_at.desc(), Discipline.id.desc()).all()

    @staticmethod
    def get_for_quarter(db: Session, quarter: str) -> List[Discipline]:
        """Get disciplines scoped to a quarter"""
        return db.query(Discipline).filter(
            Discipline.quarter == quarter
        ).order_by(Discipline.created_at, Discipline.id).all()

    @staticmethod
    def get_active_count(db: Session) -> int:
        """Count active disciplines"""
        return db.query(Discipline).filter(
            Discipline.status == DisciplineStatus.ACTIVE.value
        ).count()

    @staticmethod
    def create(db: Session, discipline: Discipline) -> Discipline:
        """Create a new discipline"""
        db.add(discipline)
        db.commit()
        db.refresh(discipline)
        return discipline

    @staticmethod
    def update(db: Session, discipline: Discipline) -> Discipline:
        """Update existing discipline"""
        db.commit()
        db.refresh(discipline)
        return discipline

    @staticmethod
    def delete(db: Session, discipline: Discipline) -> None:
        """Delete a discipline together with its checks"""
        db.query(DisciplineCheck).filter(
            DisciplineCheck.discipline_id == discipline.id
        ).delete(synchronize_session=False)
        db.delete(discipline)
        db.commit()


class DisciplineCheckRepository:
    """Repository for DisciplineCheck data access"""

    @staticmethod
    def get_by_id(db: Session, check_id: int) -> Optional[DisciplineCheck]:
        """Get check by ID"""
        return db.query(DisciplineCheck).filter(DisciplineCheck.id == check_id).first()

    @staticmethod
    def get_for_discipline(db: Session, discipline_id: int) -> List[DisciplineCheck]:
        """Get all checks for a discipline, most recent first"""
        return db.query(DisciplineCheck).filter(
            DisciplineCheck.discipline_id == discipline_id
        ).order_by(DisciplineCheck.date.desc()).all()

    @staticmethod
    def get_for_date(db: Session, discipline_id: int, target_date: date) -> Optional[DisciplineCheck]:
        """Get the check for a discipline on a specific date"""
        return db.query(DisciplineCheck).filter(
            and_(
                DisciplineCheck.discipline_id == discipline_id,
                DisciplineCheck.date == target_date
            )
        ).first()

    @staticmethod
    def get_all_for_date(db: Session, target_date: date) -> List[DisciplineCheck]:
        """Get checks of every discipline for a date"""
        return db.query(DisciplineCheck).filter(DisciplineCheck.date == target_date).all()

    @staticmethod
    def get_in_date_range(
        db: Session,
        discipline_id: int,
        start_date: date,
        end_date: date
    ) -> List[DisciplineCheck]:
        """Get checks for a discipline between two dates (inclusive)"""
        return db.query(DisciplineCheck).filter(
            and_(
                DisciplineCheck.discipline_id == discipline_id,
                DisciplineCheck.date >= start_date,
                DisciplineCheck.date <= end_date
            )
        ).order_by(DisciplineCheck.date.desc()).all()

    @staticmethod
    def get_recent(db: Session, discipline_id: int, days: int, today: date) -> List[DisciplineCheck]:
        """Get checks from the last N days up to and including today"""
        return DisciplineCheckRepository.get_in_date_range(
            db, discipline_id, today - timedelta(days=days - 1), today
        )

    @staticmethod
    def upsert(
        db: Session,
        discipline_id: int,
        target_date: date,
        rating: str,
        actual_time: Optional[str] = None,
        note: Optional[str] = None
    ) -> DisciplineCheck:
        """Create the check for a date, or overwrite the existing one"""
        check = DisciplineCheckRepository.get_for_date(db, discipline_id, target_date)
        if check is None:
            check = DisciplineCheck(discipline_id=discipline_id, date=target_date)
            db.add(check)

        check.rating = rating
        check.actual_time = actual_time
        check.note = note

        db.commit()
        db.refresh(check)
        return check

    @staticmethod
    def delete(db: Session, check: DisciplineCheck) -> None:
        """Delete a check"""
        db.delete(check)
        db.commit()
